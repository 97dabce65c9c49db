"""
Use Case: Manage Applications — lifecycle coordinator.

Orchestrates: existence checks → authorization → store writes → tag service.
Within one request every step runs after the previous one has resolved;
a remote failure is surfaced immediately, never retried here.
"""

import logging
import uuid

from appservice.core.context import RequestContext
from appservice.core.entities.application import (
    Application,
    ApplicationHistory,
    ApplicationInfo,
    ApplicationStatus,
    CascadeReport,
    UserRole,
    utcnow,
)
from appservice.core.entities.document import Document
from appservice.core.errors import (
    BadRequestError,
    ConflictError,
    NotFoundError,
    ServiceUnavailableError,
    UnauthorizedError,
)
from appservice.core.interfaces.application_store import IApplicationStore
from appservice.core.interfaces.remote_services import (
    ICatalogService,
    IIdentityService,
    ITagService,
)
from appservice.core.use_cases.authorize_actor import (
    AuthorizationResolver,
    Capability,
    LocalOwnership,
    Unavailable,
)

logger = logging.getLogger(__name__)


def normalize_tag_names(names: list[str] | None) -> list[str]:
    """Trims names and drops blanks. Order kept, duplicates left to the tag service."""
    return [n.strip() for n in (names or []) if n and n.strip()]


class ManageApplicationsUseCase:
    """
    Use Case: create, retag, transition, audit and delete applications.

    Dependency Injection: store and remote clients come through the
    constructor. The resolver defaults to local ownership on applicant_id.
    """

    def __init__(
        self,
        store: IApplicationStore,
        identity: IIdentityService,
        catalog: ICatalogService,
        tags: ITagService,
        resolver: AuthorizationResolver | None = None,
    ):
        self._store = store
        self._identity = identity
        self._catalog = catalog
        self._tags = tags
        self._resolver = resolver or AuthorizationResolver(identity, LocalOwnership())

    # ── Create ─────────────────────────────────────────────

    def create(
        self,
        ctx: RequestContext,
        applicant_id: uuid.UUID | None,
        product_id: uuid.UUID | None,
        documents: list[Document] | None = None,
        tag_names: list[str] | None = None,
    ) -> Application:
        """
        Creates an application in SUBMITTED with its creation history row.

        1. Applicant must exist (identity service)
        2. Product must exist (catalog service)
        3. An actor creating for someone else must be ADMIN
        4. Application, documents and history saved in one unit of work
        5. Tags, if any, via the tag service; failure leaves the
           application saved without tags and is reported as unavailable
        """
        if applicant_id is None or product_id is None:
            raise BadRequestError("Applicant ID and Product ID are required")
        for doc in documents or []:
            if not doc.file_name or not doc.file_name.strip():
                raise BadRequestError("Document file name is required")

        exists = self._identity.exists(ctx, applicant_id)
        if not exists.unwrap():
            raise NotFoundError("Applicant with this ID not found", context={"applicant_id": str(applicant_id)})

        exists = self._catalog.exists(ctx, product_id)
        if not exists.unwrap():
            raise NotFoundError("Product with this ID not found", context={"product_id": str(product_id)})

        app = Application(
            applicant_id=applicant_id,
            product_id=product_id,
            status=ApplicationStatus.SUBMITTED,
            documents=list(documents or []),
        )

        role = UserRole.CLIENT
        if ctx.actor_id is not None and ctx.actor_id != applicant_id:
            decision = self._resolver.resolve(ctx, Capability.SELF_OR_ADMIN, app).raise_if_denied()
            role = decision.role or UserRole.CLIENT

        history = ApplicationHistory(
            application_id=app.id,
            old_status=None,
            new_status=app.status,
            changed_by_role=role,
            changed_at=app.created_at,
        )
        app = self._store.create(app, history)
        logger.info(f"Application created: {app.id}")

        names = normalize_tag_names(tag_names)
        if names:
            refs = self._tags.create_or_get(ctx, names)
            if not refs.is_ok():
                logger.warning(f"Tag service failed for new application {app.id}: {refs.error}")
                raise ServiceUnavailableError(
                    "Tag service is unavailable now. Application saved without tags",
                    service=self._tags.service_name,
                    context={"application_id": str(app.id)},
                )
            app.tags = self._store.add_tags(app.id, {t.name for t in refs.unwrap()})
            logger.info(f"Added {len(app.tags)} tags to application {app.id}")

        return app

    # ── Read ───────────────────────────────────────────────

    def find_by_id(self, application_id: uuid.UUID) -> Application:
        app = self._store.get(application_id)
        if app is None:
            raise NotFoundError("Application with this ID not found")
        return app

    def find_by_tag(self, tag_name: str) -> list[ApplicationInfo]:
        if not tag_name or not tag_name.strip():
            raise BadRequestError("Tag name is required")
        infos = self._store.find_by_tag(tag_name.strip())
        logger.info(f"Found {len(infos)} applications with tag {tag_name}")
        return infos

    def count(self) -> int:
        return self._store.count()

    def list_history(self, ctx: RequestContext, application_id: uuid.UUID) -> list[ApplicationHistory]:
        """History newest first. Owner, ADMIN or MANAGER."""
        app = self._load_for_actor(ctx, application_id)
        self._resolver.resolve(ctx, Capability.SELF_OR_PRIVILEGED, app).raise_if_denied()
        return self._store.list_history(application_id)

    # ── Status ─────────────────────────────────────────────

    def change_status(self, ctx: RequestContext, application_id: uuid.UUID, new_status_text: str) -> Application:
        """
        Moves the application to any of the enumerated statuses.

        No transition graph: ADMIN may set any status, MANAGER too except on
        their own application. Same status in, no history row out.
        """
        app = self._load_for_actor(ctx, application_id)
        decision = self._resolver.resolve(ctx, Capability.CHANGE_STATUS, app)
        new_status = ApplicationStatus.parse(new_status_text)
        if new_status is None and isinstance(decision, Unavailable):
            # an unparsable status outranks the identity outage
            raise self._invalid_status()
        decision.raise_if_denied()
        if new_status is None:
            raise self._invalid_status()

        old_status = app.status
        if new_status == old_status:
            logger.debug(f"Application {application_id} already {old_status.value}, nothing to do")
            return app

        app.status = new_status
        app.updated_at = utcnow()
        history = ApplicationHistory(
            application_id=app.id,
            old_status=old_status,
            new_status=new_status,
            changed_by_role=decision.role,
            changed_at=app.updated_at,
        )
        app = self._store.update_status(app, history)
        logger.info(
            f"Application {application_id} status changed from {old_status.value} "
            f"to {new_status.value} by {ctx.actor_id}"
        )
        return app

    # ── Tags ───────────────────────────────────────────────

    def attach_tags(self, ctx: RequestContext, application_id: uuid.UUID, names: list[str]) -> set[str]:
        """Union of the current tags and the tag service's normalized names."""
        app = self._load_for_actor(ctx, application_id)
        self._resolver.resolve(ctx, Capability.SELF_OR_PRIVILEGED, app).raise_if_denied()

        cleaned = normalize_tag_names(names)
        if not cleaned:
            return app.tags

        refs = self._tags.create_or_get(ctx, cleaned)
        if not refs.is_ok():
            raise ServiceUnavailableError("Tag service is unavailable now", service=self._tags.service_name)

        new_tags = {t.name for t in refs.unwrap()}
        tags = self._store.add_tags(application_id, new_tags)
        logger.info(f"Added {len(new_tags)} tags to existing application {application_id}")
        return tags

    def remove_tags(self, ctx: RequestContext, application_id: uuid.UUID, names: list[str]) -> set[str]:
        """Local set difference. Names that are not attached are ignored."""
        app = self._load_for_actor(ctx, application_id)
        self._resolver.resolve(ctx, Capability.SELF_OR_PRIVILEGED, app).raise_if_denied()

        tags = self._store.remove_tags(application_id, set(normalize_tag_names(names)))
        logger.info(f"Removed {len(names or [])} tags from application {application_id}")
        return tags

    # ── Delete ─────────────────────────────────────────────

    def delete(self, ctx: RequestContext, application_id: uuid.UUID) -> None:
        """ADMIN only. Local rows only, nothing is sent to other services."""
        app = self._load_for_actor(ctx, application_id)
        self._resolver.resolve(ctx, Capability.ADMIN_ONLY, app).raise_if_denied()
        self._store.delete(application_id)
        logger.info(f"Application deleted: {application_id}")

    def delete_all_by_applicant(self, user_id: uuid.UUID) -> CascadeReport:
        """Trusted internal cascade from the identity service."""
        ids = self._store.ids_by_applicant(user_id)
        return self._cascade(CascadeReport(owner_kind="applicant", owner_id=user_id), ids)

    def delete_all_by_product(self, product_id: uuid.UUID) -> CascadeReport:
        """Trusted internal cascade from the catalog service."""
        ids = self._store.ids_by_product(product_id)
        return self._cascade(CascadeReport(owner_kind="product", owner_id=product_id), ids)

    def _cascade(self, report: CascadeReport, ids: list[uuid.UUID]) -> CascadeReport:
        # one unit of work per id; a failure is recorded and the loop goes on
        for app_id in ids:
            try:
                self._store.delete(app_id)
            except Exception as e:
                logger.exception(f"Failed to delete application {app_id} for {report.owner_kind} {report.owner_id}")
                report.failed[app_id] = str(e)
                continue
            report.deleted.append(app_id)
            logger.info(f"Deleted application {app_id} for {report.owner_kind} {report.owner_id}")

        if report.failed:
            logger.error(
                f"Cascade for {report.owner_kind} {report.owner_id} incomplete: "
                f"{len(report.failed)} of {len(ids)} applications left for manual cleanup"
            )
        return report

    # ── Helpers ────────────────────────────────────────────

    @staticmethod
    def _invalid_status() -> ConflictError:
        return ConflictError(f"Invalid status. Valid values: {', '.join(ApplicationStatus.names())}")

    def _load_for_actor(self, ctx: RequestContext, application_id: uuid.UUID) -> Application:
        if not ctx.is_authenticated:
            raise UnauthorizedError("Authentication required")
        app = self._store.get(application_id)
        if app is None:
            raise NotFoundError("Application not found")
        return app
