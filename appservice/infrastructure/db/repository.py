"""
Application Repository — SQLAlchemy implementation of IApplicationStore.

Handles:
  - Creating applications with documents and the creation history row
  - Status updates guarded by the optimistic version counter
  - Tag name association
  - Ordered deletes (documents, history, tags, application)
  - Keyset and offset id windows, plus batch loads for one window
"""

import logging
import uuid
from collections import defaultdict
from datetime import datetime, timezone

from sqlalchemy import and_, delete, func, or_, select
from sqlalchemy.orm.exc import StaleDataError

from appservice.core.entities.application import (
    Application,
    ApplicationHistory,
    ApplicationInfo,
    ApplicationStatus,
    UserRole,
)
from appservice.core.entities.document import Document
from appservice.core.errors import NotFoundError, VersionConflictError
from appservice.core.interfaces.application_store import IApplicationStore
from appservice.infrastructure.db.database import Database
from appservice.infrastructure.db.models import (
    ApplicationHistoryRecord,
    ApplicationRecord,
    ApplicationTagRecord,
    DocumentRecord,
)

logger = logging.getLogger(__name__)


def _utc(ts: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes; everything is stored as UTC
    if ts is None:
        return None
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


class SqlAlchemyApplicationStore(IApplicationStore):
    """Repository for applications and everything they own."""

    def __init__(self, db: Database):
        self._db = db

    # ── Writes ──

    def create(self, application: Application, history: ApplicationHistory) -> Application:
        with self._db.session() as db:
            record = ApplicationRecord(
                id=application.id,
                applicant_id=application.applicant_id,
                product_id=application.product_id,
                status=application.status.value,
                created_at=application.created_at,
                updated_at=application.updated_at,
            )
            record.documents = [
                DocumentRecord(
                    id=d.id,
                    file_name=d.file_name,
                    content_type=d.content_type,
                    storage_path=d.storage_path,
                )
                for d in application.documents
            ]
            record.tags = [ApplicationTagRecord(tag_name=name) for name in sorted(application.tags)]
            db.add(record)
            db.flush()
            db.add(self._history_record(history))
            application.version = record.version
        logger.debug(f"Saved application {application.id} with {len(application.documents)} documents")
        return application

    def update_status(self, application: Application, history: ApplicationHistory) -> Application:
        try:
            with self._db.session() as db:
                record = db.get(ApplicationRecord, application.id)
                if record is None or record.version != application.version:
                    raise VersionConflictError(
                        "Application was modified or deleted concurrently",
                        context={"application_id": str(application.id)},
                    )
                record.status = application.status.value
                record.updated_at = application.updated_at
                db.add(self._history_record(history))
                db.flush()
                application.version = record.version
        except StaleDataError:
            raise VersionConflictError(
                "Application was modified or deleted concurrently",
                context={"application_id": str(application.id)},
            )
        return application

    def add_tags(self, application_id: uuid.UUID, names: set[str]) -> set[str]:
        with self._db.session() as db:
            if db.get(ApplicationRecord, application_id) is None:
                raise NotFoundError("Application not found")
            current = self._tag_names(db, application_id)
            for name in sorted(names - current):
                db.add(ApplicationTagRecord(application_id=application_id, tag_name=name))
            return current | names

    def remove_tags(self, application_id: uuid.UUID, names: set[str]) -> set[str]:
        with self._db.session() as db:
            if names:
                db.execute(
                    delete(ApplicationTagRecord).where(
                        ApplicationTagRecord.application_id == application_id,
                        ApplicationTagRecord.tag_name.in_(names),
                    )
                )
            return self._tag_names(db, application_id)

    def delete(self, application_id: uuid.UUID) -> bool:
        with self._db.session() as db:
            db.execute(delete(DocumentRecord).where(DocumentRecord.application_id == application_id))
            db.execute(delete(ApplicationHistoryRecord).where(ApplicationHistoryRecord.application_id == application_id))
            db.execute(delete(ApplicationTagRecord).where(ApplicationTagRecord.application_id == application_id))
            result = db.execute(delete(ApplicationRecord).where(ApplicationRecord.id == application_id))
            return result.rowcount > 0

    # ── Reads ──

    def get(self, application_id: uuid.UUID) -> Application | None:
        with self._db.session() as db:
            record = db.get(ApplicationRecord, application_id)
            if record is None:
                return None
            app = self._to_domain(record)
            app.documents = [self._document(d) for d in record.documents]
            app.tags = {t.tag_name for t in record.tags}
            return app

    def list_history(self, application_id: uuid.UUID) -> list[ApplicationHistory]:
        with self._db.session() as db:
            rows = db.execute(
                select(ApplicationHistoryRecord)
                .where(ApplicationHistoryRecord.application_id == application_id)
                .order_by(ApplicationHistoryRecord.changed_at.desc())
            ).scalars().all()
            return [
                ApplicationHistory(
                    id=h.id,
                    application_id=h.application_id,
                    old_status=ApplicationStatus(h.old_status) if h.old_status else None,
                    new_status=ApplicationStatus(h.new_status),
                    changed_by_role=UserRole(h.changed_by),
                    changed_at=_utc(h.changed_at),
                )
                for h in rows
            ]

    def ids_by_applicant(self, applicant_id: uuid.UUID) -> list[uuid.UUID]:
        with self._db.session() as db:
            return list(db.execute(
                select(ApplicationRecord.id).where(ApplicationRecord.applicant_id == applicant_id)
            ).scalars())

    def ids_by_product(self, product_id: uuid.UUID) -> list[uuid.UUID]:
        with self._db.session() as db:
            return list(db.execute(
                select(ApplicationRecord.id).where(ApplicationRecord.product_id == product_id)
            ).scalars())

    def page_keys(
        self, limit: int, after: tuple[datetime, uuid.UUID] | None = None
    ) -> list[tuple[datetime, uuid.UUID]]:
        stmt = select(ApplicationRecord.created_at, ApplicationRecord.id)
        if after is not None:
            ts, last_id = after
            stmt = stmt.where(
                or_(
                    ApplicationRecord.created_at < ts,
                    and_(ApplicationRecord.created_at == ts, ApplicationRecord.id < last_id),
                )
            )
        stmt = stmt.order_by(ApplicationRecord.created_at.desc(), ApplicationRecord.id.desc()).limit(limit)
        with self._db.session() as db:
            return [(_utc(created_at), app_id) for created_at, app_id in db.execute(stmt).all()]

    def offset_ids(self, offset: int, limit: int) -> list[uuid.UUID]:
        stmt = (
            select(ApplicationRecord.id)
            .order_by(ApplicationRecord.created_at.desc(), ApplicationRecord.id.desc())
            .offset(offset)
            .limit(limit)
        )
        with self._db.session() as db:
            return list(db.execute(stmt).scalars())

    def load_many(self, ids: list[uuid.UUID]) -> list[Application]:
        if not ids:
            return []
        with self._db.session() as db:
            rows = db.execute(select(ApplicationRecord).where(ApplicationRecord.id.in_(ids))).scalars().all()
            return [self._to_domain(r) for r in rows]

    def documents_for(self, ids: list[uuid.UUID]) -> dict[uuid.UUID, list[Document]]:
        grouped: dict[uuid.UUID, list[Document]] = defaultdict(list)
        if not ids:
            return grouped
        with self._db.session() as db:
            rows = db.execute(select(DocumentRecord).where(DocumentRecord.application_id.in_(ids))).scalars().all()
            for d in rows:
                grouped[d.application_id].append(self._document(d))
        return grouped

    def tags_for(self, ids: list[uuid.UUID]) -> dict[uuid.UUID, set[str]]:
        grouped: dict[uuid.UUID, set[str]] = defaultdict(set)
        if not ids:
            return grouped
        with self._db.session() as db:
            rows = db.execute(
                select(ApplicationTagRecord.application_id, ApplicationTagRecord.tag_name)
                .where(ApplicationTagRecord.application_id.in_(ids))
            ).all()
            for app_id, name in rows:
                grouped[app_id].add(name)
        return grouped

    def find_by_tag(self, tag_name: str) -> list[ApplicationInfo]:
        stmt = (
            select(ApplicationRecord)
            .join(ApplicationTagRecord, ApplicationTagRecord.application_id == ApplicationRecord.id)
            .where(ApplicationTagRecord.tag_name == tag_name)
            .order_by(ApplicationRecord.created_at.desc(), ApplicationRecord.id.desc())
        )
        with self._db.session() as db:
            return [
                ApplicationInfo(
                    id=r.id,
                    applicant_id=r.applicant_id,
                    product_id=r.product_id,
                    status=ApplicationStatus(r.status),
                    created_at=_utc(r.created_at),
                )
                for r in db.execute(stmt).scalars().all()
            ]

    def count(self) -> int:
        with self._db.session() as db:
            return db.execute(select(func.count()).select_from(ApplicationRecord)).scalar_one()

    # ── Mapping ──

    @staticmethod
    def _tag_names(db, application_id: uuid.UUID) -> set[str]:
        return set(db.execute(
            select(ApplicationTagRecord.tag_name).where(ApplicationTagRecord.application_id == application_id)
        ).scalars())

    @staticmethod
    def _history_record(history: ApplicationHistory) -> ApplicationHistoryRecord:
        return ApplicationHistoryRecord(
            id=history.id,
            application_id=history.application_id,
            old_status=history.old_status.value if history.old_status else None,
            new_status=history.new_status.value,
            changed_by=history.changed_by_role.value,
            changed_at=history.changed_at,
        )

    @staticmethod
    def _document(record: DocumentRecord) -> Document:
        return Document(
            id=record.id,
            file_name=record.file_name,
            content_type=record.content_type,
            storage_path=record.storage_path,
        )

    @staticmethod
    def _to_domain(record: ApplicationRecord) -> Application:
        return Application(
            id=record.id,
            applicant_id=record.applicant_id,
            product_id=record.product_id,
            status=ApplicationStatus(record.status),
            created_at=_utc(record.created_at),
            updated_at=_utc(record.updated_at),
            version=record.version,
        )
