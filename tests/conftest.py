# tests/conftest.py
"""
Pytest fixtures: temp-file SQLite store and in-memory stand-ins for the
user, product, tag and assignment services.
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from appservice.core.context import RequestContext
from appservice.core.entities.application import (
    Application,
    ApplicationHistory,
    ApplicationStatus,
    UserRole,
)
from appservice.core.entities.document import Document
from appservice.core.errors import Result, ServiceUnavailableError
from appservice.core.interfaces.remote_services import (
    IAssignmentService,
    ICatalogService,
    IIdentityService,
    ITagService,
    TagRef,
)
from appservice.core.use_cases.manage_applications import ManageApplicationsUseCase
from appservice.core.use_cases.paginate_applications import PaginateApplicationsUseCase
from appservice.infrastructure.db.database import Database
from appservice.infrastructure.db.repository import SqlAlchemyApplicationStore


def _down(service: str) -> Result:
    return Result.err(ServiceUnavailableError(f"{service.capitalize()} is unavailable now", service=service))


class StubIdentity(IIdentityService):
    def __init__(self):
        self.roles: dict[uuid.UUID, UserRole] = {}
        self.down = False
        self.role_calls = 0

    def add(self, role: UserRole = UserRole.CLIENT) -> uuid.UUID:
        user_id = uuid.uuid4()
        self.roles[user_id] = role
        return user_id

    def exists(self, ctx, user_id):
        if self.down:
            return _down(self.service_name)
        return Result.ok(user_id in self.roles)

    def role_of(self, ctx, user_id):
        self.role_calls += 1
        if self.down:
            return _down(self.service_name)
        return Result.ok(self.roles.get(user_id))


class StubCatalog(ICatalogService):
    def __init__(self):
        self.products: set[uuid.UUID] = set()
        self.down = False

    def add(self) -> uuid.UUID:
        product_id = uuid.uuid4()
        self.products.add(product_id)
        return product_id

    def exists(self, ctx, product_id):
        if self.down:
            return _down(self.service_name)
        return Result.ok(product_id in self.products)


class StubTags(ITagService):
    def __init__(self):
        self.known: dict[str, TagRef] = {}
        self.down = False
        self.calls: list[list[str]] = []

    def create_or_get(self, ctx, names):
        self.calls.append(list(names))
        if self.down:
            return _down(self.service_name)
        for name in names:
            self.known.setdefault(name, TagRef(id=uuid.uuid4(), name=name))
        return Result.ok([self.known[n] for n in dict.fromkeys(names)])


class StubAssignments(IAssignmentService):
    def __init__(self):
        self.owners: set[tuple[uuid.UUID, uuid.UUID]] = set()
        self.down = False

    def has_role(self, ctx, user_id, product_id, role):
        if self.down:
            return _down(self.service_name)
        return Result.ok(role == "PRODUCT_OWNER" and (user_id, product_id) in self.owners)


class FlakyStore(SqlAlchemyApplicationStore):
    """Fails to delete the given ids."""

    def __init__(self, db, fail_ids):
        super().__init__(db)
        self.fail_ids = set(fail_ids)

    def delete(self, application_id):
        if application_id in self.fail_ids:
            raise RuntimeError("database is locked")
        return super().delete(application_id)


def as_actor(actor_id: uuid.UUID | None, token: str | None = None) -> RequestContext:
    return RequestContext(actor_id=actor_id, authorization=token)


def seed_application(
    store: SqlAlchemyApplicationStore,
    created_at: datetime,
    app_id: uuid.UUID | None = None,
    applicant_id: uuid.UUID | None = None,
    product_id: uuid.UUID | None = None,
    documents: list[Document] | None = None,
) -> Application:
    """Writes an application straight to the store, bypassing remote checks."""
    app = Application(
        applicant_id=applicant_id or uuid.uuid4(),
        product_id=product_id or uuid.uuid4(),
        created_at=created_at,
        documents=list(documents or []),
    )
    if app_id is not None:
        app.id = app_id
    history = ApplicationHistory(
        application_id=app.id,
        new_status=ApplicationStatus.SUBMITTED,
        changed_by_role=UserRole.CLIENT,
        changed_at=created_at,
    )
    return store.create(app, history)


BASE_TIME = datetime(2024, 5, 1, 10, 0, 0, tzinfo=timezone.utc)


def at(seconds: int) -> datetime:
    return BASE_TIME + timedelta(seconds=seconds)


# ── Fixtures ──

@pytest.fixture
def database(tmp_path):
    db = Database(f"sqlite:///{tmp_path / 'applications.db'}")
    db.init()
    yield db
    db.engine.dispose()


@pytest.fixture
def store(database):
    return SqlAlchemyApplicationStore(database)


@pytest.fixture
def identity():
    return StubIdentity()


@pytest.fixture
def catalog():
    return StubCatalog()


@pytest.fixture
def tags():
    return StubTags()


@pytest.fixture
def assignments():
    return StubAssignments()


@pytest.fixture
def manage(store, identity, catalog, tags):
    return ManageApplicationsUseCase(store=store, identity=identity, catalog=catalog, tags=tags)


@pytest.fixture
def paginate(store):
    return PaginateApplicationsUseCase(store)


@pytest.fixture
def admin(identity):
    return identity.add(UserRole.ADMIN)


@pytest.fixture
def manager(identity):
    return identity.add(UserRole.MANAGER)


@pytest.fixture
def client_user(identity):
    return identity.add(UserRole.CLIENT)


@pytest.fixture
def product(catalog):
    return catalog.add()
