"""
Use Case: Authorize Actor

Blends a local-or-remote ownership fact with one remote role lookup and
returns a Decision. The resolver is generic over how ownership is decided:
LocalOwnership compares the subject's owner field, AssignmentOwnership asks
the assignment service. Nothing is cached between calls.
"""

import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Generic, Protocol, TypeVar

from appservice.core.context import RequestContext
from appservice.core.entities.application import UserRole
from appservice.core.errors import (
    AppServiceError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    Result,
    ServiceUnavailableError,
    UnauthorizedError,
)
from appservice.core.interfaces.remote_services import IAssignmentService, IIdentityService

logger = logging.getLogger(__name__)


class Capability(str, Enum):
    SELF_OR_PRIVILEGED = "SELF_OR_PRIVILEGED"   # owner, ADMIN or MANAGER
    SELF_OR_ADMIN = "SELF_OR_ADMIN"             # owner or ADMIN
    ADMIN_ONLY = "ADMIN_ONLY"
    CHANGE_STATUS = "CHANGE_STATUS"             # ADMIN, or MANAGER who is not the owner


# ── Decisions ──────────────────────────────────────────────

@dataclass(frozen=True)
class Decision:
    @property
    def allowed(self) -> bool:
        return False

    def to_error(self) -> AppServiceError | None:
        return None

    def raise_if_denied(self) -> "Decision":
        error = self.to_error()
        if error is not None:
            raise error
        return self


@dataclass(frozen=True)
class Allowed(Decision):
    role: UserRole | None = None          # None when ownership alone decided

    @property
    def allowed(self) -> bool:
        return True


@dataclass(frozen=True)
class Denied(Decision):
    reason: str = "Insufficient permissions"
    conflict: bool = False                # domain-rule denial, reported as Conflict

    def to_error(self) -> AppServiceError:
        if self.conflict:
            return ConflictError(self.reason)
        return ForbiddenError(self.reason)


@dataclass(frozen=True)
class Unavailable(Decision):
    service: str = ""

    def to_error(self) -> AppServiceError:
        return ServiceUnavailableError(f"{self.service.capitalize()} is unavailable now", service=self.service)


@dataclass(frozen=True)
class ActorNotFound(Decision):
    actor_id: uuid.UUID | None = None

    def to_error(self) -> AppServiceError:
        return NotFoundError("Acting user not found", context={"actor_id": str(self.actor_id)})


@dataclass(frozen=True)
class Unauthenticated(Decision):
    def to_error(self) -> AppServiceError:
        return UnauthorizedError("Authentication required")


# ── Ownership strategies ───────────────────────────────────

class Owned(Protocol):
    @property
    def owner_id(self) -> uuid.UUID: ...


@dataclass(frozen=True)
class ProductSubject:
    product_id: uuid.UUID


S = TypeVar("S")


class OwnershipStrategy(ABC, Generic[S]):
    """Decides whether the actor owns the subject."""

    @abstractmethod
    def is_owner(self, ctx: RequestContext, actor_id: uuid.UUID, subject: S) -> Result[bool, ServiceUnavailableError]:
        ...


class LocalOwnership(OwnershipStrategy[Owned]):
    """Ownership read from the subject itself. Never calls out."""

    def is_owner(self, ctx, actor_id, subject):
        return Result.ok(subject.owner_id == actor_id)


class AssignmentOwnership(OwnershipStrategy[ProductSubject]):
    """Ownership held as a role assignment in the assignment service."""

    def __init__(self, assignments: IAssignmentService, role: str = "PRODUCT_OWNER"):
        self._assignments = assignments
        self._role = role

    def is_owner(self, ctx, actor_id, subject):
        return self._assignments.has_role(ctx, actor_id, subject.product_id, self._role)


# ── Resolver ───────────────────────────────────────────────

class AuthorizationResolver(Generic[S]):
    """
    resolve(ctx, capability, subject) -> Decision

    Dependency Injection: identity client and ownership strategy come in
    through the constructor. At most one role lookup per resolve call.
    """

    def __init__(self, identity: IIdentityService, ownership: OwnershipStrategy[S]):
        self._identity = identity
        self._ownership = ownership

    def resolve(self, ctx: RequestContext, capability: Capability, subject: S) -> Decision:
        actor_id = ctx.actor_id
        if actor_id is None:
            return Unauthenticated()

        if capability in (Capability.SELF_OR_PRIVILEGED, Capability.SELF_OR_ADMIN):
            owner = self._ownership.is_owner(ctx, actor_id, subject)
            if not owner.is_ok():
                return Unavailable(service=owner.error.service)
            if owner.unwrap():
                return Allowed()

        role_or_decision = self._lookup_role(ctx, actor_id)
        if isinstance(role_or_decision, Decision):
            return role_or_decision
        role = role_or_decision

        if capability == Capability.SELF_OR_PRIVILEGED:
            return Allowed(role=role) if role.is_privileged else Denied("Insufficient permissions")

        if capability in (Capability.SELF_OR_ADMIN, Capability.ADMIN_ONLY):
            return Allowed(role=role) if role == UserRole.ADMIN else Denied("Only admin can perform this action")

        if capability == Capability.CHANGE_STATUS:
            if not role.is_privileged:
                return Denied("Only admin or manager can change application status")
            if role == UserRole.MANAGER:
                owner = self._ownership.is_owner(ctx, actor_id, subject)
                if not owner.is_ok():
                    return Unavailable(service=owner.error.service)
                if owner.unwrap():
                    return Denied("Managers cannot change status of their own applications", conflict=True)
            return Allowed(role=role)

        raise ValueError(f"Unknown capability: {capability}")

    def _lookup_role(self, ctx: RequestContext, actor_id: uuid.UUID) -> UserRole | Decision:
        result = self._identity.role_of(ctx, actor_id)
        if not result.is_ok():
            logger.warning(f"Role lookup for {actor_id} failed: {result.error}")
            return Unavailable(service=result.error.service or self._identity.service_name)
        role = result.unwrap()
        if role is None:
            return ActorNotFound(actor_id=actor_id)
        return role
