"""
Entity: Application

A ticket that links an applicant (identity service) to a product
(catalog service). Owns its documents and its status history; tags are
plain names that live in the tag service.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from appservice.core.entities.document import Document


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ApplicationStatus(str, Enum):
    DRAFT = "DRAFT"                # valid value, never assigned by this service
    SUBMITTED = "SUBMITTED"
    IN_REVIEW = "IN_REVIEW"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"

    @classmethod
    def parse(cls, text: str | None) -> "ApplicationStatus | None":
        """Case-insensitive lookup by name. Returns None when nothing matches."""
        if text is None:
            return None
        try:
            return cls[text.strip().upper()]
        except KeyError:
            return None

    @classmethod
    def names(cls) -> list[str]:
        return [s.value for s in cls]


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    CLIENT = "CLIENT"

    @property
    def is_privileged(self) -> bool:
        return self in (UserRole.ADMIN, UserRole.MANAGER)

    @classmethod
    def parse(cls, text: str | None) -> "UserRole | None":
        """Accepts "ADMIN" as well as the "ROLE_ADMIN" authority form."""
        if not text:
            return None
        name = text.strip().upper()
        if name.startswith("ROLE_"):
            name = name[len("ROLE_"):]
        try:
            return cls[name]
        except KeyError:
            return None


@dataclass
class ApplicationHistory:
    """One append-only audit row. old_status is None only for the creation row."""
    application_id: uuid.UUID
    new_status: ApplicationStatus
    changed_by_role: UserRole
    old_status: ApplicationStatus | None = None
    changed_at: datetime = field(default_factory=utcnow)
    id: uuid.UUID = field(default_factory=uuid.uuid4)


@dataclass
class Application:
    """Domain aggregate: Application."""
    applicant_id: uuid.UUID
    product_id: uuid.UUID
    status: ApplicationStatus = ApplicationStatus.SUBMITTED
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime | None = None
    version: int = 0
    documents: list[Document] = field(default_factory=list)
    tags: set[str] = field(default_factory=set)

    @property
    def owner_id(self) -> uuid.UUID:
        return self.applicant_id


@dataclass
class ApplicationInfo:
    """Slim projection handed to the tag service."""
    id: uuid.UUID
    applicant_id: uuid.UUID
    product_id: uuid.UUID
    status: ApplicationStatus
    created_at: datetime


@dataclass
class ApplicationPage:
    """One page of a cursor scroll. next_cursor is None when the scroll is done."""
    items: list[Application]
    next_cursor: str | None = None


@dataclass
class CascadeReport:
    """Outcome of deleting every application owned by a user or product."""
    owner_kind: str                       # "applicant" or "product"
    owner_id: uuid.UUID
    deleted: list[uuid.UUID] = field(default_factory=list)
    failed: dict[uuid.UUID, str] = field(default_factory=dict)

    @property
    def complete(self) -> bool:
        return not self.failed
