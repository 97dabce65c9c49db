"""
Pydantic schemas — Response models for the API.
"""

import uuid
from datetime import datetime

from pydantic import BaseModel

from appservice.core.entities.application import (
    Application,
    ApplicationHistory,
    ApplicationInfo,
    ApplicationPage,
)
from appservice.core.entities.document import Document


class DocumentResponse(BaseModel):
    id: uuid.UUID
    file_name: str
    content_type: str | None = None
    storage_path: str | None = None

    @classmethod
    def from_domain(cls, doc: Document) -> "DocumentResponse":
        return cls(
            id=doc.id,
            file_name=doc.file_name,
            content_type=doc.content_type,
            storage_path=doc.storage_path,
        )


class ApplicationResponse(BaseModel):
    id: uuid.UUID
    applicant_id: uuid.UUID
    product_id: uuid.UUID
    status: str
    created_at: datetime
    updated_at: datetime | None = None
    documents: list[DocumentResponse] = []
    tags: list[str] = []

    @classmethod
    def from_domain(cls, app: Application) -> "ApplicationResponse":
        return cls(
            id=app.id,
            applicant_id=app.applicant_id,
            product_id=app.product_id,
            status=app.status.value,
            created_at=app.created_at,
            updated_at=app.updated_at,
            documents=[DocumentResponse.from_domain(d) for d in app.documents],
            tags=sorted(app.tags),
        )


class ApplicationPageResponse(BaseModel):
    items: list[ApplicationResponse]
    next_cursor: str | None = None

    @classmethod
    def from_domain(cls, page: ApplicationPage) -> "ApplicationPageResponse":
        return cls(
            items=[ApplicationResponse.from_domain(a) for a in page.items],
            next_cursor=page.next_cursor,
        )


class ApplicationInfoResponse(BaseModel):
    id: uuid.UUID
    applicant_id: uuid.UUID
    product_id: uuid.UUID
    status: str
    created_at: datetime

    @classmethod
    def from_domain(cls, info: ApplicationInfo) -> "ApplicationInfoResponse":
        return cls(
            id=info.id,
            applicant_id=info.applicant_id,
            product_id=info.product_id,
            status=info.status.value,
            created_at=info.created_at,
        )


class HistoryResponse(BaseModel):
    id: uuid.UUID
    application_id: uuid.UUID
    old_status: str | None = None
    new_status: str
    changed_by: str
    changed_at: datetime

    @classmethod
    def from_domain(cls, h: ApplicationHistory) -> "HistoryResponse":
        return cls(
            id=h.id,
            application_id=h.application_id,
            old_status=h.old_status.value if h.old_status else None,
            new_status=h.new_status.value,
            changed_by=h.changed_by_role.value,
            changed_at=h.changed_at,
        )


class HealthResponse(BaseModel):
    status: str
    version: str
    database: str
