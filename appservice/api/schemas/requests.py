"""
Pydantic schemas — request bodies.
"""

import uuid

from pydantic import BaseModel, Field

from appservice.core.entities.document import Document


class DocumentRequest(BaseModel):
    file_name: str
    content_type: str | None = None
    storage_path: str | None = None

    def to_domain(self) -> Document:
        return Document(
            file_name=self.file_name,
            content_type=self.content_type,
            storage_path=self.storage_path,
        )


class CreateApplicationRequest(BaseModel):
    # Missing ids are reported by the use case as 400, not by pydantic as 422
    applicant_id: uuid.UUID | None = None
    product_id: uuid.UUID | None = None
    documents: list[DocumentRequest] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)


class StatusChangeRequest(BaseModel):
    status: str
