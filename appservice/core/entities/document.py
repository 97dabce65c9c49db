"""
Entity: Document

A file attached to an application at creation time.
Pure model, no framework or database dependency.
"""

import uuid
from dataclasses import dataclass, field


@dataclass
class Document:
    """Attachment owned by exactly one application."""
    file_name: str
    content_type: str | None = None
    storage_path: str | None = None       # e.g. "s3://bucket/key" or a local path
    id: uuid.UUID = field(default_factory=uuid.uuid4)
