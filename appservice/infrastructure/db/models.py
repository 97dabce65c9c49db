"""
Database Models — SQLAlchemy.

Tables:
  - application: one row per application, optimistic version counter
  - document: files owned by an application
  - application_history: append-only status audit
  - application_tag: tag names attached to an application (no FK to tags,
    tags live in the tag service)
"""

from sqlalchemy import (
    Column, String, Integer, DateTime, ForeignKey, Index, Uuid,
)
from sqlalchemy.orm import DeclarativeBase, relationship


class Base(DeclarativeBase):
    pass


class ApplicationRecord(Base):
    """Application row. version is bumped by SQLAlchemy on every UPDATE."""
    __tablename__ = "application"

    id = Column(Uuid, primary_key=True)
    applicant_id = Column(Uuid, nullable=False, index=True)
    product_id = Column(Uuid, nullable=False, index=True)
    status = Column(String(50), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=True)
    version = Column(Integer, nullable=False)

    documents = relationship("DocumentRecord", back_populates="application", cascade="all, delete-orphan")
    history = relationship("ApplicationHistoryRecord", back_populates="application", cascade="all, delete-orphan")
    tags = relationship("ApplicationTagRecord", back_populates="application", cascade="all, delete-orphan")

    __mapper_args__ = {"version_id_col": version}
    __table_args__ = (
        # keyset scroll: ORDER BY created_at DESC, id DESC
        Index("ix_application_created_at_id", "created_at", "id"),
    )

    def __repr__(self):
        return f"<Application {self.id} [{self.status}] v{self.version}>"


class DocumentRecord(Base):
    __tablename__ = "document"

    id = Column(Uuid, primary_key=True)
    application_id = Column(Uuid, ForeignKey("application.id", ondelete="CASCADE"), nullable=False, index=True)
    file_name = Column(String(255), nullable=False)
    content_type = Column(String(255), nullable=True)
    storage_path = Column(String(1000), nullable=True)

    application = relationship("ApplicationRecord", back_populates="documents")


class ApplicationHistoryRecord(Base):
    __tablename__ = "application_history"

    id = Column(Uuid, primary_key=True)
    application_id = Column(Uuid, ForeignKey("application.id", ondelete="CASCADE"), nullable=False, index=True)
    old_status = Column(String(50), nullable=True)
    new_status = Column(String(50), nullable=False)
    changed_by = Column(String(100), nullable=False)
    changed_at = Column(DateTime(timezone=True), nullable=False, index=True)

    application = relationship("ApplicationRecord", back_populates="history")

    def __repr__(self):
        return f"<History {self.application_id} {self.old_status}->{self.new_status} by {self.changed_by}>"


class ApplicationTagRecord(Base):
    __tablename__ = "application_tag"

    application_id = Column(Uuid, ForeignKey("application.id", ondelete="CASCADE"), primary_key=True)
    tag_name = Column(String(255), primary_key=True, index=True)

    application = relationship("ApplicationRecord", back_populates="tags")
