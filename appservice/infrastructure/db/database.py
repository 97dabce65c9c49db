"""
Database connection management.

Supports:
  - SQLite (local dev and tests, no setup)
  - PostgreSQL (Docker / production)

Connection string comes from Settings.database_url (DATABASE_URL env var).
"""

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session

from appservice.config.settings import get_settings
from appservice.infrastructure.db.models import Base

logger = logging.getLogger(__name__)


def create_db_engine(url: str) -> Engine:
    """Create SQLAlchemy engine."""
    if url.startswith("sqlite"):
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            echo=False,
        )
    # PostgreSQL
    return create_engine(
        url,
        pool_size=10,
        max_overflow=20,
        pool_pre_ping=True,
        echo=False,
    )


class Database:
    """Engine + session factory for one database URL."""

    def __init__(self, url: str | None = None):
        self.url = url or get_settings().database_url
        self.engine = create_db_engine(self.url)
        self._factory = sessionmaker(bind=self.engine, expire_on_commit=False)

    @property
    def kind(self) -> str:
        return "PostgreSQL" if "postgres" in self.url else "SQLite"

    def init(self) -> None:
        """Create all tables. Safe to call multiple times."""
        Base.metadata.create_all(self.engine)
        logger.info(f"Database initialized: {self.url.split('@')[-1] if '@' in self.url else self.url}")

    @contextmanager
    def session(self) -> Iterator[Session]:
        """One unit of work: commit on success, rollback on any error."""
        session = self._factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


# ── Global database ──
_database: Database | None = None


def get_database() -> Database:
    """Get or create the global database."""
    global _database
    if _database is None:
        _database = Database()
    return _database
