"""
Contract: Application Store

Durable storage for applications, their documents, their tag names and
their status history. Implementations must keep documents and history
owned by the application: deleting the application deletes them too.
"""

import uuid
from abc import ABC, abstractmethod
from datetime import datetime

from appservice.core.entities.application import (
    Application,
    ApplicationHistory,
    ApplicationInfo,
)
from appservice.core.entities.document import Document


class IApplicationStore(ABC):
    """
    Port: Application Store

    Each mutating method is one unit of work.
    """

    @abstractmethod
    def create(self, application: Application, history: ApplicationHistory) -> Application:
        """Persists a new application with its documents and creation history row."""
        ...

    @abstractmethod
    def get(self, application_id: uuid.UUID) -> Application | None:
        """Loads an application with documents and tags, or None."""
        ...

    @abstractmethod
    def update_status(self, application: Application, history: ApplicationHistory) -> Application:
        """
        Writes the new status and updated_at, and appends the history row.

        Raises:
            VersionConflictError: the row changed since it was read.
        """
        ...

    @abstractmethod
    def add_tags(self, application_id: uuid.UUID, names: set[str]) -> set[str]:
        """Unions names into the application's tags. Returns the resulting set."""
        ...

    @abstractmethod
    def remove_tags(self, application_id: uuid.UUID, names: set[str]) -> set[str]:
        """Removes names from the application's tags. Returns the resulting set."""
        ...

    @abstractmethod
    def delete(self, application_id: uuid.UUID) -> bool:
        """
        Deletes documents, history, tag associations, then the application.

        Returns:
            False when there was nothing to delete.
        """
        ...

    @abstractmethod
    def list_history(self, application_id: uuid.UUID) -> list[ApplicationHistory]:
        """History rows, newest first."""
        ...

    @abstractmethod
    def ids_by_applicant(self, applicant_id: uuid.UUID) -> list[uuid.UUID]:
        ...

    @abstractmethod
    def ids_by_product(self, product_id: uuid.UUID) -> list[uuid.UUID]:
        ...

    @abstractmethod
    def page_keys(
        self, limit: int, after: tuple[datetime, uuid.UUID] | None = None
    ) -> list[tuple[datetime, uuid.UUID]]:
        """
        (created_at, id) keys ordered by (created_at DESC, id DESC).

        Args:
            limit: Maximum ids to return.
            after: Keyset position; only rows strictly after it are returned.
        """
        ...

    @abstractmethod
    def offset_ids(self, offset: int, limit: int) -> list[uuid.UUID]:
        """Ids in the same order as page_keys, addressed by offset."""
        ...

    @abstractmethod
    def load_many(self, ids: list[uuid.UUID]) -> list[Application]:
        """Bare application rows for ids (no documents or tags), any order."""
        ...

    @abstractmethod
    def documents_for(self, ids: list[uuid.UUID]) -> dict[uuid.UUID, list[Document]]:
        ...

    @abstractmethod
    def tags_for(self, ids: list[uuid.UUID]) -> dict[uuid.UUID, set[str]]:
        ...

    @abstractmethod
    def find_by_tag(self, tag_name: str) -> list[ApplicationInfo]:
        ...

    @abstractmethod
    def count(self) -> int:
        ...
