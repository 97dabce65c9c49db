"""
Contract: Remote Capability Services

Calls this service makes to other autonomous services. Every method
returns a Result: a transport or circuit failure comes back as
Result.err(ServiceUnavailableError) naming the service, never as a raised
exception, so callers decide how to surface it.
"""

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass

from appservice.core.context import RequestContext
from appservice.core.entities.application import UserRole
from appservice.core.errors import Result, ServiceUnavailableError


@dataclass
class TagRef:
    """A tag as the tag service returns it."""
    id: uuid.UUID | None
    name: str


class IIdentityService(ABC):
    """
    Port: Identity (user-service)

    Existence and role of a user id.
    """

    service_name = "user service"

    @abstractmethod
    def exists(self, ctx: RequestContext, user_id: uuid.UUID) -> Result[bool, ServiceUnavailableError]:
        """
        Checks whether a user exists.

        Args:
            ctx: Caller context (credential is forwarded).
            user_id: User to look up.

        Returns:
            Result with True/False, or the unavailable error.
        """
        ...

    @abstractmethod
    def role_of(self, ctx: RequestContext, user_id: uuid.UUID) -> Result[UserRole | None, ServiceUnavailableError]:
        """
        Fetches the role of a user.

        Returns:
            Result with the role, None when the user does not exist,
            or the unavailable error.
        """
        ...


class ICatalogService(ABC):
    """
    Port: Catalog (product-service)
    """

    service_name = "product service"

    @abstractmethod
    def exists(self, ctx: RequestContext, product_id: uuid.UUID) -> Result[bool, ServiceUnavailableError]:
        ...


class ITagService(ABC):
    """
    Port: Tagging (tag-service)

    Batch create-or-get. Idempotent: existing names are returned as-is.
    """

    service_name = "tag service"

    @abstractmethod
    def create_or_get(self, ctx: RequestContext, names: list[str]) -> Result[list[TagRef], ServiceUnavailableError]:
        """
        Creates missing tags and returns all of them.

        Args:
            names: Trimmed names, duplicates allowed.

        Returns:
            Result with a deduplicated, normalized list of tags.
        """
        ...


class IAssignmentService(ABC):
    """
    Port: Ownership (assignment-service)

    Whether a user holds a given role on a product.
    """

    service_name = "assignment service"

    @abstractmethod
    def has_role(
        self, ctx: RequestContext, user_id: uuid.UUID, product_id: uuid.UUID, role: str
    ) -> Result[bool, ServiceUnavailableError]:
        ...
