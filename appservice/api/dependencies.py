"""
Dependency wiring for the routers.

Lazy singletons built from Settings on first use. Tests swap them out with
app.dependency_overrides.
"""

import logging
import uuid

from fastapi import Header

from appservice.config.settings import get_settings
from appservice.core.context import RequestContext
from appservice.core.errors import UnauthorizedError
from appservice.core.use_cases.manage_applications import ManageApplicationsUseCase
from appservice.core.use_cases.paginate_applications import PaginateApplicationsUseCase
from appservice.infrastructure.clients.base import RemoteServiceClient
from appservice.infrastructure.clients.catalog import HttpCatalogClient
from appservice.infrastructure.clients.identity import HttpIdentityClient
from appservice.infrastructure.clients.tagging import HttpTagClient
from appservice.infrastructure.db.database import get_database
from appservice.infrastructure.db.repository import SqlAlchemyApplicationStore

logger = logging.getLogger(__name__)

_store: SqlAlchemyApplicationStore | None = None
_clients: list[RemoteServiceClient] = []
_manage: ManageApplicationsUseCase | None = None
_paginate: PaginateApplicationsUseCase | None = None


def _get_store() -> SqlAlchemyApplicationStore:
    global _store
    if _store is None:
        _store = SqlAlchemyApplicationStore(get_database())
    return _store


def get_manage_use_case() -> ManageApplicationsUseCase:
    """Factory — build the lifecycle use case with concrete adapters."""
    global _manage
    if _manage is None:
        settings = get_settings()
        timeout = settings.remote_timeout_seconds
        identity = HttpIdentityClient(settings.user_service_url, timeout=timeout)
        catalog = HttpCatalogClient(settings.product_service_url, timeout=timeout)
        tags = HttpTagClient(settings.tag_service_url, timeout=timeout)
        _clients.extend([identity, catalog, tags])
        _manage = ManageApplicationsUseCase(
            store=_get_store(),
            identity=identity,
            catalog=catalog,
            tags=tags,
        )
    return _manage


def get_paginate_use_case() -> PaginateApplicationsUseCase:
    global _paginate
    if _paginate is None:
        settings = get_settings()
        _paginate = PaginateApplicationsUseCase(
            _get_store(),
            max_page_size=settings.max_page_size,
            default_page_size=settings.default_page_size,
        )
    return _paginate


def get_request_context(
    x_user_id: str | None = Header(default=None),
    authorization: str | None = Header(default=None),
) -> RequestContext:
    """Actor id as set by the gateway, plus the bearer to pass along."""
    actor_id = None
    if x_user_id and x_user_id.strip():
        try:
            actor_id = uuid.UUID(x_user_id.strip())
        except ValueError:
            raise UnauthorizedError("Invalid X-User-Id header")
    return RequestContext(actor_id=actor_id, authorization=authorization)


def close_clients() -> None:
    global _manage
    while _clients:
        client = _clients.pop()
        client.close()
        logger.debug(f"Closed {client.service_name} client")
    _manage = None
