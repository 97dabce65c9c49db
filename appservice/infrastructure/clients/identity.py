"""
Adapter: Identity client (user-service)

GET /api/v1/users/{id}/exists  -> true | false
GET /api/v1/users/{id}/role    -> "ROLE_ADMIN" | ... , 404 when no such user
"""

import logging
import uuid

from appservice.core.context import RequestContext
from appservice.core.entities.application import UserRole
from appservice.core.errors import Result, ServiceUnavailableError
from appservice.core.interfaces.remote_services import IIdentityService
from appservice.infrastructure.clients.base import RemoteServiceClient

logger = logging.getLogger(__name__)


class HttpIdentityClient(RemoteServiceClient, IIdentityService):
    service_name = "user service"

    def exists(self, ctx: RequestContext, user_id: uuid.UUID) -> Result[bool, ServiceUnavailableError]:
        sent = self._request(ctx, "GET", f"/api/v1/users/{user_id}/exists")
        if not sent.is_ok():
            return sent
        response = sent.unwrap()
        if response.status_code == 404:
            return Result.ok(False)
        if response.status_code != 200:
            return self._unexpected(response)
        return self._json(response).map(bool)

    def role_of(self, ctx: RequestContext, user_id: uuid.UUID) -> Result[UserRole | None, ServiceUnavailableError]:
        sent = self._request(ctx, "GET", f"/api/v1/users/{user_id}/role")
        if not sent.is_ok():
            return sent
        response = sent.unwrap()
        if response.status_code == 404:
            return Result.ok(None)
        if response.status_code != 200:
            return self._unexpected(response)

        body = self._json(response)
        if not body.is_ok():
            return body
        raw = body.unwrap()
        if isinstance(raw, dict):
            raw = raw.get("role")
        role = UserRole.parse(raw if isinstance(raw, str) else None)
        if role is None:
            logger.error(f"user service: unknown role {raw!r} for {user_id}")
            return Result.err(self.unavailable(f"unknown role {raw!r}"))
        return Result.ok(role)
