"""
Adapter: Ownership client (assignment-service)

GET /api/v1/assignments/exists?userId=&productId=&role= -> true | false
"""

import uuid

from appservice.core.context import RequestContext
from appservice.core.errors import Result, ServiceUnavailableError
from appservice.core.interfaces.remote_services import IAssignmentService
from appservice.infrastructure.clients.base import RemoteServiceClient


class HttpAssignmentClient(RemoteServiceClient, IAssignmentService):
    service_name = "assignment service"

    def has_role(
        self, ctx: RequestContext, user_id: uuid.UUID, product_id: uuid.UUID, role: str
    ) -> Result[bool, ServiceUnavailableError]:
        sent = self._request(
            ctx,
            "GET",
            "/api/v1/assignments/exists",
            params={"userId": str(user_id), "productId": str(product_id), "role": role},
        )
        if not sent.is_ok():
            return sent
        response = sent.unwrap()
        if response.status_code != 200:
            return self._unexpected(response)
        return self._json(response).map(bool)
