"""
Adapter: Catalog client (product-service)

GET /api/v1/products/{id}/exists -> true | false
"""

import uuid

from appservice.core.context import RequestContext
from appservice.core.errors import Result, ServiceUnavailableError
from appservice.core.interfaces.remote_services import ICatalogService
from appservice.infrastructure.clients.base import RemoteServiceClient


class HttpCatalogClient(RemoteServiceClient, ICatalogService):
    service_name = "product service"

    def exists(self, ctx: RequestContext, product_id: uuid.UUID) -> Result[bool, ServiceUnavailableError]:
        sent = self._request(ctx, "GET", f"/api/v1/products/{product_id}/exists")
        if not sent.is_ok():
            return sent
        response = sent.unwrap()
        if response.status_code == 404:
            return Result.ok(False)
        if response.status_code != 200:
            return self._unexpected(response)
        return self._json(response).map(bool)
