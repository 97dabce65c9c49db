"""
Base HTTP client for remote capability services.

Wraps httpx.Client. Transport errors, timeouts and 5xx responses come back
as Result.err(ServiceUnavailableError) naming the service; nothing is
retried here.
"""

import logging
from typing import Any

import httpx

from appservice.core.context import RequestContext
from appservice.core.errors import Result, ServiceUnavailableError

logger = logging.getLogger(__name__)

USER_AGENT = "ApplicationService/1.0"


class RemoteServiceClient:
    """Synchronous HTTP client for one remote service."""

    service_name = "remote service"

    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={"User-Agent": USER_AGENT},
        )

    def unavailable(self, reason: str = "") -> ServiceUnavailableError:
        return ServiceUnavailableError(
            f"{self.service_name.capitalize()} is unavailable now",
            service=self.service_name,
            context={"reason": reason} if reason else None,
        )

    def _request(
        self,
        ctx: RequestContext,
        method: str,
        path: str,
        **kwargs: Any,
    ) -> Result[httpx.Response, ServiceUnavailableError]:
        """Sends one request. 4xx responses are returned for the caller to interpret."""
        try:
            response = self._client.request(method, path, headers=ctx.outbound_headers(), **kwargs)
        except httpx.TimeoutException:
            logger.warning(f"{self.service_name}: timeout on {method} {path}")
            return Result.err(self.unavailable("timeout"))
        except httpx.HTTPError as e:
            logger.warning(f"{self.service_name}: {method} {path} failed: {e}")
            return Result.err(self.unavailable(str(e)))

        if response.status_code >= 500:
            logger.warning(f"{self.service_name}: {method} {path} -> {response.status_code}")
            return Result.err(self.unavailable(f"HTTP {response.status_code}"))
        return Result.ok(response)

    def _json(self, response: httpx.Response) -> Result[Any, ServiceUnavailableError]:
        try:
            return Result.ok(response.json())
        except ValueError:
            logger.error(f"{self.service_name}: non-JSON body: {response.text[:200]}")
            return Result.err(self.unavailable("malformed response"))

    def _unexpected(self, response: httpx.Response) -> Result[Any, ServiceUnavailableError]:
        logger.error(f"{self.service_name}: unexpected {response.status_code}: {response.text[:200]}")
        return Result.err(self.unavailable(f"HTTP {response.status_code}"))

    def close(self) -> None:
        self._client.close()
