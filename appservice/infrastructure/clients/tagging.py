"""
Adapter: Tagging client (tag-service)

POST /api/v1/tags/batch  ["a", "b", "a"]  -> [{"id": ..., "name": "a"}, ...]
"""

import logging
import uuid

from appservice.core.context import RequestContext
from appservice.core.errors import Result, ServiceUnavailableError
from appservice.core.interfaces.remote_services import ITagService, TagRef
from appservice.infrastructure.clients.base import RemoteServiceClient

logger = logging.getLogger(__name__)


class HttpTagClient(RemoteServiceClient, ITagService):
    service_name = "tag service"

    def create_or_get(self, ctx: RequestContext, names: list[str]) -> Result[list[TagRef], ServiceUnavailableError]:
        sent = self._request(ctx, "POST", "/api/v1/tags/batch", json=names)
        if not sent.is_ok():
            return sent
        response = sent.unwrap()
        if response.status_code not in (200, 201):
            return self._unexpected(response)

        body = self._json(response)
        if not body.is_ok():
            return body
        items = body.unwrap()
        if not isinstance(items, list):
            return Result.err(self.unavailable("malformed response"))

        tags: dict[str, TagRef] = {}
        for item in items:
            raw_name = item.get("name") if isinstance(item, dict) else None
            if raw_name is not None and not isinstance(raw_name, str):
                return Result.err(self.unavailable(f"malformed tag name {raw_name!r}"))
            name = (raw_name or "").strip()
            if not name:
                continue
            tag_id = item.get("id")
            try:
                tags[name] = TagRef(id=uuid.UUID(str(tag_id)) if tag_id else None, name=name)
            except ValueError:
                return Result.err(self.unavailable(f"malformed tag id {tag_id!r}"))
        logger.debug(f"tag service returned {len(tags)} tags for {len(names)} names")
        return Result.ok(list(tags.values()))
