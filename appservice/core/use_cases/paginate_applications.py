"""
Use Case: Paginate Applications

Keyset (cursor) scrolling plus classic page/size listing.

Cursor wire format (public, stable):
    base64("<RFC3339 instant>|<uuid>")
encoding the (created_at, id) of the last item already delivered.
Order is (created_at DESC, id DESC); the id breaks ties between rows that
share a timestamp so no row is skipped or repeated across pages.
"""

import base64
import binascii
import logging
import uuid
from datetime import datetime, timezone

from appservice.core.entities.application import Application, ApplicationPage
from appservice.core.errors import BadRequestError
from appservice.core.interfaces.application_store import IApplicationStore

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 50
DEFAULT_PAGE_SIZE = 20


def _as_utc(ts: datetime) -> datetime:
    # Naive timestamps are stored as UTC
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def _as_int(value: int | str | None, name: str, default: int) -> int:
    if value is None or (isinstance(value, str) and not value.strip()):
        return default
    if isinstance(value, int):
        return value
    try:
        return int(value.strip())
    except ValueError:
        raise BadRequestError(f"{name} must be an integer", context={name: value})


def encode_cursor(created_at: datetime, application_id: uuid.UUID) -> str:
    instant = _as_utc(created_at).isoformat(timespec="microseconds").replace("+00:00", "Z")
    raw = f"{instant}|{application_id}"
    return base64.b64encode(raw.encode("utf-8")).decode("ascii")


def decode_cursor(cursor: str) -> tuple[datetime, uuid.UUID]:
    """
    Inverse of encode_cursor.

    Raises:
        BadRequestError: anything that is not a well-formed cursor.
    """
    try:
        raw = base64.b64decode(cursor.strip(), validate=True).decode("utf-8")
    except (binascii.Error, ValueError) as e:
        raise BadRequestError("invalid cursor", context={"reason": f"base64: {e}"})

    parts = raw.split("|")
    if len(parts) != 2:
        raise BadRequestError("invalid cursor", context={"reason": "expected '<timestamp>|<id>'"})

    ts_text, id_text = parts
    try:
        ts = datetime.fromisoformat(ts_text.replace("Z", "+00:00"))
    except ValueError:
        raise BadRequestError("invalid cursor", context={"reason": "bad timestamp"})
    if ts.tzinfo is None:
        raise BadRequestError("invalid cursor", context={"reason": "timestamp has no offset"})

    try:
        application_id = uuid.UUID(id_text)
    except ValueError:
        raise BadRequestError("invalid cursor", context={"reason": "bad id"})

    return ts.astimezone(timezone.utc), application_id


class PaginateApplicationsUseCase:
    """
    Use Case: page through applications.

    Ids are selected first (the window query), then documents and tags
    for exactly that id batch are loaded and merged into the items.
    """

    def __init__(
        self,
        store: IApplicationStore,
        max_page_size: int = MAX_PAGE_SIZE,
        default_page_size: int = DEFAULT_PAGE_SIZE,
    ):
        self._store = store
        self._max = max_page_size
        self._default = default_page_size

    def _check_limit(self, value: int | str | None, name: str) -> int:
        """Query strings come in raw; anything that is not a whole number is a 400."""
        limit = _as_int(value, name, default=self._default)
        if limit <= 0:
            raise BadRequestError(f"{name} must be greater than 0")
        if limit > self._max:
            raise BadRequestError(f"{name} cannot be greater than {self._max}")
        return limit

    def page(self, cursor: str | None, limit: int | str | None = None) -> ApplicationPage:
        """Returns one page and the cursor for the next, None once exhausted."""
        limit = self._check_limit(limit, "limit")

        position = None
        if cursor is not None and cursor.strip():
            position = decode_cursor(cursor)

        keys = self._store.page_keys(limit, after=position)
        if not keys:
            return ApplicationPage(items=[], next_cursor=None)

        items = self._hydrate([app_id for _, app_id in keys])
        last_ts, last_id = keys[-1]
        return ApplicationPage(items=items, next_cursor=encode_cursor(last_ts, last_id))

    def list_applications(self, page: int | str | None = 0, size: int | str | None = None) -> list[Application]:
        """Offset listing, same ordering as the cursor scroll."""
        size = self._check_limit(size, "size")
        page = _as_int(page, "page", default=0)
        if page < 0:
            raise BadRequestError("page must not be negative")

        ids = self._store.offset_ids(offset=page * size, limit=size)
        if not ids:
            return []
        return self._hydrate(ids)

    def _hydrate(self, ids: list[uuid.UUID]) -> list[Application]:
        rows = {app.id: app for app in self._store.load_many(ids)}
        documents = self._store.documents_for(ids)
        tags = self._store.tags_for(ids)

        items = []
        for app_id in ids:
            app = rows.get(app_id)
            if app is None:
                # deleted between the window query and the load
                continue
            app.documents = documents.get(app_id, [])
            app.tags = tags.get(app_id, set())
            items.append(app)
        logger.debug(f"Hydrated {len(items)}/{len(ids)} applications")
        return items
