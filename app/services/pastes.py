"""Paste service — create and fetch, on top of the store and the cache.

Responsibilities:
  - Enforce content size and TTL bounds before any I/O
  - Generate the paste id and persist the paste (creation never touches the cache)
  - Reject malformed ids before any lookup
  - Read through the cache, falling back to the store and populating the cache on a hit
"""

import logging
from typing import Callable

from app.errors import ContentTooLargeError, NotFoundError, ValidationError
from app.schemas import (
    MAX_CONTENT_BYTES,
    MAX_TTL_SECONDS,
    MIN_TTL_SECONDS,
    CreatePasteRequest,
    Paste,
)
from app.services.cache import PasteCache
from app.services.ids import generate_paste_id, is_valid_paste_id
from app.services.paste_store import PasteStore

logger = logging.getLogger(__name__)


def validate_create(request: CreatePasteRequest) -> None:
    """Raise if the paste is too large or its TTL is out of range."""
    if len(request.content.encode("utf-8")) > MAX_CONTENT_BYTES:
        raise ContentTooLargeError()
    if not MIN_TTL_SECONDS <= request.ttl_seconds <= MAX_TTL_SECONDS:
        raise ValidationError("Invalid TTL")


class PasteService:
    """Create/fetch operations used by the HTTP layer."""

    def __init__(
        self,
        store: PasteStore,
        cache: PasteCache,
        id_factory: Callable[[], str] = generate_paste_id,
    ):
        self.store = store
        self.cache = cache
        self._id_factory = id_factory

    async def create(self, request: CreatePasteRequest) -> str:
        validate_create(request)

        paste_id = self._id_factory()
        await self.store.put(paste_id, request.content, request.language, request.ttl_seconds)
        logger.info(
            "Paste created | id=%s | language=%s | ttl=%ds | bytes=%d",
            paste_id, request.language, request.ttl_seconds, len(request.content.encode("utf-8")),
        )
        return paste_id

    async def fetch(self, paste_id: str) -> Paste:
        if not is_valid_paste_id(paste_id):
            raise ValidationError("Invalid ID")

        cached = await self.cache.get(paste_id)
        if cached is not None:
            return cached

        paste = await self.store.get(paste_id)
        if paste is None:
            raise NotFoundError()

        await self.cache.put(paste)
        return paste
