"""Key-value backend and the read-through paste cache.

CacheService wraps a Redis client shared by the paste cache and the ban
gate. Graceful degradation: if Redis is unreachable at startup, keys live in
an in-process cachetools.TLRUCache with per-entry TTL instead.

PasteCache is best-effort: backend or decoding failures are logged and
reported as a miss, so reads always fall through to the durable store.
"""

import logging
import math
from datetime import datetime
from typing import Any, Callable

from cachetools import TLRUCache
from pydantic import ValidationError as SchemaError

from app.config import settings
from app.errors import CacheError
from app.schemas import Paste
from app.services.paste_store import utcnow

logger = logging.getLogger(__name__)

PASTE_KEY_PREFIX = "paste:"


def _entry_expiry(_key: str, entry: tuple[str, float], now: float) -> float:
    return now + entry[1]


class CacheService:
    """Async key-value access with Redis primary and in-memory fallback."""

    def __init__(
        self,
        redis_url: str | None = None,
        client: Any = None,
        fallback_size: int | None = None,
    ):
        self._redis_url = redis_url or settings.redis_url
        self._redis = client
        self._available = client is not None
        self._fallback: TLRUCache = TLRUCache(
            maxsize=fallback_size or settings.cache_fallback_size,
            ttu=_entry_expiry,
        )

    @property
    def backend(self) -> str:
        return "redis" if self._available else "memory"

    async def connect(self) -> bool:
        """Connect to Redis. Returns True on success."""
        try:
            import redis.asyncio as aioredis

            if self._redis is None:
                self._redis = aioredis.from_url(
                    self._redis_url,
                    decode_responses=True,
                    socket_connect_timeout=3,
                )
            await self._redis.ping()
            self._available = True
            return True
        except Exception as e:
            logger.warning("Redis connection failed — using in-memory fallback: %s", str(e)[:100])
            self._redis = None
            self._available = False
            return False

    async def disconnect(self):
        """Close Redis connection."""
        if self._redis:
            await self._redis.aclose()
            self._redis = None
            self._available = False

    async def get(self, key: str) -> str | None:
        """Read a value. Returns None on miss."""
        if not self._available:
            entry = self._fallback.get(key)
            return entry[0] if entry else None

        try:
            return await self._redis.get(key)
        except Exception as e:
            raise CacheError(f"GET {key} failed: {str(e)[:100]}") from e

    async def set(self, key: str, value: str, ttl_seconds: float) -> bool:
        """Write a value expiring after `ttl_seconds`.

        The expiry is truncated to whole milliseconds so it never outlives
        the caller's deadline. Returns False when there is nothing left to
        store.
        """
        ttl_ms = math.floor(ttl_seconds * 1000)
        if ttl_ms <= 0:
            return False

        if not self._available:
            self._fallback[key] = (value, ttl_ms / 1000)
            return True

        try:
            await self._redis.set(key, value, px=ttl_ms)
        except Exception as e:
            raise CacheError(f"SET {key} failed: {str(e)[:100]}") from e
        return True

    async def exists(self, key: str) -> bool:
        if not self._available:
            return key in self._fallback

        try:
            return await self._redis.exists(key) > 0
        except Exception as e:
            raise CacheError(f"EXISTS {key} failed: {str(e)[:100]}") from e


class PasteCache:
    """Read-through cache of live pastes, keyed by paste id."""

    def __init__(self, cache: CacheService, clock: Callable[[], datetime] = utcnow):
        self._cache = cache
        self._clock = clock

    @staticmethod
    def make_key(paste_id: str) -> str:
        return f"{PASTE_KEY_PREFIX}{paste_id}"

    async def get(self, paste_id: str) -> Paste | None:
        key = self.make_key(paste_id)
        try:
            data = await self._cache.get(key)
        except CacheError as e:
            logger.warning("Cache read skipped | %s", e)
            return None
        if data is None:
            return None

        try:
            paste = Paste.model_validate_json(data)
        except SchemaError as e:
            logger.warning("Cache entry unreadable | key=%s | %s", key, str(e)[:100])
            return None

        # Guards against a backend that outlived the entry's deadline
        if not paste.is_live(self._clock()):
            return None

        logger.info("Cache HIT (%s) | id=%s", self._cache.backend, paste_id)
        return paste

    async def put(self, paste: Paste) -> bool:
        """Cache a paste until its own expiry. Already-expired pastes are skipped."""
        remaining = paste.remaining_seconds(self._clock())
        if remaining <= 0:
            return False

        key = self.make_key(paste.id)
        try:
            stored = await self._cache.set(key, paste.model_dump_json(), remaining)
        except CacheError as e:
            logger.warning("Cache write skipped | %s", e)
            return False

        if stored:
            logger.info("Cache SET (%s) | id=%s | ttl=%.0fs", self._cache.backend, paste.id, remaining)
        return stored
