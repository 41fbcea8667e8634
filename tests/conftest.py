"""Shared test fixtures and configuration."""

import os
import time
from datetime import datetime, timedelta, timezone

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

# Keep tests away from any real Redis / PostgreSQL configured in the shell
os.environ.setdefault("REDIS_URL", "redis://localhost:1")

from app.config import settings  # noqa: E402
from app.database import init_db, make_session_factory  # noqa: E402
from app.main import create_app  # noqa: E402
from app.services.cache import CacheService  # noqa: E402
from app.services.paste_store import PasteStore  # noqa: E402

WRITE_HEADERS = {settings.write_token_header: settings.write_token}


class FrozenClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class FakeRedis:
    """In-process stand-in for redis.asyncio.Redis (decode_responses=True).

    Expiry follows `time.monotonic` unless `expire(key)` is used to drop a
    key early. `last_px` records the TTL of every SET.
    """

    def __init__(self):
        self._data: dict[str, tuple[str, float | None]] = {}
        self.last_px: dict[str, int] = {}
        self.broken = False
        self.closed = False

    def _check(self):
        if self.broken:
            raise ConnectionError("redis unavailable")

    def _live(self, key: str) -> str | None:
        item = self._data.get(key)
        if item is None:
            return None
        value, deadline = item
        if deadline is not None and time.monotonic() >= deadline:
            del self._data[key]
            return None
        return value

    async def ping(self):
        self._check()
        return True

    async def get(self, key):
        self._check()
        return self._live(key)

    async def set(self, key, value, px=None):
        self._check()
        deadline = time.monotonic() + px / 1000 if px else None
        self._data[key] = (value, deadline)
        if px is not None:
            self.last_px[key] = px
        return True

    async def exists(self, *keys):
        self._check()
        return sum(1 for key in keys if self._live(key) is not None)

    async def aclose(self):
        self.closed = True

    def expire(self, key: str) -> None:
        self._data.pop(key, None)


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def cache_service(fake_redis):
    return CacheService(client=fake_redis)


@pytest.fixture
async def engine():
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await init_db(eng)
    yield eng
    await eng.dispose()


@pytest.fixture
def store(engine, clock):
    return PasteStore(make_session_factory(engine), clock=clock)


@pytest.fixture
def app(engine, cache_service, clock):
    return create_app(engine=engine, cache=cache_service, clock=clock)


@pytest.fixture
async def client(app):
    transport = ASGITransport(app=app, client=("203.0.113.7", 50000))
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
