"""Expiring store — durable paste persistence over PostgreSQL.

Expiry is enforced on read (`expires_at > now`) so an expired row is
invisible even before the purge sweep deletes it. Purging is a single
DELETE statement; no application-level locking is involved.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.errors import PersistenceError
from app.models.paste import PasteRecord
from app.schemas import Paste

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; PostgreSQL returns aware ones
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _to_paste(record: PasteRecord) -> Paste:
    return Paste(
        id=record.id,
        content=record.content,
        language=record.language,
        created_at=_as_utc(record.created_at),
        expires_at=_as_utc(record.expires_at),
    )


class PasteStore:
    """Paste persistence with time-based expiry."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        clock: Clock = utcnow,
    ):
        self._session_factory = session_factory
        self._clock = clock

    async def put(self, paste_id: str, content: str, language: str, ttl_seconds: int) -> Paste:
        """Insert a new paste expiring `ttl_seconds` from now.

        Any storage failure, a duplicate id included, raises PersistenceError.
        """
        now = self._clock()
        record = PasteRecord(
            id=paste_id,
            content=content,
            language=language,
            created_at=now,
            expires_at=now + timedelta(seconds=ttl_seconds),
        )
        try:
            async with self._session_factory() as session:
                session.add(record)
                await session.commit()
        except (SQLAlchemyError, OSError) as e:
            logger.error("Paste insert failed | id=%s | %s", paste_id, str(e)[:200])
            raise PersistenceError(f"insert failed for {paste_id}") from e

        return _to_paste(record)

    async def get(self, paste_id: str) -> Paste | None:
        """Return the paste if it exists and has not expired."""
        query = select(PasteRecord).where(
            PasteRecord.id == paste_id,
            PasteRecord.expires_at > self._clock(),
        )
        try:
            async with self._session_factory() as session:
                result = await session.execute(query)
                record = result.scalar_one_or_none()
        except (SQLAlchemyError, OSError) as e:
            logger.error("Paste lookup failed | id=%s | %s", paste_id, str(e)[:200])
            raise PersistenceError(f"lookup failed for {paste_id}") from e

        if record is None:
            return None
        return _to_paste(record)

    async def purge_expired(self) -> int:
        """Delete every paste whose expiry has passed. Returns the row count."""
        statement = (
            delete(PasteRecord)
            .where(PasteRecord.expires_at <= self._clock())
            .execution_options(synchronize_session=False)
        )
        try:
            async with self._session_factory() as session:
                result = await session.execute(statement)
                await session.commit()
        except (SQLAlchemyError, OSError) as e:
            raise PersistenceError("purge failed") from e

        return result.rowcount or 0
