"""Async database engine and session management.

Uses SQLAlchemy 2.0 async with the asyncpg driver. The engine and session
factory are created once per process and handed to the paste store.
"""

import logging

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.config import settings

logger = logging.getLogger(__name__)

engine = create_async_engine(
    settings.database_url,
    echo=False,
    pool_size=5,
    max_overflow=10,
    pool_pre_ping=True,
)


def make_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async_session_factory = make_session_factory(engine)


async def init_db(bind: AsyncEngine = engine) -> None:
    """Create the pastes table and its expiry index if they don't exist."""
    from app.models import Base  # noqa: F811

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database initialized successfully")


async def close_db(bind: AsyncEngine = engine) -> None:
    """Dispose engine connections on shutdown."""
    await bind.dispose()
    logger.info("Database connections closed")
