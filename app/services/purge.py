"""Purge sweeper — deletes expired pastes on a fixed interval.

Runs as a background asyncio task for the lifetime of the app, independent
of request traffic. A failed sweep is logged and retried on the next tick.
"""

import asyncio
import logging

from app.config import settings
from app.errors import PersistenceError
from app.services.paste_store import PasteStore

logger = logging.getLogger(__name__)


class PurgeSweeper:
    """Background task that removes expired pastes from the store."""

    def __init__(self, store: PasteStore, interval_seconds: float | None = None):
        self.store = store
        self.interval_seconds = interval_seconds or settings.purge_interval_seconds
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.running:
            logger.warning("Purge sweeper already running")
            return

        self._task = asyncio.create_task(self._sweep_loop())
        logger.info("Purge sweeper started | interval=%ss", self.interval_seconds)

    async def stop(self) -> None:
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Purge sweeper stopped")

    async def sweep_once(self) -> int:
        """Run one purge. Returns rows removed, or 0 if the sweep failed."""
        try:
            removed = await self.store.purge_expired()
        except PersistenceError as e:
            logger.error("Purge sweep failed | %s", str(e.__cause__ or e)[:200])
            return 0

        logger.info("Purge sweep removed %d expired pastes", removed)
        return removed

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                await self.sweep_once()
            except Exception as e:
                logger.error("Purge sweep iteration failed | %s", str(e)[:200] or type(e).__name__)
