"""Tests for the background purge sweeper."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from app.errors import PersistenceError
from app.services.purge import PurgeSweeper


class TestPurgeSweeper:
    def test_default_interval_is_hourly(self, store):
        assert PurgeSweeper(store).interval_seconds == 3600

    @pytest.mark.asyncio
    async def test_sweep_once_removes_expired(self, store, clock):
        await store.put("old00001", "a", "text", 60)
        await store.put("new00001", "b", "text", 7200)
        clock.advance(3600)

        sweeper = PurgeSweeper(store)
        assert await sweeper.sweep_once() == 1
        assert await store.get("new00001") is not None

    @pytest.mark.asyncio
    async def test_sweep_failure_is_logged_not_raised(self):
        store = AsyncMock()
        store.purge_expired.side_effect = PersistenceError("purge failed")
        sweeper = PurgeSweeper(store)
        assert await sweeper.sweep_once() == 0

    @pytest.mark.asyncio
    async def test_loop_keeps_running_after_failure(self):
        calls = []

        async def purge():
            calls.append(1)
            if len(calls) == 1:
                raise PersistenceError("down")
            return 0

        store = AsyncMock()
        store.purge_expired.side_effect = purge
        sweeper = PurgeSweeper(store, interval_seconds=0.01)

        await sweeper.start()
        assert sweeper.running
        for _ in range(100):
            if store.purge_expired.await_count >= 2:
                break
            await asyncio.sleep(0.01)
        await sweeper.stop()

        assert store.purge_expired.await_count >= 2
        assert not sweeper.running

    @pytest.mark.asyncio
    async def test_loop_survives_unexpected_error(self):
        calls = []

        async def purge():
            calls.append(1)
            if len(calls) == 1:
                raise asyncio.TimeoutError()
            return 0

        store = AsyncMock()
        store.purge_expired.side_effect = purge
        sweeper = PurgeSweeper(store, interval_seconds=0.01)

        await sweeper.start()
        for _ in range(100):
            if len(calls) >= 2:
                break
            await asyncio.sleep(0.01)

        assert len(calls) >= 2
        assert sweeper.running
        await sweeper.stop()

    @pytest.mark.asyncio
    async def test_start_twice_keeps_single_task(self):
        store = AsyncMock()
        store.purge_expired.return_value = 0
        sweeper = PurgeSweeper(store, interval_seconds=60)

        await sweeper.start()
        task = sweeper._task
        await sweeper.start()
        assert sweeper._task is task
        await sweeper.stop()

    @pytest.mark.asyncio
    async def test_stop_without_start(self, store):
        await PurgeSweeper(store).stop()
