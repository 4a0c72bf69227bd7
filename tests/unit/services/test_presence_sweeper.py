import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.app.services.presence_sweeper import PresenceSweeper


@pytest.fixture
def tracker():
    tracker = MagicMock()
    tracker.sweep_stale = AsyncMock(return_value=2)
    return tracker


@pytest.mark.asyncio
async def test_run_once_returns_evicted_count(tracker):
    sweeper = PresenceSweeper(tracker)

    assert await sweeper.run_once() == 2
    tracker.sweep_stale.assert_called_once()


@pytest.mark.asyncio
async def test_run_once_survives_errors(tracker):
    tracker.sweep_stale.side_effect = RuntimeError("database is locked")
    sweeper = PresenceSweeper(tracker)

    assert await sweeper.run_once() == 0


@pytest.mark.asyncio
async def test_background_task_sweeps_periodically_and_stops(tracker):
    calls = []

    async def sweep():
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("transient")
        return 0

    tracker.sweep_stale.side_effect = sweep
    sweeper = PresenceSweeper(tracker, interval_seconds=0.01)

    sweeper.start()
    assert sweeper.running
    await asyncio.sleep(0.1)
    await sweeper.stop()

    assert not sweeper.running
    assert tracker.sweep_stale.call_count >= 2


@pytest.mark.asyncio
async def test_start_twice_keeps_one_task(tracker):
    sweeper = PresenceSweeper(tracker, interval_seconds=60)

    sweeper.start()
    task = sweeper._task
    sweeper.start()

    assert sweeper._task is task
    await sweeper.stop()
    await sweeper.stop()
