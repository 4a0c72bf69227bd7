"""
Background task that periodically runs PresenceTracker.sweep_stale().
"""

import asyncio
import contextlib
import logging
from typing import Optional

from .presence_tracker import PresenceTracker

logger = logging.getLogger(__name__)

SWEEP_INTERVAL_SECONDS = 120


class PresenceSweeper:
    def __init__(
        self, tracker: PresenceTracker, interval_seconds: float = SWEEP_INTERVAL_SECONDS
    ):
        self.tracker = tracker
        self.interval_seconds = interval_seconds
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run())
        logger.info(f"Presence sweeper started (every {self.interval_seconds}s)")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Presence sweeper stopped")

    async def run_once(self) -> int:
        try:
            return await self.tracker.sweep_stale()
        except asyncio.CancelledError:
            raise
        except Exception:
            # Best effort: the next tick retries
            logger.exception("Error during presence cleanup")
            return 0

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            await self.run_once()
