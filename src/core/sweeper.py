"""
Periodic expired-entry sweep.

Runs `CacheStore.clean_expired()` on a fixed interval, independent of reads,
to reclaim persistent storage. Sweep failures are logged and the loop keeps
going; stopping cancels the task.
"""

from __future__ import annotations

import asyncio
from typing import Optional

from core.cache import CacheStore, SweepResult
from core.logging import get_logger

logger = get_logger(__name__)


class CacheSweeper:
    def __init__(self, cache: CacheStore, *, interval_seconds: float) -> None:
        self._cache = cache
        self._interval = max(1.0, float(interval_seconds))
        self._task: Optional[asyncio.Task[None]] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="cache-sweeper")
        logger.info("cache_sweeper_started", interval_seconds=self._interval)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("cache_sweeper_stopped")

    async def run_once(self) -> Optional[SweepResult]:
        try:
            return await self._cache.clean_expired()
        except Exception as e:
            logger.error("cache_sweep_failed", error=str(e))
            return None

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            await self.run_once()
