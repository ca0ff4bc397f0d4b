"""Periodic reclamation of expired cache entries and rate-limit timestamps."""

from __future__ import annotations

import asyncio
import logging

from cnpj_finder.adapters.rate_limit.base import AbstractRateLimiter
from cnpj_finder.utils.simple_cache import SimpleTTLCache

logger = logging.getLogger(__name__)


class MaintenanceSweeper:
    """Background task sweeping the cache and the rate limiter on a timer.

    Runs independently of request traffic on the application's event loop.
    Each sweep is a synchronous call, so it never interleaves with a request's
    own table updates.
    """

    def __init__(
        self,
        cache: SimpleTTLCache,
        rate_limiter: AbstractRateLimiter,
        *,
        interval_seconds: float = 60.0,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")
        self.cache = cache
        self.rate_limiter = rate_limiter
        self.interval_seconds = interval_seconds
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def run_once(self) -> dict[str, int]:
        """Sweep both tables now and return what was removed."""
        removed = {
            "cache_entries": self.cache.sweep(),
            "rate_limit_entries": self.rate_limiter.sweep(),
        }
        if any(removed.values()):
            logger.info("maintenance.swept", extra=removed)
        return removed

    async def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name="cnpj-finder-sweeper")
        logger.info("maintenance.started", extra={"interval_s": self.interval_seconds})

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("maintenance.stopped")

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                self.run_once()
            except Exception:
                logger.exception("maintenance.sweep_failed")
