"""In-memory sliding-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: uses a lock around shared state. Under asyncio every call runs
  between suspension points, so requests never observe a half-applied update.
- Best effort: a burst of concurrent admissions may overshoot by a request or
  two, which only costs an extra upstream call.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from collections import deque
from typing import Callable, Mapping, Sequence

from cnpj_finder.adapters.rate_limit.base import (
    AbstractRateLimiter,
    RateLimitResult,
    RateLimitSubject,
)

logger = logging.getLogger(__name__)


class InMemorySlidingWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter counting each subject's requests over a trailing window.

    Every subject (``ip:1.2.3.4``, ``cnpj:123...``) keeps a deque of admission
    timestamps. A request is admitted only if every subject it names is below
    its family threshold; admitted requests are then recorded once per subject.
    Denied requests are not recorded.

    Stale timestamps are reclaimed lazily: on each admission once the number of
    tracked subjects exceeds ``gc_threshold``, and whenever :meth:`sweep` runs
    (the application schedules it on a timer).
    """

    def __init__(
        self,
        *,
        limits: Mapping[str, int],
        window_seconds: int = 60,
        gc_threshold: int = 1000,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the in-memory rate limiter.

        Args:
            limits: Threshold per family, e.g. ``{"ip": 10, "cnpj": 3}``.
            window_seconds: Size of the sliding window in seconds.
            gc_threshold: Tracked subjects above which admissions also purge.
            clock: Time source function returning UNIX time in seconds.

        Raises:
            ValueError: If any limit or the window are invalid.
        """
        if not limits:
            raise ValueError("limits must define at least one family")
        if any(limit < 1 for limit in limits.values()):
            raise ValueError("limits must be >= 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")

        self._limits = dict(limits)
        self._window_seconds = window_seconds
        self._gc_threshold = gc_threshold
        self._clock = clock
        self._lock = threading.RLock()
        self._events: dict[str, deque[float]] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    def _limit_for(self, subject: RateLimitSubject) -> int:
        try:
            return self._limits[subject.family]
        except KeyError:
            raise ValueError(f"unknown rate limit family: {subject.family!r}") from None

    def _active_count(self, key: str, window_start: float) -> tuple[int, float | None]:
        """Count timestamps inside the window and return the oldest of them."""
        events = self._events.get(key)
        if not events:
            return 0, None
        active = [ts for ts in events if ts >= window_start]
        return len(active), (min(active) if active else None)

    def admit(self, subjects: Sequence[RateLimitSubject]) -> RateLimitResult:
        """Admit or deny a request counted against ``subjects``.

        Args:
            subjects: Subjects to check; duplicates are counted once.

        Returns:
            RateLimitResult for the blocking family, or for the most
            constrained family when allowed.

        Raises:
            ValueError: If no subjects are given or a family is unknown.
        """
        if not subjects:
            raise ValueError("at least one subject is required")

        unique = list(dict.fromkeys(subjects))
        now = self._clock()
        window_start = now - self._window_seconds

        with self._lock:
            if len(self._events) > self._gc_threshold:
                self._purge_locked(window_start)

            admitted: list[RateLimitResult] = []
            for subject in unique:
                limit = self._limit_for(subject)
                count, oldest = self._active_count(subject.key, window_start)
                reset_at = (oldest if oldest is not None else now) + self._window_seconds

                if count >= limit:
                    retry_after = max(1, int(math.ceil(reset_at - now)))
                    logger.debug(
                        "rate_limit.denied",
                        extra={"family": subject.family, "count": count, "limit": limit},
                    )
                    return RateLimitResult(
                        allowed=False,
                        limit=limit,
                        remaining=0,
                        reset_at=int(math.ceil(reset_at)),
                        retry_after_seconds=retry_after,
                        family=subject.family,
                    )

                admitted.append(
                    RateLimitResult(
                        allowed=True,
                        limit=limit,
                        remaining=limit - count - 1,
                        reset_at=int(math.ceil(reset_at)),
                        retry_after_seconds=None,
                    )
                )

            for subject in unique:
                self._events.setdefault(subject.key, deque()).append(now)

        # First of the most constrained subjects
        return min(admitted, key=lambda result: result.remaining)

    def sweep(self) -> int:
        """Remove timestamps older than the window from every subject.

        Returns:
            Number of timestamps removed.
        """
        window_start = self._clock() - self._window_seconds
        with self._lock:
            return self._purge_locked(window_start)

    def clear(self) -> None:
        with self._lock:
            self._events.clear()

    def _purge_locked(self, window_start: float) -> int:
        removed = 0
        # Snapshot of keys; subjects left empty are dropped.
        for key in list(self._events):
            events = self._events[key]
            while events and events[0] < window_start:
                events.popleft()
                removed += 1
            if not events:
                del self._events[key]
        return removed
