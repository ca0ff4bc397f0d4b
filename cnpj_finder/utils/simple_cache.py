"""In-memory TTL cache for mapped registry lookups.

Minimal dependencies, thread-safe, and easy to swap for Redis while keeping
the same interface. Entries are evicted in insertion order once capacity is
reached; reads never refresh an entry's position or age.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable

from cnpj_finder.schemas.company import CompanyRecord

logger = logging.getLogger(__name__)


@dataclass
class CacheItem:
    """Container for a cached record with its insertion time."""

    value: CompanyRecord
    inserted_at: float


class SimpleTTLCache:
    """Thread-safe, in-memory cache with TTL expiry and FIFO eviction.

    ``get`` is the authority on freshness: a stale entry is never served even
    if :meth:`sweep` has not reclaimed it yet.

    Attributes:
        ttl_seconds: Time-to-live applied to all entries.
        max_entries: Maximum number of cached items.
    """

    def __init__(
        self,
        ttl_seconds: float = 300,
        max_entries: int = 1000,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be > 0")
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")

        self._ttl = ttl_seconds
        self._max_entries = max_entries
        self._clock = clock
        self._store: OrderedDict[str, CacheItem] = OrderedDict()
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"SimpleTTLCache(ttl_seconds={self._ttl}, max_entries={self._max_entries}, "
            f"size={len(self._store)}, hits={self._hits}, misses={self._misses}, "
            f"evictions={self._evictions})"
        )

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def get(self, key: str) -> CompanyRecord | None:
        """Return the cached record for ``key`` unless absent or stale."""

        with self._lock:
            item = self._store.get(key)
            if item is None:
                self._misses += 1
                logger.debug("cache.miss", extra={"cache_key": key, "reason": "not_found"})
                return None

            if self._is_expired(item, self._clock()):
                del self._store[key]
                self._evictions += 1
                self._misses += 1
                logger.debug("cache.miss", extra={"cache_key": key, "reason": "expired"})
                return None

            self._hits += 1
            logger.debug("cache.hit", extra={"cache_key": key})
            return item.value

    def set(self, key: str, value: CompanyRecord) -> None:
        """Store ``value`` under ``key``.

        An existing key is overwritten in place with a fresh timestamp. A new
        key first evicts the oldest inserted entry when the cache is full.
        """

        with self._lock:
            now = self._clock()
            if key in self._store:
                self._store[key] = CacheItem(value=value, inserted_at=now)
            else:
                while len(self._store) >= self._max_entries:
                    evicted_key, _ = self._store.popitem(last=False)
                    self._evictions += 1
                    logger.debug("cache.evicted", extra={"cache_key": evicted_key})
                self._store[key] = CacheItem(value=value, inserted_at=now)

            logger.debug(
                "cache.set",
                extra={"cache_key": key, "size": len(self._store), "ttl_s": self._ttl},
            )

    def sweep(self) -> int:
        """Delete every stale entry and return how many were removed."""

        with self._lock:
            now = self._clock()
            expired_keys = [k for k, item in self._store.items() if self._is_expired(item, now)]
            for key in expired_keys:
                del self._store[key]
            self._evictions += len(expired_keys)

        if expired_keys:
            logger.info(
                "cache.swept",
                extra={"removed": len(expired_keys), "size": len(self._store)},
            )
        return len(expired_keys)

    def clear(self) -> None:
        """Remove all cached entries and reset counters."""

        with self._lock:
            self._store.clear()
            self._hits = 0
            self._misses = 0
            self._evictions = 0

    def stats(self) -> dict[str, int | float]:
        """Return lightweight cache metrics without exposing values."""

        with self._lock:
            return {
                "ttl_seconds": self._ttl,
                "max_entries": self._max_entries,
                "entries": len(self._store),
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
            }

    def _is_expired(self, item: CacheItem, now: float) -> bool:
        return now - item.inserted_at >= self._ttl
