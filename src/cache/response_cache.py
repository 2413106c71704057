# src/cache/response_cache.py - v1
"""In-memory response cache with time-based invalidation.

One instance per service object. Entries expire lazily: a read at or
after stored_at + ttl reports a miss but leaves the entry in place until
it is overwritten or the cache is cleared.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

from figmabridge.cache.models import CacheEntry, CacheStats

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300.0


class ResponseCache:
    """Fingerprint -> response store with a fixed TTL."""

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def get(self, key: str) -> Any | None:
        """Return the cached data, or None when absent or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.stored_at >= self._ttl:
            return None
        return entry.data

    def set(self, key: str, data: Any) -> None:
        """Store data under key, stamped with the current clock value."""
        self._entries[key] = CacheEntry(data=data, stored_at=self._clock())

    def clear(self) -> None:
        """Drop every entry (called on disconnect/teardown)."""
        if self._entries:
            logger.debug("Clearing %d cached responses", len(self._entries))
        self._entries.clear()

    def stats(self) -> CacheStats:
        return CacheStats(size=len(self._entries), ttl_seconds=self._ttl)

    def __len__(self) -> int:
        return len(self._entries)
