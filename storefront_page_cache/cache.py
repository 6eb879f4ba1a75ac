"""
In-memory page cache for server-rendered storefront pages.

This module provides a bounded, TTL-expiring store for rendered HTML bodies
keyed by the canonical keys built in :mod:`cache_keys`. It sits on top of
cachetools' FIFOCache so the capacity ceiling and the oldest-set eviction
order come from the library, while per-entry TTLs and hit/miss accounting
are tracked here. Concurrent access is serialized with an asyncio lock.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable

from cachetools import FIFOCache

from .models import CacheEntry, CacheStats

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 3600
DEFAULT_MAX_ENTRIES = 500
DEFAULT_CHECK_PERIOD_SECONDS = 600


class PageCache:
    """
    Async-safe page store with per-entry TTL and a hard entry cap.

    Entries live in a cachetools.FIFOCache: re-setting a key moves it to the
    back of the eviction order, and inserting a new key at capacity evicts
    exactly the entry that was set least recently. Expired entries are
    dropped lazily on read and eagerly by :meth:`sweep_expired`.
    """

    def __init__(
        self,
        *,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        default_ttl_seconds: int = DEFAULT_TTL_SECONDS,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._entries: FIFOCache[str, CacheEntry] = FIFOCache(maxsize=max_entries)
        self._default_ttl = default_ttl_seconds
        self._timer = timer
        self._hits = 0
        self._misses = 0
        # The lock is created lazily so we never interact with asyncio
        # primitives before an event loop exists.
        self._lock: asyncio.Lock | None = None

    @property
    def max_entries(self) -> int:
        return int(self._entries.maxsize)

    @property
    def default_ttl_seconds(self) -> int:
        return self._default_ttl

    def __len__(self) -> int:
        return len(self._entries)

    async def get(self, key: str) -> str | None:
        """
        Return the cached body for ``key`` or None.

        Counts a hit or a miss. An entry found past its expiry is removed
        and reported as a miss.
        """
        lock = self._ensure_lock()
        async with lock:
            entry = self._entries.get(key)
            if entry is not None and entry.is_expired(self._timer()):
                del self._entries[key]
                entry = None
            if entry is None:
                self._misses += 1
                return None
            self._hits += 1
            return entry.value

    async def set(self, key: str, value: str, ttl_seconds: int | None = None) -> None:
        """
        Insert or replace the body stored under ``key``.

        Args:
            key: Canonical page cache key.
            value: Rendered response body.
            ttl_seconds: Lifetime of the entry; None uses the store default,
                0 keeps the entry until it is deleted or evicted.
        """
        ttl = self._default_ttl if ttl_seconds is None else ttl_seconds
        entry = CacheEntry(key=key, value=value, inserted_at=self._timer(), ttl_seconds=ttl)
        lock = self._ensure_lock()
        async with lock:
            if key not in self._entries and len(self._entries) >= self.max_entries:
                evicted_key, _ = self._entries.popitem()
                logger.debug("Page cache full, evicted %s", evicted_key)
            self._entries[key] = entry

    async def delete(self, key: str) -> bool:
        """Remove ``key`` if present. Returns True when an entry was removed."""
        lock = self._ensure_lock()
        async with lock:
            return self._entries.pop(key, None) is not None

    async def flush_all(self) -> None:
        """Drop every entry and reset hit/miss accounting."""
        lock = self._ensure_lock()
        async with lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0

    async def sweep_expired(self) -> int:
        """
        Remove every expired entry in one pass over the current keys.

        Returns:
            Number of entries removed.
        """
        lock = self._ensure_lock()
        async with lock:
            now = self._timer()
            expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.debug("Expiry sweep removed %s page cache entries", len(expired))
        return len(expired)

    def stats(self) -> CacheStats:
        """Snapshot of entry count and cumulative hit/miss counters."""
        total = self._hits + self._misses
        hit_rate = round(self._hits / total * 100, 2) if total else 0.0
        return CacheStats(
            keys=len(self._entries),
            hits=self._hits,
            misses=self._misses,
            hit_rate=hit_rate,
        )

    async def run_sweeper(self, interval_seconds: float = DEFAULT_CHECK_PERIOD_SECONDS) -> None:
        """Sweep expired entries forever on a fixed interval. Cancel to stop."""
        while True:
            await asyncio.sleep(interval_seconds)
            await self.sweep_expired()

    async def run_stats_logger(self, interval_seconds: float) -> None:
        """Log cache statistics forever on a fixed interval. Cancel to stop."""
        while True:
            await asyncio.sleep(interval_seconds)
            stats = self.stats()
            logger.info(
                "Page cache stats: keys=%s hits=%s misses=%s hit_rate=%.2f%%",
                stats.keys,
                stats.hits,
                stats.misses,
                stats.hit_rate,
            )

    def _ensure_lock(self) -> asyncio.Lock:
        """
        Lazily instantiate the asyncio.Lock once an event loop exists.
        """
        if self._lock is None:
            self._lock = asyncio.Lock()
        return self._lock


__all__ = ["PageCache", "DEFAULT_TTL_SECONDS", "DEFAULT_MAX_ENTRIES", "DEFAULT_CHECK_PERIOD_SECONDS"]
