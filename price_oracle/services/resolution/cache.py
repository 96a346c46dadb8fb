"""
In-process TTL cache for the resolution engine.

Provides a small keyed store with:
- Per-entry expiry (lazy eviction on read)
- Copy-out reads so callers never hold a reference to a stored value
- A periodic background sweep so memory does not grow without reads
- Cache hit/miss logging for monitoring

There is no size cap and no LRU policy; entries leave only by expiring.
"""

import asyncio
import copy
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import structlog

logger = structlog.get_logger(__name__)

DEFAULT_TTL_SECONDS = 30.0


@dataclass
class CacheEntry:
    """Stored value with its absolute expiry on the cache clock."""

    value: Any
    expires_at: float

    def is_expired(self, now: float) -> bool:
        """An entry is logically absent from its expiry instant onwards."""
        return now >= self.expires_at


class MemoryCache:
    """
    Keyed TTL store of opaque values.

    Reads and the background sweep share one expiry rule
    (``CacheEntry.is_expired``), so an expired entry is absent whether or not
    it has been physically removed yet.
    """

    def __init__(
        self,
        default_ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the cache.

        Args:
            default_ttl_seconds: TTL used when ``set`` is called without one
            clock: Monotonic time source in seconds (injectable for tests)
        """
        if default_ttl_seconds <= 0:
            raise ValueError("default_ttl_seconds must be positive")
        self.default_ttl_seconds = default_ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        """
        Get cached value by key.

        Args:
            key: Cache key

        Returns:
            A copy of the cached value, or None if missing or expired
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                logger.debug("cache_miss", key=key)
                return None

            if entry.is_expired(self._clock()):
                del self._entries[key]
                logger.debug("cache_expired", key=key)
                return None

            value = entry.value

        logger.debug("cache_hit", key=key)
        return copy.deepcopy(value)

    def set(self, key: str, value: Any, ttl_seconds: float | None = None) -> None:
        """
        Store a value, replacing any existing entry under the same key.

        Args:
            key: Cache key
            value: Value to cache (a copy is stored)
            ttl_seconds: Time-to-live in seconds (default TTL if omitted)
        """
        ttl = self.default_ttl_seconds if ttl_seconds is None else ttl_seconds
        if ttl <= 0:
            raise ValueError("ttl_seconds must be positive")

        entry = CacheEntry(value=copy.deepcopy(value), expires_at=self._clock() + ttl)
        with self._lock:
            self._entries[key] = entry
        logger.debug("cache_set", key=key, ttl=ttl)

    def size(self) -> int:
        """Number of live (non-expired) entries."""
        now = self._clock()
        with self._lock:
            return sum(1 for e in self._entries.values() if not e.is_expired(now))

    def cleanup(self) -> int:
        """
        Remove every expired entry.

        Returns:
            Number of entries removed
        """
        now = self._clock()
        with self._lock:
            expired = [k for k, e in self._entries.items() if e.is_expired(now)]
            for key in expired:
                del self._entries[key]

        if expired:
            logger.debug("cache_cleanup", removed=len(expired))
        return len(expired)


class CacheSweeper:
    """
    Background task that calls ``cache.cleanup()`` on a fixed interval.

    Runs independently of request traffic so expired entries are reclaimed
    even when nobody reads them.
    """

    def __init__(self, cache: MemoryCache, interval_seconds: float):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._cache = cache
        self.interval_seconds = interval_seconds
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        """Whether the sweep loop is active."""
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the sweep loop on the running event loop (idempotent)."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="cache-sweeper")
        logger.info("cache_sweeper_started", interval=self.interval_seconds)

    async def stop(self) -> None:
        """Cancel the sweep loop and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("cache_sweeper_stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                self._cache.cleanup()
            except Exception as e:
                logger.warning("cache_cleanup_error", error=str(e))
