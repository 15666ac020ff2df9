"""
In-memory cache stores for HTTP response caching.
"""
import asyncio
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from ..types import AsyncHttpCacheStore, CacheResponse, HttpCacheStore

logger = logging.getLogger("http_cache.stores.memory")


@dataclass
class MemoryEntry:
    """Stored response with its expiry."""

    response: CacheResponse
    stored_at: float
    expires_at: float
    hits: int = 0


@dataclass
class MemoryCacheStats:
    """Memory cache statistics."""

    entries: int
    max_entries: int
    hits: int
    utilization_percent: float


class MemoryCacheStore(HttpCacheStore):
    """
    Thread-safe in-memory store with per-entry TTL and LRU eviction.

    Responses are copied on the way in and out, so callers can stamp the
    responses they receive without touching what is stored.
    """

    def __init__(
        self,
        max_entries: int = 1000,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._cache: Dict[str, MemoryEntry] = {}
        self._max_entries = max_entries
        self._clock = clock
        self._lock = threading.Lock()

    def _live_entry(self, key: str, now: float) -> Optional[MemoryEntry]:
        entry = self._cache.get(key)
        if entry is None:
            return None
        if entry.expires_at <= now:
            del self._cache[key]
            return None
        return entry

    def _evict_if_needed(self) -> None:
        while len(self._cache) >= self._max_entries and self._cache:
            oldest_key = next(iter(self._cache))
            del self._cache[oldest_key]
            logger.debug(f"evicted: key={oldest_key}")

    def cleanup(self) -> int:
        """Remove expired entries. Returns how many were removed."""
        now = self._clock()
        with self._lock:
            expired_keys = [k for k, e in self._cache.items() if e.expires_at <= now]
            for key in expired_keys:
                del self._cache[key]
        return len(expired_keys)

    def get(self, key: str) -> Optional[CacheResponse]:
        """Get a cached response by key."""
        with self._lock:
            entry = self._live_entry(key, self._clock())
            if entry is None:
                return None

            # Move to end for LRU
            self._cache[key] = self._cache.pop(key)
            return entry.response.copy()

    def set(self, key: str, response: CacheResponse, ttl_seconds: int) -> bool:
        """Store a response. A TTL <= 0 is already expired and is not stored."""
        if ttl_seconds <= 0:
            return False

        now = self._clock()
        with self._lock:
            self._cache.pop(key, None)
            self._evict_if_needed()
            self._cache[key] = MemoryEntry(
                response=response.copy(),
                stored_at=now,
                expires_at=now + ttl_seconds,
            )
        return True

    def delete(self, key: str) -> bool:
        """Delete a cached response."""
        with self._lock:
            return self._cache.pop(key, None) is not None

    def record_hit(self, key: str) -> Optional[int]:
        """Increment the hit counter of a live entry."""
        with self._lock:
            entry = self._live_entry(key, self._clock())
            if entry is None:
                return None
            entry.hits += 1
            return entry.hits

    def has(self, key: str) -> bool:
        """Check if a live entry exists for key."""
        with self._lock:
            return self._live_entry(key, self._clock()) is not None

    def ttl(self, key: str) -> Optional[float]:
        """Seconds until the entry for key expires, or None if absent."""
        now = self._clock()
        with self._lock:
            entry = self._live_entry(key, now)
            return entry.expires_at - now if entry else None

    def clear(self) -> None:
        """Clear all cached responses."""
        with self._lock:
            self._cache.clear()

    def size(self) -> int:
        """Get current number of live entries."""
        self.cleanup()
        with self._lock:
            return len(self._cache)

    def keys(self) -> List[str]:
        """Get all live keys."""
        self.cleanup()
        with self._lock:
            return list(self._cache.keys())

    def get_stats(self) -> MemoryCacheStats:
        """Get cache statistics."""
        with self._lock:
            entries = len(self._cache)
            hits = sum(e.hits for e in self._cache.values())
        return MemoryCacheStats(
            entries=entries,
            max_entries=self._max_entries,
            hits=hits,
            utilization_percent=(entries / self._max_entries) * 100
            if self._max_entries > 0
            else 0,
        )


class AsyncMemoryCacheStore(AsyncHttpCacheStore):
    """
    Async in-memory store with a periodic background cleanup task.

    The cleanup task is started on the first set() and cancelled by close().
    """

    def __init__(
        self,
        max_entries: int = 1000,
        cleanup_interval_seconds: float = 60.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = MemoryCacheStore(max_entries=max_entries, clock=clock)
        self._cleanup_interval = cleanup_interval_seconds
        self._cleanup_task: Optional[asyncio.Task] = None
        self._closed = False

    async def _start_cleanup(self) -> None:
        """Start the background cleanup task."""
        if self._cleanup_task is None and not self._closed and self._cleanup_interval > 0:
            self._cleanup_task = asyncio.create_task(self._cleanup_loop())

    async def _cleanup_loop(self) -> None:
        """Background cleanup loop."""
        while not self._closed:
            try:
                await asyncio.sleep(self._cleanup_interval)
                removed = self._store.cleanup()
                if removed:
                    logger.debug(f"cleanup removed {removed} expired entries")
            except asyncio.CancelledError:
                break

    async def get(self, key: str) -> Optional[CacheResponse]:
        """Get a cached response by key."""
        return self._store.get(key)

    async def set(self, key: str, response: CacheResponse, ttl_seconds: int) -> bool:
        """Store a response."""
        stored = self._store.set(key, response, ttl_seconds)
        if stored:
            await self._start_cleanup()
        return stored

    async def delete(self, key: str) -> bool:
        """Delete a cached response."""
        return self._store.delete(key)

    async def record_hit(self, key: str) -> Optional[int]:
        """Increment the hit counter of a live entry."""
        return self._store.record_hit(key)

    async def has(self, key: str) -> bool:
        """Check if a live entry exists for key."""
        return self._store.has(key)

    async def clear(self) -> None:
        """Clear all cached responses."""
        self._store.clear()

    async def size(self) -> int:
        """Get current number of live entries."""
        return self._store.size()

    async def keys(self) -> List[str]:
        """Get all live keys."""
        return self._store.keys()

    async def close(self) -> None:
        """Close the store and release resources."""
        self._closed = True
        if self._cleanup_task is not None:
            self._cleanup_task.cancel()
            try:
                await self._cleanup_task
            except asyncio.CancelledError:
                pass
            self._cleanup_task = None
        self._store.clear()

    def get_stats(self) -> MemoryCacheStats:
        """Get cache statistics."""
        return self._store.get_stats()


def create_memory_cache_store(
    max_entries: int = 1000,
    clock: Callable[[], float] = time.time,
) -> MemoryCacheStore:
    """Create a memory cache store."""
    return MemoryCacheStore(max_entries=max_entries, clock=clock)


def create_async_memory_cache_store(
    max_entries: int = 1000,
    cleanup_interval_seconds: float = 60.0,
    clock: Callable[[], float] = time.time,
) -> AsyncMemoryCacheStore:
    """Create an async memory cache store."""
    return AsyncMemoryCacheStore(
        max_entries=max_entries,
        cleanup_interval_seconds=cleanup_interval_seconds,
        clock=clock,
    )
