"""
Field Data Cache

Process-wide, in-memory TTL cache for Chrome UX Report lookups.

Concurrent lookups for the same URL share one in-flight load, so a URL
costs at most one provider call per TTL window. Entry access is guarded
by a threading lock that is never held across an await.
"""

import asyncio
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Awaitable, Callable, Dict, Optional

from .config import CacheTTL, get_cache_config

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class CacheEntry:
    """Cache entry with metadata."""
    key: str
    data: Any
    created_at: datetime
    expires_at: datetime
    hit_count: int = 0

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Check if entry has expired."""
        return (now or _utcnow()) >= self.expires_at

    def to_dict(self) -> Dict:
        return {
            "key": self.key,
            "created_at": self.created_at.isoformat(),
            "expires_at": self.expires_at.isoformat(),
            "hit_count": self.hit_count,
        }


class FieldDataCache:
    """
    TTL cache with in-flight request coalescing.

    Usage:
        cache = get_field_data_cache()
        result = await cache.get_or_load(url, lambda: client.query(url))
    """

    def __init__(
        self,
        ttl: Optional[timedelta] = None,
        max_entries: int = 10000,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.ttl = ttl or CacheTTL.FIELD_DATA
        self.max_entries = max_entries
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._inflight: Dict[str, asyncio.Future] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Optional[Any]:
        """Cached value, or None when missing or expired."""
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None
            if entry.is_expired(now):
                del self._entries[key]
                self._misses += 1
                return None
            entry.hit_count += 1
            self._hits += 1
            return entry.data

    def set(self, key: str, value: Any, ttl: Optional[timedelta] = None) -> None:
        now = self._clock()
        entry = CacheEntry(key=key, data=value, created_at=now, expires_at=now + (ttl or self.ttl))
        with self._lock:
            self._entries[key] = entry
            if len(self._entries) > self.max_entries:
                self._evict(now)

    def _evict(self, now: datetime) -> None:
        for key in [k for k, e in self._entries.items() if e.is_expired(now)]:
            del self._entries[key]
        while len(self._entries) > self.max_entries:
            oldest = min(self._entries.values(), key=lambda e: e.created_at)
            del self._entries[oldest.key]

    def invalidate(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def stats(self) -> Dict[str, int]:
        with self._lock:
            return {
                "entries": len(self._entries),
                "hits": self._hits,
                "misses": self._misses,
                "inflight": len(self._inflight),
            }

    async def get_or_load(
        self,
        key: str,
        loader: Callable[[], Awaitable[Any]],
        should_cache: Optional[Callable[[Any], bool]] = None,
        ttl: Optional[timedelta] = None,
    ) -> Any:
        """
        Return the cached value for key, loading it at most once.

        Callers arriving while a load is in flight await the same task.
        A loader exception reaches every waiter and nothing is cached.
        """
        cached = self.get(key)
        if cached is not None:
            logger.debug(f"Field data cache hit: {key}")
            return cached

        loop = asyncio.get_running_loop()
        with self._lock:
            task = self._inflight.get(key)
            if task is None or task.done() or task.get_loop() is not loop:
                task = loop.create_task(self._load(key, loader, should_cache, ttl))
                self._inflight[key] = task
            else:
                logger.debug(f"Joining in-flight field data load: {key}")

        return await asyncio.shield(task)

    async def _load(self, key, loader, should_cache, ttl) -> Any:
        try:
            value = await loader()
            if value is not None and (should_cache is None or should_cache(value)):
                self.set(key, value, ttl=ttl)
            return value
        finally:
            with self._lock:
                if self._inflight.get(key) is asyncio.current_task():
                    del self._inflight[key]


@lru_cache(maxsize=1)
def get_field_data_cache() -> FieldDataCache:
    """Get the process-wide field data cache."""
    config = get_cache_config()
    return FieldDataCache(ttl=config.ttl, max_entries=config.max_entries)
