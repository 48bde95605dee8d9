"""
In-process recency cache.

A bounded dict of entries. Writes past the size bound first drop every
expired entry, then the least recently accessed ones until the bound holds.
"Accessed" means passed a freshness check: ``get`` itself does not touch
recency and returns stale entries as-is.
"""
import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Union

from config.settings import settings

from ..core import CacheEntry
from ..freshness import now_ms
from ..ttl_policies import resolve_ttl_provider
from .base import CacheAdapter

logger = logging.getLogger("tiercache.adapters.lru")


class LRUCacheAdapter(CacheAdapter):
    """
    Thread-safe, size-bounded in-memory tier.

    Usage:
        memory = LRUCacheAdapter(name="lru-posts", size=500, ttl=600_000)
    """

    def __init__(
        self,
        name: str = "LRU",
        size: Optional[int] = None,
        ttl: Optional[Union[float, Callable[[], float]]] = None,
        clock: Callable[[], float] = now_ms,
    ):
        """
        Initialize the adapter.

        Args:
            name: Label for events and logs
            size: Maximum number of entries (default from settings, 100)
            ttl: Milliseconds, or a callable returning them, overriding the
                client's stale time for entries stored here
            clock: Source of the current time in milliseconds
        """
        self.name = name or "LRU"
        self.max_size = size if size is not None else settings.lru_max_size
        self._ttl = resolve_ttl_provider(ttl, default=None) if ttl is not None else None
        self._clock = clock
        self._cache: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._sweeps = 0
        self._evicted = 0

    @property
    def ttl(self) -> Optional[float]:
        if self._ttl is None:
            return None
        return self._ttl()

    def get(self, key: str) -> Optional[CacheEntry]:
        with self._lock:
            return self._cache.get(key)

    def set(self, key: str, entry: CacheEntry) -> Any:
        with self._lock:
            self._cache[key] = entry
            self._ensure_size_below_limit()
        return entry.value

    def evict(self, key: str) -> None:
        with self._lock:
            self._cache.pop(key, None)

    def _ensure_size_below_limit(self) -> None:
        """Two-phase sweep; runs only when the bound is exceeded."""
        if len(self._cache) <= self.max_size:
            return

        self._sweeps += 1
        removed = self._delete_stale_entries()
        removed += self._delete_least_recently_used()
        self._evicted += removed
        logger.debug(f"{self.name}: swept {removed} entries [size={len(self._cache)}]")

    def _delete_stale_entries(self) -> int:
        now = self._clock()
        stale = [
            key for key, entry in self._cache.items()
            if entry.metadata is not None
            and entry.metadata.expires_at < now
        ]
        for key in stale:
            del self._cache[key]
        return len(stale)

    def _delete_least_recently_used(self) -> int:
        overflow = len(self._cache) - self.max_size
        if overflow <= 0:
            return 0

        # Stable sort: ties keep insertion order
        by_last_access = sorted(
            self._cache.items(),
            key=lambda item: item[1].metadata.last_accessed_at if item[1].metadata else 0,
        )
        for key, _ in by_last_access[:overflow]:
            del self._cache[key]
        return overflow

    def clear(self) -> int:
        """
        Clear all entries.

        Returns:
            Number of entries cleared
        """
        with self._lock:
            count = len(self._cache)
            self._cache.clear()
        logger.info(f"{self.name}: cleared {count} entries")
        return count

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._cache)

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._cache

    def get_stats(self) -> Dict[str, Any]:
        """Get adapter statistics."""
        with self._lock:
            return {
                "name": self.name,
                "entries": len(self._cache),
                "max_size": self.max_size,
                "sweeps": self._sweeps,
                "evicted": self._evicted,
            }
