# Cache tiers: the adapter contract plus the bundled implementations

from .base import CacheAdapter, maybe_await
from .lru import LRUCacheAdapter
from .sqlite import SQLiteCacheAdapter

__all__ = ["CacheAdapter", "maybe_await", "LRUCacheAdapter", "SQLiteCacheAdapter"]
