"""
Tiered stale-while-revalidate caching with pluggable tiers, fan-out writes
and lifecycle events.
"""
from .core import CacheConfig, CacheEntry, CacheMetadata, CachedResult, Context
from .errors import AdapterError, TierCacheError
from .ttl_policies import DEFAULT_STALE_TIME, ensure_positive_valid_number, resolve_ttl_provider
from .freshness import is_fresh, now_ms
from .adapters import CacheAdapter, LRUCacheAdapter, SQLiteCacheAdapter
from .events import (
    CacheEvent,
    CacheStats,
    LoggingReporter,
    OnCustom,
    Reporter,
    combine_reporter_factories,
    combine_reporters,
)
from .reader import get_cached_value
from .fanout import evict_value, store_value
from .client import CachedClient, build_client

__all__ = [
    # Core types
    "CacheConfig",
    "CacheEntry",
    "CacheMetadata",
    "CachedResult",
    "Context",
    # Errors
    "AdapterError",
    "TierCacheError",
    # TTL policies
    "DEFAULT_STALE_TIME",
    "ensure_positive_valid_number",
    "resolve_ttl_provider",
    # Freshness
    "is_fresh",
    "now_ms",
    # Adapters
    "CacheAdapter",
    "LRUCacheAdapter",
    "SQLiteCacheAdapter",
    # Events
    "CacheEvent",
    "CacheStats",
    "LoggingReporter",
    "OnCustom",
    "Reporter",
    "combine_reporter_factories",
    "combine_reporters",
    # Orchestration
    "get_cached_value",
    "store_value",
    "evict_value",
    "CachedClient",
    "build_client",
]
