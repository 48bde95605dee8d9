"""
Freshness check shared by every tier.
"""
import time
from typing import Optional

from .core import CacheEntry


def now_ms() -> float:
    """Current time in epoch milliseconds."""
    return time.time() * 1000


def is_fresh(entry: CacheEntry, now: Optional[float] = None) -> bool:
    """
    Check whether an entry is still within its TTL.

    A fresh entry has its ``last_accessed_at`` moved to ``now``; this is the
    only access signal the recency cache sees. Entries without metadata are
    always fresh.
    """
    if entry.metadata is None:
        return True

    if now is None:
        now = now_ms()

    fresh = entry.metadata.expires_at > now
    if fresh:
        entry.metadata.last_accessed_at = now
    return fresh
