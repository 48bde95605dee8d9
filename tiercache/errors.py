"""
Exception types raised inside tiercache.

Only adapters raise these; the orchestrator absorbs every adapter failure at
the tier boundary and lets producer errors through untouched.
"""
from typing import Optional


class TierCacheError(Exception):
    """Base exception for tiercache."""


class AdapterError(TierCacheError):
    """A cache tier failed to read, write or evict a key."""

    def __init__(self, adapter: str, operation: str, key: str, cause: Optional[Exception] = None):
        self.adapter = adapter
        self.operation = operation
        self.key = key
        self.cause = cause
        message = f"{adapter}: {operation} failed for {key}"
        if cause is not None:
            message = f"{message} ({cause})"
        super().__init__(message)
