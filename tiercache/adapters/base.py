"""Cache tier abstraction.

Every tier the orchestrator talks to implements ``CacheAdapter``. Methods
may be plain functions or coroutines; callers go through ``maybe_await``.

Callers treat any failure as "no data" (``get``) or a no-op (``set`` and
``evict``), so implementations are free to raise.
"""

import inspect
from abc import ABC, abstractmethod
from typing import Any, Optional

from ..core import CacheEntry


async def maybe_await(value: Any) -> Any:
    """Await ``value`` if it is awaitable, otherwise return it unchanged."""
    if inspect.isawaitable(value):
        return await value
    return value


class CacheAdapter(ABC):
    """
    Abstract base class for cache tiers.

    ``name`` only labels events and log lines; duplicates are allowed.
    """

    name: str = "cache"

    @property
    def ttl(self) -> Optional[float]:
        """TTL override in milliseconds, or None to use the client's."""
        return None

    @abstractmethod
    def get(self, key: str) -> Optional[CacheEntry]:
        """
        Look up an entry.

        Returns the stored entry whether or not it is stale, or None.
        """
        pass

    @abstractmethod
    def set(self, key: str, entry: CacheEntry) -> Any:
        """
        Store an entry under ``key``.

        Returns:
            The stored value
        """
        pass

    @abstractmethod
    def evict(self, key: str) -> None:
        """Remove ``key``. Evicting a missing key is not an error."""
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
