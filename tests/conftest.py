"""
Shared fakes for cache tests: a controllable clock and a scriptable tier.
"""
import asyncio
from typing import Dict, List, Optional, Tuple

import pytest

from tiercache.adapters.base import CacheAdapter
from tiercache.core import CacheEntry, CacheMetadata


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> float:
        self.now += ms
        return self.now


class RecordingAdapter(CacheAdapter):
    """
    Dict-backed tier that records every call and can be told to fail.

    With ``use_async=True`` every method returns a coroutine, the way a
    network-backed tier would.
    """

    def __init__(
        self,
        name: str,
        ttl: Optional[float] = None,
        fail_on: Tuple[str, ...] = (),
        use_async: bool = False,
    ):
        self.name = name
        self._ttl = ttl
        self.fail_on = set(fail_on)
        self.use_async = use_async
        self.store: Dict[str, CacheEntry] = {}
        self.calls: List[Tuple[str, str]] = []

    @property
    def ttl(self) -> Optional[float]:
        return self._ttl

    def _check(self, operation: str, key: str) -> None:
        self.calls.append((operation, key))
        if operation in self.fail_on:
            raise ConnectionError(f"{self.name} {operation} unavailable")

    def _get(self, key):
        self._check("get", key)
        return self.store.get(key)

    def _set(self, key, entry):
        self._check("set", key)
        self.store[key] = entry
        return entry.value

    def _evict(self, key):
        self._check("evict", key)
        self.store.pop(key, None)

    def get(self, key):
        if self.use_async:
            return self._as_coroutine(self._get, key)
        return self._get(key)

    def set(self, key, entry):
        if self.use_async:
            return self._as_coroutine(self._set, key, entry)
        return self._set(key, entry)

    def evict(self, key):
        if self.use_async:
            return self._as_coroutine(self._evict, key)
        return self._evict(key)

    async def _as_coroutine(self, fn, *args):
        await asyncio.sleep(0)
        return fn(*args)

    def operations(self, operation: str) -> List[str]:
        return [key for op, key in self.calls if op == operation]


def make_entry(value, created_at: float, ttl: float) -> CacheEntry:
    return CacheEntry(value=value, metadata=CacheMetadata.now(ttl=ttl, now=created_at))


@pytest.fixture
def clock():
    return FakeClock()
