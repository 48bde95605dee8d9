"""
Tiered read with backfill.

Tiers are consulted one at a time, fastest first. The first fresh entry
wins and is copied into the faster tiers that came up empty. A stale entry
is only accepted from the last tier; earlier stale entries are skipped in
case a slower tier holds a fresher copy.
"""
import logging
from typing import Callable, Optional, Sequence

from .adapters.base import CacheAdapter, maybe_await
from .core import CachedResult, Context
from .events import OnGetCachedError, OnGetCachedHit, OnGetCachedMiss, OnGetCachedStart
from .fanout import store_value
from .freshness import is_fresh, now_ms

logger = logging.getLogger("tiercache.reader")


async def _get_from_adapter(
    adapter: CacheAdapter,
    context: Context,
    clock: Callable[[], float],
) -> Optional[CachedResult]:
    name = adapter.name
    context.report(OnGetCachedStart(adapter=name))

    try:
        entry = await maybe_await(adapter.get(context.cache_key))
    except Exception as e:
        logger.warning(f"Read failed in {name} for {context.cache_key}: {e}")
        context.report(OnGetCachedError(adapter=name, error=e))
        return None

    if entry is not None and is_fresh(entry, clock()):
        context.report(OnGetCachedHit(adapter=name, result=entry.value))
        return CachedResult(entry=entry, stale=False)

    context.report(OnGetCachedMiss(adapter=name))
    return CachedResult(entry=entry, stale=True) if entry is not None else None


async def get_cached_value(
    adapters: Sequence[CacheAdapter],
    context: Context,
    clock: Callable[[], float] = now_ms,
) -> Optional[CachedResult]:
    """
    Read ``context.cache_key`` across the tiers in order.

    Returns:
        None if no tier holds an entry, the first fresh hit, or the last
        tier's stale entry
    """
    last = len(adapters) - 1

    for index, adapter in enumerate(adapters):
        result = await _get_from_adapter(adapter, context, clock)

        if result is None or (result.stale and index != last):
            continue

        if not result.stale and index > 0:
            logger.debug(f"Backfilling {index} tier(s) for {context.cache_key}")
            await store_value(adapters[:index], context, result.value)

        return result

    return None
