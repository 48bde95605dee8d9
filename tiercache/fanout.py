"""
Fan-out writes and evictions.

The same operation is issued to every tier concurrently. Each tier's failure
is reported and absorbed on its own, so one broken tier never cancels or
delays its siblings.
"""
import asyncio
import logging
from dataclasses import replace
from typing import Any, Sequence

from .adapters.base import CacheAdapter, maybe_await
from .core import CacheEntry, Context
from .events import (
    OnEvictError,
    OnEvictStart,
    OnEvictSuccess,
    OnStoreError,
    OnStoreStart,
    OnStoreSuccess,
)

logger = logging.getLogger("tiercache.fanout")


async def _store_in_adapter(adapter: CacheAdapter, context: Context, value: Any) -> bool:
    name = adapter.name
    context.report(OnStoreStart(adapter=name))

    try:
        ttl = adapter.ttl
        if ttl is None:
            ttl = context.metadata.ttl
        # Every tier gets its own metadata object
        entry = CacheEntry(value=value, metadata=replace(context.metadata, ttl=ttl))
        await maybe_await(adapter.set(context.cache_key, entry))
    except Exception as e:
        logger.warning(f"Store failed in {name} for {context.cache_key}: {e}")
        context.report(OnStoreError(adapter=name, error=e))
        return False

    context.report(OnStoreSuccess(adapter=name, result=value, cache_key=context.cache_key, ttl=ttl))
    return True


async def store_value(adapters: Sequence[CacheAdapter], context: Context, value: Any) -> bool:
    """
    Write ``value`` to every adapter under ``context.cache_key``.

    Returns:
        True if at least one adapter stored the value
    """
    results = await asyncio.gather(
        *(_store_in_adapter(adapter, context, value) for adapter in adapters)
    )
    return any(results)


async def _evict_from_adapter(adapter: CacheAdapter, context: Context) -> None:
    name = adapter.name
    context.report(OnEvictStart(adapter=name))

    try:
        await maybe_await(adapter.evict(context.cache_key))
    except Exception as e:
        logger.warning(f"Evict failed in {name} for {context.cache_key}: {e}")
        context.report(OnEvictError(adapter=name, error=e))
        return

    context.report(OnEvictSuccess(adapter=name))


async def evict_value(adapters: Sequence[CacheAdapter], context: Context) -> None:
    """Remove ``context.cache_key`` from every adapter."""
    await asyncio.gather(*(_evict_from_adapter(adapter, context) for adapter in adapters))
