"""
Cached client orchestration with tiered reads and stale-while-revalidate.
"""
import logging
from collections.abc import Iterable
from typing import Any, Callable, Optional, Tuple

from config.settings import settings

from .adapters.base import CacheAdapter
from .core import CacheConfig, CacheMetadata, CachedResult, Context
from .events import (
    OnFetchError,
    OnFetchStart,
    OnFetchSuccess,
    OnSkip,
    OnStaleHitFromError,
    OnStoreSkip,
    noop_reporter,
    safe_report,
)
from .fanout import evict_value, store_value
from .freshness import now_ms
from .reader import get_cached_value
from .ttl_policies import DEFAULT_STALE_TIME, resolve_ttl_provider

logger = logging.getLogger("tiercache.client")


def _as_adapter_list(cache: Any) -> Tuple[CacheAdapter, ...]:
    """One adapter, or any iterable of adapters, as an ordered tuple."""
    if isinstance(cache, CacheAdapter) or not isinstance(cache, Iterable):
        return (cache,)
    return tuple(cache)


class CachedClient:
    """
    Binds a producer, a key/TTL policy and an ordered list of tiers into a
    single ``fetch`` entry point.

    Each call ends in exactly one of:
    - a fresh cache hit
    - a producer result (written to every tier when cacheable)
    - a stale hit served because the producer failed
    - a failover value
    - the producer's exception, re-raised unchanged

    Concurrent calls for the same key are not coalesced; each one may
    invoke the producer.
    """

    def __init__(self, config: CacheConfig, clock: Callable[[], float] = now_ms):
        """
        Initialize the client.

        Args:
            config: Static cache configuration
            clock: Source of the current time in milliseconds
        """
        self.config = config
        self.caches: Tuple[CacheAdapter, ...] = _as_adapter_list(config.cache)
        self._clock = clock

        default_stale_time = settings.default_stale_time_ms
        if default_stale_time is None:
            default_stale_time = DEFAULT_STALE_TIME
        self._get_stale_time = resolve_ttl_provider(config.stale_time, default=default_stale_time)

    @property
    def cache_name(self) -> str:
        return self.config.cache_name

    def create_context(self, params: Any) -> Context:
        """Build the request context: TTL policy, initial key and reporter."""
        now = self._clock()
        context = Context(
            cache_key=self.config.cache_key(params),
            cache_name=self.config.cache_name,
            params=params,
            metadata=CacheMetadata.now(ttl=self._get_stale_time(), now=now),
        )
        if self.config.reporter is not None:
            context.report = safe_report(self.config.reporter(context))
        else:
            context.report = noop_reporter
        return context

    async def _fetch_upstream(self, context: Context) -> Any:
        context.report(OnFetchStart())
        result = await self.config.fetch(context)
        context.report(OnFetchSuccess(result=result))
        return result

    def _is_cacheable(self, context: Context, result: Any) -> bool:
        if self.config.is_cacheable is None:
            return True
        return bool(self.config.is_cacheable(context, result))

    async def _get_fresh_value(self, context: Context) -> Any:
        result = await self._fetch_upstream(context)

        if self._is_cacheable(context, result):
            # Keys may depend on the fetched data; recovery keeps the request key otherwise
            context.cache_key = self.config.cache_key(context.params, result)
            stored = await store_value(self.caches, context, result)
            if not stored and self.caches:
                logger.warning(f"[{self.cache_name}] no tier stored {context.cache_key}")
        else:
            context.report(OnStoreSkip())

        return result

    async def fetch(self, params: Any, fresh: bool = False) -> Any:
        """
        Get a value from the tiers or from the producer.

        Args:
            params: Request parameters, passed to the key function and producer
            fresh: Skip every cache lookup and call the producer

        Returns:
            The cached, fetched, stale or failover value

        Raises:
            Exception: The producer's own error when no fallback applies
        """
        context = self.create_context(params)
        cached: Optional[CachedResult] = None

        if fresh:
            context.report(OnSkip())
        else:
            cached = await get_cached_value(self.caches, context, self._clock)
            if cached is not None and not cached.stale:
                return cached.value

        try:
            return await self._get_fresh_value(context)
        except Exception as error:
            context.report(OnFetchError(error=error))
            return await self._recover(context, cached, error)

    async def _recover(self, context: Context, cached: Optional[CachedResult], error: Exception) -> Any:
        if cached is not None:
            if self.config.serve_stale_hit_on_error:
                logger.info(f"[{self.cache_name}] serving stale {context.cache_key} after error: {error}")
                context.report(OnStaleHitFromError())
                await store_value(self.caches, context, cached.value)
                return cached.value

            # A stale hit that could not be refreshed is not trusted any more
            await evict_value(self.caches, context)

        if self.config.failover_on_error is not None:
            try:
                default = self.config.failover_on_error(context, error)
            except Exception as failover_error:
                logger.warning(f"[{self.cache_name}] failover failed for {context.cache_key}: {failover_error}")
                raise error from failover_error
            if default is not None:
                logger.info(f"[{self.cache_name}] failover value for {context.cache_key}")
                return default

        raise error

    async def evict(self, params: Any) -> None:
        """Remove the entry for ``params`` from every tier."""
        await evict_value(self.caches, self.create_context(params))


def build_client(config: CacheConfig, clock: Optional[Callable[[], float]] = None) -> CachedClient:
    """Create a ``CachedClient`` from a configuration."""
    return CachedClient(config, clock=clock or now_ms)
