"""
Core cache data structures.

Times are epoch milliseconds as floats; ``math.inf`` is an unbounded TTL.
"""
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, Sequence, Union


@dataclass
class CacheMetadata:
    """
    Freshness bookkeeping stored alongside every cached value.

    ``created_at`` and ``ttl`` are fixed once the entry is produced.
    ``last_accessed_at`` moves forward on every successful freshness check
    and drives recency-based eviction.
    """
    created_at: float
    ttl: float
    last_accessed_at: float

    @classmethod
    def now(cls, ttl: float, now: float) -> "CacheMetadata":
        """Metadata for an entry produced at ``now``."""
        return cls(created_at=now, ttl=ttl, last_accessed_at=now)

    @property
    def expires_at(self) -> float:
        return self.created_at + self.ttl


@dataclass
class CacheEntry:
    """
    A cached value together with its metadata.

    Entries coming from external stores may carry no metadata at all.
    """
    value: Any
    metadata: Optional[CacheMetadata] = None


@dataclass
class CachedResult:
    """Outcome of a tiered read: the entry found and whether it is stale."""
    entry: CacheEntry
    stale: bool

    @property
    def value(self) -> Any:
        return self.entry.value


@dataclass
class Context:
    """
    Request-scoped state for one ``fetch`` call.

    Only ``cache_key`` changes after creation: it is recomputed once the
    producer's result is known.
    """
    cache_key: str
    cache_name: str
    params: Any
    metadata: CacheMetadata
    report: Callable[[Any], None] = field(default=lambda event: None, repr=False)


@dataclass(frozen=True)
class CacheConfig:
    """
    Static configuration for a cached client.

    Attributes:
        cache_name: Logical namespace, used for telemetry
        fetch: Async producer called with the request ``Context``
        cache_key: ``(params, result=None) -> str``; the result is passed
            once it is known so keys may depend on fetched data
        cache: One adapter or an ordered sequence, fastest tier first
        stale_time: Milliseconds an entry stays fresh, or a zero-argument
            callable returning it. Invalid values fall back to the default
        is_cacheable: ``(context, result) -> bool`` deciding whether a fresh
            result is written to the tiers
        serve_stale_hit_on_error: Serve (and re-store) a stale hit when the
            producer fails instead of evicting it
        failover_on_error: ``(context, error) -> value | None`` supplying a
            default result when the producer fails
        reporter: ``(context) -> reporter`` factory for event sinks
    """
    cache_name: str
    fetch: Callable[[Context], Awaitable[Any]]
    cache_key: Callable[..., str]
    cache: Union[Any, Sequence[Any]]
    stale_time: Optional[Union[float, Callable[[], float]]] = None
    is_cacheable: Optional[Callable[[Context, Any], bool]] = None
    serve_stale_hit_on_error: bool = False
    failover_on_error: Optional[Callable[[Context, Exception], Any]] = None
    reporter: Optional[Callable[[Context], Callable[[Any], None]]] = None
