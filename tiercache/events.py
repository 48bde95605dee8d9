"""
Cache lifecycle events and reporters.

Every step of a ``fetch`` emits one of the events below to the request's
reporter. Reporters are plain callables taking a single event; they observe
the orchestrator and never change what it does.
"""
import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Dict, Optional, Union

from .core import Context

logger = logging.getLogger("tiercache.events")


# =============================================================================
# Event taxonomy
# =============================================================================

@dataclass(frozen=True)
class OnGetCachedStart:
    name: ClassVar[str] = "onGetCachedStart"
    adapter: str


@dataclass(frozen=True)
class OnGetCachedHit:
    name: ClassVar[str] = "onGetCachedHit"
    adapter: str
    result: Any


@dataclass(frozen=True)
class OnGetCachedMiss:
    name: ClassVar[str] = "onGetCachedMiss"
    adapter: str


@dataclass(frozen=True)
class OnGetCachedError:
    name: ClassVar[str] = "onGetCachedError"
    adapter: str
    error: Exception


@dataclass(frozen=True)
class OnSkip:
    """Cache lookup bypassed because the caller asked for a fresh value."""
    name: ClassVar[str] = "onSkip"


@dataclass(frozen=True)
class OnFetchStart:
    name: ClassVar[str] = "onFetchStart"


@dataclass(frozen=True)
class OnFetchSuccess:
    name: ClassVar[str] = "onFetchSuccess"
    result: Any


@dataclass(frozen=True)
class OnFetchError:
    name: ClassVar[str] = "onFetchError"
    error: Exception


@dataclass(frozen=True)
class OnStoreStart:
    name: ClassVar[str] = "onStoreStart"
    adapter: str


@dataclass(frozen=True)
class OnStoreSkip:
    """Fresh result judged not cacheable."""
    name: ClassVar[str] = "onStoreSkip"


@dataclass(frozen=True)
class OnStoreSuccess:
    name: ClassVar[str] = "onStoreSuccess"
    adapter: str
    result: Any
    cache_key: str
    ttl: float


@dataclass(frozen=True)
class OnStoreError:
    name: ClassVar[str] = "onStoreError"
    adapter: str
    error: Exception


@dataclass(frozen=True)
class OnStaleHitFromError:
    """Producer failed and a stale hit is served in its place."""
    name: ClassVar[str] = "onStaleHitFromError"


@dataclass(frozen=True)
class OnEvictStart:
    name: ClassVar[str] = "onEvictStart"
    adapter: str


@dataclass(frozen=True)
class OnEvictSuccess:
    name: ClassVar[str] = "onEvictSuccess"
    adapter: str


@dataclass(frozen=True)
class OnEvictError:
    name: ClassVar[str] = "onEvictError"
    adapter: str
    error: Exception


@dataclass(frozen=True)
class OnCustom:
    """Free-form message, typically reported by producers."""
    name: ClassVar[str] = "onCustom"
    message: str


CacheEvent = Union[
    OnGetCachedStart,
    OnGetCachedHit,
    OnGetCachedMiss,
    OnGetCachedError,
    OnSkip,
    OnFetchStart,
    OnFetchSuccess,
    OnFetchError,
    OnStoreStart,
    OnStoreSkip,
    OnStoreSuccess,
    OnStoreError,
    OnStaleHitFromError,
    OnEvictStart,
    OnEvictSuccess,
    OnEvictError,
    OnCustom,
]

Reporter = Callable[[CacheEvent], None]
ReporterFactory = Callable[[Context], Reporter]


# =============================================================================
# Reporter helpers
# =============================================================================

def noop_reporter(event: CacheEvent) -> None:
    pass


def safe_report(reporter: Reporter) -> Reporter:
    """Wrap a reporter so its failures are logged and never propagate."""

    def report(event: CacheEvent) -> None:
        try:
            reporter(event)
        except Exception:
            logger.exception(f"Reporter failed on {event.name}")

    return report


def combine_reporters(*reporters: Reporter) -> Reporter:
    """Fan a single event out to several reporters, in order."""

    def report(event: CacheEvent) -> None:
        for reporter in reporters:
            reporter(event)

    return report


def combine_reporter_factories(*factories: ReporterFactory) -> ReporterFactory:
    """Build one reporter factory out of several."""

    def factory(context: Context) -> Reporter:
        return combine_reporters(*(make(context) for make in factories))

    return factory


class LoggingReporter:
    """
    Reporter that writes events to the ``tiercache.events`` logger.

    Usable directly as a reporter factory: ``reporter=LoggingReporter``.
    The cache key is read from the context at report time, so a key
    recomputed after the fetch shows up in later messages.
    """

    def __init__(self, context: Context, log: Optional[logging.Logger] = None):
        self._context = context
        self._log = log or logger

    def __call__(self, event: CacheEvent) -> None:
        prefix = f"[{self._context.cache_name}] {self._context.cache_key}"
        adapter = getattr(event, "adapter", None)
        where = f" ({adapter})" if adapter else ""

        if isinstance(event, (OnGetCachedError, OnStoreError, OnEvictError)):
            self._log.warning(f"{prefix}: {event.name}{where}: {event.error}")
        elif isinstance(event, OnFetchError):
            self._log.warning(f"{prefix}: upstream fetch failed: {event.error}")
        elif isinstance(event, OnStaleHitFromError):
            self._log.warning(f"{prefix}: serving stale hit after fetch error")
        elif isinstance(event, OnGetCachedHit):
            self._log.debug(f"CACHE HIT{where}: {prefix}")
        elif isinstance(event, OnGetCachedMiss):
            self._log.info(f"CACHE MISS{where}: {prefix}")
        elif isinstance(event, OnSkip):
            self._log.info(f"FORCE REFRESH: {prefix}")
        elif isinstance(event, OnStoreSuccess):
            self._log.debug(f"Stored{where}: {prefix} [ttl={event.ttl}]")
        elif isinstance(event, OnCustom):
            self._log.info(f"{prefix}: {event.message}")
        else:
            self._log.debug(f"{prefix}: {event.name}{where}")


class CacheStats:
    """
    Thread-safe counters fed by cache events.

    ``hits`` and ``misses`` count requests, not tiers: a request that reads
    through three empty tiers before fetching is one miss (and three
    ``tier_misses``). Requests made with ``fresh=True`` are neither. Only
    reporters built by ``reporter`` see whole requests, so ``misses`` stays
    at zero when events are fed to ``record`` directly.

    Usage:
        stats = CacheStats()
        config = CacheConfig(..., reporter=stats.reporter)
        stats.get_stats()
    """

    _COUNTED = {
        OnGetCachedHit.name: "hits",
        OnGetCachedMiss.name: "tier_misses",
        OnGetCachedError.name: "read_errors",
        OnFetchStart.name: "fetches",
        OnFetchError.name: "fetch_errors",
        OnStaleHitFromError.name: "stale_served",
        OnStoreSuccess.name: "stores",
        OnStoreError.name: "store_errors",
        OnStoreSkip.name: "store_skips",
        OnEvictSuccess.name: "evictions",
        OnEvictError.name: "evict_errors",
    }

    def __init__(self):
        self._lock = threading.Lock()
        self._counts: Dict[str, int] = self._empty_counts()

    def _empty_counts(self) -> Dict[str, int]:
        counts = {name: 0 for name in self._COUNTED.values()}
        counts["misses"] = 0
        return counts

    def record(self, event: CacheEvent) -> None:
        counter = self._COUNTED.get(event.name)
        if counter is None:
            return
        with self._lock:
            self._counts[counter] += 1

    def reporter(self, context: Context) -> Reporter:
        """Reporter factory bound to these counters, one per request."""
        looked_up = False
        settled = False

        def report(event: CacheEvent) -> None:
            nonlocal looked_up, settled
            self.record(event)
            if isinstance(event, OnGetCachedStart):
                looked_up = True
            elif isinstance(event, OnGetCachedHit):
                settled = True
            elif isinstance(event, OnFetchStart) and looked_up and not settled:
                # Read through every tier without a fresh hit
                settled = True
                with self._lock:
                    self._counts["misses"] += 1

        return report

    def reset(self) -> None:
        with self._lock:
            self._counts = self._empty_counts()

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        with self._lock:
            counts = dict(self._counts)

        lookups = counts["hits"] + counts["misses"]
        hit_rate = (counts["hits"] / lookups * 100) if lookups > 0 else 0
        counts["hit_rate_percent"] = round(hit_rate, 1)
        return counts
