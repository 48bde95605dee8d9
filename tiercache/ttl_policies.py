"""
TTL normalisation.

Staleness may be configured as a fixed number of milliseconds or as a
zero-argument callable. Both shapes are turned into a provider once, at
construction time, and invalid values are replaced by a default instead of
raising.
"""
import logging
import math
import numbers
from typing import Callable, Optional, Union

logger = logging.getLogger("tiercache.ttl_policies")

# Entries never go stale unless told otherwise
DEFAULT_STALE_TIME = math.inf

# Largest integer a double represents exactly (2**53 - 1)
MAX_SAFE_TTL = 9007199254740991

TTLProvider = Callable[[], float]


def ensure_positive_valid_number(value, fallback: float, minimum: float = 0) -> float:
    """
    Return ``value`` if it is a usable TTL, otherwise ``fallback``.

    Usable means a real number (booleans excluded), not NaN, at least
    ``minimum``, and either positive infinity (never stale) or below
    ``MAX_SAFE_TTL``.
    """
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return fallback
    if math.isnan(value):
        return fallback
    if value == math.inf:
        return value
    if value < minimum or value >= MAX_SAFE_TTL:
        return fallback
    return value


def resolve_ttl_provider(
    stale_time: Optional[Union[float, Callable[[], float]]],
    default: float = DEFAULT_STALE_TIME,
) -> TTLProvider:
    """
    Normalise a fixed or computed TTL into a zero-argument provider.

    Args:
        stale_time: Milliseconds, a callable returning milliseconds, or None
        default: Value used when ``stale_time`` is missing or invalid

    Returns:
        Callable evaluated once per request
    """
    if callable(stale_time):
        compute = stale_time

        def provider() -> float:
            return ensure_positive_valid_number(compute(), default)

        return provider

    ttl = ensure_positive_valid_number(stale_time, default)
    if stale_time is not None and ttl != stale_time:
        logger.warning(f"Invalid stale time {stale_time!r}, using {default}")

    return lambda: ttl
