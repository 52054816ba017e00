"""
============================================================================
Calculation Cache - TTL Memoization for Pricing & Forecasts
============================================================================

Reliability Level: L5 High

The only mutable state the engine holds. Values are frozen dataclasses,
so a cached result can be shared between callers without copying.

KEYS:
    - promotion_calc:{promotion_id}:{volume}           (calculation TTL)
    - promotion_forecast:{promotion_id}:{period}       (forecast TTL)

Entries are last-write-wins and expire by TTL only; changing a
promotion's terms does not invalidate its cached calculations.

============================================================================
"""

from decimal import Decimal
from typing import Any, Callable, Dict, Optional, Tuple
import logging
import threading
import time

# Configure module logger
logger = logging.getLogger(__name__)


def calculation_key(promotion_id: str, volume: Decimal) -> str:
    # normalize() so 150 and 150.000 share an entry
    return f"promotion_calc:{promotion_id}:{format(volume.normalize(), 'f')}"


def forecast_key(promotion_id: str, forecast_period: str) -> str:
    return f"promotion_forecast:{promotion_id}:{forecast_period}"


class CalculationCache:
    """
    Thread-safe TTL cache.

    Args:
        clock: Monotonic seconds source (injectable for tests)
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        self._clock = clock or time.monotonic
        self._lock = threading.Lock()
        self._entries = {}  # type: Dict[str, Tuple[float, Any]]
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> Optional[Any]:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.misses += 1
                return None
            expires_at, value = entry
            if now >= expires_at:
                del self._entries[key]
                self.misses += 1
                return None
            self.hits += 1
            return value

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            return
        with self._lock:
            self._entries[key] = (self._clock() + ttl_seconds, value)
        logger.debug(f"[PROMO-CACHE] Cached | key={key} | ttl={ttl_seconds}s")

    def invalidate(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
