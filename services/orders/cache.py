"""In-memory cache for calculation results."""

from __future__ import annotations

import hashlib
import json
import threading
import time
from typing import TYPE_CHECKING

from cachetools import TTLCache

from services.orders.mapping import input_to_payload

if TYPE_CHECKING:
    from collections.abc import Callable

    from services.orders.types import CalculationInput, CalculationResult

DEFAULT_TTL = 300  # 5 minutes
DEFAULT_MAX_ENTRIES = 1024


class CalculationCache:
    """
    TTL cache for calculation results.

    Calculations are pure, so a result can be reused for an identical input.
    The cache is created and owned by whoever builds the service; there is no
    shared instance. Access is serialized with a lock so one cache can be
    shared between worker threads.

    Example:
        >>> cache = CalculationCache(ttl=60)
        >>> result = cache.get_or_set(order_input, lambda: calculate_order(order_input))
    """

    def __init__(
        self,
        ttl: int = DEFAULT_TTL,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize the cache.

        Args:
            ttl: Seconds an entry stays valid.
            max_entries: Entries kept before the least recently used is evicted.
            clock: Monotonic time source.
        """
        self._entries: TTLCache[str, CalculationResult] = TTLCache(
            maxsize=max_entries,
            ttl=ttl,
            timer=clock,
        )
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            self._entries.expire()
            return len(self._entries)

    @staticmethod
    def make_key(calculation_input: CalculationInput) -> str:
        """
        Generate a cache key for an input.

        The source tag is left out; client and server calculations of the
        same order share an entry.
        """
        payload = input_to_payload(calculation_input)
        payload.pop("calculation_source")
        serialized = json.dumps(payload, sort_keys=True)
        return hashlib.sha256(serialized.encode()).hexdigest()

    def get(self, calculation_input: CalculationInput) -> CalculationResult | None:
        """Return the cached result, or None if absent or expired."""
        key = self.make_key(calculation_input)
        with self._lock:
            return self._entries.get(key)

    def set(self, calculation_input: CalculationInput, result: CalculationResult) -> None:
        """Store a result."""
        key = self.make_key(calculation_input)
        with self._lock:
            self._entries[key] = result

    def get_or_set(
        self,
        calculation_input: CalculationInput,
        compute: Callable[[], CalculationResult],
    ) -> CalculationResult:
        """
        Return the cached result or compute, store and return it.

        compute runs outside the lock; two threads missing together both
        compute and the later store wins.
        """
        result = self.get(calculation_input)
        if result is None:
            result = compute()
            self.set(calculation_input, result)
        return result

    def clear(self) -> None:
        """Drop every entry."""
        with self._lock:
            self._entries.clear()
