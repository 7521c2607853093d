"""
kvcache — Counters

Hit/miss counters collaborator and the atomic integer backing the
advisory size counter.
"""

import threading
from abc import ABC, abstractmethod
from typing import Any


class AtomicCounter:
    """
    Integer that is updated with a single locked add.

    Safe to share between threads and asyncio tasks; no update is ever lost.
    """

    def __init__(self, initial: int = 0) -> None:
        self._value = initial
        self._lock = threading.Lock()

    def add(self, delta: int) -> int:
        """Add ``delta`` (may be negative) and return the new value."""
        with self._lock:
            self._value += delta
            return self._value

    def reset(self, value: int = 0) -> None:
        with self._lock:
            self._value = value

    @property
    def value(self) -> int:
        with self._lock:
            return self._value


class CacheCounters(ABC):
    """
    Observability side channel for cache reads.

    Every ``get_value`` call reports exactly one of ``hit()`` or ``miss()``.
    """

    @abstractmethod
    def hit(self) -> None:
        """Record a cache hit."""
        pass

    @abstractmethod
    def miss(self) -> None:
        """Record a cache miss."""
        pass

    def snapshot(self) -> dict[str, Any]:
        """Return current counter values. Implementations without state return an empty dict."""
        return {}


class InMemoryCounters(CacheCounters):
    """Thread-safe in-process hit/miss counters."""

    def __init__(self) -> None:
        self._hits = AtomicCounter()
        self._misses = AtomicCounter()

    def hit(self) -> None:
        self._hits.add(1)

    def miss(self) -> None:
        self._misses.add(1)

    @property
    def hits(self) -> int:
        return self._hits.value

    @property
    def misses(self) -> int:
        return self._misses.value

    @property
    def hit_rate(self) -> float:
        """Hit rate as a percentage, 0.0 when nothing was read yet."""
        hits = self.hits
        total = hits + self.misses
        return round(hits / total * 100, 2) if total else 0.0

    def snapshot(self) -> dict[str, Any]:
        return {"hits": self.hits, "misses": self.misses, "hit_rate": self.hit_rate}
