"""
kvcache — Memory Store Backend

In-process store with per-key TTL and optional LRU eviction.
Thread-safe and suitable for tests and single-process deployments.
Supports both optional capabilities (enumeration and touch).
"""

import logging
import threading
import time
from collections import OrderedDict
from collections.abc import AsyncIterator, Callable
from datetime import timedelta
from typing import Any

from ..store import StoreInterface

logger = logging.getLogger(__name__)


class MemoryStore(StoreInterface):
    """
    In-memory store backend.

    Features:
    - Per-key TTL measured on an injectable monotonic clock
    - Optional LRU eviction once ``max_entries`` is reached
    - Key enumeration and TTL re-arming
    - Thread-safe operations (critical sections never await)
    """

    backend_name = "memory"
    supports_enumeration = True
    supports_touch = True

    def __init__(
        self,
        namespace: str = "kvcache",
        max_entries: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize memory store.

        Args:
            namespace: Key namespace/prefix
            max_entries: Maximum number of entries (None = unbounded)
            clock: Returns the current time in seconds
        """
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be positive")

        self.namespace = namespace
        self.max_entries = max_entries
        self._clock = clock

        # Storage: namespaced key -> (payload, expiry_time)
        self._data: OrderedDict[str, tuple[str, float | None]] = OrderedDict()

        # Stats
        self._sets = 0
        self._deletes = 0
        self._evictions = 0
        self._flushes = 0

        self._lock = threading.RLock()

    def _make_key(self, key: str) -> str:
        """Create namespaced key."""
        return f"{self.namespace}:{key}"

    def _expiry(self, ttl: timedelta | None) -> float | None:
        if ttl is None:
            return None
        return self._clock() + ttl.total_seconds()

    def _is_expired(self, expiry: float | None) -> bool:
        if expiry is None:
            return False
        return self._clock() >= expiry

    def _live_entry(self, ns_key: str) -> tuple[str, float | None] | None:
        """Return the entry if present and live, dropping it if expired. Caller holds the lock."""
        entry = self._data.get(ns_key)
        if entry is None:
            return None
        if self._is_expired(entry[1]):
            del self._data[ns_key]
            return None
        return entry

    async def set(self, key: str, data: str, ttl: timedelta | None = None) -> None:
        with self._lock:
            ns_key = self._make_key(key)

            if (
                self.max_entries is not None
                and ns_key not in self._data
                and len(self._data) >= self.max_entries
            ):
                evicted_key, _ = self._data.popitem(last=False)
                self._evictions += 1
                logger.debug("Evicted key from memory store: %s", evicted_key)

            self._data[ns_key] = (data, self._expiry(ttl))
            self._data.move_to_end(ns_key)
            self._sets += 1

    async def get(self, key: str) -> str | None:
        with self._lock:
            ns_key = self._make_key(key)
            entry = self._live_entry(ns_key)
            if entry is None:
                return None
            self._data.move_to_end(ns_key)
            return entry[0]

    async def delete(self, key: str) -> bool:
        with self._lock:
            ns_key = self._make_key(key)
            if self._live_entry(ns_key) is None:
                return False
            del self._data[ns_key]
            self._deletes += 1
            return True

    async def exists(self, key: str) -> bool:
        with self._lock:
            return self._live_entry(self._make_key(key)) is not None

    async def touch(self, key: str, ttl: timedelta) -> bool:
        with self._lock:
            ns_key = self._make_key(key)
            entry = self._live_entry(ns_key)
            if entry is None:
                return False
            self._data[ns_key] = (entry[0], self._expiry(ttl))
            return True

    async def iter_keys(self) -> AsyncIterator[str]:
        prefix = f"{self.namespace}:"
        # Snapshot under the lock, yield outside it
        with self._lock:
            keys = [
                ns_key[len(prefix) :]
                for ns_key, (_, expiry) in self._data.items()
                if not self._is_expired(expiry)
            ]
        for key in keys:
            yield key

    async def flush_all(self) -> None:
        with self._lock:
            size = len(self._data)
            self._data.clear()
            self._flushes += 1
        logger.info("Flushed %d entries from memory store '%s'", size, self.namespace)

    async def get_stats(self) -> dict[str, Any]:
        stats = await super().get_stats()
        with self._lock:
            stats.update(
                {
                    "namespace": self.namespace,
                    "size": len(self._data),
                    "max_entries": self.max_entries,
                    "sets": self._sets,
                    "deletes": self._deletes,
                    "evictions": self._evictions,
                    "flushes": self._flushes,
                }
            )
        return stats

    async def close(self) -> None:
        # Nothing to release; data stays in-process
        logger.debug("Memory store closed for namespace '%s'", self.namespace)
