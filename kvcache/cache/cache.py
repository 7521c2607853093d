"""
kvcache — Remote Cache

The cache contract on top of an injected store backend.

Behavior summary:
- Writes serialize the value, write it with one expiration mode (default
  duration, sliding window or absolute instant) and add the record size to
  the advisory size counter.
- A disabled cache (administratively off, or max_size == 0) turns writes
  into silent no-ops that never reach the store. Reads and removals still
  work against whatever the store already holds.
- Store errors propagate unchanged; the cache has no retry or fallback.
- Key enumeration (count/size/keys/pattern removal) needs a store with the
  enumerable tier, otherwise UnsupportedOperationError is raised.

Concurrency:
    ``clear()`` is the only operation that takes a lock, and it only
    serializes against other ``clear()`` calls. Concurrent add/get/remove
    calls are not excluded from an in-flight clear: a write racing a flush
    may be lost or may survive it, and its size delta may be dropped when
    the advisory counter is reset. This is the accepted behavior; callers
    that need a quiescent flush must stop writers themselves.

    One instance may be shared by several threads, each with its own event
    loop. The clear lock is a ``threading.Lock`` polled from the loop, and
    the advisory counter is an ``AtomicCounter``.

    ``clear()`` flushes the whole store but resets only this cache's
    counter. Other caches on the same store keep their advisory sizes, and
    those sizes are never given back: the flushed keys are gone, so their
    removes delete nothing and subtract nothing.
"""

import asyncio
import logging
import threading
import uuid
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any

from ..errors import InvalidArgumentError, UnsupportedOperationError
from ..observability.counters import AtomicCounter, CacheCounters, InMemoryCounters
from .expiration import NO_SLIDING_EXPIRATION, ttl_until, utcnow
from .serializer import CacheRecord, JsonSerializer, Serializer
from .size_strategy import PayloadSizeStrategy, SizeStrategy
from .store import StoreInterface

logger = logging.getLogger(__name__)

# Seconds between attempts to take the clear lock while another clear runs
_CLEAR_LOCK_POLL_INTERVAL = 0.005


def _require(name: str, value: Any) -> None:
    if value is None:
        raise InvalidArgumentError(name)


def _require_key(name: str, key: str | None) -> None:
    if key is None or key == "":
        raise InvalidArgumentError(name)


class RemoteCache:
    """
    Cache backed by a remote (or in-process) key-value store.

    Args:
        store: Store backend; one instance may be shared by several caches
        name: Cache name, used in logs and stats
        default_expiration: TTL used by ``add``; None or zero means never expires
        max_size: Configured max size in bytes; 0 disables the cache
        enabled: Administrative enable flag
        size_strategy: Record size estimator for the advisory counter
        serializer: Record encoder (JSON envelope by default)
        counters: Hit/miss collaborator
        cache_id: Cache identity (random UUID when omitted)
        clock: Returns the current UTC time; used for absolute expirations
    """

    def __init__(
        self,
        store: StoreInterface,
        name: str = "default",
        default_expiration: timedelta | None = timedelta(hours=1),
        max_size: int = 100 * 1024 * 1024,
        enabled: bool = True,
        size_strategy: SizeStrategy | None = None,
        serializer: Serializer | None = None,
        counters: CacheCounters | None = None,
        cache_id: uuid.UUID | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        _require("store", store)
        if max_size < 0:
            raise InvalidArgumentError("max_size", "must be non-negative")

        self._store = store
        self._name = name
        self._id = cache_id or uuid.uuid4()
        self._enabled = enabled
        self._max_size = max_size
        self._size_strategy = size_strategy or PayloadSizeStrategy()
        self._serializer = serializer or JsonSerializer()
        self.counters = counters or InMemoryCounters()
        self._clock = clock

        if default_expiration is not None and default_expiration <= timedelta(0):
            default_expiration = None
        self.default_expiration = default_expiration

        self._advisory_size = AtomicCounter()
        # Shared by every thread and event loop using this cache
        self._clear_lock = threading.Lock()

    # ------------ Identity / state ------------

    @property
    def name(self) -> str:
        return self._name

    @property
    def id(self) -> uuid.UUID:
        return self._id

    @property
    def store(self) -> StoreInterface:
        return self._store

    @property
    def size_strategy(self) -> SizeStrategy:
        return self._size_strategy

    @property
    def enabled(self) -> bool:
        """True only if administratively enabled and max_size > 0."""
        return self._enabled and self._max_size > 0

    @enabled.setter
    def enabled(self, value: bool) -> None:
        self._enabled = bool(value)
        logger.info("Cache '%s' %s", self._name, "enabled" if self._enabled else "disabled")

    @property
    def max_size(self) -> int:
        return self._max_size

    @max_size.setter
    def max_size(self, value: int) -> None:
        if value is None or value < 0:
            raise InvalidArgumentError("max_size", "must be non-negative")
        self._max_size = value

    @property
    def scavengable(self) -> bool:
        """Always True: the store evicts entries on its own."""
        return True

    @scavengable.setter
    def scavengable(self, value: bool) -> None:
        logger.warning(
            "Cache '%s' does not support changing property 'scavengable'",
            self._name,
            extra={"cache_name": self._name, "requested_value": value},
        )

    @property
    def advisory_size(self) -> int:
        """In-process size estimate. Never used to reject writes."""
        return self._advisory_size.value

    # ------------ Writes ------------

    async def _write(self, key: str, value: Any, ttl: timedelta | None, sliding: timedelta | None) -> None:
        record = CacheRecord(value=value, sliding_seconds=sliding.total_seconds() if sliding else None)
        data = self._serializer.dumps(record)
        await self._store.set(key, data, ttl)
        self._advisory_size.add(self._size_strategy.record_size(key, data))

    def _accepts_writes(self, key: str) -> bool:
        if self.enabled:
            return True
        logger.debug("Cache '%s' is disabled, ignoring write for key '%s'", self._name, key)
        return False

    async def add(self, key: str, value: Any) -> None:
        """
        Store a value with the cache's default expiration.

        Raises:
            InvalidArgumentError: If key or value is None (or key is empty)
        """
        _require_key("key", key)
        _require("value", value)
        if not self._accepts_writes(key):
            return
        await self._write(key, value, self.default_expiration, None)

    async def add_sliding(self, key: str, value: Any, sliding_expiration: timedelta) -> None:
        """
        Store a value that expires after ``sliding_expiration`` without access.

        Every ``get_value`` hit re-arms the TTL when the store supports
        ``touch``. On stores without it the window behaves as an absolute
        TTL counted from the write.
        """
        _require_key("key", key)
        _require("value", value)
        _require("sliding_expiration", sliding_expiration)
        if sliding_expiration <= timedelta(0):
            raise InvalidArgumentError("sliding_expiration", "must be a positive duration")
        if not self._accepts_writes(key):
            return
        await self._write(key, value, sliding_expiration, sliding_expiration)

    async def add_absolute(self, key: str, value: Any, absolute_expiration: datetime) -> None:
        """
        Store a value that expires at ``absolute_expiration``.

        INFINITE_ABSOLUTE_EXPIRATION stores the entry without a TTL. An
        instant that is already past removes any existing entry for the key
        instead of writing one.
        """
        _require_key("key", key)
        _require("value", value)
        _require("absolute_expiration", absolute_expiration)
        if not self._accepts_writes(key):
            return

        ttl = ttl_until(absolute_expiration, self._clock())
        if ttl is not None and ttl <= timedelta(0):
            logger.debug("Absolute expiration for key '%s' already passed, removing instead", key)
            await self.remove(key)
            return
        await self._write(key, value, ttl, None)

    async def add_with_policy(
        self,
        key: str,
        value: Any,
        sliding_expiration: timedelta,
        absolute_expiration: datetime,
    ) -> None:
        """
        Store a value with exactly one expiration mode.

        NO_SLIDING_EXPIRATION selects the absolute instant; any other window
        selects sliding expiration and the absolute instant is ignored.
        """
        _require_key("key", key)
        _require("value", value)
        if not self._accepts_writes(key):
            return
        if sliding_expiration == NO_SLIDING_EXPIRATION:
            await self.add_absolute(key, value, absolute_expiration)
        else:
            await self.add_sliding(key, value, sliding_expiration)

    # ------------ Reads ------------

    async def contains_key(self, key: str) -> bool:
        """Whether the store holds a live entry for ``key``."""
        _require_key("key", key)
        return await self._store.exists(key)

    async def get_value(self, key: str) -> Any | None:
        """
        Retrieve a value.

        Reports exactly one hit or miss to the counters collaborator.

        Returns:
            The deserialized value, or None if absent or expired
        """
        _require_key("key", key)
        data = await self._store.get(key)
        if data is None:
            self.counters.miss()
            return None

        self.counters.hit()
        record = self._serializer.loads(data)
        if record.sliding_seconds and self._store.supports_touch:
            await self._store.touch(key, timedelta(seconds=record.sliding_seconds))
        return record.value

    # ------------ Removal ------------

    async def remove(self, key: str) -> bool:
        """
        Delete ``key`` if present. Removing an absent key is not an error.

        Returns:
            True if an entry was deleted
        """
        _require_key("key", key)
        data = await self._store.get(key)
        deleted = await self._store.delete(key)
        if deleted and data is not None:
            self._advisory_size.add(-self._size_strategy.record_size(key, data))
        return deleted

    def _require_enumeration(self, operation: str) -> None:
        if not self._store.supports_enumeration:
            raise UnsupportedOperationError(operation, "enumeration", self._store.backend_name)

    async def _list_keys(self) -> list[str]:
        return [key async for key in self._store.iter_keys()]

    async def remove_where(self, predicate: Callable[[str], bool]) -> list[str]:
        """
        Remove every key matching ``predicate``.

        Removals are independent: a failure part-way leaves earlier keys
        removed.

        Returns:
            Keys that were actually removed

        Raises:
            UnsupportedOperationError: If the store cannot enumerate keys
        """
        _require("predicate", predicate)
        self._require_enumeration("remove_where")

        removed: list[str] = []
        for key in await self._list_keys():
            if predicate(key) and await self.remove(key):
                removed.append(key)

        if removed:
            logger.debug("Cache '%s' removed %d keys by predicate", self._name, len(removed))
        return removed

    async def remove_prefix(self, prefix: str) -> list[str]:
        """Remove keys starting with ``prefix`` (case-sensitive)."""
        _require_key("prefix", prefix)
        self._require_enumeration("remove_prefix")
        return await self.remove_where(lambda key: key.startswith(prefix))

    async def remove_keys_containing(self, key_part: str) -> list[str]:
        """Remove keys containing ``key_part``, ignoring case."""
        _require_key("key_part", key_part)
        self._require_enumeration("remove_keys_containing")
        needle = key_part.casefold()
        return await self.remove_where(lambda key: needle in key.casefold())

    async def clear(self) -> None:
        """
        Flush the entire backing store and reset the advisory size.

        Only other ``clear()`` calls wait on the lock; see the module
        docstring for the race with concurrent writers.
        """
        await self._acquire_clear_lock()
        try:
            await self._store.flush_all()
            self._advisory_size.reset()
        finally:
            self._clear_lock.release()
        logger.info("Cache '%s' cleared", self._name, extra={"cache_name": self._name})

    async def _acquire_clear_lock(self) -> None:
        # Never blocks the event loop; a cancelled waiter holds nothing
        while not self._clear_lock.acquire(blocking=False):
            await asyncio.sleep(_CLEAR_LOCK_POLL_INTERVAL)

    def scavenge(self) -> None:
        """No-op: the store manages its own eviction."""

    # ------------ Enumerable tier ------------

    async def get_cache_keys(self) -> list[str]:
        """List live keys. Raises UnsupportedOperationError without enumeration."""
        self._require_enumeration("get_cache_keys")
        return await self._list_keys()

    async def count(self) -> int:
        """Exact number of live keys. Raises UnsupportedOperationError without enumeration."""
        self._require_enumeration("count")
        return len(await self._list_keys())

    async def size(self) -> int:
        """Exact size of live records per the size strategy. Raises UnsupportedOperationError without enumeration."""
        self._require_enumeration("size")
        total = 0
        for key in await self._list_keys():
            data = await self._store.get(key)
            if data is not None:
                total += self._size_strategy.record_size(key, data)
        return total

    async def remaining_space(self) -> int:
        """``max_size`` minus the exact size, never below zero."""
        self._require_enumeration("remaining_space")
        return max(0, self._max_size - await self.size())

    # ------------ Lifecycle / stats ------------

    async def get_stats(self) -> dict[str, Any]:
        stats: dict[str, Any] = {
            "name": self._name,
            "id": str(self._id),
            "enabled": self.enabled,
            "max_size": self._max_size,
            "advisory_size": self.advisory_size,
            "default_expiration_seconds": (
                self.default_expiration.total_seconds() if self.default_expiration else 0
            ),
        }
        stats.update(self.counters.snapshot())
        stats["store"] = await self._store.get_stats()
        return stats

    async def close(self) -> None:
        """Close the underlying store."""
        await self._store.close()
        logger.debug("Cache '%s' closed", self._name)
