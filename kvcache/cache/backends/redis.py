"""
kvcache — Redis Store Backend

Asynchronous Redis store with:
- Namespace prefixing for safe multi-tenant usage
- Millisecond TTLs (SET PX) and TTL re-arming (PEXPIRE)
- Optional key enumeration via non-blocking SCAN
- FLUSHALL for clearing every database on the server
- Connectivity failures surfaced as BackendUnavailableError, with optional
  store-level retry and exponential backoff

Requires: redis>=5.0 with asyncio support

Example:
    store = RedisStore(redis_url="redis://localhost:6379/0", namespace="kvcache")
    await store.set("greeting", '{"v":"hello","s":null}', ttl=timedelta(minutes=1))
    payload = await store.get("greeting")
"""

from __future__ import annotations

import logging
import math
from collections.abc import AsyncIterator, Awaitable, Callable
from datetime import timedelta
from typing import Any, TypeVar

from redis.asyncio import Redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError

from ...errors import BackendUnavailableError, StoreOperationError, UnsupportedOperationError
from ...resilience.retry import RetryConfig, with_retry
from ..store import StoreInterface

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RedisStore(StoreInterface):
    """
    Redis store backend.

    Notes:
    - Keys are prefixed with the configured namespace to avoid collisions.
    - Payloads are stored as UTF-8 strings.
    - ``flush_all`` issues FLUSHALL: it clears every database on the server,
      not just this namespace.
    - Enumeration uses SCAN and can be disabled with ``enable_scan=False``,
      in which case the store reports the enumerable tier as unsupported.
    """

    backend_name = "redis"
    supports_touch = True

    def __init__(
        self,
        redis_url: str | None = None,
        namespace: str = "kvcache",
        max_connections: int = 10,
        socket_timeout: float = 5.0,
        enable_scan: bool = True,
        retry_attempts: int = 0,
        retry_base_delay: float = 0.1,
        client: Redis | None = None,
    ) -> None:
        """
        Initialize Redis store backend.

        Args:
            redis_url: Connection URL, e.g. redis://localhost:6379/0 or rediss:// for TLS
            namespace: Prefix for all keys
            max_connections: Connection pool size
            socket_timeout: Socket timeout in seconds
            enable_scan: Allow SCAN-based key enumeration
            retry_attempts: Retries on connectivity failures (0 = fail fast)
            retry_base_delay: Initial retry backoff in seconds
            client: Pre-built client (takes precedence over redis_url)
        """
        if client is None and not redis_url:
            raise ValueError("redis_url is required")

        self.namespace = namespace.strip() or "kvcache"
        self.supports_enumeration = enable_scan
        self._retry_config = RetryConfig(
            max_retries=retry_attempts,
            base_delay=retry_base_delay,
            max_delay=max(retry_base_delay, 5.0),
        )
        self._sets = 0
        self._deletes = 0

        # Lazy connection; connects on first command
        self._client: Redis = client or Redis.from_url(  # type: ignore[call-overload]
            url=redis_url,
            decode_responses=True,
            max_connections=max_connections,
            socket_timeout=socket_timeout,
        )

    # ------------ Helpers ------------

    def _make_key(self, key: str) -> str:
        """Create namespaced key."""
        return f"{self.namespace}:{key}"

    def _translate(self, operation: str, key: str | None, error: RedisError) -> Exception:
        details = {"operation": operation, "key": key, "namespace": self.namespace, "error": str(error)}
        if isinstance(error, (RedisConnectionError, RedisTimeoutError)):
            logger.warning("Redis unavailable during %s: %s", operation, error, extra=details)
            return BackendUnavailableError("redis", details)
        logger.error("Redis %s failed: %s", operation, error, extra=details)
        return StoreOperationError(f"Redis {operation} failed: {error}", details)

    async def _execute(
        self,
        operation: str,
        key: str | None,
        command: Callable[[], Awaitable[T]],
    ) -> T:
        """Run one Redis command with error translation and the configured retry policy."""

        async def attempt() -> T:
            try:
                return await command()
            except RedisError as e:
                raise self._translate(operation, key, e) from e

        return await with_retry(attempt, config=self._retry_config)

    # ------------ Baseline tier ------------

    async def set(self, key: str, data: str, ttl: timedelta | None = None) -> None:
        ns_key = self._make_key(key)

        if ttl is None:
            await self._execute("set", key, lambda: self._client.set(ns_key, data))
        else:
            if ttl <= timedelta(0):
                # Already expired on arrival
                await self._execute("set", key, lambda: self._client.delete(ns_key))
                return
            # Any positive TTL is written; sub-millisecond TTLs round up to 1 ms
            px = math.ceil(ttl / timedelta(milliseconds=1))
            await self._execute("set", key, lambda: self._client.set(ns_key, data, px=px))

        self._sets += 1

    async def get(self, key: str) -> str | None:
        ns_key = self._make_key(key)
        return await self._execute("get", key, lambda: self._client.get(ns_key))

    async def delete(self, key: str) -> bool:
        ns_key = self._make_key(key)
        deleted = await self._execute("delete", key, lambda: self._client.delete(ns_key))
        if deleted:
            self._deletes += 1
        return bool(deleted)

    async def exists(self, key: str) -> bool:
        ns_key = self._make_key(key)
        return bool(await self._execute("exists", key, lambda: self._client.exists(ns_key)))

    async def flush_all(self) -> None:
        await self._execute("flush_all", None, lambda: self._client.flushall())
        logger.info("Flushed all databases on Redis server (namespace '%s')", self.namespace)

    # ------------ Optional tier ------------

    async def touch(self, key: str, ttl: timedelta) -> bool:
        ns_key = self._make_key(key)
        px = max(1, int(ttl.total_seconds() * 1000))
        return bool(await self._execute("touch", key, lambda: self._client.pexpire(ns_key, px)))

    async def iter_keys(self) -> AsyncIterator[str]:
        """Enumerate keys under the namespace with SCAN (non-blocking, may return a key twice)."""
        if not self.supports_enumeration:
            raise UnsupportedOperationError("iter_keys", "enumeration", self.backend_name)

        prefix = f"{self.namespace}:"
        seen: set[str] = set()
        try:
            async for ns_key in self._client.scan_iter(match=f"{prefix}*", count=1000):
                key = ns_key[len(prefix) :]
                if key not in seen:
                    seen.add(key)
                    yield key
        except RedisError as e:
            raise self._translate("iter_keys", None, e) from e

    # ------------ Lifecycle / stats ------------

    async def get_stats(self) -> dict[str, Any]:
        """Return store statistics and basic Redis server info."""
        stats = await super().get_stats()
        stats.update(
            {
                "namespace": self.namespace,
                "sets": self._sets,
                "deletes": self._deletes,
                "connected": False,
            }
        )

        try:
            stats["connected"] = bool(await self._client.ping())
            info = await self._client.info(section="server")
            stats["redis_version"] = info.get("redis_version")
            stats["redis_mode"] = info.get("redis_mode")
        except RedisError as e:
            # INFO may be restricted; keep minimal stats
            logger.warning("Failed to get Redis INFO (restricted or unavailable): %s", e, extra={"error": str(e)})

        return stats

    async def close(self) -> None:
        """Close the Redis client and release the connection pool."""
        try:
            await self._client.aclose()
            logger.info("Closed Redis store for namespace '%s'", self.namespace)
        finally:
            await self._client.connection_pool.disconnect()
