"""
kvcache — Redis Store Backend Tests

Live tests run against a Redis server on localhost:6379 (or TEST_REDIS_URL)
and are skipped when none is reachable. Note that ``flush_all`` issues
FLUSHALL, which empties every database on that server.

Error translation tests use a stub client and always run.
"""

import asyncio
from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest
import pytest_asyncio
from redis.asyncio import Redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import ResponseError

from kvcache.cache import RemoteCache
from kvcache.cache.backends.redis import RedisStore
from kvcache.errors import BackendUnavailableError, StoreOperationError, UnsupportedOperationError


class TestRedisStoreLive:
    """Store contract against a real server (skipped by the redis_client fixture when unreachable)."""

    @pytest_asyncio.fixture
    async def store(self, test_redis_url: str, redis_client: Redis) -> AsyncGenerator[RedisStore, None]:
        store = RedisStore(redis_url=test_redis_url, namespace="test", max_connections=5, socket_timeout=2)
        yield store
        await store.close()

    async def test_set_and_get(self, store: RedisStore) -> None:
        await store.set("key1", '{"v":"value1","s":null}')
        assert await store.get("key1") == '{"v":"value1","s":null}'
        assert await store.exists("key1") is True

    async def test_get_missing(self, store: RedisStore) -> None:
        assert await store.get("missing") is None
        assert await store.exists("missing") is False

    async def test_keys_are_namespaced(self, store: RedisStore, redis_client: Redis) -> None:
        await store.set("user:1", "payload")
        assert await redis_client.get("test:user:1") == "payload"
        assert await redis_client.get("user:1") is None

    async def test_ttl_in_milliseconds(self, store: RedisStore, redis_client: Redis) -> None:
        await store.set("short", "payload", ttl=timedelta(milliseconds=1500))
        pttl = await redis_client.pttl("test:short")
        assert 0 < pttl <= 1500

    async def test_no_ttl_persists(self, store: RedisStore, redis_client: Redis) -> None:
        await store.set("forever", "payload")
        assert await redis_client.pttl("test:forever") == -1

    async def test_expired_on_arrival(self, store: RedisStore) -> None:
        await store.set("stale", "old")
        await store.set("stale", "new", ttl=timedelta(seconds=-1))
        assert await store.exists("stale") is False

    async def test_entry_expires(self, store: RedisStore) -> None:
        await store.set("brief", "payload", ttl=timedelta(milliseconds=100))
        await asyncio.sleep(0.3)
        assert await store.get("brief") is None

    async def test_delete(self, store: RedisStore) -> None:
        await store.set("doomed", "payload")
        assert await store.delete("doomed") is True
        assert await store.delete("doomed") is False

    async def test_touch_rearms_ttl(self, store: RedisStore, redis_client: Redis) -> None:
        await store.set("session", "payload", ttl=timedelta(seconds=1))
        assert await store.touch("session", timedelta(seconds=60)) is True
        assert await redis_client.pttl("test:session") > 1000
        assert await store.touch("missing", timedelta(seconds=60)) is False

    async def test_iter_keys(self, store: RedisStore, redis_client: Redis) -> None:
        for i in range(25):
            await store.set(f"item:{i}", "payload")
        await redis_client.set("other:item:0", "foreign")

        keys = [key async for key in store.iter_keys()]

        assert sorted(keys) == sorted(f"item:{i}" for i in range(25))

    async def test_scan_disabled(self, test_redis_url: str, redis_client: Redis) -> None:
        store = RedisStore(redis_url=test_redis_url, namespace="test", enable_scan=False)
        try:
            assert store.supports_enumeration is False
            with pytest.raises(UnsupportedOperationError):
                async for _ in store.iter_keys():
                    pass
        finally:
            await store.close()

    async def test_flush_all(self, store: RedisStore, redis_client: Redis) -> None:
        await store.set("a", "1")
        await redis_client.set("unrelated", "2")

        await store.flush_all()

        assert await store.exists("a") is False
        assert await redis_client.exists("unrelated") == 0

    async def test_get_stats(self, store: RedisStore) -> None:
        await store.set("a", "1")
        await store.delete("a")

        stats = await store.get_stats()

        assert stats["backend"] == "redis"
        assert stats["namespace"] == "test"
        assert stats["connected"] is True
        assert stats["sets"] == 1
        assert stats["deletes"] == 1
        assert stats["supports_touch"] is True

    async def test_cache_on_redis(self, store: RedisStore) -> None:
        cache = RemoteCache(store=store, name="redis-cache")

        await cache.add("AbcX", 1)
        await cache.add("xabcy", 2)
        await cache.add("zzz", 3)
        await cache.add_sliding("session", {"user": 7}, timedelta(seconds=30))

        assert await cache.get_value("session") == {"user": 7}
        assert sorted(await cache.remove_keys_containing("ABC")) == ["AbcX", "xabcy"]
        assert await cache.count() == 2
        assert await cache.size() == cache.advisory_size


class StubClient:
    """Minimal async client whose commands fail with a configured redis error."""

    def __init__(self, error: Exception) -> None:
        self.error = error
        self.calls = 0

    async def _fail(self, *args: Any, **kwargs: Any) -> Any:
        self.calls += 1
        raise self.error

    set = get = delete = exists = flushall = pexpire = _fail


class TestRedisStoreErrors:
    def test_requires_url_or_client(self) -> None:
        with pytest.raises(ValueError):
            RedisStore()

    async def test_connection_error_is_backend_unavailable(self) -> None:
        store = RedisStore(client=StubClient(RedisConnectionError("refused")))  # type: ignore[arg-type]

        with pytest.raises(BackendUnavailableError) as exc_info:
            await store.get("key")

        assert exc_info.value.backend == "redis"
        assert exc_info.value.details["operation"] == "get"

    async def test_command_error_is_store_operation_error(self) -> None:
        store = RedisStore(client=StubClient(ResponseError("WRONGTYPE")))  # type: ignore[arg-type]

        with pytest.raises(StoreOperationError):
            await store.set("key", "payload")

    async def test_retries_connectivity_failures(self) -> None:
        client = StubClient(RedisConnectionError("refused"))
        store = RedisStore(client=client, retry_attempts=2, retry_base_delay=0.001)  # type: ignore[arg-type]

        with pytest.raises(BackendUnavailableError):
            await store.exists("key")

        assert client.calls == 3

    async def test_command_errors_not_retried(self) -> None:
        client = StubClient(ResponseError("WRONGTYPE"))
        store = RedisStore(client=client, retry_attempts=2, retry_base_delay=0.001)  # type: ignore[arg-type]

        with pytest.raises(StoreOperationError):
            await store.delete("key")

        assert client.calls == 1

    async def test_cache_propagates_store_errors(self) -> None:
        store = RedisStore(client=StubClient(RedisConnectionError("refused")))  # type: ignore[arg-type]
        cache = RemoteCache(store=store)

        with pytest.raises(BackendUnavailableError):
            await cache.add("key", "value")
        assert cache.advisory_size == 0


class RecordingClient:
    """Async client that records SET / DEL commands instead of sending them."""

    def __init__(self) -> None:
        self.commands: list[tuple[str, str, int | None]] = []

    async def set(self, key: str, value: str, px: int | None = None) -> bool:
        self.commands.append(("set", key, px))
        return True

    async def delete(self, key: str) -> int:
        self.commands.append(("delete", key, None))
        return 0


class TestRedisStoreTtl:
    async def test_sub_millisecond_ttl_is_written(self) -> None:
        client = RecordingClient()
        store = RedisStore(client=client, namespace="ttl")  # type: ignore[arg-type]

        await store.set("brief", "payload", ttl=timedelta(microseconds=400))

        assert client.commands == [("set", "ttl:brief", 1)]

    async def test_fractional_ttl_rounds_up(self) -> None:
        client = RecordingClient()
        store = RedisStore(client=client, namespace="ttl")  # type: ignore[arg-type]

        await store.set("k", "payload", ttl=timedelta(milliseconds=1, microseconds=1))

        assert client.commands == [("set", "ttl:k", 2)]

    async def test_non_positive_ttl_deletes(self) -> None:
        client = RecordingClient()
        store = RedisStore(client=client, namespace="ttl")  # type: ignore[arg-type]

        await store.set("k", "payload", ttl=timedelta(0))

        assert client.commands == [("delete", "ttl:k", None)]

    async def test_cache_counts_only_performed_writes(self) -> None:
        client = RecordingClient()
        now = datetime(2024, 1, 1, tzinfo=UTC)
        cache = RemoteCache(store=RedisStore(client=client, namespace="ttl"), clock=lambda: now)  # type: ignore[arg-type]

        await cache.add_absolute("k", "v", now + timedelta(microseconds=500))

        assert client.commands[-1] == ("set", "ttl:k", 1)
        assert cache.advisory_size > 0
