"""
kvcache — Test Configuration and Shared Fixtures

Provides pytest configuration and shared fixtures for unit and integration tests.
"""

import os
import socket
from collections.abc import AsyncGenerator, AsyncIterator, Generator
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest
import pytest_asyncio
from redis.asyncio import Redis

from kvcache.cache.backends.memory import MemoryStore
from kvcache.cache.store import StoreInterface
from kvcache.config import reset_config

# Set test environment
os.environ["KVCACHE_ENVIRONMENT"] = "test"
os.environ["KVCACHE_LOG_LEVEL"] = "DEBUG"


def is_redis_available() -> bool:
    """Check if a Redis server is available for testing."""
    try:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.settimeout(1)
        result = sock.connect_ex(("localhost", 6379))
        sock.close()
        return result == 0
    except OSError:
        return False


# Skip marker for Redis tests
redis_available = pytest.mark.skipif(not is_redis_available(), reason="Redis server not available")


class ManualClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FixedUtcClock:
    """UTC wall clock frozen at a given instant."""

    def __init__(self, moment: datetime | None = None) -> None:
        self.moment = moment or datetime(2024, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.moment


class RecordingStore(MemoryStore):
    """Memory store that records every write so tests can inspect TTLs and call counts."""

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.writes: list[tuple[str, str, timedelta | None]] = []
        self.touches: list[tuple[str, timedelta]] = []
        self.flush_count = 0

    async def set(self, key: str, data: str, ttl: timedelta | None = None) -> None:
        self.writes.append((key, data, ttl))
        await super().set(key, data, ttl)

    async def touch(self, key: str, ttl: timedelta) -> bool:
        self.touches.append((key, ttl))
        return await super().touch(key, ttl)

    async def flush_all(self) -> None:
        self.flush_count += 1
        await super().flush_all()


class BasicStore(StoreInterface):
    """Baseline-tier store: no enumeration, no touch."""

    backend_name = "basic"

    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.ttls: dict[str, timedelta | None] = {}

    async def set(self, key: str, data: str, ttl: timedelta | None = None) -> None:
        self.data[key] = data
        self.ttls[key] = ttl

    async def get(self, key: str) -> str | None:
        return self.data.get(key)

    async def delete(self, key: str) -> bool:
        self.ttls.pop(key, None)
        return self.data.pop(key, None) is not None

    async def exists(self, key: str) -> bool:
        return key in self.data

    async def flush_all(self) -> None:
        self.data.clear()
        self.ttls.clear()

    async def close(self) -> None:
        pass


class FailingStore(BasicStore):
    """Store whose every command raises the given exception."""

    def __init__(self, error: Exception) -> None:
        super().__init__()
        self.error = error

    async def set(self, key: str, data: str, ttl: timedelta | None = None) -> None:
        raise self.error

    async def get(self, key: str) -> str | None:
        raise self.error

    async def delete(self, key: str) -> bool:
        raise self.error

    async def exists(self, key: str) -> bool:
        raise self.error

    async def flush_all(self) -> None:
        raise self.error

    async def iter_keys(self) -> AsyncIterator[str]:
        raise self.error
        yield  # pragma: no cover


@pytest.fixture(autouse=True)
def _reset_config() -> Generator[None, None, None]:
    """Every test starts without a cached configuration."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def manual_clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def utc_clock() -> FixedUtcClock:
    return FixedUtcClock()


@pytest.fixture
def recording_store(manual_clock: ManualClock) -> RecordingStore:
    return RecordingStore(namespace="test", clock=manual_clock)


@pytest.fixture
def basic_store() -> BasicStore:
    return BasicStore()


@pytest.fixture
def failing_store_cls() -> type[FailingStore]:
    return FailingStore


@pytest.fixture
def test_redis_url() -> str:
    """Get Redis URL for testing (database 15 for isolation)."""
    return os.environ.get("TEST_REDIS_URL", "redis://localhost:6379/15")


@pytest_asyncio.fixture
async def redis_client(test_redis_url: str) -> AsyncGenerator[Redis, None]:
    """
    Create a Redis client for testing.

    Automatically skips tests if Redis is not available.
    Clears the test database before and after each test.
    """
    client: Redis = Redis.from_url(test_redis_url, decode_responses=True)

    try:
        await client.ping()
    except Exception as e:
        await client.aclose()
        pytest.skip(f"Redis not available for testing: {e}")

    await client.flushdb()

    yield client

    try:
        await client.flushdb()
    finally:
        await client.aclose()


@pytest.fixture
def mock_env_memory(monkeypatch: pytest.MonkeyPatch) -> None:
    """Set environment variables for the memory store backend."""
    monkeypatch.delenv("REDIS_URL", raising=False)
    monkeypatch.setenv("STORE_BACKEND", "memory")
    monkeypatch.setenv("STORE_NAMESPACE", "test")
    monkeypatch.setenv("CACHE_NAME", "env-cache")
    monkeypatch.setenv("CACHE_MAX_SIZE", "4096")
    monkeypatch.setenv("CACHE_DEFAULT_EXPIRATION_SECONDS", "120")


@pytest.fixture
def mock_env_redis(monkeypatch: pytest.MonkeyPatch, test_redis_url: str) -> None:
    """Set environment variables for the Redis store backend."""
    if not is_redis_available():
        pytest.skip("Redis not available")
    monkeypatch.setenv("STORE_BACKEND", "redis")
    monkeypatch.setenv("REDIS_URL", test_redis_url)
    monkeypatch.setenv("REDIS_MAX_CONNECTIONS", "5")
    monkeypatch.setenv("REDIS_SOCKET_TIMEOUT", "2")
    monkeypatch.setenv("STORE_NAMESPACE", "test")


@pytest.fixture
def sample_cache_data() -> dict[str, Any]:
    """Sample data for cache testing (None is not a cacheable value)."""
    return {
        "simple_string": "hello",
        "simple_int": 42,
        "simple_float": 3.14,
        "simple_bool": True,
        "empty_string": "",
        "complex_dict": {
            "nested": {
                "key": "value",
                "number": 123,
                "list": [1, 2, 3],
            }
        },
        "complex_list": [
            {"id": 1, "name": "Alice"},
            {"id": 2, "name": "Bob"},
        ],
        "unicode": "héllo wörld ✓",
    }
