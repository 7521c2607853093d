"""
kvcache — Cache Factory

Builds stores and caches from typed configuration.

Key points:
- Select the store with STORE_BACKEND=memory|redis (redis is auto-selected
  when REDIS_URL is set)
- The store is built once and injected into each cache; there is no
  process-wide connection object. Several caches may share one store.
- All configuration is typed and validated via Pydantic models

Examples:
    from kvcache.cache.factory import create_cache, create_store
    from kvcache.config import get_config

    config = get_config()
    store = create_store(config.store)
    users = create_cache(config.cache, store)
    await users.add("user:1", {"name": "Ada"})
"""

from __future__ import annotations

import logging
from datetime import timedelta

from ..config import CacheConfig, SizeStrategyKind, StoreBackend, StoreConfig, get_config
from ..errors import ConfigurationError
from ..observability.counters import CacheCounters
from .backends.memory import MemoryStore
from .cache import RemoteCache
from .serializer import Serializer
from .size_strategy import FixedSizeStrategy, PayloadSizeStrategy, SizeStrategy
from .store import StoreInterface

logger = logging.getLogger(__name__)


def _create_redis_store(config: StoreConfig) -> StoreInterface:
    """Internal helper to construct a Redis store with lazy import."""
    if not config.redis_url:
        raise ConfigurationError(
            "REDIS_URL must be set when STORE_BACKEND=redis",
            details={"env": "REDIS_URL", "backend": "redis"},
        )

    # Lazy import to avoid loading the redis client when the memory backend is used
    try:
        from .backends.redis import RedisStore
    except ImportError as e:
        logger.error(
            "Redis backend selected but redis client is not installed",
            extra={"package": "redis>=5.0.1", "error": str(e)},
        )
        raise ConfigurationError(
            "Redis backend selected but redis client is unavailable. Install with: pip install 'redis>=5.0.1'",
            details={"package": "redis>=5.0.1", "error": str(e), "backend": "redis"},
        ) from e

    return RedisStore(
        redis_url=config.redis_url,
        namespace=config.namespace,
        max_connections=config.redis_max_connections,
        socket_timeout=config.redis_socket_timeout,
        enable_scan=config.redis_enable_scan,
        retry_attempts=config.redis_retry_attempts,
        retry_base_delay=config.redis_retry_base_delay,
    )


def create_store(config: StoreConfig | None = None) -> StoreInterface:
    """
    Create a store backend from configuration.

    Args:
        config: Store configuration (uses global config if not provided)

    Returns:
        Configured store backend

    Raises:
        ConfigurationError: If the backend is unknown or unavailable
    """
    if config is None:
        config = get_config().store

    logger.info(
        "Creating store with backend: %s",
        config.backend,
        extra={"backend": str(config.backend), "namespace": config.namespace},
    )

    if config.backend == StoreBackend.MEMORY:
        return MemoryStore(namespace=config.namespace)
    if config.backend == StoreBackend.REDIS:
        return _create_redis_store(config)

    raise ConfigurationError(
        f"Unknown store backend: {config.backend}",
        details={"backend": str(config.backend), "supported": [b.value for b in StoreBackend]},
    )


def create_size_strategy(config: CacheConfig) -> SizeStrategy:
    """Build the configured size strategy."""
    if config.size_strategy == SizeStrategyKind.FIXED:
        return FixedSizeStrategy(config.fixed_record_size)
    return PayloadSizeStrategy()


def create_cache(
    config: CacheConfig | None = None,
    store: StoreInterface | None = None,
    *,
    size_strategy: SizeStrategy | None = None,
    serializer: Serializer | None = None,
    counters: CacheCounters | None = None,
) -> RemoteCache:
    """
    Create a cache on top of a store.

    Args:
        config: Cache configuration (uses global config if not provided)
        store: Store to inject (built from the global store config if not provided)
        size_strategy: Overrides the configured size strategy
        serializer: Overrides the default JSON serializer
        counters: Hit/miss collaborator (in-memory counters if not provided)

    Returns:
        Configured RemoteCache
    """
    if config is None:
        config = get_config().cache
    if store is None:
        store = create_store()

    cache = RemoteCache(
        store=store,
        name=config.name,
        default_expiration=timedelta(seconds=config.default_expiration_seconds),
        max_size=config.max_size,
        enabled=config.enabled,
        size_strategy=size_strategy or create_size_strategy(config),
        serializer=serializer,
        counters=counters,
    )

    logger.info(
        "Cache '%s' created (enabled=%s, backend=%s)",
        cache.name,
        cache.enabled,
        store.backend_name,
        extra={"cache_name": cache.name, "backend": store.backend_name},
    )
    return cache
