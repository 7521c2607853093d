"""
kvcache — Cache Module

Cache contract over pluggable store backends.

- cache.py: RemoteCache, the cache contract
- store.py: StoreInterface, the contract every backend implements
- backends/: memory and Redis stores
- factory.py: builds stores and caches from configuration

Usage:
    from kvcache.cache import create_cache, create_store

    store = create_store()
    cache = create_cache(store=store)
    await cache.add("key", {"some": "value"})
    value = await cache.get_value("key")
"""

from .backends.memory import MemoryStore
from .cache import RemoteCache
from .expiration import INFINITE_ABSOLUTE_EXPIRATION, NO_SLIDING_EXPIRATION
from .factory import create_cache, create_size_strategy, create_store
from .serializer import CacheRecord, JsonSerializer, Serializer
from .size_strategy import CallableSizeStrategy, FixedSizeStrategy, PayloadSizeStrategy, SizeStrategy
from .store import StoreInterface

__all__ = [
    # Factory functions
    "create_cache",
    "create_store",
    "create_size_strategy",
    # Cache
    "RemoteCache",
    "NO_SLIDING_EXPIRATION",
    "INFINITE_ABSOLUTE_EXPIRATION",
    # Store
    "StoreInterface",
    "MemoryStore",
    # Serialization
    "Serializer",
    "JsonSerializer",
    "CacheRecord",
    # Size strategies
    "SizeStrategy",
    "PayloadSizeStrategy",
    "FixedSizeStrategy",
    "CallableSizeStrategy",
]
