"""
kvcache — Pluggable Remote Cache

A uniform cache contract (add/get/remove/clear, expiration policies,
advisory size tracking, key-pattern invalidation) over pluggable
key-value store backends.
"""

__version__ = "1.0.0"

from .cache import (
    INFINITE_ABSOLUTE_EXPIRATION,
    NO_SLIDING_EXPIRATION,
    MemoryStore,
    RemoteCache,
    StoreInterface,
    create_cache,
    create_store,
)
from .errors import (
    BackendUnavailableError,
    ConfigurationError,
    InvalidArgumentError,
    KVCacheError,
    SerializationError,
    StoreOperationError,
    UnsupportedOperationError,
)

__all__ = [
    "__version__",
    "RemoteCache",
    "StoreInterface",
    "MemoryStore",
    "create_cache",
    "create_store",
    "NO_SLIDING_EXPIRATION",
    "INFINITE_ABSOLUTE_EXPIRATION",
    "KVCacheError",
    "InvalidArgumentError",
    "UnsupportedOperationError",
    "BackendUnavailableError",
    "StoreOperationError",
    "SerializationError",
    "ConfigurationError",
]
