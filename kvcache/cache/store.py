"""
kvcache — Store Interface

The narrow contract the cache consumes from a key-value backend.

Two capability tiers:
- Baseline (abstract, every backend): set/get/delete/exists/flush_all/close
- Optional: key enumeration (``iter_keys``) and TTL re-arming (``touch``).
  Backends announce them with ``supports_enumeration`` / ``supports_touch``;
  the default implementations raise UnsupportedOperationError.
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from datetime import timedelta
from typing import Any

from ..errors import UnsupportedOperationError


class StoreInterface(ABC):
    """
    Abstract base class for store backends.

    Payloads are opaque serialized strings; the store never interprets them.
    A ``ttl`` of None means the entry never expires.
    """

    backend_name: str = "unknown"
    supports_enumeration: bool = False
    supports_touch: bool = False

    @abstractmethod
    async def set(self, key: str, data: str, ttl: timedelta | None = None) -> None:
        """
        Write a payload under ``key``.

        Args:
            key: Store key
            data: Serialized payload
            ttl: Time-to-live (None = never expires)
        """
        pass

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """
        Read a payload.

        Returns:
            The payload if present and not expired, None otherwise
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """
        Delete a key.

        Returns:
            True if something was deleted, False if the key didn't exist
        """
        pass

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Check whether a live (non-expired) entry exists for ``key``."""
        pass

    @abstractmethod
    async def flush_all(self) -> None:
        """Remove every entry reachable through this store's connection."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release connections and other resources."""
        pass

    async def iter_keys(self) -> AsyncIterator[str]:
        """
        Enumerate live keys.

        Raises:
            UnsupportedOperationError: If the backend cannot enumerate keys
        """
        raise UnsupportedOperationError("iter_keys", "enumeration", self.backend_name)
        yield  # pragma: no cover

    async def touch(self, key: str, ttl: timedelta) -> bool:
        """
        Re-arm the TTL of an existing key.

        Returns:
            True if the key existed and its TTL was reset

        Raises:
            UnsupportedOperationError: If the backend cannot reset TTLs
        """
        raise UnsupportedOperationError("touch", "touch", self.backend_name)

    async def get_stats(self) -> dict[str, Any]:
        """Backend statistics. Backends can override to add their own counters."""
        return {
            "backend": self.backend_name,
            "supports_enumeration": self.supports_enumeration,
            "supports_touch": self.supports_touch,
        }
