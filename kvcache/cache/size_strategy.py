"""
kvcache — Size Strategies

Estimate the byte footprint of a cached record. Used only for the advisory
size counter; a remote store enforces its own capacity.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable


class SizeStrategy(ABC):
    """
    Pure, deterministic estimate of a record's size.

    The cache passes the serialized record, so the size reported when a
    record is written matches the size reported when it is removed.
    """

    @abstractmethod
    def record_size(self, key: str, data: str | bytes) -> int:
        """
        Estimate the size of one record.

        Args:
            key: Cache key
            data: Serialized record as stored in the backend

        Returns:
            Non-negative size estimate in bytes
        """
        pass


class PayloadSizeStrategy(SizeStrategy):
    """UTF-8 byte length of the key plus the serialized payload."""

    def record_size(self, key: str, data: str | bytes) -> int:
        payload = len(data) if isinstance(data, bytes) else len(data.encode("utf-8"))
        return len(key.encode("utf-8")) + payload


class FixedSizeStrategy(SizeStrategy):
    """Every record costs the same amount; with size=1 the counter tracks entry count."""

    def __init__(self, size: int = 1) -> None:
        if size < 0:
            raise ValueError("size must be non-negative")
        self.size = size

    def record_size(self, key: str, data: str | bytes) -> int:
        return self.size


class CallableSizeStrategy(SizeStrategy):
    """Adapt a plain ``fn(key, data) -> int`` function. Negative results count as zero."""

    def __init__(self, fn: Callable[[str, str | bytes], int]) -> None:
        self._fn = fn

    def record_size(self, key: str, data: str | bytes) -> int:
        return max(0, int(self._fn(key, data)))
