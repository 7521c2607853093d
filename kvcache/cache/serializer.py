"""
kvcache — Record Serialization

Values are stored inside a small JSON envelope:

    {"v": <value>, "s": <sliding window in seconds or null>}

The sliding window travels with the record so any process reading it can
re-arm the TTL on access. The format is schema-agnostic: any JSON value
round-trips.
"""

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from ..errors import SerializationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheRecord:
    """Decoded record: the cached value plus its sliding window, if any."""

    value: Any
    sliding_seconds: float | None = None


class Serializer(ABC):
    """Encodes records for storage and decodes them on read."""

    @abstractmethod
    def dumps(self, record: CacheRecord) -> str:
        pass

    @abstractmethod
    def loads(self, data: str | bytes) -> CacheRecord:
        pass


class JsonSerializer(Serializer):
    """Compact UTF-8 JSON envelope."""

    def dumps(self, record: CacheRecord) -> str:
        try:
            return json.dumps(
                {"v": record.value, "s": record.sliding_seconds},
                ensure_ascii=False,
                separators=(",", ":"),
            )
        except (TypeError, ValueError) as e:
            raise SerializationError(
                f"Value of type {type(record.value).__name__} is not JSON serializable: {e}",
                details={"value_type": type(record.value).__name__, "error": str(e)},
            ) from e

    def loads(self, data: str | bytes) -> CacheRecord:
        if isinstance(data, bytes):
            try:
                data = data.decode("utf-8")
            except UnicodeDecodeError as e:
                raise SerializationError(f"Cached payload is not valid UTF-8: {e}") from e

        try:
            envelope = json.loads(data)
        except ValueError as e:
            logger.warning(
                "Failed to decode cached payload: %s",
                e,
                extra={"data_preview": data[:100], "error": str(e)},
            )
            raise SerializationError(f"Cached payload is not valid JSON: {e}") from e

        if not isinstance(envelope, dict) or "v" not in envelope:
            raise SerializationError(
                "Cached payload is not a kvcache record envelope",
                details={"data_preview": data[:100]},
            )

        return CacheRecord(value=envelope["v"], sliding_seconds=envelope.get("s"))
