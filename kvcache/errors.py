"""
kvcache - Core Error Types

Defines the exception hierarchy for the cache layer.
All exceptions inherit from KVCacheError for consistent error handling.

Taxonomy:
- InvalidArgumentError: caller passed a missing key/value; never retried
- UnsupportedOperationError: the configured store lacks a capability
- BackendUnavailableError: transient store connectivity failure; retryable
- StoreOperationError: non-transient store failure
- SerializationError: value cannot be encoded, or payload cannot be decoded
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Standard error codes used in structured error payloads."""

    # Input validation errors
    INVALID_ARGUMENT = "INVALID_ARGUMENT"

    # Capability errors
    UNSUPPORTED_OPERATION = "UNSUPPORTED_OPERATION"

    # Store errors
    BACKEND_UNAVAILABLE = "BACKEND_UNAVAILABLE"
    STORE_FAILURE = "STORE_FAILURE"
    SERIALIZATION_FAILURE = "SERIALIZATION_FAILURE"

    # Configuration errors
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"

    # Internal errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


class KVCacheError(Exception):
    """Base exception for all kvcache errors."""

    code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a dictionary for structured logging or API responses."""
        return {
            "error": self.__class__.__name__,
            "error_code": self.code.value,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(KVCacheError):
    """Raised when configuration is invalid or missing."""

    code = ErrorCode.CONFIGURATION_ERROR


class InvalidArgumentError(KVCacheError, ValueError):
    """Raised when a required argument is absent or out of range."""

    code = ErrorCode.INVALID_ARGUMENT

    def __init__(self, argument: str, reason: str = "must not be None or empty"):
        message = f"Argument '{argument}' {reason}"
        super().__init__(message, {"argument": argument})
        self.argument = argument


class UnsupportedOperationError(KVCacheError):
    """
    Raised when an operation needs a store capability that is not available.

    Callers should treat this as a permanent capability gap: a different
    backend is needed, retrying will not help.
    """

    code = ErrorCode.UNSUPPORTED_OPERATION

    def __init__(self, operation: str, capability: str, backend: str | None = None):
        message = f"Operation '{operation}' requires store capability '{capability}'"
        if backend:
            message += f", which backend '{backend}' does not provide"
        super().__init__(
            message,
            {"operation": operation, "capability": capability, "backend": backend},
        )
        self.operation = operation
        self.capability = capability


class StoreError(KVCacheError):
    """Base exception for store-layer errors."""

    code = ErrorCode.STORE_FAILURE


class BackendUnavailableError(StoreError):
    """Raised when the store backend cannot be reached (transient)."""

    code = ErrorCode.BACKEND_UNAVAILABLE

    def __init__(self, backend: str, details: dict[str, Any] | None = None):
        message = f"Cache store backend unavailable: {backend}"
        super().__init__(message, details)
        self.backend = backend


class StoreOperationError(StoreError):
    """Raised when a store command fails for a non-transient reason."""

    pass


class SerializationError(KVCacheError):
    """Raised when a cache value cannot be serialized or a payload cannot be decoded."""

    code = ErrorCode.SERIALIZATION_FAILURE


def is_retryable_error(error: Exception) -> bool:
    """
    Check if an error is transient and may be retried by a higher layer.

    Args:
        error: Exception to check

    Returns:
        True only for backend connectivity failures
    """
    return isinstance(error, BackendUnavailableError)


def extract_error_code(error: Exception) -> ErrorCode:
    """
    Extract the ErrorCode for an exception.

    Args:
        error: Exception to categorize

    Returns:
        The error's own code for kvcache errors, INTERNAL_ERROR otherwise
    """
    if isinstance(error, KVCacheError):
        return error.code
    return ErrorCode.INTERNAL_ERROR
