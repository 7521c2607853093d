"""
kvcache - Retry Logic with Exponential Backoff

Retry utilities for store backends. The cache layer itself never retries;
a store may wrap its commands with ``with_retry`` to ride out transient
connectivity failures.
"""

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from ..errors import is_retryable_error

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryConfig:
    """
    Configuration for retry behavior.

    Attributes:
        max_retries: Maximum number of retry attempts (0 disables retries)
        base_delay: Initial delay in seconds
        max_delay: Maximum delay in seconds
        exponential_base: Exponential backoff base
        jitter: Add random jitter to prevent thundering herd
        jitter_factor: Jitter randomization factor 0-1
    """

    max_retries: int = 3
    base_delay: float = 0.1
    max_delay: float = 5.0
    exponential_base: float = 2.0
    jitter: bool = True
    jitter_factor: float = 0.1

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.max_retries < 0:
            raise ValueError("max_retries must be non-negative")
        if self.base_delay <= 0:
            raise ValueError("base_delay must be positive")
        if self.max_delay < self.base_delay:
            raise ValueError("max_delay must be >= base_delay")
        if self.exponential_base < 1.0:
            raise ValueError("exponential_base must be >= 1.0")
        if not 0 <= self.jitter_factor <= 1:
            raise ValueError("jitter_factor must be between 0 and 1")


def exponential_backoff(
    attempt: int,
    base_delay: float = 0.1,
    exponential_base: float = 2.0,
    max_delay: float = 5.0,
    jitter: bool = True,
    jitter_factor: float = 0.1,
) -> float:
    """
    Calculate exponential backoff delay with optional jitter.

    Args:
        attempt: Current attempt number (0-indexed)
        base_delay: Initial delay in seconds
        exponential_base: Base for exponential calculation
        max_delay: Maximum delay cap
        jitter: Whether to add random jitter
        jitter_factor: Jitter randomization factor (0-1)

    Returns:
        Delay in seconds

    Example:
        >>> exponential_backoff(0, jitter=False)
        0.1
        >>> exponential_backoff(2, jitter=False)
        0.4
    """
    delay = min(base_delay * (exponential_base**attempt), max_delay)

    if jitter and jitter_factor > 0:
        jitter_amount = delay * jitter_factor
        delay = delay + random.uniform(-jitter_amount, jitter_amount)
        delay = max(0.0, delay)

    return delay


async def with_retry(
    func: Callable[..., Awaitable[T]],
    *args: Any,
    config: RetryConfig | None = None,
    **kwargs: Any,
) -> T:
    """
    Execute an async callable, retrying retryable errors with backoff.

    Args:
        func: Async function to execute
        *args: Positional arguments for func
        config: Retry configuration (uses defaults if None)
        **kwargs: Keyword arguments for func

    Returns:
        Result of successful function execution

    Raises:
        The last exception if retries are exhausted, or the first
        non-retryable exception immediately
    """
    if config is None:
        config = RetryConfig()

    name = getattr(func, "__name__", repr(func))
    attempt = 0

    while True:
        try:
            result = await func(*args, **kwargs)
            if attempt > 0:
                logger.info(
                    "Retry succeeded after %d attempts",
                    attempt,
                    extra={"attempt": attempt, "function": name},
                )
            return result

        except Exception as e:
            if not is_retryable_error(e):
                raise

            if attempt >= config.max_retries:
                if config.max_retries:
                    logger.error(
                        "All %d retries exhausted",
                        config.max_retries,
                        extra={"function": name, "error": str(e), "error_type": type(e).__name__},
                    )
                raise

            delay = exponential_backoff(
                attempt=attempt,
                base_delay=config.base_delay,
                exponential_base=config.exponential_base,
                max_delay=config.max_delay,
                jitter=config.jitter,
                jitter_factor=config.jitter_factor,
            )

            logger.warning(
                "Retry attempt %d/%d after %.2fs",
                attempt + 1,
                config.max_retries,
                delay,
                extra={
                    "attempt": attempt + 1,
                    "max_retries": config.max_retries,
                    "delay_seconds": delay,
                    "error": str(e),
                    "error_type": type(e).__name__,
                    "function": name,
                },
            )

            attempt += 1
            await asyncio.sleep(delay)
