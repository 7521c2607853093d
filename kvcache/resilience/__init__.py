"""
kvcache - Resilience Module

Exponential backoff retry used by store backends for transient
connectivity failures.
"""

from .retry import RetryConfig, exponential_backoff, with_retry

__all__ = [
    "RetryConfig",
    "exponential_backoff",
    "with_retry",
]
