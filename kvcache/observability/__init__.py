"""
kvcache — Observability Module

Logging setup and the counters collaborator used by the cache.

Usage:
    from kvcache.observability import InMemoryCounters, setup_logging

    setup_logging("INFO", "json")
    counters = InMemoryCounters()
"""

from .counters import AtomicCounter, CacheCounters, InMemoryCounters
from .logging import JSONFormatter, setup_logging

__all__ = [
    "AtomicCounter",
    "CacheCounters",
    "InMemoryCounters",
    "JSONFormatter",
    "setup_logging",
]
