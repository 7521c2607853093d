"""
Cache Usage Example

Demonstrates the kvcache contract against the configured store.

This example shows:
- Building a store once and injecting it into two caches
- The three expiration modes
- Pattern invalidation
- Advisory size and hit/miss statistics

Run with the memory store (default) or point REDIS_URL at a server:
    REDIS_URL=redis://localhost:6379/0 python examples/cache_example.py
"""

import asyncio
import logging
from datetime import timedelta

from kvcache.cache import NO_SLIDING_EXPIRATION, create_cache, create_store
from kvcache.cache.expiration import utcnow
from kvcache.config import CacheConfig, load_config
from kvcache.observability import setup_logging

logger = logging.getLogger("kvcache.example")


async def main() -> None:
    config = load_config()
    setup_logging(config.log_level, "text")

    store = create_store(config.store)
    items = create_cache(CacheConfig(name="items", default_expiration_seconds=600), store)
    sessions = create_cache(CacheConfig(name="sessions", default_expiration_seconds=0), store)

    await items.add("item:1", {"title": "first"})
    await items.add_sliding("item:2", {"title": "second"}, timedelta(minutes=5))
    await items.add_with_policy("item:3", [1, 2, 3], NO_SLIDING_EXPIRATION, utcnow() + timedelta(hours=1))
    await sessions.add("session:ABC", {"user": 1})

    logger.info("item:1 -> %s", await items.get_value("item:1"))
    logger.info("missing -> %s", await items.get_value("item:404"))

    if store.supports_enumeration:
        removed = await items.remove_keys_containing("abc")
        logger.info("Removed by key part: %s", removed)

    logger.info("Stats: %s", await items.get_stats())

    await items.clear()
    await store.close()


if __name__ == "__main__":
    asyncio.run(main())
