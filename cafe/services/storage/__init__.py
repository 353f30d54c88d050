"""
Key-Value Store Factory

Provides a single entry point for obtaining the record store.
Automatically selects the in-memory store or Redis based on ENV_MODE.

Usage:
    from cafe.services.storage import get_kv_store

    store = get_kv_store()
    order = await store.get("order:1f0c...")

Environment Switching:
    - ENV_MODE=development → InMemoryKeyValueStore
    - ENV_MODE=staging/production → RedisKeyValueStore (REDIS_URL)
"""

import logging
from functools import lru_cache

from cafe.core.config import get_settings
from cafe.services.storage.base import BaseKeyValueStore
from cafe.services.storage.memory import InMemoryKeyValueStore
from cafe.services.storage.redis_store import RedisKeyValueStore

logger = logging.getLogger(__name__)


@lru_cache()
def get_kv_store() -> BaseKeyValueStore:
    """
    Get the configured key-value store instance.

    The instance is cached so every request shares one store (and, for
    Redis, one connection pool).

    Returns:
        BaseKeyValueStore: Configured store instance
    """
    settings = get_settings()

    if settings.is_development:
        logger.info("KV Store: Using InMemoryKeyValueStore (development mode)")
        return InMemoryKeyValueStore()
    else:
        logger.info(
            f"KV Store: Using RedisKeyValueStore "
            f"({settings.env_mode.value} mode)"
        )
        return RedisKeyValueStore()


def reset_kv_store() -> None:
    """
    Clear the cached store instance.

    The next call to get_kv_store() will create a new instance.
    """
    get_kv_store.cache_clear()
    logger.debug("KV store cache cleared")


__all__ = [
    "get_kv_store",
    "reset_kv_store",
    "BaseKeyValueStore",
    "InMemoryKeyValueStore",
    "RedisKeyValueStore",
]
