"""
Redis Key-Value Store

Production implementation backed by Redis.
Used when ENV_MODE=production or ENV_MODE=staging.

Every key is written as ``<KV_NAMESPACE>:<key>`` and every value is a JSON
string, so several deployments can share one Redis database.
Prefix scans use SCAN + MGET; they are linear in the number of keys,
which is fine for the data volume of a single cafe.

Connection and command failures surface as InternalError (HTTP 500).
"""

import json
import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from cafe.core.config import get_settings
from cafe.core.errors import InternalError
from cafe.services.storage.base import BaseKeyValueStore

logger = logging.getLogger(__name__)

SCAN_BATCH_SIZE = 500
_GLOB_SPECIAL = "*?[]\\"


def escape_glob(text: str) -> str:
    """Escape Redis MATCH pattern metacharacters."""
    return "".join(f"\\{c}" if c in _GLOB_SPECIAL else c for c in text)


@asynccontextmanager
async def _redis_errors(operation: str, key: str):
    try:
        yield
    except RedisError as e:
        logger.error(f"Redis {operation} {key} failed: {e}")
        raise InternalError("Record store unavailable") from e


class RedisKeyValueStore(BaseKeyValueStore):
    """
    Redis-backed store.

    Example:
        >>> store = RedisKeyValueStore("redis://localhost:6379/0", namespace="cafe")
        >>> await store.set("order:42", {"id": "42", "status": "pending"})
    """

    def __init__(
        self,
        url: Optional[str] = None,
        namespace: Optional[str] = None,
        client: Optional[aioredis.Redis] = None,
    ):
        settings = get_settings()
        self._namespace = namespace if namespace is not None else settings.kv_namespace
        self._client = client or aioredis.from_url(
            url or settings.redis_url,
            decode_responses=True,
        )
        logger.info(f"RedisKeyValueStore initialized (namespace={self._namespace!r})")

    @property
    def provider_name(self) -> str:
        return "redis"

    def _full_key(self, key: str) -> str:
        return f"{self._namespace}:{key}" if self._namespace else key

    async def get(self, key: str) -> Optional[dict[str, Any]]:
        async with _redis_errors("get", key):
            raw = await self._client.get(self._full_key(key))
        if raw is None:
            return None
        return json.loads(raw)

    async def set(self, key: str, value: dict[str, Any]) -> None:
        async with _redis_errors("set", key):
            await self._client.set(self._full_key(key), json.dumps(value))
        logger.debug(f"Redis: set {key}")

    async def delete(self, key: str) -> None:
        async with _redis_errors("delete", key):
            await self._client.delete(self._full_key(key))
        logger.debug(f"Redis: deleted {key}")

    async def get_by_prefix(self, prefix: str) -> list[dict[str, Any]]:
        pattern = escape_glob(self._full_key(prefix)) + "*"
        values: list[dict[str, Any]] = []

        async with _redis_errors("scan", prefix):
            keys = [k async for k in self._client.scan_iter(match=pattern, count=SCAN_BATCH_SIZE)]
            for start in range(0, len(keys), SCAN_BATCH_SIZE):
                batch = keys[start:start + SCAN_BATCH_SIZE]
                for raw in await self._client.mget(batch):
                    # Key may have been deleted between SCAN and MGET
                    if raw is not None:
                        values.append(json.loads(raw))
        return values

    async def health_check(self) -> bool:
        try:
            return bool(await self._client.ping())
        except RedisError as e:
            logger.error(f"Redis health check failed: {e}")
            return False

    async def close(self) -> None:
        await self._client.aclose()
        logger.info("Redis connection closed")
