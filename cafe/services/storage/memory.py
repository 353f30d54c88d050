"""
In-Memory Key-Value Store

Used in development mode (ENV_MODE=development) and by the test suite.
Data lives for the lifetime of the process only.
"""

import asyncio
import copy
import logging
from typing import Any, Optional

from cafe.services.storage.base import BaseKeyValueStore

logger = logging.getLogger(__name__)


class InMemoryKeyValueStore(BaseKeyValueStore):
    """
    Dict-backed store.

    Values are deep-copied on the way in and out so callers never share
    mutable state with the store, matching a real networked backend.
    """

    def __init__(self, initial: Optional[dict[str, dict[str, Any]]] = None):
        self._data: dict[str, dict[str, Any]] = copy.deepcopy(initial or {})
        self._lock = asyncio.Lock()
        logger.info(f"InMemoryKeyValueStore initialized ({len(self._data)} keys)")

    @property
    def provider_name(self) -> str:
        return "memory"

    async def get(self, key: str) -> Optional[dict[str, Any]]:
        async with self._lock:
            value = self._data.get(key)
            return copy.deepcopy(value) if value is not None else None

    async def set(self, key: str, value: dict[str, Any]) -> None:
        async with self._lock:
            self._data[key] = copy.deepcopy(value)
        logger.debug(f"Memory: set {key}")

    async def delete(self, key: str) -> None:
        async with self._lock:
            self._data.pop(key, None)
        logger.debug(f"Memory: deleted {key}")

    async def get_by_prefix(self, prefix: str) -> list[dict[str, Any]]:
        async with self._lock:
            return [
                copy.deepcopy(value)
                for key, value in self._data.items()
                if key.startswith(prefix)
            ]

    async def health_check(self) -> bool:
        return True

    def __len__(self) -> int:
        return len(self._data)
