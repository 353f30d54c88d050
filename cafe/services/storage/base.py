"""
Key-Value Store Abstract Base Class

Defines the interface contract for the record store. Every record the
cafe keeps (user profiles, menu items, orders) is a JSON object under a
string key; the key prefix names the record type.

Design Pattern: Strategy Pattern
    - InMemoryKeyValueStore for development and tests
    - RedisKeyValueStore for staging and production
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class BaseKeyValueStore(ABC):
    """
    Abstract base class for key-value stores.

    Values are JSON-compatible dicts. Implementations must return copies,
    so mutating a value returned by ``get`` never changes what is stored
    until ``set`` is called.

    Example:
        >>> store = get_kv_store()
        >>> await store.set("menu:espresso", {"id": "espresso", "price": 2.99})
        >>> item = await store.get("menu:espresso")
        >>> items = await store.get_by_prefix("menu:")
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the name of the store backend (e.g., "memory", "redis")."""
        pass

    @abstractmethod
    async def get(self, key: str) -> Optional[dict[str, Any]]:
        """
        Fetch the value stored under ``key``.

        Returns:
            The stored dict, or None when the key is absent
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: dict[str, Any]) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove ``key``. Deleting an absent key is not an error."""
        pass

    @abstractmethod
    async def get_by_prefix(self, prefix: str) -> list[dict[str, Any]]:
        """
        Return every value whose key starts with ``prefix``.

        Order of the returned list is unspecified.
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Verify connectivity to the store.

        Returns:
            bool: True if the store is reachable
        """
        pass

    async def close(self) -> None:
        """Release connections. Called once at application shutdown."""
        return None
