"""Cache Service Interface

TTL cache with explicit invalidation. Instances are owned by the
application (or a worker), never shared through module-level state.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class CacheService(ABC):
    """
    Abstract key/value cache

    Values must be JSON-serializable.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """
        Retrieve a cached value

        Args:
            key: Cache key

        Returns:
            Cached value, or None when missing or expired
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        """
        Store a value for ttl_seconds

        Args:
            key: Cache key
            value: JSON-serializable value
            ttl_seconds: Time to live (> 0)
        """
        pass

    @abstractmethod
    async def invalidate(self, key: str) -> None:
        """Remove one key"""
        pass

    @abstractmethod
    async def invalidate_prefix(self, prefix: str) -> int:
        """
        Remove every key starting with prefix

        Returns:
            Number of keys removed
        """
        pass
