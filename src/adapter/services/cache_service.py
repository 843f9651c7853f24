"""Cache Service Implementations

In-memory cache for development and tests, Redis for deployments running
more than one API process.
"""

import json
import logging
import time
from typing import Any, Callable, Dict, Optional, Tuple
import redis.asyncio as redis
from src.app.services.cache_service import CacheService

logger = logging.getLogger(__name__)


class InMemoryCacheService(CacheService):
    """
    Process-local TTL cache

    Entries expire lazily on read. The clock is injectable for tests.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: Dict[str, Tuple[float, Any]] = {}

    async def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self._entries[key] = (self._clock() + ttl_seconds, value)

    async def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)

    async def invalidate_prefix(self, prefix: str) -> int:
        keys = [key for key in self._entries if key.startswith(prefix)]
        for key in keys:
            del self._entries[key]
        return len(keys)


class RedisCacheService(CacheService):
    """
    Redis-backed cache

    Values are stored as JSON under `{namespace}{key}`.
    """

    def __init__(self, client: "redis.Redis", namespace: str = "elverra:"):
        self.client = client
        self.namespace = namespace

    @classmethod
    def from_url(cls, url: str, namespace: str = "elverra:") -> "RedisCacheService":
        return cls(redis.from_url(url, decode_responses=True), namespace=namespace)

    def _key(self, key: str) -> str:
        return f"{self.namespace}{key}"

    async def get(self, key: str) -> Optional[Any]:
        raw = await self.client.get(self._key(key))
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning(f"Dropping unreadable cache entry {key}")
            await self.client.delete(self._key(key))
            return None

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        await self.client.set(self._key(key), json.dumps(value), ex=ttl_seconds)

    async def invalidate(self, key: str) -> None:
        await self.client.delete(self._key(key))

    async def invalidate_prefix(self, prefix: str) -> int:
        removed = 0
        async for key in self.client.scan_iter(match=f"{self._key(prefix)}*"):
            removed += await self.client.delete(key)
        return removed

    async def close(self) -> None:
        await self.client.aclose()


def create_cache_service(backend: str = "memory", redis_url: Optional[str] = None) -> CacheService:
    """
    Factory function to create the configured cache

    Args:
        backend: "redis" or "memory"
        redis_url: Redis connection URL, required for the redis backend

    Returns:
        Configured CacheService
    """
    if backend == "redis" and redis_url:
        logger.info("Using Redis cache backend")
        return RedisCacheService.from_url(redis_url)

    if backend == "redis":
        logger.warning("CACHE_BACKEND is redis but REDIS_URL is empty, using in-memory cache")
    return InMemoryCacheService()
