"""
Redis-backed key/value store used by the response cache.
"""

from typing import List, Optional
import redis.asyncio as redis

from shared.logging import get_logger


class RedisCacheStore:
    """Thin async wrapper around the shared Redis instance.

    Errors propagate to the caller; the response cache decides how to
    absorb them.
    """

    def __init__(self, redis_url: str, client: Optional[redis.Redis] = None):
        self.redis_url = redis_url
        self.logger = get_logger("api.cache_store")
        self._redis: Optional[redis.Redis] = client

    async def _get_redis(self) -> redis.Redis:
        """Get Redis connection."""
        if self._redis is None:
            self._redis = redis.from_url(self.redis_url)
        return self._redis

    async def get(self, key: str) -> Optional[bytes]:
        redis_client = await self._get_redis()
        value = await redis_client.get(key)
        if isinstance(value, str):
            return value.encode("utf-8")
        return value

    async def set(self, key: str, value: bytes, ttl: int) -> None:
        redis_client = await self._get_redis()
        await redis_client.setex(key, ttl, value)

    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        redis_client = await self._get_redis()
        return await redis_client.delete(*keys)

    async def scan(self, pattern: str, count: int = 100) -> List[str]:
        """Collect keys matching ``pattern`` with cursor-based SCAN."""
        redis_client = await self._get_redis()
        keys = []
        async for key in redis_client.scan_iter(match=pattern, count=count):
            keys.append(key.decode("utf-8") if isinstance(key, bytes) else key)
        return keys

    async def ping(self) -> bool:
        redis_client = await self._get_redis()
        return bool(await redis_client.ping())

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None
