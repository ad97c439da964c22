"""
Redis cache client with connection pooling and JSON serialization.

Every operation degrades to a cache miss when Redis is unavailable.
"""
import json
from typing import Optional, Any
from redis import asyncio as aioredis
from redis.exceptions import RedisError
from owlrsvp.core.config import settings
from owlrsvp.core.logging import logger


class RedisCache:
    """Async Redis cache client with a lazily created connection pool."""

    def __init__(self, url: Optional[str] = None):
        self.url = url or settings.REDIS_URL
        self._client: Optional[aioredis.Redis] = None

    def _get_client(self) -> aioredis.Redis:
        if self._client is None:
            pool = aioredis.ConnectionPool.from_url(
                self.url,
                decode_responses=True,
                max_connections=20,
            )
            self._client = aioredis.Redis(connection_pool=pool)
            logger.info("Redis connection pool created")
        return self._client

    async def get(self, key: str) -> Optional[Any]:
        """
        Get value from cache by key.

        Args:
            key: Cache key

        Returns:
            Cached value or None if not found
        """
        try:
            value = await self._get_client().get(key)
            return json.loads(value) if value else None
        except (RedisError, OSError) as e:
            logger.error(f"Redis GET error for key {key}: {e}")
            return None

    async def set(self, key: str, value: Any, expire: int = 300) -> bool:
        try:
            serialized = json.dumps(value, default=str)
            await self._get_client().setex(key, expire, serialized)
            return True
        except (RedisError, OSError) as e:
            logger.error(f"Redis SET error for key {key}: {e}")
            return False

    async def delete(self, key: str) -> bool:
        try:
            await self._get_client().delete(key)
            return True
        except (RedisError, OSError) as e:
            logger.error(f"Redis DELETE error for key {key}: {e}")
            return False

    async def delete_pattern(self, pattern: str) -> int:
        """
        Delete all keys matching pattern.

        Args:
            pattern: Key pattern (e.g., 'events:public:*')

        Returns:
            Number of keys deleted
        """
        try:
            client = self._get_client()
            keys = [key async for key in client.scan_iter(match=pattern)]
            if keys:
                return await client.delete(*keys)
            return 0
        except (RedisError, OSError) as e:
            logger.error(f"Redis DELETE_PATTERN error for pattern {pattern}: {e}")
            return 0

    async def close(self):
        """Close Redis connection pool."""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("Redis connection pool closed")


cache = RedisCache()
