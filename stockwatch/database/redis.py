"""
Redis cache connection and operations.

Holds rendered view fragments that are invalidated when a watchlist changes.
"""

import redis.asyncio as redis
import structlog
from redis.exceptions import RedisError

logger = structlog.get_logger()


class RedisCache:
    """Redis connection manager with async support."""

    def __init__(self) -> None:
        self.client: redis.Redis | None = None

    async def connect(self, redis_url: str) -> None:
        """Establish connection to Redis."""
        try:
            self.client = redis.from_url(redis_url, decode_responses=True)

            await self.client.ping()

            logger.info("Redis connection established", url=redis_url)

        except Exception as e:
            logger.error("Failed to connect to Redis", error=str(e))
            raise

    async def disconnect(self) -> None:
        """Close Redis connection."""
        if self.client:
            await self.client.aclose()
            logger.info("Redis connection closed")

    async def ping(self) -> bool:
        """Whether the cache answers a ping (False when unreachable)."""
        if not self.client:
            return False

        try:
            return bool(await self.client.ping())
        except RedisError as e:
            logger.warning("Redis ping failed", error=str(e))
            return False

    async def delete(self, *keys: str) -> int:
        """
        Delete one or more keys.

        Returns:
            Number of keys actually removed (0 on failure)
        """
        if not self.client:
            raise RuntimeError("Redis connection not established")

        if not keys:
            return 0

        try:
            removed: int = await self.client.delete(*keys)
            return removed
        except Exception as e:
            logger.error("Redis delete operation failed", keys=list(keys), error=str(e))
            return 0
