"""Shared Redis client.

A single lazily-created ``redis.asyncio.Redis`` connection pool is shared by
every adapter that needs plain Redis commands. Long-lived subscriptions open
their own dedicated connection (see adapters/pubsub/redis.py).
"""

from typing import Optional

import redis.asyncio as redis

from aiportal.core.config import settings


class RedisClient:
    """Lazy wrapper around the process-wide Redis connection pool."""

    def __init__(self) -> None:
        self._client: Optional[redis.Redis] = None

    @property
    def client(self) -> redis.Redis:
        """Return the shared client, creating it on first use."""
        if self._client is None:
            self._client = redis.Redis(
                host=settings.REDIS_HOST,
                port=settings.REDIS_PORT,
                password=settings.REDIS_PASSWORD,
                db=settings.REDIS_DB,
                decode_responses=True,
                socket_keepalive=True,
                socket_connect_timeout=5,
            )
        return self._client

    async def publish(self, channel: str, message: str) -> int:
        """Publish a message, returning the number of receiving subscribers."""
        return await self.client.publish(channel, message)

    async def close(self) -> None:
        """Close the shared pool (called on shutdown)."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None


redis_client = RedisClient()
