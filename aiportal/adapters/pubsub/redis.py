"""Redis-backed PubSub adapter.

Provides a namespaced publish/subscribe interface over Redis for
real-time message fan-out to live connections.

Usage patterns:
- Namespaced channel helpers: ``make_channel("realtime_user", owner_id)`` → ``realtime_user:<id>``
- High-level helpers: ``pubsub.publish("realtime_user", id, data)`` and
  ``await pubsub.subscribe([("realtime_user", id), ("realtime_all", "broadcast")])``

Notes:
- Publishes accept either strings (already JSON) or dicts which will be JSON-encoded
- Subscriptions create a dedicated Redis connection suited for long-lived SSE streams
"""

from __future__ import annotations

import json
import platform
import socket
from typing import Any, Optional, Sequence, Tuple

import redis.asyncio as redis

from aiportal.core.config import settings
from aiportal.core.redis_client import redis_client


class RedisPubSub:
    """Redis-backed implementation of the PubSub protocol."""

    @staticmethod
    def make_channel(namespace: str, id_str: str) -> str:
        """Build a Redis channel name as ``<namespace>:<id>``."""
        return f"{namespace}:{id_str}"

    async def publish(self, namespace: str, id_value: Any, data: Any) -> int:
        """Publish a message to a namespaced channel.

        Args:
            namespace: The channel namespace (e.g., "realtime_user")
            id_value: Identifier used to build the channel name
            data: Dict payload (JSON-encoded) or string already encoded

        Returns:
            Number of subscribers that received the message
        """
        channel = self.make_channel(namespace, str(id_value))
        message = data if isinstance(data, str) else json.dumps(data, default=str)
        return await redis_client.publish(channel, message)

    async def store_presence(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store a presence marker in Redis with a TTL."""
        await redis_client.client.setex(key, ttl_seconds, value)

    async def get_presence(self, key: str) -> Optional[str]:
        """Read a presence marker."""
        return await redis_client.client.get(key)

    async def clear_presence(self, key: str) -> None:
        """Delete a presence marker."""
        await redis_client.client.delete(key)

    async def subscribe(self, channels: Sequence[Tuple[str, Any]]) -> redis.client.PubSub:
        """Create a dedicated pubsub connection and subscribe to the channels.

        A separate client is created for pubsub to avoid connection pool
        interference with regular Redis usage.

        Args:
            channels: ``(namespace, id_value)`` pairs

        Returns:
            A Redis ``PubSub`` instance subscribed to every channel
        """
        names = [self.make_channel(namespace, str(id_value)) for namespace, id_value in channels]

        if platform.system() == "Darwin" or not hasattr(socket, "TCP_KEEPIDLE"):
            socket_keepalive_options = {}
        else:
            socket_keepalive_options = {
                socket.TCP_KEEPIDLE: 60,
                socket.TCP_KEEPINTVL: 10,
                socket.TCP_KEEPCNT: 6,
            }

        pubsub_redis = redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_keepalive=True,
            socket_connect_timeout=5,
            socket_keepalive_options=socket_keepalive_options,
        )

        pubsub = pubsub_redis.pubsub()
        await pubsub.subscribe(*names)
        return pubsub
