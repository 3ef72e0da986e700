"""PubSub protocol for realtime message fan-out to live connections.

Decouples producers (notification emitter) from the transport layer.
The default adapter is RedisPubSub (adapters/pubsub/redis.py).
"""

from typing import Any, Optional, Protocol, Sequence, Tuple, runtime_checkable


@runtime_checkable
class Subscription(Protocol):
    """A live subscription to one or more channels."""

    async def get_message(
        self, ignore_subscribe_messages: bool = False, timeout: Optional[float] = 0.0
    ) -> Optional[dict]:
        """Return the next message, or None if nothing arrived within ``timeout``.

        Messages follow the redis-py shape: ``{"type": "message", "channel": ..., "data": ...}``.
        """
        ...

    async def aclose(self) -> None:
        """Unsubscribe and release the underlying connection."""
        ...


@runtime_checkable
class PubSub(Protocol):
    """Protocol for namespaced publish/subscribe messaging.

    Used by:
    - PubSubConnectionRegistry: per-owner, per-role and broadcast channels
    - SSE endpoint: consumes the caller's channels

    Implementations:
    - RedisPubSub - adapters/pubsub/redis.py
    - FakePubSub - adapters/pubsub/fake.py (tests)
    """

    async def publish(self, namespace: str, id_value: Any, data: Any) -> int:
        """Publish a message to a namespaced channel.

        Args:
            namespace: Logical namespace (e.g., "realtime_user")
            id_value: Identifier for the channel (e.g., owner id)
            data: Payload - dict (JSON-encoded by impl) or pre-encoded string

        Returns:
            Number of subscribers that received the message.
        """
        ...

    async def subscribe(self, channels: Sequence[Tuple[str, Any]]) -> Subscription:
        """Subscribe to one or more ``(namespace, id_value)`` channels."""
        ...

    async def store_presence(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store a presence marker with a TTL."""
        ...

    async def get_presence(self, key: str) -> Optional[str]:
        """Read a presence marker, None when absent or expired."""
        ...

    async def clear_presence(self, key: str) -> None:
        """Delete a presence marker."""
        ...
