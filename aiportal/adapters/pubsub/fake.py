"""Fake PubSub adapter for testing.

Routes published messages to in-memory subscriptions and records everything
for assertions, without requiring a real Redis connection.
"""

from __future__ import annotations

import asyncio
import json
from collections import defaultdict
from typing import Any, Optional, Sequence, Tuple


class FakeSubscription:
    """In-memory subscription mirroring the redis-py PubSub surface we use."""

    def __init__(self, owner: "FakePubSub", channels: list[str]) -> None:
        self._owner = owner
        self.channels = channels
        self.queue: asyncio.Queue[dict] = asyncio.Queue()
        self.closed = False

    async def get_message(
        self, ignore_subscribe_messages: bool = False, timeout: Optional[float] = 0.0
    ) -> Optional[dict]:
        """Return the next queued message or None after ``timeout``."""
        try:
            if not timeout:
                return self.queue.get_nowait()
            return await asyncio.wait_for(self.queue.get(), timeout=timeout)
        except (asyncio.QueueEmpty, asyncio.TimeoutError):
            return None

    async def aclose(self) -> None:
        """Detach from the fake broker."""
        self.closed = True
        self._owner._detach(self)


class FakePubSub:
    """Test implementation of the PubSub protocol.

    Usage:
        fake = FakePubSub()
        await some_service(pubsub=fake)

        assert fake.published[("realtime_user", "abc")] == [{"event": "usage_warning"}]
    """

    def __init__(self) -> None:
        """Initialize empty recording state."""
        self.published: dict[tuple[str, str], list[Any]] = defaultdict(list)
        self.presence: dict[str, tuple[str, int]] = {}
        self.subscriptions: list[FakeSubscription] = []

    async def publish(self, namespace: str, id_value: Any, data: Any) -> int:
        """Record a message and route it to matching subscriptions."""
        key = (namespace, str(id_value))
        self.published[key].append(data)
        channel = f"{namespace}:{id_value}"
        encoded = data if isinstance(data, str) else json.dumps(data, default=str)
        receivers = [s for s in self.subscriptions if channel in s.channels]
        for subscription in receivers:
            subscription.queue.put_nowait(
                {"type": "message", "channel": channel, "data": encoded}
            )
        return len(receivers)

    async def subscribe(self, channels: Sequence[Tuple[str, Any]]) -> FakeSubscription:
        """Open an in-memory subscription."""
        names = [f"{namespace}:{id_value}" for namespace, id_value in channels]
        subscription = FakeSubscription(self, names)
        self.subscriptions.append(subscription)
        return subscription

    async def store_presence(self, key: str, value: str, ttl_seconds: int) -> None:
        """Record a presence marker with its TTL."""
        self.presence[key] = (value, ttl_seconds)

    async def get_presence(self, key: str) -> Optional[str]:
        """Return a stored presence marker."""
        entry = self.presence.get(key)
        return entry[0] if entry else None

    async def clear_presence(self, key: str) -> None:
        """Remove a presence marker."""
        self.presence.pop(key, None)

    def _detach(self, subscription: FakeSubscription) -> None:
        if subscription in self.subscriptions:
            self.subscriptions.remove(subscription)

    def clear(self) -> None:
        """Reset all recorded state."""
        self.published.clear()
        self.presence.clear()
        self.subscriptions.clear()
