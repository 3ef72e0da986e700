"""In-process live-connection registry.

Holds at most one connection per owner in a dict. Each connection owns a
bounded asyncio queue; emitting never awaits the receiver, so a slow or
stalled client drops messages instead of blocking the producer.
"""

import asyncio
from datetime import datetime, timezone
from typing import Any, Optional

from aiportal.core.logging import logger
from aiportal.core.protocols.realtime import CONNECTION_REPLACED

_DEFAULT_QUEUE_SIZE = 100


def _envelope(event: str, payload: dict[str, Any]) -> dict[str, Any]:
    return {
        "event": event,
        "data": payload,
        "ts": datetime.now(timezone.utc).isoformat(),
    }


class _QueueConnection:
    """A single owner's delivery target backed by an asyncio queue."""

    def __init__(
        self,
        registry: "InMemoryConnectionRegistry",
        owner_id: str,
        role: Optional[str],
        max_queue_size: int,
    ) -> None:
        self.owner_id = owner_id
        self.role = role
        self._registry = registry
        self._queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue(maxsize=max_queue_size)
        self._closed = False
        self._replaced = False

    @property
    def closed(self) -> bool:
        return self._closed

    def offer(self, message: dict[str, Any]) -> bool:
        if self._closed or self._replaced:
            return False
        try:
            self._queue.put_nowait(message)
        except asyncio.QueueFull:
            logger.warning(f"[Realtime] Dropping message for {self.owner_id}: queue full")
            return False
        return True

    def replace(self) -> None:
        self._replaced = True

    async def receive(self, timeout: float) -> Optional[dict[str, Any]]:
        if self._closed:
            return None
        if self._replaced and self._queue.empty():
            self._closed = True
            return _envelope(CONNECTION_REPLACED, {"owner_id": self.owner_id})
        try:
            return await asyncio.wait_for(self._queue.get(), timeout=timeout)
        except asyncio.TimeoutError:
            if self._replaced:
                self._closed = True
                return _envelope(CONNECTION_REPLACED, {"owner_id": self.owner_id})
            return None

    async def close(self) -> None:
        self._closed = True
        self._registry._release(self)


class InMemoryConnectionRegistry:
    """LiveConnectionPush implementation for a single process.

    Usage::

        registry = InMemoryConnectionRegistry()
        connection = await registry.connect("owner-1")
        await registry.emit_to_user("owner-1", "usage_warning", {...})
        message = await connection.receive(timeout=30)
    """

    def __init__(self, max_queue_size: int = _DEFAULT_QUEUE_SIZE) -> None:
        self._connections: dict[str, _QueueConnection] = {}
        self._max_queue_size = max_queue_size

    async def connect(self, owner_id: str, role: Optional[str] = None) -> _QueueConnection:
        """Register a new connection, superseding the owner's previous one."""
        connection = _QueueConnection(self, owner_id, role, self._max_queue_size)
        previous = self._connections.get(owner_id)
        self._connections[owner_id] = connection
        if previous is not None:
            logger.info(f"[Realtime] Replacing existing connection for {owner_id}")
            previous.replace()
        logger.debug(f"[Realtime] Connected {owner_id}, {self.connection_count} live connection(s)")
        return connection

    async def emit_to_user(self, owner_id: str, event: str, payload: dict[str, Any]) -> bool:
        connection = self._connections.get(owner_id)
        if connection is None:
            return False
        return connection.offer(_envelope(event, payload))

    async def emit_to_role(self, role: str, event: str, payload: dict[str, Any]) -> int:
        message = _envelope(event, payload)
        return sum(1 for c in list(self._connections.values()) if c.role == role and c.offer(message))

    async def emit_to_all(self, event: str, payload: dict[str, Any]) -> int:
        message = _envelope(event, payload)
        return sum(1 for c in list(self._connections.values()) if c.offer(message))

    async def is_connected(self, owner_id: str) -> bool:
        return owner_id in self._connections

    @property
    def connection_count(self) -> int:
        """Number of currently registered owners."""
        return len(self._connections)

    def _release(self, connection: _QueueConnection) -> None:
        if self._connections.get(connection.owner_id) is connection:
            del self._connections[connection.owner_id]
