"""PubSub-backed live-connection registry.

Every connection subscribes to its owner channel, its role channel (if any)
and the broadcast channel. Presence is tracked with a TTL'd marker holding
the current connection token, so ``is_connected`` and the one-connection-
per-owner rule work across processes.

Replacement: a new connection publishes a control message carrying its token
on the owner channel. Any other connection for that owner sees a foreign
token, emits ``connection_replaced`` and closes.
"""

import json
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from aiportal.core.logging import logger
from aiportal.core.protocols.pubsub import PubSub, Subscription
from aiportal.core.protocols.realtime import CONNECTION_REPLACED

USER_NAMESPACE = "realtime_user"
ROLE_NAMESPACE = "realtime_role"
BROADCAST_NAMESPACE = "realtime_all"
BROADCAST_ID = "broadcast"

_CONTROL_EVENT = "__connection_control__"
_PRESENCE_TTL_SECONDS = 24 * 60 * 60


def _presence_key(owner_id: str) -> str:
    return f"realtime:presence:{owner_id}"


def _envelope(event: str, payload: dict[str, Any]) -> dict[str, Any]:
    return {
        "event": event,
        "data": payload,
        "ts": datetime.now(timezone.utc).isoformat(),
    }


class _SubscribedConnection:
    """Delivery target reading from a PubSub subscription."""

    def __init__(
        self,
        registry: "PubSubConnectionRegistry",
        owner_id: str,
        token: str,
        subscription: Subscription,
    ) -> None:
        self.owner_id = owner_id
        self.token = token
        self._registry = registry
        self._subscription = subscription
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def receive(self, timeout: float) -> Optional[dict[str, Any]]:
        if self._closed:
            return None
        message = await self._subscription.get_message(
            ignore_subscribe_messages=True, timeout=timeout
        )
        if message is None or message.get("type") != "message":
            return None

        try:
            data = json.loads(message["data"])
        except (TypeError, ValueError):
            logger.warning(f"[Realtime] Discarding undecodable message for {self.owner_id}")
            return None

        if data.get("event") == _CONTROL_EVENT:
            if data.get("token") == self.token:
                return None
            await self.close(clear_presence=False)
            return _envelope(CONNECTION_REPLACED, {"owner_id": self.owner_id})
        return data

    async def close(self, clear_presence: bool = True) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            await self._subscription.aclose()
        finally:
            if clear_presence:
                await self._registry._release(self)


class PubSubConnectionRegistry:
    """LiveConnectionPush implementation over a PubSub transport."""

    def __init__(self, pubsub: PubSub) -> None:
        self._pubsub = pubsub

    async def connect(self, owner_id: str, role: Optional[str] = None) -> _SubscribedConnection:
        """Subscribe a new connection and evict any previous one for the owner."""
        channels = [(USER_NAMESPACE, owner_id), (BROADCAST_NAMESPACE, BROADCAST_ID)]
        if role:
            channels.append((ROLE_NAMESPACE, role))

        token = uuid.uuid4().hex
        subscription = await self._pubsub.subscribe(channels)
        await self._pubsub.store_presence(_presence_key(owner_id), token, _PRESENCE_TTL_SECONDS)
        await self._pubsub.publish(
            USER_NAMESPACE, owner_id, {"event": _CONTROL_EVENT, "token": token}
        )
        return _SubscribedConnection(self, owner_id, token, subscription)

    async def emit_to_user(self, owner_id: str, event: str, payload: dict[str, Any]) -> bool:
        delivered = await self._pubsub.publish(USER_NAMESPACE, owner_id, _envelope(event, payload))
        return delivered > 0

    async def emit_to_role(self, role: str, event: str, payload: dict[str, Any]) -> int:
        return await self._pubsub.publish(ROLE_NAMESPACE, role, _envelope(event, payload))

    async def emit_to_all(self, event: str, payload: dict[str, Any]) -> int:
        return await self._pubsub.publish(
            BROADCAST_NAMESPACE, BROADCAST_ID, _envelope(event, payload)
        )

    async def is_connected(self, owner_id: str) -> bool:
        return await self._pubsub.get_presence(_presence_key(owner_id)) is not None

    async def _release(self, connection: _SubscribedConnection) -> None:
        key = _presence_key(connection.owner_id)
        if await self._pubsub.get_presence(key) == connection.token:
            await self._pubsub.clear_presence(key)
