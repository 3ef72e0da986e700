"""Notification emitter protocol."""

from typing import Any, Optional, Protocol, runtime_checkable
from uuid import UUID

from aiportal.domains.notifications.types import NotificationKind


@runtime_checkable
class NotificationEmitterProtocol(Protocol):
    """Fire-and-forget push to an owner's live connection.

    ``notify`` never raises. It returns False when the owner has no live
    connection or the push failed.
    """

    async def notify(
        self, owner_id: UUID, kind: NotificationKind, payload: Optional[dict[str, Any]] = None
    ) -> bool:
        """Push one event to the owner."""
        ...
