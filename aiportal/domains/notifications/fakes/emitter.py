"""Fake notification emitter for testing."""

from typing import Any, Optional
from uuid import UUID

from aiportal.domains.notifications.types import NotificationKind


class FakeNotificationEmitter:
    """Records every notification; ``connected`` controls the return value."""

    def __init__(self, connected: bool = True) -> None:
        """Initialize with an empty log."""
        self.connected = connected
        self.sent: list[tuple[UUID, NotificationKind, dict[str, Any]]] = []

    async def notify(
        self, owner_id: UUID, kind: NotificationKind, payload: Optional[dict[str, Any]] = None
    ) -> bool:
        """Record the event."""
        self.sent.append((owner_id, kind, dict(payload or {})))
        return self.connected

    def kinds(self) -> list[NotificationKind]:
        """Kinds in emission order."""
        return [kind for _, kind, _ in self.sent]

    def of_kind(self, kind: NotificationKind) -> list[dict[str, Any]]:
        """Payloads of one kind."""
        return [payload for _, k, payload in self.sent if k == kind]

    def clear(self) -> None:
        """Forget recorded events."""
        self.sent.clear()
