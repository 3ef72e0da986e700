"""Notification emitter over the live-connection push."""

import asyncio
from typing import Any, Optional
from uuid import UUID

from aiportal.core.logging import logger
from aiportal.core.protocols.realtime import LiveConnectionPush
from aiportal.domains.notifications.protocols import NotificationEmitterProtocol
from aiportal.domains.notifications.types import NotificationKind


class NotificationEmitter(NotificationEmitterProtocol):
    """Bounded, exception-safe wrapper around ``LiveConnectionPush.emit_to_user``."""

    def __init__(self, push: LiveConnectionPush, timeout_seconds: float = 1.0) -> None:
        """Initialize with the push backend and a per-event timeout."""
        self._push = push
        self._timeout = timeout_seconds

    async def notify(
        self, owner_id: UUID, kind: NotificationKind, payload: Optional[dict[str, Any]] = None
    ) -> bool:
        """Push one event. Returns False when nobody received it."""
        try:
            return await asyncio.wait_for(
                self._push.emit_to_user(str(owner_id), kind.value, payload or {}),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            logger.with_context(owner_id=owner_id, kind=kind.value).warning(
                f"[NotificationEmitter] Push timed out after {self._timeout}s"
            )
            return False
        except Exception as e:
            logger.with_context(owner_id=owner_id, kind=kind.value).error(
                f"[NotificationEmitter] Push failed: {e}", exc_info=True
            )
            return False
