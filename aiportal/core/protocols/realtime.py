"""Live-connection push protocol.

Abstracts the process-wide "who is connected right now" registry. An owner
has at most one active delivery target: connecting again supersedes the
previous connection, which receives a terminal ``connection_replaced``
message. Delivery is best-effort and never blocks on the receiver.
"""

from typing import Any, Optional, Protocol, runtime_checkable

CONNECTION_REPLACED = "connection_replaced"


@runtime_checkable
class LiveConnection(Protocol):
    """One client's delivery target."""

    owner_id: str

    @property
    def closed(self) -> bool:
        """True once the connection was replaced or closed."""
        ...

    async def receive(self, timeout: float) -> Optional[dict[str, Any]]:
        """Wait up to ``timeout`` seconds for the next message (None on timeout)."""
        ...

    async def close(self) -> None:
        """Detach from the registry. Idempotent."""
        ...


@runtime_checkable
class LiveConnectionPush(Protocol):
    """Registry of live connections keyed by owner id.

    Implementations:
    - InMemoryConnectionRegistry - adapters/realtime/in_memory.py
    - PubSubConnectionRegistry - adapters/realtime/pubsub.py
    """

    async def connect(self, owner_id: str, role: Optional[str] = None) -> LiveConnection:
        """Register a connection for ``owner_id``, replacing any previous one."""
        ...

    async def emit_to_user(self, owner_id: str, event: str, payload: dict[str, Any]) -> bool:
        """Push to the owner's connection. False when the owner is not connected."""
        ...

    async def emit_to_role(self, role: str, event: str, payload: dict[str, Any]) -> int:
        """Push to every connection registered with ``role``. Returns deliveries."""
        ...

    async def emit_to_all(self, event: str, payload: dict[str, Any]) -> int:
        """Push to every connection. Returns deliveries."""
        ...

    async def is_connected(self, owner_id: str) -> bool:
        """Whether the owner currently has a live connection."""
        ...
