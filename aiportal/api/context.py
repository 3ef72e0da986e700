"""HTTP API request context.

Carries the authenticated owner, request tracking and a logger bound to
both. Only the API layer creates these via deps.get_context().
"""

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from aiportal.core.logging import ContextualLogger


@dataclass
class ApiContext:
    """Per-request context injected into endpoints via Depends().

    Identity is established upstream of this service; the owner id arrives
    in a trusted header and is only parsed here.
    """

    request_id: str
    owner_id: UUID
    logger: ContextualLogger
    role: Optional[str] = None

    def __str__(self) -> str:
        """String representation for logging."""
        return f"ApiContext(request_id={self.request_id[:8]}..., owner={self.owner_id})"
