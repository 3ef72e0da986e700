"""Service catalog protocol."""

from typing import Optional, Protocol, runtime_checkable
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from aiportal.domains.catalog.types import ServiceRef
from aiportal.domains.usage.types import ServiceType


@runtime_checkable
class ServiceCatalogProtocol(Protocol):
    """Lookup of active services and best-effort statistics."""

    async def get_active(self, db: AsyncSession, service_type: ServiceType) -> ServiceRef:
        """Return the active entry for ``service_type`` or raise ``ServiceUnavailableError``."""
        ...

    async def record_attempt(
        self,
        db: AsyncSession,
        service_id: UUID,
        *,
        success: bool,
        consumption: int = 0,
        duration_ms: Optional[int] = None,
    ) -> None:
        """Update aggregate statistics. Never raises."""
        ...
