"""Service catalog repository wrapping crud.service_definition."""

from typing import Optional, Protocol
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from aiportal import crud
from aiportal.models.service_definition import ServiceDefinition


class ServiceDefinitionRepositoryProtocol(Protocol):
    """Data access for catalog entries."""

    async def get_by_type(
        self, db: AsyncSession, *, service_type: str
    ) -> Optional[ServiceDefinition]:
        """Get a catalog entry by type key."""
        ...

    async def increment_stats(
        self,
        db: AsyncSession,
        *,
        service_id: UUID,
        success: bool,
        consumption: int,
        duration_ms: Optional[int],
    ) -> None:
        """Bump aggregate counters."""
        ...


class ServiceDefinitionRepository(ServiceDefinitionRepositoryProtocol):
    """Delegates to the crud.service_definition singleton."""

    async def get_by_type(
        self, db: AsyncSession, *, service_type: str
    ) -> Optional[ServiceDefinition]:
        """Get a catalog entry by type key."""
        return await crud.service_definition.get_by_type(db, service_type=service_type)

    async def increment_stats(
        self,
        db: AsyncSession,
        *,
        service_id: UUID,
        success: bool,
        consumption: int,
        duration_ms: Optional[int],
    ) -> None:
        """Bump aggregate counters."""
        await crud.service_definition.increment_stats(
            db,
            service_id=service_id,
            success=success,
            consumption=consumption,
            duration_ms=duration_ms,
        )
