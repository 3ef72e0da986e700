"""CRUD operations for the service catalog."""

from typing import Optional
from uuid import UUID

from sqlalchemy import case, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from aiportal.crud._base import CRUDBase
from aiportal.models.service_definition import ServiceDefinition
from aiportal.schemas.catalog import ServiceDefinitionCreate


class CRUDServiceDefinition(
    CRUDBase[ServiceDefinition, ServiceDefinitionCreate, ServiceDefinitionCreate]
):
    """CRUD operations for ServiceDefinition model."""

    async def get_by_type(
        self, db: AsyncSession, *, service_type: str
    ) -> Optional[ServiceDefinition]:
        """Get a service definition by its type key."""
        result = await db.execute(
            select(self.model).where(self.model.service_type == service_type)
        )
        return result.scalar_one_or_none()

    async def increment_stats(
        self,
        db: AsyncSession,
        *,
        service_id: UUID,
        success: bool,
        consumption: int,
        duration_ms: Optional[int],
    ) -> None:
        """Bump the aggregate counters in a single UPDATE.

        The average response time is a running mean over all attempts; values
        on the right-hand side refer to the row before the update.
        """
        m = self.model
        values = {
            "total_requests": m.total_requests + 1,
            "successful_requests": m.successful_requests + (1 if success else 0),
            "failed_requests": m.failed_requests + (0 if success else 1),
            "total_usage": m.total_usage + consumption,
        }
        if duration_ms is not None:
            values["average_response_time_ms"] = case(
                (m.total_requests == 0, float(duration_ms)),
                else_=(m.average_response_time_ms * m.total_requests + duration_ms)
                / (m.total_requests + 1),
            )
        await db.execute(update(m).where(m.id == service_id).values(**values))
        await self._commit(db)


service_definition = CRUDServiceDefinition(ServiceDefinition)
