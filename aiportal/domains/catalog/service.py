"""Service catalog service."""

from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from aiportal.core.logging import logger
from aiportal.domains.catalog.exceptions import ServiceUnavailableError
from aiportal.domains.catalog.protocols import ServiceCatalogProtocol
from aiportal.domains.catalog.repository import ServiceDefinitionRepositoryProtocol
from aiportal.domains.catalog.types import ServiceRef, ServiceStatus
from aiportal.domains.usage.types import ServiceType


class ServiceCatalog(ServiceCatalogProtocol):
    """Resolves active services; statistics updates are approximate."""

    def __init__(self, repo: ServiceDefinitionRepositoryProtocol) -> None:
        """Initialize with the catalog repository."""
        self._repo = repo

    async def get_active(self, db: AsyncSession, service_type: ServiceType) -> ServiceRef:
        """Return the active entry or raise ``ServiceUnavailableError``."""
        service = await self._repo.get_by_type(db, service_type=service_type.value)
        if service is None or service.status != ServiceStatus.ACTIVE.value:
            raise ServiceUnavailableError(service_type.value)
        return ServiceRef.from_model(service)

    async def record_attempt(
        self,
        db: AsyncSession,
        service_id: UUID,
        *,
        success: bool,
        consumption: int = 0,
        duration_ms: Optional[int] = None,
    ) -> None:
        """Bump counters; failures are logged and dropped."""
        try:
            await self._repo.increment_stats(
                db,
                service_id=service_id,
                success=success,
                consumption=consumption,
                duration_ms=duration_ms,
            )
        except Exception as e:
            logger.with_context(service_id=service_id).warning(
                f"[ServiceCatalog] Failed to update statistics: {e}", exc_info=True
            )
