"""Fake service catalog repository for testing."""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from aiportal.models.service_definition import ServiceDefinition


def make_service_definition(
    service_type: str = "ai_text_writer", status: str = "active", **overrides
) -> ServiceDefinition:
    """Build a detached ServiceDefinition with zeroed statistics."""
    now = datetime.now(timezone.utc)
    defaults = dict(
        id=uuid4(),
        created_at=now,
        modified_at=now,
        service_type=service_type,
        name="AI Text Writer",
        description=None,
        category="content",
        status=status,
        total_requests=0,
        successful_requests=0,
        failed_requests=0,
        total_usage=0,
        average_response_time_ms=0.0,
    )
    defaults.update(overrides)
    return ServiceDefinition(**defaults)


class FakeServiceDefinitionRepository:
    """In-memory fake for ServiceDefinitionRepositoryProtocol.

    Statistics are applied to the stored objects the same way the SQL UPDATE does.
    """

    def __init__(self) -> None:
        """Initialize with empty store and call log."""
        self._store: dict[str, ServiceDefinition] = {}
        self._calls: list[tuple] = []
        self.fail_on_increment: Optional[Exception] = None

    def seed(self, *services: ServiceDefinition) -> None:
        """Populate store with test data."""
        for service in services:
            self._store[service.service_type] = service

    def call_count(self, method: str) -> int:
        """Return the number of times a method was called."""
        return sum(1 for name, *_ in self._calls if name == method)

    async def get_by_type(
        self, db: AsyncSession, *, service_type: str
    ) -> Optional[ServiceDefinition]:
        """Get a catalog entry by type key."""
        self._calls.append(("get_by_type", db, service_type))
        return self._store.get(service_type)

    async def increment_stats(
        self,
        db: AsyncSession,
        *,
        service_id: UUID,
        success: bool,
        consumption: int,
        duration_ms: Optional[int],
    ) -> None:
        """Apply counter increments in memory."""
        self._calls.append(("increment_stats", db, service_id, success, consumption, duration_ms))
        if self.fail_on_increment is not None:
            raise self.fail_on_increment
        for service in self._store.values():
            if service.id != service_id:
                continue
            previous = service.total_requests
            if duration_ms is not None:
                service.average_response_time_ms = (
                    service.average_response_time_ms * previous + duration_ms
                ) / (previous + 1)
            service.total_requests = previous + 1
            service.successful_requests += 1 if success else 0
            service.failed_requests += 0 if success else 1
            service.total_usage += consumption
