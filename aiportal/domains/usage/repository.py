"""Usage domain repository wrapping crud.usage_record."""

from datetime import datetime
from typing import Optional, Protocol
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from aiportal import crud
from aiportal.domains.usage.types import ConsumptionField
from aiportal.models.usage_record import UsageRecord
from aiportal.schemas.usage import UsageRecordCreate


class UsageRecordRepositoryProtocol(Protocol):
    """Data access for usage records."""

    async def create(self, db: AsyncSession, *, obj_in: UsageRecordCreate) -> UsageRecord:
        """Append a usage record."""
        ...

    async def sum_consumption(
        self,
        db: AsyncSession,
        *,
        owner_id: UUID,
        service_id: UUID,
        field: ConsumptionField,
        start: datetime,
        end: datetime,
    ) -> int:
        """Sum a consumption field over successful records in ``[start, end)``."""
        ...

    async def count_successful(
        self,
        db: AsyncSession,
        *,
        owner_id: UUID,
        service_id: UUID,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> int:
        """Count successful records."""
        ...

    async def list_successful(
        self,
        db: AsyncSession,
        *,
        owner_id: UUID,
        service_id: UUID,
        skip: int = 0,
        limit: int = 10,
    ) -> list[UsageRecord]:
        """List successful records, newest first."""
        ...


class UsageRecordRepository(UsageRecordRepositoryProtocol):
    """Delegates to the crud.usage_record singleton."""

    async def create(self, db: AsyncSession, *, obj_in: UsageRecordCreate) -> UsageRecord:
        """Append a usage record."""
        return await crud.usage_record.create(db, obj_in=obj_in)

    async def sum_consumption(
        self,
        db: AsyncSession,
        *,
        owner_id: UUID,
        service_id: UUID,
        field: ConsumptionField,
        start: datetime,
        end: datetime,
    ) -> int:
        """Sum a consumption field over successful records in ``[start, end)``."""
        return await crud.usage_record.sum_consumption(
            db, owner_id=owner_id, service_id=service_id, field=field, start=start, end=end
        )

    async def count_successful(
        self,
        db: AsyncSession,
        *,
        owner_id: UUID,
        service_id: UUID,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> int:
        """Count successful records."""
        return await crud.usage_record.count_successful(
            db, owner_id=owner_id, service_id=service_id, start=start, end=end
        )

    async def list_successful(
        self,
        db: AsyncSession,
        *,
        owner_id: UUID,
        service_id: UUID,
        skip: int = 0,
        limit: int = 10,
    ) -> list[UsageRecord]:
        """List successful records, newest first."""
        return await crud.usage_record.list_successful(
            db, owner_id=owner_id, service_id=service_id, skip=skip, limit=limit
        )
