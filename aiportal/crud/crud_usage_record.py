"""CRUD operations for the usage ledger."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import and_, desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from aiportal.crud._base import CRUDBase
from aiportal.domains.usage.types import ConsumptionField
from aiportal.models.usage_record import UsageRecord
from aiportal.schemas.usage import UsageRecordCreate


class CRUDUsageRecord(CRUDBase[UsageRecord, UsageRecordCreate, UsageRecordCreate]):
    """Append-only access to usage records. No update path is exposed."""

    def _successful(
        self,
        owner_id: UUID,
        service_id: UUID,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ):
        clauses = [
            self.model.owner_id == owner_id,
            self.model.service_id == service_id,
            self.model.success.is_(True),
        ]
        if start is not None:
            clauses.append(self.model.requested_at >= start)
        if end is not None:
            clauses.append(self.model.requested_at < end)
        return and_(*clauses)

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
        """Sum a consumption field over successful records in ``[start, end)``.

        ``ConsumptionField.REQUESTS`` counts records instead of summing a column.
        """
        if field == ConsumptionField.REQUESTS:
            return await self.count_successful(
                db, owner_id=owner_id, service_id=service_id, start=start, end=end
            )
        column = getattr(self.model, field.value)
        query = select(func.coalesce(func.sum(column), 0)).where(
            self._successful(owner_id, service_id, start, end)
        )
        result = await db.execute(query)
        return int(result.scalar_one())

    async def count_successful(
        self,
        db: AsyncSession,
        *,
        owner_id: UUID,
        service_id: UUID,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> int:
        """Count successful records, optionally bounded by a time window."""
        query = select(func.count(self.model.id)).where(
            self._successful(owner_id, service_id, start, end)
        )
        result = await db.execute(query)
        return int(result.scalar_one())

    async def list_successful(
        self,
        db: AsyncSession,
        *,
        owner_id: UUID,
        service_id: UUID,
        skip: int = 0,
        limit: int = 10,
    ) -> List[UsageRecord]:
        """List successful records, newest first."""
        query = (
            select(self.model)
            .where(self._successful(owner_id, service_id))
            .order_by(desc(self.model.requested_at))
            .offset(skip)
            .limit(limit)
        )
        result = await db.execute(query)
        return list(result.scalars().all())


usage_record = CRUDUsageRecord(UsageRecord)
