"""Fake usage record repository for testing."""

import asyncio
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from aiportal.domains.usage.types import ConsumptionField
from aiportal.models.usage_record import UsageRecord
from aiportal.schemas.usage import UsageRecordCreate


class FakeUsageRecordRepository:
    """In-memory fake for UsageRecordRepositoryProtocol."""

    def __init__(self) -> None:
        """Initialize an empty record store."""
        self._store: list[UsageRecord] = []
        self._calls: list[tuple] = []
        self.fail_on_create: Optional[Exception] = None
        self.create_delay: float = 0.0

    def seed(self, *records: UsageRecord) -> None:
        """Add pre-built records."""
        self._store.extend(records)

    @property
    def records(self) -> list[UsageRecord]:
        """All stored records in insertion order."""
        return list(self._store)

    def call_count(self, method: str) -> int:
        """Return the number of times a method was called."""
        return sum(1 for name, *_ in self._calls if name == method)

    def _matching(
        self,
        owner_id: UUID,
        service_id: UUID,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[UsageRecord]:
        return [
            r
            for r in self._store
            if r.owner_id == owner_id
            and r.service_id == service_id
            and r.success
            and (start is None or r.requested_at >= start)
            and (end is None or r.requested_at < end)
        ]

    async def create(self, db: AsyncSession, *, obj_in: UsageRecordCreate) -> UsageRecord:
        """Store a record built from the create payload."""
        self._calls.append(("create", db, obj_in))
        if self.fail_on_create is not None:
            raise self.fail_on_create
        if self.create_delay:
            await asyncio.sleep(self.create_delay)
        now = datetime.now(timezone.utc)
        record = UsageRecord(id=uuid4(), created_at=now, modified_at=now, **obj_in.model_dump())
        self._store.append(record)
        return record

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
        """Sum a field over matching successful records."""
        self._calls.append(("sum_consumption", db, owner_id, service_id, field, start, end))
        matching = self._matching(owner_id, service_id, start, end)
        if field == ConsumptionField.REQUESTS:
            return len(matching)
        return sum(getattr(r, field.value) or 0 for r in matching)

    async def count_successful(
        self,
        db: AsyncSession,
        *,
        owner_id: UUID,
        service_id: UUID,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> int:
        """Count matching successful records."""
        self._calls.append(("count_successful", db, owner_id, service_id, start, end))
        return len(self._matching(owner_id, service_id, start, end))

    async def list_successful(
        self,
        db: AsyncSession,
        *,
        owner_id: UUID,
        service_id: UUID,
        skip: int = 0,
        limit: int = 10,
    ) -> list[UsageRecord]:
        """List matching successful records, newest first."""
        self._calls.append(("list_successful", db, owner_id, service_id, skip, limit))
        matching = sorted(
            self._matching(owner_id, service_id), key=lambda r: r.requested_at, reverse=True
        )
        return matching[skip : skip + limit]
