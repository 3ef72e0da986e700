"""Usage ledger - append-only record store for metered attempts.

Exactly one record is written per attempt. Successful attempts carry the
actual consumption reported by the generator; failed attempts carry the error
and are excluded from every quota sum. Window sums are UTC-aligned: the day
starts at midnight, the month on the first.
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from aiportal.core.logging import logger
from aiportal.domains.usage.exceptions import LedgerWriteError
from aiportal.domains.usage.protocols import UsageLedgerProtocol
from aiportal.domains.usage.repository import UsageRecordRepositoryProtocol
from aiportal.domains.usage.types import (
    DEFAULT_FAILURE_CODE,
    ConsumptionField,
    HistoryPage,
    MonthUsage,
    RequestSnapshot,
    day_window,
    month_window,
)
from aiportal.models.usage_record import UsageRecord
from aiportal.schemas.usage import UsageRecordCreate


class UsageLedger(UsageLedgerProtocol):
    """Writes and sums usage records through the repository."""

    def __init__(self, repo: UsageRecordRepositoryProtocol) -> None:
        """Initialize with the usage record repository."""
        self._repo = repo

    async def record_success(
        self,
        db: AsyncSession,
        *,
        owner_id: UUID,
        service_id: UUID,
        request: RequestSnapshot,
        output: str,
        words_generated: int = 0,
        images_generated: int = 0,
        truncated: bool = False,
        model_id: Optional[str] = None,
        duration_ms: Optional[int] = None,
    ) -> UsageRecord:
        """Append a successful attempt."""
        obj_in = self._base(owner_id, service_id, request, model_id, duration_ms)
        obj_in.update(
            success=True,
            output=output,
            words_generated=words_generated,
            images_generated=images_generated,
            response_truncated=truncated,
        )
        return await self._write(db, UsageRecordCreate(**obj_in))

    async def record_failure(
        self,
        db: AsyncSession,
        *,
        owner_id: UUID,
        service_id: UUID,
        request: RequestSnapshot,
        error_message: str,
        error_code: Optional[str] = None,
        model_id: Optional[str] = None,
        duration_ms: Optional[int] = None,
    ) -> UsageRecord:
        """Append a failed attempt."""
        obj_in = self._base(owner_id, service_id, request, model_id, duration_ms)
        obj_in.update(
            success=False,
            error_code=error_code or DEFAULT_FAILURE_CODE,
            error_message=error_message,
        )
        return await self._write(db, UsageRecordCreate(**obj_in))

    async def used_today(
        self,
        db: AsyncSession,
        *,
        owner_id: UUID,
        service_id: UUID,
        field: ConsumptionField,
        now: Optional[datetime] = None,
    ) -> int:
        """Successful consumption within the current UTC day."""
        start, end = day_window(now)
        return await self._repo.sum_consumption(
            db, owner_id=owner_id, service_id=service_id, field=field, start=start, end=end
        )

    async def month_usage(
        self,
        db: AsyncSession,
        *,
        owner_id: UUID,
        service_id: UUID,
        field: ConsumptionField,
        now: Optional[datetime] = None,
    ) -> MonthUsage:
        """Successful consumption and request count within the current UTC month."""
        start, end = month_window(now)
        used = await self._repo.sum_consumption(
            db, owner_id=owner_id, service_id=service_id, field=field, start=start, end=end
        )
        requests = await self._repo.count_successful(
            db, owner_id=owner_id, service_id=service_id, start=start, end=end
        )
        return MonthUsage(used=used, requests=requests)

    async def history(
        self,
        db: AsyncSession,
        *,
        owner_id: UUID,
        service_id: UUID,
        page: int = 1,
        page_size: int = 10,
    ) -> HistoryPage:
        """Paginated successful records, newest first."""
        records = await self._repo.list_successful(
            db,
            owner_id=owner_id,
            service_id=service_id,
            skip=(page - 1) * page_size,
            limit=page_size,
        )
        total = await self._repo.count_successful(db, owner_id=owner_id, service_id=service_id)
        return HistoryPage(records=records, total=total, page=page, page_size=page_size)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _base(
        owner_id: UUID,
        service_id: UUID,
        request: RequestSnapshot,
        model_id: Optional[str],
        duration_ms: Optional[int],
    ) -> dict:
        return dict(
            owner_id=owner_id,
            service_id=service_id,
            request_type=request.request_type,
            request_input=request.input,
            request_parameters=request.parameters,
            requested_at=request.requested_at,
            responded_at=datetime.now(timezone.utc),
            model_id=model_id,
            duration_ms=duration_ms,
        )

    async def _write(self, db: AsyncSession, obj_in: UsageRecordCreate) -> UsageRecord:
        try:
            return await self._repo.create(db, obj_in=obj_in)
        except Exception as e:
            logger.with_context(
                owner_id=obj_in.owner_id, service_id=obj_in.service_id, success=obj_in.success
            ).error(f"[UsageLedger] Failed to persist usage record: {e}", exc_info=True)
            raise LedgerWriteError(f"Failed to persist usage record: {e}") from e
