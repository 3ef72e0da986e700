"""Usage domain protocols - split into write (ledger) and read-check (enforcer) concerns.

UsageLedgerProtocol: append-only record store and the sums quota decisions are based on.
QuotaEnforcerProtocol: decides allow / deny / estimate-exceeds before expensive work starts.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Optional, Protocol, runtime_checkable
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from aiportal.domains.usage.types import (
    ConsumptionField,
    HistoryPage,
    LengthClass,
    LimitField,
    MonthUsage,
    QuotaCheck,
    RequestSnapshot,
    ServiceType,
)
from aiportal.models.usage_record import UsageRecord

if TYPE_CHECKING:
    from aiportal.domains.catalog.types import ServiceRef
    from aiportal.domains.entitlements.types import Grant


@runtime_checkable
class UsageLedgerProtocol(Protocol):
    """Source of truth for how much an owner consumed in a window.

    Writes raise ``LedgerWriteError`` when the record cannot be persisted.
    """

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
        """Append a successful attempt with its actual consumption."""
        ...

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
        """Append a failed attempt (kept for audit, never counted against quota)."""
        ...

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
        ...

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
        ...

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
        ...


@runtime_checkable
class QuotaEnforcerProtocol(Protocol):
    """Read-only quota pre-check."""

    def resolve_cap(
        self, grant: "Grant", service_type: ServiceType, limit_field: LimitField
    ) -> int:
        """Cap for the service and field, with the zero-cap fallback applied."""
        ...

    async def check_and_estimate(
        self,
        db: AsyncSession,
        grant: "Grant",
        service: "ServiceRef",
        limit_field: LimitField,
        requested_length: Optional[LengthClass] = None,
        *,
        now: Optional[datetime] = None,
    ) -> QuotaCheck:
        """Compute usage-to-date and decide before the generator is invoked."""
        ...
