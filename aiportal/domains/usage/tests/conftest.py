"""Usage domain test fixtures and helpers."""

from datetime import datetime, timezone
from typing import Any, Optional
from unittest.mock import AsyncMock
from uuid import UUID, uuid4

import pytest

from aiportal.domains.catalog.types import ServiceRef
from aiportal.domains.entitlements.types import Grant, GrantSource, ServiceLimits
from aiportal.domains.usage.fakes.repository import FakeUsageRecordRepository
from aiportal.domains.usage.ledger import UsageLedger
from aiportal.domains.usage.quota import QuotaEnforcer
from aiportal.domains.usage.types import ServiceType
from aiportal.models.usage_record import UsageRecord

DEFAULT_OWNER_ID = UUID("00000000-0000-0000-0000-000000000001")
OTHER_OWNER_ID = UUID("00000000-0000-0000-0000-000000000002")
TEXT_SERVICE = ServiceRef(
    id=UUID("00000000-0000-0000-0000-0000000000aa"),
    service_type=ServiceType.AI_TEXT_WRITER,
    name="AI Text Writer",
)
NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_record(
    owner_id: UUID = DEFAULT_OWNER_ID,
    *,
    words: int = 0,
    success: bool = True,
    requested_at: Optional[datetime] = None,
    service_id: UUID = TEXT_SERVICE.id,
    **overrides: Any,
) -> UsageRecord:
    """Return a UsageRecord ORM model with sensible defaults."""
    at = requested_at or NOW
    defaults = dict(
        id=uuid4(),
        created_at=at,
        modified_at=at,
        owner_id=owner_id,
        service_id=service_id,
        request_type="content_generation",
        request_input="prompt",
        request_parameters={},
        requested_at=at,
        success=success,
        output="text" if success else None,
        words_generated=words,
        images_generated=0,
        response_truncated=False,
        error_code=None if success else "GENERATION_ERROR",
        error_message=None if success else "boom",
        responded_at=at,
        model_id="test-model",
        duration_ms=10,
    )
    defaults.update(overrides)
    return UsageRecord(**defaults)


def _make_grant(
    words_per_day: int = 500,
    requests_per_day: int = 10,
    enabled: bool = True,
    owner_id: UUID = DEFAULT_OWNER_ID,
) -> Grant:
    """Return a grant with a single text-writer block."""
    return Grant(
        owner_id=owner_id,
        source=GrantSource.FREE_TIER,
        plan_name="free",
        limits={
            ServiceType.AI_TEXT_WRITER: ServiceLimits(
                enabled=enabled, words_per_day=words_per_day, requests_per_day=requests_per_day
            )
        },
    )


def _make_enforcer() -> tuple[QuotaEnforcer, UsageLedger, FakeUsageRecordRepository]:
    """Build a QuotaEnforcer over a real ledger and a fake repository."""
    repo = FakeUsageRecordRepository()
    ledger = UsageLedger(repo)
    return QuotaEnforcer(ledger), ledger, repo


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def db():
    """Mock AsyncSession; the fakes never touch it."""
    return AsyncMock()
