"""Generation domain test fixtures and helpers."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional
from unittest.mock import AsyncMock
from uuid import UUID, uuid4

import pytest

from aiportal.adapters.generators.fake import FakeTextGenerator
from aiportal.domains.catalog.fakes.repository import (
    FakeServiceDefinitionRepository,
    make_service_definition,
)
from aiportal.domains.catalog.service import ServiceCatalog
from aiportal.domains.entitlements.fakes.repository import (
    FakePlanRepository,
    FakeSubscriptionRepository,
    FakeTrialRepository,
)
from aiportal.domains.entitlements.resolver import EntitlementResolver
from aiportal.domains.entitlements.types import GrantPolicy, free_tier_limits
from aiportal.domains.generation.locks import OwnerLocks
from aiportal.domains.generation.service import MeteredGenerationService
from aiportal.domains.notifications.fakes.emitter import FakeNotificationEmitter
from aiportal.domains.usage.fakes.repository import FakeUsageRecordRepository
from aiportal.domains.usage.ledger import UsageLedger
from aiportal.domains.usage.quota import QuotaEnforcer
from aiportal.models.service_definition import ServiceDefinition
from aiportal.models.usage_record import UsageRecord

DEFAULT_OWNER_ID = UUID("00000000-0000-0000-0000-000000000001")
PROMPT = "Write about sustainable gardening tips"


@dataclass
class Harness:
    """A MeteredGenerationService wired to fakes, plus the fakes."""

    service: MeteredGenerationService
    generator: FakeTextGenerator
    records: FakeUsageRecordRepository
    catalog: FakeServiceDefinitionRepository
    notifier: FakeNotificationEmitter
    locks: Optional[OwnerLocks]
    text_service: ServiceDefinition

    @property
    def successes(self) -> list[UsageRecord]:
        return [r for r in self.records.records if r.success]

    @property
    def failures(self) -> list[UsageRecord]:
        return [r for r in self.records.records if not r.success]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _words(n: int) -> str:
    return " ".join(["word"] * n)


def _make_service(
    *,
    words_per_day: int = 500,
    content: str = _words(120),
    policy: GrantPolicy = GrantPolicy.FREE_TIER_FALLBACK,
    serialize: bool = True,
) -> Harness:
    """Build a MeteredGenerationService over real domain logic and in-memory fakes."""
    catalog_repo = FakeServiceDefinitionRepository()
    text_service = make_service_definition()
    catalog_repo.seed(text_service)

    records = FakeUsageRecordRepository()
    ledger = UsageLedger(records)
    resolver = EntitlementResolver(
        subscription_repo=FakeSubscriptionRepository(),
        trial_repo=FakeTrialRepository(),
        plan_repo=FakePlanRepository(),
        policy=policy,
        free_tier=free_tier_limits(
            words_per_day=words_per_day, requests_per_day=10, images_per_day=3
        ),
    )
    generator = FakeTextGenerator(content)
    notifier = FakeNotificationEmitter()
    locks = OwnerLocks() if serialize else None

    service = MeteredGenerationService(
        resolver=resolver,
        enforcer=QuotaEnforcer(ledger),
        ledger=ledger,
        catalog=ServiceCatalog(catalog_repo),
        generator=generator,
        notifier=notifier,
        locks=locks,
    )
    return Harness(service, generator, records, catalog_repo, notifier, locks, text_service)


def _seed_usage(harness: Harness, words: int, owner_id: UUID = DEFAULT_OWNER_ID) -> None:
    """Seed one successful record for today."""
    now = datetime.now(timezone.utc)
    harness.records.seed(
        UsageRecord(
            id=uuid4(),
            created_at=now,
            modified_at=now,
            owner_id=owner_id,
            service_id=harness.text_service.id,
            request_type="content_generation",
            request_input="earlier prompt",
            request_parameters={},
            requested_at=now,
            success=True,
            output=_words(words),
            words_generated=words,
            images_generated=0,
            response_truncated=False,
            error_code=None,
            error_message=None,
            responded_at=now,
            model_id="fake-model",
            duration_ms=10,
        )
    )


async def _drain(stream) -> list:
    return [event async for event in stream]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def db():
    """Mock AsyncSession; the fakes never touch it."""
    return AsyncMock()
