"""Entitlement domain test fixtures and helpers."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Optional
from unittest.mock import AsyncMock
from uuid import UUID, uuid4

import pytest

from aiportal.domains.entitlements.fakes.repository import (
    FakePlanRepository,
    FakeSubscriptionRepository,
    FakeTrialRepository,
)
from aiportal.domains.entitlements.resolver import EntitlementResolver
from aiportal.domains.entitlements.subscription_service import SubscriptionService
from aiportal.domains.entitlements.trial_service import TrialService
from aiportal.domains.entitlements.types import GrantPolicy, free_tier_limits
from aiportal.domains.notifications.fakes.emitter import FakeNotificationEmitter
from aiportal.models.plan import Plan
from aiportal.models.subscription import Subscription
from aiportal.models.trial import Trial

DEFAULT_OWNER_ID = UUID("00000000-0000-0000-0000-000000000001")
NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)

TEXT_BLOCK = {"enabled": True, "words_per_day": 10000, "requests_per_day": 100}

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_plan(**overrides: Any) -> Plan:
    """Return a Plan ORM model with sensible defaults (a paid 'basic' plan)."""
    now = datetime.now(timezone.utc)
    defaults = dict(
        id=uuid4(),
        created_at=now,
        modified_at=now,
        name="basic",
        display_name="Basic",
        description=None,
        plan_type="basic",
        price_monthly=Decimal("9.99"),
        price_yearly=Decimal("99.99"),
        currency="USD",
        features={"ai_text_writer": dict(TEXT_BLOCK)},
        trial=None,
        is_active=True,
        display_order=1,
    )
    defaults.update(overrides)
    return Plan(**defaults)


def _make_subscription(owner_id: UUID = DEFAULT_OWNER_ID, **overrides: Any) -> Subscription:
    """Return an active Subscription covering NOW."""
    defaults = dict(
        id=uuid4(),
        created_at=NOW,
        modified_at=NOW,
        owner_id=owner_id,
        plan_id=None,
        plan_name="basic",
        status="active",
        billing_cycle="monthly",
        current_period_start=NOW - timedelta(days=1),
        current_period_end=NOW + timedelta(days=29),
        cancel_at_period_end=False,
        cancelled_at=None,
        external_subscription_id=None,
        limits={"ai_text_writer": dict(TEXT_BLOCK)},
        usage_summary={},
    )
    defaults.update(overrides)
    return Subscription(**defaults)


def _make_trial(owner_id: UUID = DEFAULT_OWNER_ID, **overrides: Any) -> Trial:
    """Return an active Trial that started a day before NOW."""
    defaults = dict(
        id=uuid4(),
        created_at=NOW,
        modified_at=NOW,
        owner_id=owner_id,
        plan_id=None,
        start_time=NOW - timedelta(days=1),
        end_time=NOW + timedelta(days=6),
        status="active",
        limits={"ai_text_writer": {"enabled": True, "words_per_day": 1000, "requests_per_day": 10}},
        usage={},
        converted=False,
        converted_at=None,
        converted_to=None,
    )
    defaults.update(overrides)
    return Trial(**defaults)


def _make_resolver(
    policy: GrantPolicy = GrantPolicy.FREE_TIER_FALLBACK,
    *,
    subscription_repo: Optional[FakeSubscriptionRepository] = None,
    trial_repo: Optional[FakeTrialRepository] = None,
    plan_repo: Optional[FakePlanRepository] = None,
) -> tuple[EntitlementResolver, FakeSubscriptionRepository, FakeTrialRepository, FakePlanRepository]:
    """Build an EntitlementResolver wired to fakes. Returns (resolver, *fakes)."""
    sr = subscription_repo or FakeSubscriptionRepository()
    tr = trial_repo or FakeTrialRepository()
    pr = plan_repo or FakePlanRepository()
    resolver = EntitlementResolver(
        subscription_repo=sr,
        trial_repo=tr,
        plan_repo=pr,
        policy=policy,
        free_tier=free_tier_limits(words_per_day=500, requests_per_day=10, images_per_day=3),
    )
    return resolver, sr, tr, pr


def _make_trial_service() -> tuple[
    TrialService, FakeTrialRepository, FakePlanRepository, FakeNotificationEmitter
]:
    """Build a TrialService wired to fakes. Returns (service, *fakes)."""
    tr = FakeTrialRepository()
    pr = FakePlanRepository()
    notifier = FakeNotificationEmitter()
    return TrialService(tr, pr, notifier, duration_days=7), tr, pr, notifier


def _make_subscription_service() -> tuple[
    SubscriptionService,
    FakeSubscriptionRepository,
    FakeTrialRepository,
    FakePlanRepository,
    FakeNotificationEmitter,
]:
    """Build a SubscriptionService (with a real TrialService) wired to fakes."""
    trial_service, tr, pr, notifier = _make_trial_service()
    sr = FakeSubscriptionRepository()
    svc = SubscriptionService(sr, pr, trial_service, notifier)
    return svc, sr, tr, pr, notifier


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def db():
    """Mock AsyncSession; the fakes never touch it."""
    return AsyncMock()
