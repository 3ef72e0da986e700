"""Unit tests for SubscriptionService."""

from datetime import timedelta

import pytest

from aiportal.domains.entitlements.exceptions import (
    InvalidPlanError,
    PlanNotFoundError,
    SubscriptionAlreadyActiveError,
    SubscriptionNotCancellableError,
    SubscriptionNotFoundError,
)
from aiportal.domains.entitlements.tests.conftest import (
    DEFAULT_OWNER_ID,
    NOW,
    _make_plan,
    _make_subscription,
    _make_subscription_service,
    _make_trial,
)
from aiportal.domains.entitlements.types import BillingCycle
from aiportal.domains.notifications.types import NotificationKind


class TestUpgrade:
    @pytest.mark.asyncio
    async def test_creates_subscription_with_limit_snapshot(self, db):
        svc, sr, _, pr, notifier = _make_subscription_service()
        plan = _make_plan(name="pro", plan_type="pro")
        pr.seed(plan)

        sub = await svc.upgrade(db, DEFAULT_OWNER_ID, "pro", now=NOW)

        assert sub.status == "active"
        assert sub.plan_id == plan.id
        assert sub.current_period_end == NOW + timedelta(days=30)
        assert sub.limits["ai_text_writer"]["words_per_day"] == 10000
        assert sr.call_count("create") == 1
        assert notifier.kinds() == [NotificationKind.SUBSCRIPTION_UPGRADED]

    @pytest.mark.asyncio
    async def test_yearly_cycle(self, db):
        svc, _, _, pr, _ = _make_subscription_service()
        pr.seed(_make_plan())

        sub = await svc.upgrade(db, DEFAULT_OWNER_ID, "basic", BillingCycle.YEARLY, now=NOW)

        assert sub.billing_cycle == "yearly"
        assert sub.current_period_end == NOW + timedelta(days=365)

    @pytest.mark.asyncio
    async def test_converts_active_trial(self, db):
        svc, _, tr, pr, _ = _make_subscription_service()
        pr.seed(_make_plan())
        trial = _make_trial()
        tr.seed(trial)

        await svc.upgrade(db, DEFAULT_OWNER_ID, "basic", now=NOW)

        assert trial.status == "converted"
        assert trial.converted_to == "basic"

    @pytest.mark.asyncio
    async def test_reactivates_lapsed_row(self, db):
        svc, sr, _, pr, _ = _make_subscription_service()
        pr.seed(_make_plan())
        lapsed = _make_subscription(status="cancelled", cancel_at_period_end=True)
        sr.seed(lapsed)

        sub = await svc.upgrade(db, DEFAULT_OWNER_ID, "basic", now=NOW)

        assert sub is lapsed
        assert sub.status == "active"
        assert sub.cancel_at_period_end is False
        assert sr.call_count("create") == 0

    @pytest.mark.asyncio
    async def test_unknown_plan(self, db):
        svc, *_ = _make_subscription_service()

        with pytest.raises(PlanNotFoundError):
            await svc.upgrade(db, DEFAULT_OWNER_ID, "platinum", now=NOW)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("plan_type", ["free", "trial"])
    async def test_non_purchasable_plan(self, db, plan_type):
        svc, _, _, pr, _ = _make_subscription_service()
        pr.seed(_make_plan(name=plan_type, plan_type=plan_type))

        with pytest.raises(InvalidPlanError):
            await svc.upgrade(db, DEFAULT_OWNER_ID, plan_type, now=NOW)

    @pytest.mark.asyncio
    async def test_already_active(self, db):
        svc, sr, _, pr, notifier = _make_subscription_service()
        pr.seed(_make_plan())
        sr.seed(_make_subscription())

        with pytest.raises(SubscriptionAlreadyActiveError):
            await svc.upgrade(db, DEFAULT_OWNER_ID, "basic", now=NOW)

        assert notifier.sent == []


class TestCancel:
    @pytest.mark.asyncio
    async def test_sets_cancel_at_period_end(self, db):
        svc, sr, _, _, _ = _make_subscription_service()
        sub = _make_subscription()
        sr.seed(sub)

        result = await svc.cancel(db, DEFAULT_OWNER_ID, now=NOW)

        assert result.cancel_at_period_end is True
        assert result.cancelled_at == NOW
        # Access continues until the period ends.
        assert result.status == "active"

    @pytest.mark.asyncio
    async def test_missing_subscription(self, db):
        svc, *_ = _make_subscription_service()

        with pytest.raises(SubscriptionNotFoundError):
            await svc.cancel(db, DEFAULT_OWNER_ID, now=NOW)

    @pytest.mark.asyncio
    async def test_already_cancelling(self, db):
        svc, sr, _, _, _ = _make_subscription_service()
        earlier = NOW - timedelta(days=3)
        sr.seed(_make_subscription(cancel_at_period_end=True, cancelled_at=earlier))

        with pytest.raises(SubscriptionNotCancellableError):
            await svc.cancel(db, DEFAULT_OWNER_ID, now=NOW)

        assert sr.call_count("update") == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "overrides",
        [
            {"status": "cancelled"},
            {"current_period_end": NOW - timedelta(days=1)},
        ],
    )
    async def test_lapsed_subscription(self, db, overrides):
        svc, sr, _, _, _ = _make_subscription_service()
        sr.seed(_make_subscription(**overrides))

        with pytest.raises(SubscriptionNotCancellableError):
            await svc.cancel(db, DEFAULT_OWNER_ID, now=NOW)


class TestReads:
    @pytest.mark.asyncio
    async def test_list_plans_active_in_display_order(self, db):
        svc, _, _, pr, _ = _make_subscription_service()
        pr.seed(
            _make_plan(name="pro", plan_type="pro", display_order=3),
            _make_plan(name="legacy", is_active=False, display_order=0),
            _make_plan(name="basic", display_order=2),
        )

        plans = await svc.list_plans(db)

        assert [p.name for p in plans] == ["basic", "pro"]

    @pytest.mark.asyncio
    async def test_current_without_subscription(self, db):
        svc, *_ = _make_subscription_service()

        current = await svc.get_current(db, DEFAULT_OWNER_ID, now=NOW)

        assert current.subscription is None
        assert current.has_active_subscription is False

    @pytest.mark.asyncio
    async def test_current_reports_lapsed_row(self, db):
        svc, sr, _, _, _ = _make_subscription_service()
        sr.seed(_make_subscription(current_period_end=NOW - timedelta(days=1)))

        current = await svc.get_current(db, DEFAULT_OWNER_ID, now=NOW)

        assert current.subscription.plan_name == "basic"
        assert current.has_active_subscription is False
