"""Unit tests for EntitlementResolver."""

from datetime import timedelta

import pytest

from aiportal.domains.entitlements.exceptions import NoActiveGrantError
from aiportal.domains.entitlements.tests.conftest import (
    DEFAULT_OWNER_ID,
    NOW,
    _make_plan,
    _make_resolver,
    _make_subscription,
    _make_trial,
)
from aiportal.domains.entitlements.types import GrantPolicy, GrantSource
from aiportal.domains.usage.types import LimitField, ServiceType


class TestResolveGrant:
    @pytest.mark.asyncio
    async def test_live_subscription_wins_over_trial(self, db):
        resolver, sr, tr, _ = _make_resolver()
        sr.seed(_make_subscription(plan_name="pro"))
        tr.seed(_make_trial())

        grant = await resolver.resolve_grant(db, DEFAULT_OWNER_ID, now=NOW)

        assert grant.source == GrantSource.SUBSCRIPTION
        assert grant.plan_name == "pro"
        assert grant.limits_for(ServiceType.AI_TEXT_WRITER).words_per_day == 10000
        assert tr.call_count("get_active_by_owner") == 0

    @pytest.mark.asyncio
    async def test_lapsed_subscription_falls_through_to_trial(self, db):
        resolver, sr, tr, _ = _make_resolver()
        sr.seed(_make_subscription(current_period_end=NOW - timedelta(seconds=1)))
        tr.seed(_make_trial())

        grant = await resolver.resolve_grant(db, DEFAULT_OWNER_ID, now=NOW)

        assert grant.source == GrantSource.TRIAL
        assert grant.limits_for(ServiceType.AI_TEXT_WRITER).words_per_day == 1000

    @pytest.mark.asyncio
    async def test_expired_trial_yields_free_tier(self, db):
        resolver, _, tr, _ = _make_resolver()
        tr.seed(_make_trial(end_time=NOW - timedelta(hours=1)))

        grant = await resolver.resolve_grant(db, DEFAULT_OWNER_ID, now=NOW)

        assert grant.source == GrantSource.FREE_TIER

    @pytest.mark.asyncio
    async def test_free_tier_grant_has_500_words(self, db):
        resolver, *_ = _make_resolver(GrantPolicy.FREE_TIER_FALLBACK)

        grant = await resolver.resolve_grant(db, DEFAULT_OWNER_ID, now=NOW)

        assert grant is not None
        assert grant.plan_name == "free"
        text = grant.limits_for(ServiceType.AI_TEXT_WRITER)
        assert text.cap(LimitField.WORDS_PER_DAY) == 500
        assert text.cap(LimitField.REQUESTS_PER_DAY) == 10

    @pytest.mark.asyncio
    async def test_strict_policy_returns_none(self, db):
        resolver, *_ = _make_resolver(GrantPolicy.SUBSCRIPTION_OR_TRIAL)

        assert await resolver.resolve_grant(db, DEFAULT_OWNER_ID, now=NOW) is None

    @pytest.mark.asyncio
    async def test_strict_policy_require_grant_raises(self, db):
        resolver, *_ = _make_resolver(GrantPolicy.SUBSCRIPTION_OR_TRIAL)

        with pytest.raises(NoActiveGrantError):
            await resolver.require_grant(db, DEFAULT_OWNER_ID, now=NOW)

    @pytest.mark.asyncio
    async def test_empty_snapshot_reads_plan_features(self, db):
        resolver, sr, _, pr = _make_resolver()
        plan = _make_plan(features={"ai_text_writer": {"enabled": True, "words_per_day": 42}})
        pr.seed(plan)
        sr.seed(_make_subscription(plan_id=plan.id, limits={}))

        grant = await resolver.resolve_grant(db, DEFAULT_OWNER_ID, now=NOW)

        assert grant.limits_for(ServiceType.AI_TEXT_WRITER).words_per_day == 42
        assert pr.call_count("get") == 1

    @pytest.mark.asyncio
    async def test_grant_expires_at_period_end(self, db):
        resolver, sr, _, _ = _make_resolver()
        sub = _make_subscription()
        sr.seed(sub)

        grant = await resolver.resolve_grant(db, DEFAULT_OWNER_ID, now=NOW)

        assert grant.expires_at == sub.current_period_end
