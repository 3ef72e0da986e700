"""Entitlement resolver.

Precedence is fixed: a live subscription wins, then a live trial. What
happens when neither is live depends on the configured ``GrantPolicy``:

- ``SUBSCRIPTION_OR_TRIAL``: no grant (callers raise ``NoActiveGrantError``).
- ``FREE_TIER_FALLBACK``: a synthetic free-tier grant with fixed caps.

Both the buffered and the streaming generation paths resolve through this one
class so they always apply the same policy.
"""

from datetime import datetime, timezone
from typing import Mapping, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from aiportal.core.logging import logger
from aiportal.domains.entitlements.exceptions import NoActiveGrantError
from aiportal.domains.entitlements.protocols import EntitlementResolverProtocol
from aiportal.domains.entitlements.repository import (
    PlanRepositoryProtocol,
    SubscriptionRepositoryProtocol,
    TrialRepositoryProtocol,
)
from aiportal.domains.entitlements.types import (
    Grant,
    GrantPolicy,
    GrantSource,
    ServiceLimits,
    as_utc,
    is_subscription_live,
    is_trial_live,
    limits_from_blocks,
)
from aiportal.domains.usage.types import ServiceType
from aiportal.models.subscription import Subscription

FREE_TIER_PLAN_NAME = "free"


class EntitlementResolver(EntitlementResolverProtocol):
    """Read-only grant resolution over the subscription, trial and plan stores."""

    def __init__(
        self,
        subscription_repo: SubscriptionRepositoryProtocol,
        trial_repo: TrialRepositoryProtocol,
        plan_repo: PlanRepositoryProtocol,
        policy: GrantPolicy,
        free_tier: Mapping[ServiceType, ServiceLimits],
    ) -> None:
        """Initialize with repositories, the grant policy and the free-tier caps."""
        self._subscription_repo = subscription_repo
        self._trial_repo = trial_repo
        self._plan_repo = plan_repo
        self.policy = policy
        self._free_tier = dict(free_tier)

    async def resolve_grant(
        self, db: AsyncSession, owner_id: UUID, *, now: Optional[datetime] = None
    ) -> Optional[Grant]:
        """Return the owner's active grant, or None under the strict policy."""
        now = now or datetime.now(timezone.utc)

        subscription = await self._subscription_repo.get_by_owner(db, owner_id=owner_id)
        if subscription is not None and is_subscription_live(subscription, now):
            return Grant(
                owner_id=owner_id,
                source=GrantSource.SUBSCRIPTION,
                plan_name=subscription.plan_name,
                limits=await self._subscription_limits(db, subscription),
                expires_at=as_utc(subscription.current_period_end),
            )

        trial = await self._trial_repo.get_active_by_owner(db, owner_id=owner_id)
        if trial is not None and is_trial_live(trial, now):
            return Grant(
                owner_id=owner_id,
                source=GrantSource.TRIAL,
                plan_name="trial",
                limits=limits_from_blocks(trial.limits),
                expires_at=as_utc(trial.end_time),
            )

        if self.policy == GrantPolicy.FREE_TIER_FALLBACK:
            return Grant(
                owner_id=owner_id,
                source=GrantSource.FREE_TIER,
                plan_name=FREE_TIER_PLAN_NAME,
                limits=self._free_tier,
            )
        return None

    async def require_grant(
        self, db: AsyncSession, owner_id: UUID, *, now: Optional[datetime] = None
    ) -> Grant:
        """Resolve or raise ``NoActiveGrantError``."""
        grant = await self.resolve_grant(db, owner_id, now=now)
        if grant is None:
            raise NoActiveGrantError(owner_id)
        return grant

    async def _subscription_limits(
        self, db: AsyncSession, subscription: Subscription
    ) -> dict[ServiceType, ServiceLimits]:
        """Snapshot limits, falling back to the plan's current feature blocks."""
        limits = limits_from_blocks(subscription.limits)
        if limits or subscription.plan_id is None:
            return limits

        plan = await self._plan_repo.get(db, plan_id=subscription.plan_id)
        if plan is None:
            logger.with_context(owner_id=subscription.owner_id).warning(
                f"[EntitlementResolver] Subscription references missing plan {subscription.plan_id}"
            )
            return limits
        return limits_from_blocks(plan.features)
