"""Entitlement domain protocols.

EntitlementResolverProtocol: read-only grant resolution used by every metered path.
TrialServiceProtocol / SubscriptionServiceProtocol: lifecycle transitions behind the
subscription endpoints.
"""

from datetime import datetime
from typing import List, Optional, Protocol, runtime_checkable
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from aiportal.domains.entitlements.types import BillingCycle, Grant, GrantPolicy
from aiportal.models.plan import Plan
from aiportal.models.subscription import Subscription
from aiportal.models.trial import Trial
from aiportal.schemas.entitlements import CurrentSubscriptionResponse, TrialStatusResponse


@runtime_checkable
class EntitlementResolverProtocol(Protocol):
    """Resolves the owner's active grant. No side effects."""

    policy: GrantPolicy

    async def resolve_grant(
        self, db: AsyncSession, owner_id: UUID, *, now: Optional[datetime] = None
    ) -> Optional[Grant]:
        """Return the active grant, or None when the policy requires one and none exists."""
        ...

    async def require_grant(
        self, db: AsyncSession, owner_id: UUID, *, now: Optional[datetime] = None
    ) -> Grant:
        """Like ``resolve_grant`` but raises ``NoActiveGrantError`` instead of returning None."""
        ...


@runtime_checkable
class TrialServiceProtocol(Protocol):
    """One-per-owner trial lifecycle."""

    async def start_trial(
        self, db: AsyncSession, owner_id: UUID, *, now: Optional[datetime] = None
    ) -> Trial:
        """Start the owner's only trial."""
        ...

    async def convert_trial(
        self, db: AsyncSession, owner_id: UUID, plan_name: str, *, now: Optional[datetime] = None
    ) -> Optional[Trial]:
        """Mark the active trial as converted. Returns None when there is none."""
        ...

    async def get_trial_status(
        self, db: AsyncSession, owner_id: UUID, *, now: Optional[datetime] = None
    ) -> TrialStatusResponse:
        """Lazily evaluated trial state, emitting an expiration warning when close."""
        ...


@runtime_checkable
class SubscriptionServiceProtocol(Protocol):
    """Plan listing and paid subscription transitions."""

    async def list_plans(self, db: AsyncSession) -> List[Plan]:
        """Active plans in display order."""
        ...

    async def get_current(
        self, db: AsyncSession, owner_id: UUID, *, now: Optional[datetime] = None
    ) -> CurrentSubscriptionResponse:
        """The owner's subscription, if any, and whether it is live."""
        ...

    async def upgrade(
        self,
        db: AsyncSession,
        owner_id: UUID,
        plan_name: str,
        billing_cycle: BillingCycle = BillingCycle.MONTHLY,
        *,
        now: Optional[datetime] = None,
    ) -> Subscription:
        """Activate a paid plan for the owner."""
        ...

    async def cancel(
        self, db: AsyncSession, owner_id: UUID, *, now: Optional[datetime] = None
    ) -> Subscription:
        """Schedule cancellation at period end."""
        ...
