"""Subscription service: upgrade and cancellation.

Payment collection happens outside this service; an upgrade here activates
the plan immediately and snapshots its limits onto the subscription row.
"""

from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from aiportal.core.logging import logger
from aiportal.domains.entitlements.exceptions import (
    InvalidPlanError,
    PlanNotFoundError,
    SubscriptionAlreadyActiveError,
    SubscriptionNotCancellableError,
    SubscriptionNotFoundError,
)
from aiportal.domains.entitlements.protocols import (
    SubscriptionServiceProtocol,
    TrialServiceProtocol,
)
from aiportal.domains.entitlements.repository import (
    PlanRepositoryProtocol,
    SubscriptionRepositoryProtocol,
)
from aiportal.domains.entitlements.types import (
    NON_PURCHASABLE_PLAN_TYPES,
    BillingCycle,
    SubscriptionStatus,
    is_subscription_live,
    limits_from_blocks,
    limits_to_blocks,
)
from aiportal.domains.notifications.protocols import NotificationEmitterProtocol
from aiportal.domains.notifications.types import NotificationKind
from aiportal.models.plan import Plan
from aiportal.models.subscription import Subscription
from aiportal.schemas.entitlements import (
    CurrentSubscriptionResponse,
    SubscriptionCreate,
    SubscriptionRead,
    SubscriptionUpdate,
)


class SubscriptionService(SubscriptionServiceProtocol):
    """Activates paid plans and schedules cancellations."""

    def __init__(
        self,
        subscription_repo: SubscriptionRepositoryProtocol,
        plan_repo: PlanRepositoryProtocol,
        trial_service: TrialServiceProtocol,
        notifier: NotificationEmitterProtocol,
    ) -> None:
        """Initialize with repositories, the trial service and the notifier."""
        self._subscription_repo = subscription_repo
        self._plan_repo = plan_repo
        self._trial_service = trial_service
        self._notifier = notifier

    async def list_plans(self, db: AsyncSession) -> List[Plan]:
        """Active plans in display order."""
        return await self._plan_repo.list_active(db)

    async def get_current(
        self, db: AsyncSession, owner_id: UUID, *, now: Optional[datetime] = None
    ) -> CurrentSubscriptionResponse:
        """The owner's subscription row, lapsed or not, with its liveness right now."""
        now = now or datetime.now(timezone.utc)
        subscription = await self._subscription_repo.get_by_owner(db, owner_id=owner_id)
        if subscription is None:
            return CurrentSubscriptionResponse()
        return CurrentSubscriptionResponse(
            subscription=SubscriptionRead.model_validate(subscription),
            has_active_subscription=is_subscription_live(subscription, now),
        )

    async def upgrade(
        self,
        db: AsyncSession,
        owner_id: UUID,
        plan_name: str,
        billing_cycle: BillingCycle = BillingCycle.MONTHLY,
        *,
        now: Optional[datetime] = None,
    ) -> Subscription:
        """Activate ``plan_name`` for the owner.

        Raises:
            PlanNotFoundError: unknown or inactive plan.
            InvalidPlanError: the plan is the free tier or the trial plan.
            SubscriptionAlreadyActiveError: a live subscription already exists.
        """
        now = now or datetime.now(timezone.utc)
        log = logger.with_context(owner_id=owner_id, plan=plan_name)

        plan = await self._plan_repo.get_by_name(db, name=plan_name)
        if plan is None or not plan.is_active:
            raise PlanNotFoundError(f"Plan '{plan_name}' not found")
        if plan.plan_type in NON_PURCHASABLE_PLAN_TYPES:
            raise InvalidPlanError(f"Plan '{plan_name}' cannot be purchased")

        existing = await self._subscription_repo.get_by_owner(db, owner_id=owner_id)
        if existing is not None and is_subscription_live(existing, now):
            raise SubscriptionAlreadyActiveError()

        limits = limits_to_blocks(limits_from_blocks(plan.features))
        period_end = now + billing_cycle.period

        if existing is None:
            subscription = await self._subscription_repo.create(
                db,
                obj_in=SubscriptionCreate(
                    owner_id=owner_id,
                    plan_id=plan.id,
                    plan_name=plan.name,
                    status=SubscriptionStatus.ACTIVE.value,
                    billing_cycle=billing_cycle.value,
                    current_period_start=now,
                    current_period_end=period_end,
                    limits=limits,
                ),
            )
        else:
            # Reactivate the single row rather than adding a second one.
            subscription = await self._subscription_repo.update(
                db,
                db_obj=existing,
                obj_in=SubscriptionUpdate(
                    plan_id=plan.id,
                    plan_name=plan.name,
                    status=SubscriptionStatus.ACTIVE.value,
                    billing_cycle=billing_cycle.value,
                    current_period_start=now,
                    current_period_end=period_end,
                    cancel_at_period_end=False,
                    cancelled_at=None,
                    limits=limits,
                ),
            )

        await self._trial_service.convert_trial(db, owner_id, plan.name, now=now)
        log.info(f"[SubscriptionService] Activated '{plan.name}' ({billing_cycle.value})")

        await self._notifier.notify(
            owner_id,
            NotificationKind.SUBSCRIPTION_UPGRADED,
            {
                "plan_name": plan.name,
                "display_name": plan.display_name,
                "billing_cycle": billing_cycle.value,
                "current_period_end": period_end.isoformat(),
            },
        )
        return subscription

    async def cancel(
        self, db: AsyncSession, owner_id: UUID, *, now: Optional[datetime] = None
    ) -> Subscription:
        """Keep access until the period ends, then lapse.

        Raises:
            SubscriptionNotFoundError: the owner has no subscription.
            SubscriptionNotCancellableError: the subscription has lapsed or is
                already set to cancel.
        """
        now = now or datetime.now(timezone.utc)
        subscription = await self._subscription_repo.get_by_owner(db, owner_id=owner_id)
        if subscription is None:
            raise SubscriptionNotFoundError("No subscription found")
        if not is_subscription_live(subscription, now):
            raise SubscriptionNotCancellableError("Subscription is not active")
        if subscription.cancel_at_period_end:
            raise SubscriptionNotCancellableError("Subscription is already set to cancel")

        subscription = await self._subscription_repo.update(
            db,
            db_obj=subscription,
            obj_in=SubscriptionUpdate(cancel_at_period_end=True, cancelled_at=now),
        )
        logger.with_context(owner_id=owner_id).info(
            "[SubscriptionService] Subscription set to cancel at period end"
        )
        return subscription
