"""Trial, subscription and entitlement endpoints."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from aiportal.api import deps
from aiportal.api.context import ApiContext
from aiportal.api.deps import Inject
from aiportal.core.exceptions import BadRequestError
from aiportal.domains.entitlements.protocols import (
    EntitlementResolverProtocol,
    SubscriptionServiceProtocol,
    TrialServiceProtocol,
)
from aiportal.domains.entitlements.types import BillingCycle
from aiportal.schemas.entitlements import (
    CurrentSubscriptionResponse,
    EntitlementResponse,
    PlanListResponse,
    PlanRead,
    ServiceLimitsSchema,
    SubscriptionRead,
    TrialRead,
    TrialStatusResponse,
    UpgradeRequest,
)

router = APIRouter()


@router.get("/plans", response_model=PlanListResponse)
async def list_plans(
    db: AsyncSession = Depends(deps.get_db),
    subscriptions: SubscriptionServiceProtocol = Inject(SubscriptionServiceProtocol),
) -> PlanListResponse:
    """Active plans with prices, feature blocks and trial terms. No identity needed."""
    plans = await subscriptions.list_plans(db)
    return PlanListResponse(
        plans=[PlanRead.model_validate(p) for p in plans], total_plans=len(plans)
    )


@router.get("/current", response_model=CurrentSubscriptionResponse)
async def current_subscription(
    db: AsyncSession = Depends(deps.get_db),
    ctx: ApiContext = Depends(deps.get_context),
    subscriptions: SubscriptionServiceProtocol = Inject(SubscriptionServiceProtocol),
) -> CurrentSubscriptionResponse:
    """The caller's subscription, including a lapsed one."""
    return await subscriptions.get_current(db, ctx.owner_id)


@router.post("/trial", response_model=TrialRead, status_code=status.HTTP_201_CREATED)
async def start_trial(
    db: AsyncSession = Depends(deps.get_db),
    ctx: ApiContext = Depends(deps.get_context),
    trials: TrialServiceProtocol = Inject(TrialServiceProtocol),
) -> TrialRead:
    """Start the caller's one and only free trial."""
    trial = await trials.start_trial(db, ctx.owner_id)
    ctx.logger.info(f"Trial started, ends {trial.end_time.isoformat()}")
    return TrialRead.model_validate(trial)


@router.get("/trial/status", response_model=TrialStatusResponse)
async def trial_status(
    db: AsyncSession = Depends(deps.get_db),
    ctx: ApiContext = Depends(deps.get_context),
    trials: TrialServiceProtocol = Inject(TrialServiceProtocol),
) -> TrialStatusResponse:
    """Countdown and urgency of the caller's trial."""
    return await trials.get_trial_status(db, ctx.owner_id)


@router.post("/upgrade", response_model=SubscriptionRead)
async def upgrade(
    body: UpgradeRequest,
    db: AsyncSession = Depends(deps.get_db),
    ctx: ApiContext = Depends(deps.get_context),
    subscriptions: SubscriptionServiceProtocol = Inject(SubscriptionServiceProtocol),
) -> SubscriptionRead:
    """Activate a paid plan. Converts an active trial."""
    try:
        billing_cycle = BillingCycle(body.billing_cycle)
    except ValueError as e:
        raise BadRequestError(
            "Invalid billing cycle", errors=[f"billingCycle must be one of {_cycles()}"]
        ) from e

    subscription = await subscriptions.upgrade(db, ctx.owner_id, body.plan_name, billing_cycle)
    ctx.logger.info(f"Upgraded to {subscription.plan_name} ({billing_cycle.value})")
    return SubscriptionRead.model_validate(subscription)


@router.post("/cancel", response_model=SubscriptionRead)
async def cancel(
    db: AsyncSession = Depends(deps.get_db),
    ctx: ApiContext = Depends(deps.get_context),
    subscriptions: SubscriptionServiceProtocol = Inject(SubscriptionServiceProtocol),
) -> SubscriptionRead:
    """Cancel at the end of the current period."""
    subscription = await subscriptions.cancel(db, ctx.owner_id)
    return SubscriptionRead.model_validate(subscription)


@router.get("/entitlement", response_model=EntitlementResponse)
async def entitlement(
    db: AsyncSession = Depends(deps.get_db),
    ctx: ApiContext = Depends(deps.get_context),
    resolver: EntitlementResolverProtocol = Inject(EntitlementResolverProtocol),
) -> EntitlementResponse:
    """The grant every metered request of the caller is checked against."""
    grant = await resolver.require_grant(db, ctx.owner_id)
    return EntitlementResponse(
        source=grant.source.value,
        plan_name=grant.plan_name,
        expires_at=grant.expires_at,
        limits={
            service.value: ServiceLimitsSchema(**limits.to_block())
            for service, limits in grant.limits.items()
        },
    )


def _cycles() -> str:
    return ", ".join(c.value for c in BillingCycle)
