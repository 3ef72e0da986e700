"""Trial lifecycle service.

One trial per owner, ever: a prior trial that is active or expired blocks a
new one. Expiry is never written by a background job; it is derived from
``end_time`` whenever the trial is read.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from aiportal.core.logging import logger
from aiportal.domains.entitlements.exceptions import TrialAlreadyUsedError
from aiportal.domains.entitlements.protocols import TrialServiceProtocol
from aiportal.domains.entitlements.repository import (
    PlanRepositoryProtocol,
    TrialRepositoryProtocol,
)
from aiportal.domains.entitlements.types import (
    TRIAL_BLOCKING_STATUSES,
    TRIAL_DEFAULT_LIMITS,
    TrialStatus,
    as_utc,
    is_trial_live,
    limits_from_blocks,
    limits_to_blocks,
    trial_countdown,
)
from aiportal.domains.notifications.protocols import NotificationEmitterProtocol
from aiportal.domains.notifications.types import NotificationKind
from aiportal.models.trial import Trial
from aiportal.schemas.entitlements import TrialCreate, TrialStatusResponse, TrialUpdate


class TrialService(TrialServiceProtocol):
    """Starts, converts and reports on trials."""

    def __init__(
        self,
        trial_repo: TrialRepositoryProtocol,
        plan_repo: PlanRepositoryProtocol,
        notifier: NotificationEmitterProtocol,
        duration_days: int = 7,
    ) -> None:
        """Initialize with repositories, the notifier and the default trial length."""
        self._trial_repo = trial_repo
        self._plan_repo = plan_repo
        self._notifier = notifier
        self._duration_days = duration_days

    async def start_trial(
        self, db: AsyncSession, owner_id: UUID, *, now: Optional[datetime] = None
    ) -> Trial:
        """Start the owner's trial.

        Raises:
            TrialAlreadyUsedError: a prior trial is active or expired.
        """
        now = now or datetime.now(timezone.utc)
        existing = await self._trial_repo.get_by_owner(db, owner_id=owner_id)
        if existing is not None and self._effective_status(existing, now) in {
            s.value for s in TRIAL_BLOCKING_STATUSES
        }:
            raise TrialAlreadyUsedError()

        duration_days = self._duration_days
        limits = limits_to_blocks(TRIAL_DEFAULT_LIMITS)
        plan = await self._plan_repo.get_trial_plan(db)
        if plan is not None and plan.trial:
            duration_days = int(plan.trial.get("duration_days") or duration_days)
            plan_limits = limits_from_blocks(plan.trial.get("limits"))
            if plan_limits:
                limits = limits_to_blocks(plan_limits)

        trial = await self._trial_repo.create(
            db,
            obj_in=TrialCreate(
                owner_id=owner_id,
                plan_id=plan.id if plan is not None else None,
                start_time=now,
                end_time=now + timedelta(days=duration_days),
                status=TrialStatus.ACTIVE.value,
                limits=limits,
            ),
        )
        logger.with_context(owner_id=owner_id).info(
            f"[TrialService] Started {duration_days}-day trial ending {trial.end_time.isoformat()}"
        )
        return trial

    async def convert_trial(
        self, db: AsyncSession, owner_id: UUID, plan_name: str, *, now: Optional[datetime] = None
    ) -> Optional[Trial]:
        """Mark the owner's active trial as converted to ``plan_name``."""
        now = now or datetime.now(timezone.utc)
        trial = await self._trial_repo.get_active_by_owner(db, owner_id=owner_id)
        if trial is None:
            return None

        trial = await self._trial_repo.update(
            db,
            db_obj=trial,
            obj_in=TrialUpdate(
                status=TrialStatus.CONVERTED.value,
                converted=True,
                converted_at=now,
                converted_to=plan_name,
            ),
        )
        logger.with_context(owner_id=owner_id).info(
            f"[TrialService] Trial converted to '{plan_name}'"
        )
        return trial

    async def get_trial_status(
        self, db: AsyncSession, owner_id: UUID, *, now: Optional[datetime] = None
    ) -> TrialStatusResponse:
        """Trial countdown with urgency tier; warns the owner when it is close to ending."""
        now = now or datetime.now(timezone.utc)
        trial = await self._trial_repo.get_by_owner(db, owner_id=owner_id)
        if trial is None:
            return TrialStatusResponse(has_trial=False)

        status = self._effective_status(trial, now)
        response = TrialStatusResponse(
            has_trial=True,
            status=status,
            is_active=status == TrialStatus.ACTIVE.value,
            is_expired=status == TrialStatus.EXPIRED.value,
            start_time=trial.start_time,
            end_time=trial.end_time,
        )
        if status not in (TrialStatus.ACTIVE.value, TrialStatus.EXPIRED.value):
            return response

        countdown = trial_countdown(trial.end_time, now)
        response.days_remaining = countdown.days_remaining
        response.hours_remaining = countdown.hours_remaining
        response.urgency = countdown.urgency.value
        response.message = countdown.message

        if countdown.should_warn:
            await self._notifier.notify(
                owner_id,
                NotificationKind.TRIAL_EXPIRATION_WARNING,
                {
                    "days_remaining": countdown.days_remaining,
                    "urgency": countdown.urgency.value,
                    "message": countdown.message,
                    "end_time": as_utc(trial.end_time).isoformat(),
                },
            )
        return response

    @staticmethod
    def _effective_status(trial: Trial, now: datetime) -> str:
        if trial.status == TrialStatus.ACTIVE.value and not is_trial_live(trial, now):
            return TrialStatus.EXPIRED.value
        return trial.status
