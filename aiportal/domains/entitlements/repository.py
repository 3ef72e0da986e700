"""Entitlement repositories and protocols."""

from typing import List, Optional, Protocol
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from aiportal import crud
from aiportal.models.plan import Plan
from aiportal.models.subscription import Subscription
from aiportal.models.trial import Trial
from aiportal.schemas.entitlements import (
    SubscriptionCreate,
    SubscriptionUpdate,
    TrialCreate,
    TrialUpdate,
)


class SubscriptionRepositoryProtocol(Protocol):
    """Access to the single authoritative subscription row per owner."""

    async def get_by_owner(self, db: AsyncSession, *, owner_id: UUID) -> Optional[Subscription]:
        """Get the owner's subscription in any status."""
        ...

    async def create(self, db: AsyncSession, *, obj_in: SubscriptionCreate) -> Subscription:
        """Create a subscription."""
        ...

    async def update(
        self, db: AsyncSession, *, db_obj: Subscription, obj_in: SubscriptionUpdate
    ) -> Subscription:
        """Update a subscription."""
        ...


class TrialRepositoryProtocol(Protocol):
    """Access to trials."""

    async def get_by_owner(self, db: AsyncSession, *, owner_id: UUID) -> Optional[Trial]:
        """Get the owner's most recent trial in any status."""
        ...

    async def get_active_by_owner(self, db: AsyncSession, *, owner_id: UUID) -> Optional[Trial]:
        """Get the owner's trial whose status is ``active``."""
        ...

    async def create(self, db: AsyncSession, *, obj_in: TrialCreate) -> Trial:
        """Create a trial."""
        ...

    async def update(self, db: AsyncSession, *, db_obj: Trial, obj_in: TrialUpdate) -> Trial:
        """Update a trial."""
        ...


class PlanRepositoryProtocol(Protocol):
    """Read access to the plan catalog."""

    async def get(self, db: AsyncSession, *, plan_id: UUID) -> Optional[Plan]:
        """Get a plan by ID."""
        ...

    async def get_by_name(self, db: AsyncSession, *, name: str) -> Optional[Plan]:
        """Get a plan by name."""
        ...

    async def get_trial_plan(self, db: AsyncSession) -> Optional[Plan]:
        """Get the active trial plan."""
        ...

    async def list_active(self, db: AsyncSession) -> List[Plan]:
        """List active plans in display order."""
        ...


class SubscriptionRepository(SubscriptionRepositoryProtocol):
    """Delegates to the crud.subscription singleton."""

    async def get_by_owner(self, db: AsyncSession, *, owner_id: UUID) -> Optional[Subscription]:
        """Get the owner's subscription in any status."""
        return await crud.subscription.get_by_owner(db, owner_id=owner_id)

    async def create(self, db: AsyncSession, *, obj_in: SubscriptionCreate) -> Subscription:
        """Create a subscription."""
        return await crud.subscription.create(db, obj_in=obj_in)

    async def update(
        self, db: AsyncSession, *, db_obj: Subscription, obj_in: SubscriptionUpdate
    ) -> Subscription:
        """Update a subscription."""
        return await crud.subscription.update(db, db_obj=db_obj, obj_in=obj_in)


class TrialRepository(TrialRepositoryProtocol):
    """Delegates to the crud.trial singleton."""

    async def get_by_owner(self, db: AsyncSession, *, owner_id: UUID) -> Optional[Trial]:
        """Get the owner's most recent trial in any status."""
        return await crud.trial.get_by_owner(db, owner_id=owner_id)

    async def get_active_by_owner(self, db: AsyncSession, *, owner_id: UUID) -> Optional[Trial]:
        """Get the owner's trial whose status is ``active``."""
        return await crud.trial.get_active_by_owner(db, owner_id=owner_id)

    async def create(self, db: AsyncSession, *, obj_in: TrialCreate) -> Trial:
        """Create a trial."""
        return await crud.trial.create(db, obj_in=obj_in)

    async def update(self, db: AsyncSession, *, db_obj: Trial, obj_in: TrialUpdate) -> Trial:
        """Update a trial."""
        return await crud.trial.update(db, db_obj=db_obj, obj_in=obj_in)


class PlanRepository(PlanRepositoryProtocol):
    """Delegates to the crud.plan singleton."""

    async def get(self, db: AsyncSession, *, plan_id: UUID) -> Optional[Plan]:
        """Get a plan by ID."""
        return await crud.plan.get(db, plan_id)

    async def get_by_name(self, db: AsyncSession, *, name: str) -> Optional[Plan]:
        """Get a plan by name."""
        return await crud.plan.get_by_name(db, name=name)

    async def get_trial_plan(self, db: AsyncSession) -> Optional[Plan]:
        """Get the active trial plan."""
        return await crud.plan.get_trial_plan(db)

    async def list_active(self, db: AsyncSession) -> List[Plan]:
        """List active plans in display order."""
        return await crud.plan.list_active(db)
