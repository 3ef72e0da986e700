"""CRUD operations for Plan model."""

from typing import List, Optional

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from aiportal.crud._base import CRUDBase
from aiportal.models.plan import Plan
from aiportal.schemas.entitlements import PlanCreate


class CRUDPlan(CRUDBase[Plan, PlanCreate, PlanCreate]):
    """Read-mostly access to the plan catalog."""

    async def get_by_name(self, db: AsyncSession, *, name: str) -> Optional[Plan]:
        """Get a plan by its unique name."""
        result = await db.execute(select(self.model).where(self.model.name == name))
        return result.scalar_one_or_none()

    async def get_trial_plan(self, db: AsyncSession) -> Optional[Plan]:
        """Get the active plan of type ``trial``, if one is seeded."""
        query = select(self.model).where(
            and_(self.model.plan_type == "trial", self.model.is_active.is_(True))
        )
        result = await db.execute(query.limit(1))
        return result.scalar_one_or_none()

    async def list_active(self, db: AsyncSession) -> List[Plan]:
        """List active plans in display order."""
        query = (
            select(self.model)
            .where(self.model.is_active.is_(True))
            .order_by(self.model.display_order)
        )
        result = await db.execute(query)
        return list(result.scalars().all())


plan = CRUDPlan(Plan)
