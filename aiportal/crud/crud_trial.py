"""CRUD operations for Trial model."""

from typing import Optional
from uuid import UUID

from sqlalchemy import and_, desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from aiportal.crud._base import CRUDBase
from aiportal.models.trial import Trial
from aiportal.schemas.entitlements import TrialCreate, TrialUpdate


class CRUDTrial(CRUDBase[Trial, TrialCreate, TrialUpdate]):
    """CRUD operations for Trial model."""

    async def get_by_owner(self, db: AsyncSession, *, owner_id: UUID) -> Optional[Trial]:
        """Get the owner's most recent trial in any status."""
        query = (
            select(self.model)
            .where(self.model.owner_id == owner_id)
            .order_by(desc(self.model.start_time))
            .limit(1)
        )
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def get_active_by_owner(self, db: AsyncSession, *, owner_id: UUID) -> Optional[Trial]:
        """Get the owner's trial whose status is still ``active``.

        Expiry is evaluated by the caller against ``end_time``.
        """
        query = (
            select(self.model)
            .where(and_(self.model.owner_id == owner_id, self.model.status == "active"))
            .order_by(desc(self.model.start_time))
            .limit(1)
        )
        result = await db.execute(query)
        return result.scalar_one_or_none()


trial = CRUDTrial(Trial)
