"""CRUD operations for Subscription model."""

from typing import Optional
from uuid import UUID

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from aiportal.crud._base import CRUDBase
from aiportal.models.subscription import Subscription
from aiportal.schemas.entitlements import SubscriptionCreate, SubscriptionUpdate


class CRUDSubscription(CRUDBase[Subscription, SubscriptionCreate, SubscriptionUpdate]):
    """CRUD operations for Subscription model."""

    async def get_by_owner(self, db: AsyncSession, *, owner_id: UUID) -> Optional[Subscription]:
        """Get the authoritative subscription for an owner (most recently modified)."""
        query = (
            select(self.model)
            .where(self.model.owner_id == owner_id)
            .order_by(desc(self.model.modified_at))
            .limit(1)
        )
        result = await db.execute(query)
        return result.scalar_one_or_none()


subscription = CRUDSubscription(Subscription)
