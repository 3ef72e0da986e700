"""Fake entitlement repositories for testing."""

from datetime import datetime, timezone
from typing import Any, Optional
from uuid import UUID, uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from aiportal.models.plan import Plan
from aiportal.models.subscription import Subscription
from aiportal.models.trial import Trial


def _apply(db_obj: Any, obj_in: Any) -> Any:
    updates = obj_in.model_dump(exclude_unset=True) if hasattr(obj_in, "model_dump") else obj_in
    for key, value in updates.items():
        setattr(db_obj, key, value)
    db_obj.modified_at = datetime.now(timezone.utc)
    return db_obj


class FakeSubscriptionRepository:
    """In-memory fake for SubscriptionRepositoryProtocol."""

    def __init__(self) -> None:
        """Initialize with empty store and call log."""
        self._store: dict[UUID, Subscription] = {}
        self._calls: list[tuple] = []

    def seed(self, obj: Subscription) -> None:
        """Populate store with test data."""
        self._store[obj.owner_id] = obj

    def call_count(self, method: str) -> int:
        """Return the number of times a method was called."""
        return sum(1 for name, *_ in self._calls if name == method)

    async def get_by_owner(self, db: AsyncSession, *, owner_id: UUID) -> Optional[Subscription]:
        """Get the owner's subscription."""
        self._calls.append(("get_by_owner", db, owner_id))
        return self._store.get(owner_id)

    async def create(self, db: AsyncSession, *, obj_in: Any) -> Subscription:
        """Create a subscription (fake)."""
        self._calls.append(("create", db, obj_in))
        now = datetime.now(timezone.utc)
        obj = Subscription(
            id=uuid4(),
            created_at=now,
            modified_at=now,
            cancelled_at=None,
            external_subscription_id=None,
            **obj_in.model_dump(),
        )
        self._store[obj.owner_id] = obj
        return obj

    async def update(self, db: AsyncSession, *, db_obj: Subscription, obj_in: Any) -> Subscription:
        """Update a subscription (fake)."""
        self._calls.append(("update", db, db_obj, obj_in))
        return _apply(db_obj, obj_in)


class FakeTrialRepository:
    """In-memory fake for TrialRepositoryProtocol."""

    def __init__(self) -> None:
        """Initialize with empty store and call log."""
        self._store: list[Trial] = []
        self._calls: list[tuple] = []

    def seed(self, obj: Trial) -> None:
        """Populate store with test data."""
        self._store.append(obj)

    @property
    def trials(self) -> list[Trial]:
        """All stored trials."""
        return list(self._store)

    def call_count(self, method: str) -> int:
        """Return the number of times a method was called."""
        return sum(1 for name, *_ in self._calls if name == method)

    def _for_owner(self, owner_id: UUID) -> list[Trial]:
        return sorted(
            (t for t in self._store if t.owner_id == owner_id),
            key=lambda t: t.start_time,
            reverse=True,
        )

    async def get_by_owner(self, db: AsyncSession, *, owner_id: UUID) -> Optional[Trial]:
        """Get the owner's most recent trial."""
        self._calls.append(("get_by_owner", db, owner_id))
        trials = self._for_owner(owner_id)
        return trials[0] if trials else None

    async def get_active_by_owner(self, db: AsyncSession, *, owner_id: UUID) -> Optional[Trial]:
        """Get the owner's trial with status ``active``."""
        self._calls.append(("get_active_by_owner", db, owner_id))
        for trial in self._for_owner(owner_id):
            if trial.status == "active":
                return trial
        return None

    async def create(self, db: AsyncSession, *, obj_in: Any) -> Trial:
        """Create a trial (fake)."""
        self._calls.append(("create", db, obj_in))
        now = datetime.now(timezone.utc)
        obj = Trial(
            id=uuid4(),
            created_at=now,
            modified_at=now,
            converted_at=None,
            converted_to=None,
            **obj_in.model_dump(),
        )
        self._store.append(obj)
        return obj

    async def update(self, db: AsyncSession, *, db_obj: Trial, obj_in: Any) -> Trial:
        """Update a trial (fake)."""
        self._calls.append(("update", db, db_obj, obj_in))
        return _apply(db_obj, obj_in)


class FakePlanRepository:
    """In-memory fake for PlanRepositoryProtocol."""

    def __init__(self) -> None:
        """Initialize with empty store and call log."""
        self._store: dict[UUID, Plan] = {}
        self._calls: list[tuple] = []

    def seed(self, *plans: Plan) -> None:
        """Populate store with test data."""
        for plan in plans:
            self._store[plan.id] = plan

    def call_count(self, method: str) -> int:
        """Return the number of times a method was called."""
        return sum(1 for name, *_ in self._calls if name == method)

    async def get(self, db: AsyncSession, *, plan_id: UUID) -> Optional[Plan]:
        """Get a plan by ID."""
        self._calls.append(("get", db, plan_id))
        return self._store.get(plan_id)

    async def get_by_name(self, db: AsyncSession, *, name: str) -> Optional[Plan]:
        """Get a plan by name."""
        self._calls.append(("get_by_name", db, name))
        for plan in self._store.values():
            if plan.name == name:
                return plan
        return None

    async def get_trial_plan(self, db: AsyncSession) -> Optional[Plan]:
        """Get the active trial plan."""
        self._calls.append(("get_trial_plan", db))
        for plan in self._store.values():
            if plan.plan_type == "trial" and plan.is_active:
                return plan
        return None

    async def list_active(self, db: AsyncSession) -> list[Plan]:
        """List active plans in display order."""
        self._calls.append(("list_active", db))
        return sorted(
            (p for p in self._store.values() if p.is_active), key=lambda p: p.display_order
        )
