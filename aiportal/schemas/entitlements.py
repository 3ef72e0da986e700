"""Subscription, trial and plan schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from aiportal.schemas._base import CamelModel


class PlanCreate(BaseModel):
    """Seed payload for a plan."""

    name: str
    display_name: str
    description: Optional[str] = None
    plan_type: str
    price_monthly: Decimal = Decimal("0")
    price_yearly: Decimal = Decimal("0")
    currency: str = "USD"
    features: dict[str, Any] = Field(default_factory=dict)
    trial: Optional[dict[str, Any]] = None
    is_active: bool = True
    display_order: int = 0


class SubscriptionCreate(BaseModel):
    """Insert payload for a subscription."""

    owner_id: UUID
    plan_id: Optional[UUID] = None
    plan_name: str
    status: str
    billing_cycle: str = "monthly"
    current_period_start: Optional[datetime] = None
    current_period_end: Optional[datetime] = None
    cancel_at_period_end: bool = False
    limits: dict[str, Any] = Field(default_factory=dict)
    usage_summary: dict[str, Any] = Field(default_factory=dict)


class SubscriptionUpdate(BaseModel):
    """Partial update for a subscription."""

    plan_id: Optional[UUID] = None
    plan_name: Optional[str] = None
    status: Optional[str] = None
    billing_cycle: Optional[str] = None
    current_period_start: Optional[datetime] = None
    current_period_end: Optional[datetime] = None
    cancel_at_period_end: Optional[bool] = None
    cancelled_at: Optional[datetime] = None
    limits: Optional[dict[str, Any]] = None


class TrialCreate(BaseModel):
    """Insert payload for a trial."""

    owner_id: UUID
    plan_id: Optional[UUID] = None
    start_time: datetime
    end_time: datetime
    status: str = "active"
    limits: dict[str, Any] = Field(default_factory=dict)
    usage: dict[str, Any] = Field(default_factory=dict)
    converted: bool = False


class TrialUpdate(BaseModel):
    """Partial update for a trial."""

    status: Optional[str] = None
    converted: Optional[bool] = None
    converted_at: Optional[datetime] = None
    converted_to: Optional[str] = None


class TrialRead(CamelModel):
    """Trial as returned by the API."""

    id: UUID
    owner_id: UUID
    start_time: datetime
    end_time: datetime
    status: str
    limits: dict[str, Any]
    converted: bool
    converted_at: Optional[datetime] = None
    converted_to: Optional[str] = None


class TrialStatusResponse(CamelModel):
    """Lazily evaluated trial state with countdown and urgency tier."""

    has_trial: bool
    status: Optional[str] = None
    is_active: bool = False
    is_expired: bool = False
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    days_remaining: int = 0
    hours_remaining: int = 0
    urgency: Optional[str] = None
    message: Optional[str] = None


class SubscriptionRead(CamelModel):
    """Subscription as returned by the API."""

    id: UUID
    owner_id: UUID
    plan_name: str
    status: str
    billing_cycle: str
    current_period_start: Optional[datetime] = None
    current_period_end: Optional[datetime] = None
    cancel_at_period_end: bool
    limits: dict[str, Any]


class UpgradeRequest(CamelModel):
    """Request body for a plan upgrade."""

    plan_name: str = Field(..., min_length=1, max_length=50)
    billing_cycle: str = "monthly"


class ServiceLimitsSchema(CamelModel):
    """Per-service caps of the resolved grant."""

    enabled: bool
    words_per_day: int = 0
    images_per_day: int = 0
    requests_per_day: int = 0


class EntitlementResponse(CamelModel):
    """The caller's resolved grant."""

    source: str
    plan_name: str
    expires_at: Optional[datetime] = None
    limits: dict[str, ServiceLimitsSchema]


class PlanRead(CamelModel):
    """Purchasable plan as listed to clients."""

    id: UUID
    name: str
    display_name: str
    description: Optional[str] = None
    plan_type: str
    price_monthly: Decimal
    price_yearly: Decimal
    currency: str
    features: dict[str, Any]
    trial: Optional[dict[str, Any]] = None
    display_order: int


class PlanListResponse(CamelModel):
    """Active plans in display order."""

    plans: list[PlanRead]
    total_plans: int


class CurrentSubscriptionResponse(CamelModel):
    """The caller's subscription row, if any, and whether it grants access now."""

    subscription: Optional[SubscriptionRead] = None
    has_active_subscription: bool = False
