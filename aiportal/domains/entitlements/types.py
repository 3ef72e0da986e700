"""Entitlement domain types and pure business logic.

A Grant is the normalized view of what an owner may consume right now,
resolved from an active subscription, an active trial, or (depending on the
configured GrantPolicy) a synthetic free tier. No IO here.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Mapping, Optional, Protocol
from uuid import UUID

from aiportal.core.config.enums import GrantPolicy
from aiportal.domains.usage.types import LimitField, ServiceType

__all__ = [
    "GrantPolicy",
    "GrantSource",
    "SubscriptionStatus",
    "TrialStatus",
    "BillingCycle",
    "ServiceLimits",
    "Grant",
]


class GrantSource(str, Enum):
    """Where a grant came from."""

    SUBSCRIPTION = "subscription"
    TRIAL = "trial"
    FREE_TIER = "free_tier"


class SubscriptionStatus(str, Enum):
    """Subscription lifecycle status."""

    PENDING = "pending"
    ACTIVE = "active"
    PAST_DUE = "past_due"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


# Statuses under which a subscription confers access inside its period.
LIVE_SUBSCRIPTION_STATUSES = frozenset({SubscriptionStatus.ACTIVE})


class TrialStatus(str, Enum):
    """Trial lifecycle status. Expiry is evaluated lazily from ``end_time``."""

    ACTIVE = "active"
    EXPIRED = "expired"
    CONVERTED = "converted"
    CANCELLED = "cancelled"


# A prior trial in one of these statuses blocks starting another.
TRIAL_BLOCKING_STATUSES = frozenset({TrialStatus.ACTIVE, TrialStatus.EXPIRED})


class BillingCycle(str, Enum):
    """Billing cadence and its period length."""

    MONTHLY = "monthly"
    YEARLY = "yearly"

    @property
    def period(self) -> timedelta:
        return timedelta(days=30) if self == BillingCycle.MONTHLY else timedelta(days=365)


NON_PURCHASABLE_PLAN_TYPES = frozenset({"free", "trial"})


@dataclass(frozen=True)
class ServiceLimits:
    """Daily caps for one service."""

    enabled: bool = True
    words_per_day: int = 0
    images_per_day: int = 0
    requests_per_day: int = 0

    def cap(self, limit_field: LimitField) -> int:
        return int(getattr(self, limit_field.value) or 0)

    @classmethod
    def from_block(cls, block: Mapping[str, Any]) -> "ServiceLimits":
        """Build from a stored feature block (unknown keys are ignored)."""
        return cls(
            enabled=bool(block.get("enabled", True)),
            words_per_day=int(block.get("words_per_day") or 0),
            images_per_day=int(block.get("images_per_day") or 0),
            requests_per_day=int(block.get("requests_per_day") or 0),
        )

    def to_block(self) -> dict[str, Any]:
        return {
            "enabled": self.enabled,
            "words_per_day": self.words_per_day,
            "images_per_day": self.images_per_day,
            "requests_per_day": self.requests_per_day,
        }


@dataclass(frozen=True)
class Grant:
    """What an owner is entitled to right now."""

    owner_id: UUID
    source: GrantSource
    plan_name: str
    limits: Mapping[ServiceType, ServiceLimits] = field(default_factory=dict)
    expires_at: Optional[datetime] = None

    def limits_for(self, service_type: ServiceType) -> Optional[ServiceLimits]:
        return self.limits.get(service_type)


def limits_from_blocks(blocks: Optional[Mapping[str, Any]]) -> dict[ServiceType, ServiceLimits]:
    """Parse stored ``{service_type: block}`` JSON, skipping unknown services."""
    known = {s.value: s for s in ServiceType}
    parsed: dict[ServiceType, ServiceLimits] = {}
    for key, block in (blocks or {}).items():
        if key in known and isinstance(block, Mapping):
            parsed[known[key]] = ServiceLimits.from_block(block)
    return parsed


def limits_to_blocks(limits: Mapping[ServiceType, ServiceLimits]) -> dict[str, Any]:
    """Inverse of ``limits_from_blocks``."""
    return {service.value: block.to_block() for service, block in limits.items()}


def free_tier_limits(
    words_per_day: int, requests_per_day: int, images_per_day: int
) -> dict[ServiceType, ServiceLimits]:
    """Implicit free-tier quota, fixed by configuration rather than the plan catalog."""
    return {
        ServiceType.AI_TEXT_WRITER: ServiceLimits(
            words_per_day=words_per_day, requests_per_day=requests_per_day
        ),
        ServiceType.AI_IMAGE_GENERATOR: ServiceLimits(
            images_per_day=images_per_day, requests_per_day=images_per_day
        ),
    }


TRIAL_DEFAULT_LIMITS: dict[ServiceType, ServiceLimits] = {
    ServiceType.AI_TEXT_WRITER: ServiceLimits(words_per_day=1000, requests_per_day=10),
    ServiceType.AI_IMAGE_GENERATOR: ServiceLimits(images_per_day=5, requests_per_day=5),
}


def as_utc(value: datetime) -> datetime:
    """Treat naive timestamps from storage as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class _SubscriptionLike(Protocol):
    status: str
    current_period_start: Optional[datetime]
    current_period_end: Optional[datetime]


class _TrialLike(Protocol):
    status: str
    end_time: datetime


def is_subscription_live(subscription: _SubscriptionLike, now: datetime) -> bool:
    """Live iff status is in the live set and now is within the billing period (inclusive)."""
    if subscription.status not in {s.value for s in LIVE_SUBSCRIPTION_STATUSES}:
        return False
    start, end = subscription.current_period_start, subscription.current_period_end
    if start is None or end is None:
        return False
    return as_utc(start) <= now <= as_utc(end)


def is_trial_live(trial: _TrialLike, now: datetime) -> bool:
    """Live iff status is active and now is strictly before the end time."""
    return trial.status == TrialStatus.ACTIVE.value and now < as_utc(trial.end_time)


class TrialUrgency(str, Enum):
    """How loudly the client should surface the trial countdown."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


TRIAL_WARNING_DAYS = 3


@dataclass(frozen=True)
class TrialCountdown:
    """Time left on a trial with the user-facing urgency tier."""

    days_remaining: int
    hours_remaining: int
    is_expired: bool
    urgency: TrialUrgency
    message: str

    @property
    def should_warn(self) -> bool:
        return self.is_expired or self.days_remaining <= TRIAL_WARNING_DAYS


def trial_countdown(end_time: datetime, now: datetime) -> TrialCountdown:
    """Countdown tiers: expired, last day, three days or fewer, otherwise."""
    delta = as_utc(end_time) - now
    seconds = delta.total_seconds()
    days = max(0, math.ceil(seconds / 86400))
    hours = max(0, math.ceil(seconds / 3600))

    if seconds <= 0:
        return TrialCountdown(
            0, 0, True, TrialUrgency.ERROR,
            "Your trial has expired. Upgrade now to continue using our AI services.",
        )
    if days == 1:
        return TrialCountdown(
            days, hours, False, TrialUrgency.WARNING,
            "Your trial expires tomorrow! Upgrade now to keep access to all features.",
        )
    if days <= TRIAL_WARNING_DAYS:
        return TrialCountdown(
            days, hours, False, TrialUrgency.WARNING,
            f"Your trial expires in {days} days. Upgrade now for uninterrupted access.",
        )
    return TrialCountdown(
        days, hours, False, TrialUrgency.INFO, f"Your trial expires in {days} days."
    )
