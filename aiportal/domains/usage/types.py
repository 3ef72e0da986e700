"""Usage domain types and pure business logic.

Constants, enums, and pure functions used by the ledger, the quota enforcer
and their consumers. No IO - everything here is deterministic.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID


class ServiceType(str, Enum):
    """Metered services offered by the catalog."""

    AI_TEXT_WRITER = "ai_text_writer"
    AI_IMAGE_GENERATOR = "ai_image_generator"


class ConsumptionField(str, Enum):
    """Ledger quantity summed for a quota window."""

    WORDS = "words_generated"
    IMAGES = "images_generated"
    REQUESTS = "requests"


class LimitField(str, Enum):
    """Daily cap on a grant's per-service limit block."""

    WORDS_PER_DAY = "words_per_day"
    IMAGES_PER_DAY = "images_per_day"
    REQUESTS_PER_DAY = "requests_per_day"

    @property
    def consumption(self) -> ConsumptionField:
        """Ledger field counted against this cap."""
        return _CONSUMPTION_BY_LIMIT[self]

    @property
    def unit(self) -> str:
        """Human unit used in messages."""
        return _UNIT_BY_LIMIT[self]


_CONSUMPTION_BY_LIMIT = {
    LimitField.WORDS_PER_DAY: ConsumptionField.WORDS,
    LimitField.IMAGES_PER_DAY: ConsumptionField.IMAGES,
    LimitField.REQUESTS_PER_DAY: ConsumptionField.REQUESTS,
}

_UNIT_BY_LIMIT = {
    LimitField.WORDS_PER_DAY: "words",
    LimitField.IMAGES_PER_DAY: "images",
    LimitField.REQUESTS_PER_DAY: "requests",
}


class LengthClass(str, Enum):
    """Requested output length for text generation."""

    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"


# Pre-generation word estimates per length class.
LENGTH_ESTIMATES: dict[LengthClass, int] = {
    LengthClass.SHORT: 150,
    LengthClass.MEDIUM: 400,
    LengthClass.LONG: 500,
}
DEFAULT_LENGTH = LengthClass.MEDIUM

WARNING_THRESHOLD = 0.80
CRITICAL_THRESHOLD = 0.95

DEFAULT_FAILURE_CODE = "GENERATION_ERROR"


class QuotaDecision(str, Enum):
    """Outcome of a quota pre-check."""

    ALLOWED = "allowed"
    LIMIT_REACHED = "limit_reached"
    ESTIMATED_OVERAGE = "estimated_overage"


def estimate_cost(length: Optional[LengthClass]) -> int:
    """Map a requested length class to its word estimate (medium when unspecified)."""
    return LENGTH_ESTIMATES[length or DEFAULT_LENGTH]


def is_length_metered(service_type: ServiceType, limit_field: LimitField) -> bool:
    """Only text word caps are pre-estimated from the requested length."""
    return service_type == ServiceType.AI_TEXT_WRITER and limit_field == LimitField.WORDS_PER_DAY


def count_words(text: str) -> int:
    """Count words by splitting on whitespace."""
    return len(text.split())


def usage_ratio(used: int, limit: int) -> float:
    """Fraction of the cap consumed; a non-positive cap counts as exhausted."""
    if limit <= 0:
        return 1.0
    return used / limit


def day_window(now: Optional[datetime] = None) -> tuple[datetime, datetime]:
    """Current UTC calendar day as ``[midnight, next midnight)``."""
    now = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    return start, start + timedelta(days=1)


def month_window(now: Optional[datetime] = None) -> tuple[datetime, datetime]:
    """Current UTC calendar month as ``[first of month, first of next month)``."""
    now = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    if start.month == 12:
        end = start.replace(year=start.year + 1, month=1)
    else:
        end = start.replace(month=start.month + 1)
    return start, end


@dataclass(frozen=True)
class UsageSnapshot:
    """Used/limit pair surfaced to callers so they can render upgrade prompts."""

    used: int
    limit: int

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.used)

    @property
    def percentage(self) -> int:
        return round(usage_ratio(self.used, self.limit) * 100)

    @property
    def is_warning(self) -> bool:
        return usage_ratio(self.used, self.limit) >= WARNING_THRESHOLD

    @property
    def is_critical(self) -> bool:
        return usage_ratio(self.used, self.limit) >= CRITICAL_THRESHOLD

    def to_dict(self) -> dict[str, int]:
        return {"used": self.used, "limit": self.limit, "remaining": self.remaining}


@dataclass(frozen=True)
class QuotaCheck:
    """Result of ``QuotaEnforcer.check_and_estimate``."""

    owner_id: UUID
    service_type: ServiceType
    limit_field: LimitField
    used_today: int
    max_allowed: int
    estimated_cost: int
    decision: QuotaDecision
    warning: bool = False

    @property
    def allowed(self) -> bool:
        return self.decision == QuotaDecision.ALLOWED

    @property
    def remaining(self) -> int:
        return max(0, self.max_allowed - self.used_today)

    @property
    def snapshot(self) -> UsageSnapshot:
        return UsageSnapshot(used=self.used_today, limit=self.max_allowed)

    def raise_for_denial(self) -> None:
        """Raise the typed denial for a rejected check; no-op when allowed."""
        from aiportal.domains.usage.exceptions import (
            EstimatedOverageError,
            UsageLimitReachedError,
        )

        if self.decision == QuotaDecision.LIMIT_REACHED:
            raise UsageLimitReachedError(
                service=self.service_type.value,
                used=self.used_today,
                limit=self.max_allowed,
                unit=self.limit_field.unit,
            )
        if self.decision == QuotaDecision.ESTIMATED_OVERAGE:
            raise EstimatedOverageError(
                service=self.service_type.value,
                used=self.used_today,
                limit=self.max_allowed,
                estimated_cost=self.estimated_cost,
                unit=self.limit_field.unit,
            )


@dataclass(frozen=True)
class RequestSnapshot:
    """What the caller asked for, stored verbatim on the usage record."""

    request_type: str
    input: str
    parameters: dict[str, Any] = field(default_factory=dict)
    requested_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class MonthUsage:
    """Month-to-date successful consumption."""

    used: int
    requests: int


@dataclass(frozen=True)
class HistoryPage:
    """One page of successful usage records, newest first."""

    records: list
    total: int
    page: int
    page_size: int

    @property
    def pages(self) -> int:
        if self.page_size <= 0:
            return 0
        return (self.total + self.page_size - 1) // self.page_size
