"""Notification kinds and message builders."""

from enum import Enum

from aiportal.domains.usage.types import CRITICAL_THRESHOLD, WARNING_THRESHOLD, UsageSnapshot


class NotificationKind(str, Enum):
    """Events pushed to the requesting owner's live connection."""

    GENERATION_STARTED = "generation_started"
    GENERATION_COMPLETED = "generation_completed"
    USAGE_WARNING = "usage_warning"
    USAGE_LIMIT_EXCEEDED = "usage_limit_exceeded"
    USAGE_LIMIT_WARNING = "usage_limit_warning"
    TRIAL_EXPIRATION_WARNING = "trial_expiration_warning"
    SUBSCRIPTION_UPGRADED = "subscription_upgraded"


class WarningStage(str, Enum):
    """When a usage warning was evaluated."""

    PRE_CHECK = "pre_check"
    POST_COMPLETION = "post_completion"


def should_warn(snapshot: UsageSnapshot) -> bool:
    """A usage warning fires at or above the warning threshold only."""
    return snapshot.limit > 0 and snapshot.used / snapshot.limit >= WARNING_THRESHOLD


def usage_warning_message(snapshot: UsageSnapshot) -> str:
    """Message for a usage warning; the critical tier gets an exclamation."""
    percentage = snapshot.percentage
    if snapshot.limit > 0 and snapshot.used / snapshot.limit >= CRITICAL_THRESHOLD:
        return f"You've used {percentage}% of your daily limit!"
    return f"You've used {percentage}% of your daily limit."


def usage_warning_payload(snapshot: UsageSnapshot, service: str, stage: WarningStage) -> dict:
    """Payload for ``usage_warning``."""
    return {
        "service": service,
        "stage": stage.value,
        "percentage": snapshot.percentage,
        "message": usage_warning_message(snapshot),
        "usage": snapshot.to_dict(),
    }
