"""Entitlement domain exceptions."""

from typing import Optional
from uuid import UUID

from aiportal.core.exceptions import InvalidStateError, NotFoundException, PermissionException


class NoActiveGrantError(PermissionException):
    """Raised when the owner has neither an active subscription nor an active trial."""

    def __init__(self, owner_id: UUID, message: Optional[str] = None) -> None:
        """Initialize with the owner id."""
        self.owner_id = owner_id
        super().__init__(
            message
            or "No active subscription or trial. Start a trial or upgrade your plan to continue."
        )


class ServiceNotEntitledError(NoActiveGrantError):
    """Raised when the resolved grant does not include (or disables) the service."""

    def __init__(self, owner_id: UUID, service: str) -> None:
        """Initialize with the owner id and service type."""
        self.service = service
        super().__init__(owner_id, f"Your current plan does not include {service}.")


class TrialAlreadyUsedError(InvalidStateError):
    """Raised when starting a trial while a prior one is active or expired."""

    def __init__(self) -> None:
        """Initialize with the one-trial-per-user message."""
        super().__init__("User already has a trial. One trial per user allowed.")


class InvalidPlanError(InvalidStateError):
    """Raised when upgrading to a plan that cannot be purchased."""


class SubscriptionAlreadyActiveError(InvalidStateError):
    """Raised when upgrading while a subscription is already live."""

    def __init__(self) -> None:
        """Initialize with a default message."""
        super().__init__("User already has an active subscription.")


class PlanNotFoundError(NotFoundException):
    """Raised when a plan name is unknown or inactive."""


class SubscriptionNotFoundError(NotFoundException):
    """Raised when the owner has no subscription to act on."""


class SubscriptionNotCancellableError(InvalidStateError):
    """Raised when cancelling a subscription that has lapsed or is already cancelling."""
