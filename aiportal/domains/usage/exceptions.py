"""Usage domain exceptions."""

from typing import Any, Optional

from aiportal.core.exceptions import AiPortalException, PermissionException


class QuotaDeniedError(PermissionException):
    """Base for pre-generation quota denials.

    Carries the usage snapshot so a client can render an upgrade prompt
    without a second round trip.
    """

    flag = "limit_exceeded"

    def __init__(
        self,
        service: str,
        used: int,
        limit: int,
        message: str,
        unit: str = "words",
    ) -> None:
        """Initialize with the service, usage snapshot and message."""
        self.service = service
        self.used = used
        self.limit = limit
        self.unit = unit
        super().__init__(message)

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.used)

    def usage(self) -> dict[str, int]:
        return {"used": self.used, "limit": self.limit, "remaining": self.remaining}

    def to_payload(self) -> dict[str, Any]:
        """Error body shared by the JSON handler and the stream error event."""
        return {"detail": self.message, self.flag: True, "usage": self.usage()}


class UsageLimitReachedError(QuotaDeniedError):
    """Raised when today's consumption already meets or exceeds the cap."""

    flag = "limit_exceeded"

    def __init__(
        self,
        service: str,
        used: int,
        limit: int,
        unit: str = "words",
        message: Optional[str] = None,
    ) -> None:
        """Initialize with a default 'limit reached' message."""
        if message is None:
            message = (
                f"Daily {unit[:-1]} limit reached ({limit} {unit}). "
                f"Upgrade your plan for more {unit}."
            )
        super().__init__(service=service, used=used, limit=limit, message=message, unit=unit)


class EstimatedOverageError(QuotaDeniedError):
    """Raised when the request's estimated cost would push usage past the cap."""

    flag = "limit_warning"

    def __init__(
        self,
        service: str,
        used: int,
        limit: int,
        estimated_cost: int,
        unit: str = "words",
        message: Optional[str] = None,
    ) -> None:
        """Initialize with a message naming the exact remaining amount."""
        self.estimated_cost = estimated_cost
        remaining = max(0, limit - used)
        if message is None:
            message = (
                f"This request may exceed your daily limit. You have {remaining} {unit} "
                f"remaining today (estimated {estimated_cost} {unit} for this request). "
                "Try a shorter length or upgrade your plan."
            )
        super().__init__(service=service, used=used, limit=limit, message=message, unit=unit)


class LedgerWriteError(AiPortalException):
    """Raised when a usage record could not be persisted."""

    def __init__(self, message: str = "Failed to persist usage record") -> None:
        """Initialize with an error message."""
        self.message = message
        super().__init__(message)
