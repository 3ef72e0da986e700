"""Generation domain exceptions."""

from typing import Optional

from aiportal.core.exceptions import BadRequestError, ExternalServiceError
from aiportal.domains.usage.types import DEFAULT_FAILURE_CODE


class GenerationValidationError(BadRequestError):
    """Raised for malformed generation input. Nothing is metered."""

    def __init__(self, errors: list[str]) -> None:
        """Initialize with the individual validation messages."""
        super().__init__("Validation failed", errors=errors)


class GeneratorError(RuntimeError):
    """Raised by generator adapters when the upstream call fails.

    ``quota_exhausted`` marks upstream quota/rate exhaustion, which lets a
    fallback generator take over.
    """

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        quota_exhausted: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code or DEFAULT_FAILURE_CODE
        self.quota_exhausted = quota_exhausted


class GeneratorFailureError(ExternalServiceError):
    """Surfaced to the caller when generation failed after the quota check passed."""

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        """Initialize with the generator's message and error code."""
        self.code = code or DEFAULT_FAILURE_CODE
        super().__init__("text_generator", message)
