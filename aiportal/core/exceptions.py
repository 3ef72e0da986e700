"""Shared exceptions module."""

from typing import Optional

from pydantic import ValidationError


class AiPortalException(Exception):
    """Base exception for AI Portal services."""

    pass


class PermissionException(AiPortalException):
    """Exception raised when a user does not have the necessary permissions to perform an action."""

    def __init__(
        self,
        message: Optional[str] = "User does not have the right to perform this action",
    ):
        """Create a new PermissionException instance.

        Args:
        ----
            message (str, optional): The error message. Has default message.

        """
        self.message = message
        super().__init__(self.message)


class NotFoundException(AiPortalException):
    """Exception raised when an object is not found."""

    def __init__(self, message: Optional[str] = "Object not found"):
        """Create a new NotFoundException instance.

        Args:
        ----
            message (str, optional): The error message. Has default message.

        """
        self.message = message
        super().__init__(self.message)


class InvalidStateError(AiPortalException):
    """Exception raised when an object is in an invalid state.

    Used when the requested transition is not allowed from the current state,
    e.g. starting a second trial or upgrading an already active subscription.
    """

    def __init__(self, message: Optional[str] = "Object is in an invalid state"):
        """Create a new InvalidStateError instance.

        Args:
        ----
            message (str, optional): The error message. Has default message.

        """
        self.message = message
        super().__init__(self.message)


class BadRequestError(AiPortalException):
    """Exception raised when the caller supplied input the domain rejects."""

    def __init__(self, message: Optional[str] = "Invalid request", errors: Optional[list] = None):
        """Create a new BadRequestError instance.

        Args:
        ----
            message (str, optional): The error message. Has default message.
            errors (list, optional): Individual validation messages.

        """
        self.message = message
        self.errors = list(errors or [])
        super().__init__(self.message)


class ExternalServiceError(AiPortalException):
    """Exception raised when an external service fails."""

    def __init__(self, service_name: str, message: Optional[str] = "External service failed"):
        """Create a new ExternalServiceError instance.

        Args:
        ----
            service_name (str): The name of the external service.
            message (str, optional): The error message. Has default message.

        """
        self.service_name = service_name
        self.message = message
        super().__init__(f"{service_name}: {message}")


def unpack_validation_error(exc: ValidationError) -> dict:
    """Unpack a Pydantic validation error into a dictionary.

    Args:
    ----
        exc (ValidationError): The Pydantic validation error.

    Returns:
    -------
        dict: The dictionary representation of the validation error.

    """
    error_messages = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"])
        message = error["msg"]
        error_messages.append({field: message})

    return {"errors": error_messages}
