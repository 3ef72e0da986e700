"""Service catalog exceptions."""

from aiportal.core.exceptions import NotFoundException


class ServiceUnavailableError(NotFoundException):
    """Raised when a service is missing from the catalog or not active."""

    def __init__(self, service_type: str) -> None:
        """Initialize with the requested service type."""
        self.service_type = service_type
        super().__init__(f"Service '{service_type}' is not available")
