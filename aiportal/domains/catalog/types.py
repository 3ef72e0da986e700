"""Service catalog types."""

from dataclasses import dataclass
from enum import Enum
from uuid import UUID

from aiportal.domains.usage.types import ServiceType
from aiportal.models.service_definition import ServiceDefinition


class ServiceStatus(str, Enum):
    """Catalog entry status."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    MAINTENANCE = "maintenance"


@dataclass(frozen=True)
class ServiceRef:
    """Identity of an active catalog entry, detached from the ORM session."""

    id: UUID
    service_type: ServiceType
    name: str

    @classmethod
    def from_model(cls, service: ServiceDefinition) -> "ServiceRef":
        return cls(
            id=service.id,
            service_type=ServiceType(service.service_type),
            name=service.name,
        )
