"""Service catalog schemas."""

from typing import Optional

from pydantic import BaseModel


class ServiceDefinitionCreate(BaseModel):
    """Seed payload for a catalog entry."""

    service_type: str
    name: str
    description: Optional[str] = None
    category: str = "content"
    status: str = "active"
    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    total_usage: int = 0
    average_response_time_ms: float = 0.0
