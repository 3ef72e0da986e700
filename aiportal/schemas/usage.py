"""Usage ledger schemas."""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from aiportal.schemas._base import CamelModel


class UsageRecordCreate(BaseModel):
    """Insert payload for one metered attempt."""

    owner_id: UUID
    service_id: UUID
    request_type: str
    request_input: str
    request_parameters: dict[str, Any] = Field(default_factory=dict)
    requested_at: datetime
    success: bool
    output: Optional[str] = None
    words_generated: int = 0
    images_generated: int = 0
    response_truncated: bool = False
    error_code: Optional[str] = None
    error_message: Optional[str] = None
    responded_at: datetime
    model_id: Optional[str] = None
    duration_ms: Optional[int] = None


class UsageSnapshotSchema(CamelModel):
    """Used / limit / remaining triple."""

    used: int
    limit: int
    remaining: int


class MonthUsageSchema(CamelModel):
    """Month-to-date successful consumption."""

    used: int
    requests: int


class PlanRefSchema(CamelModel):
    """Which grant the usage summary was computed against."""

    name: Optional[str] = None
    source: Optional[str] = None


class UsageSummaryResponse(CamelModel):
    """Today's and this month's usage for one service."""

    service: str
    today: UsageSnapshotSchema
    month: MonthUsageSchema
    plan: PlanRefSchema


class UsageRecordRead(CamelModel):
    """A successful usage record as shown in history."""

    id: UUID
    request_type: str
    request_input: str
    request_parameters: dict[str, Any]
    requested_at: datetime
    output: Optional[str] = None
    words_generated: int
    response_truncated: bool = False
    model_id: Optional[str] = None
    duration_ms: Optional[int] = None


class HistoryResponse(CamelModel):
    """Paginated history of successful records."""

    records: list[UsageRecordRead]
    total: int
    page: int
    page_size: int
    pages: int
