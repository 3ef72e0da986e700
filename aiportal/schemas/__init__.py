"""Pydantic schemas for persistence payloads and the HTTP API."""

from aiportal.schemas.catalog import ServiceDefinitionCreate
from aiportal.schemas.entitlements import (
    EntitlementResponse,
    PlanCreate,
    ServiceLimitsSchema,
    SubscriptionCreate,
    SubscriptionRead,
    SubscriptionUpdate,
    TrialCreate,
    TrialRead,
    TrialStatusResponse,
    TrialUpdate,
    UpgradeRequest,
)
from aiportal.schemas.generation import (
    GenerateRequest,
    GenerationOptionsResponse,
    GenerationResponse,
    OptionSchema,
)
from aiportal.schemas.usage import (
    HistoryResponse,
    MonthUsageSchema,
    PlanRefSchema,
    UsageRecordCreate,
    UsageRecordRead,
    UsageSnapshotSchema,
    UsageSummaryResponse,
)

__all__ = [
    "EntitlementResponse",
    "GenerateRequest",
    "GenerationOptionsResponse",
    "GenerationResponse",
    "HistoryResponse",
    "MonthUsageSchema",
    "OptionSchema",
    "PlanCreate",
    "PlanRefSchema",
    "ServiceDefinitionCreate",
    "ServiceLimitsSchema",
    "SubscriptionCreate",
    "SubscriptionRead",
    "SubscriptionUpdate",
    "TrialCreate",
    "TrialRead",
    "TrialStatusResponse",
    "TrialUpdate",
    "UpgradeRequest",
    "UsageRecordCreate",
    "UsageRecordRead",
    "UsageSnapshotSchema",
    "UsageSummaryResponse",
]
