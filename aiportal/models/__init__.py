"""Models for the application."""

from aiportal.models._base import Base, Model
from aiportal.models.plan import Plan
from aiportal.models.service_definition import ServiceDefinition
from aiportal.models.subscription import Subscription
from aiportal.models.trial import Trial
from aiportal.models.usage_record import UsageRecord

__all__ = [
    "Base",
    "Model",
    "Plan",
    "ServiceDefinition",
    "Subscription",
    "Trial",
    "UsageRecord",
]
