"""CRUD singletons used by the domain repositories."""

from aiportal.crud.crud_plan import plan
from aiportal.crud.crud_service_definition import service_definition
from aiportal.crud.crud_subscription import subscription
from aiportal.crud.crud_trial import trial
from aiportal.crud.crud_usage_record import usage_record

__all__ = [
    "plan",
    "service_definition",
    "subscription",
    "trial",
    "usage_record",
]
