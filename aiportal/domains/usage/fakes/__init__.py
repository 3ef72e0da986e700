"""In-memory fakes for the usage domain."""

from aiportal.domains.usage.fakes.repository import FakeUsageRecordRepository

__all__ = ["FakeUsageRecordRepository"]
