"""Service catalog model."""

from typing import Optional

from sqlalchemy import BigInteger, Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from aiportal.models._base import Model


class ServiceDefinition(Model):
    """A metered capability offered to users, with aggregate statistics.

    Statistics are approximate counters updated after every attempt.
    """

    __tablename__ = "service_definition"

    service_type: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String(50), nullable=False, default="content")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")

    total_requests: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    successful_requests: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    failed_requests: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_usage: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    average_response_time_ms: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
