"""Usage ledger model."""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from aiportal.models._base import Model


class UsageRecord(Model):
    """One row per attempted metered operation. Never updated after insert.

    Quota sums only consider rows with ``success`` set; failed attempts are
    kept for audit.
    """

    __tablename__ = "usage_record"
    __table_args__ = (
        Index("ix_usage_record_owner_service_requested", "owner_id", "service_id", "requested_at"),
    )

    owner_id: Mapped[uuid.UUID] = mapped_column(nullable=False)
    service_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("service_definition.id", ondelete="CASCADE"), nullable=False
    )

    # Request snapshot
    request_type: Mapped[str] = mapped_column(String(50), nullable=False)
    request_input: Mapped[str] = mapped_column(Text, nullable=False)
    request_parameters: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)
    requested_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    # Response snapshot
    success: Mapped[bool] = mapped_column(Boolean, nullable=False)
    output: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    words_generated: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    images_generated: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    response_truncated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    error_code: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    responded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    model_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    duration_ms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
