"""Subscription model."""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from aiportal.models._base import Model


class Subscription(Model):
    """A paid subscription.

    One row per owner is authoritative; rows are status-transitioned, never
    deleted. ``limits`` is a snapshot of the plan's feature blocks taken when
    the subscription was created or changed plan.
    """

    __tablename__ = "subscription"

    owner_id: Mapped[uuid.UUID] = mapped_column(nullable=False, index=True)
    plan_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("plan.id", ondelete="SET NULL"), nullable=True
    )
    plan_name: Mapped[str] = mapped_column(String(50), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    billing_cycle: Mapped[str] = mapped_column(String(10), nullable=False, default="monthly")
    current_period_start: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    current_period_end: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    cancel_at_period_end: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    external_subscription_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    limits: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)
    usage_summary: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)
