"""Subscription plan catalog model."""

from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, Integer, Numeric, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from aiportal.models._base import Model


class Plan(Model):
    """A purchasable tier.

    ``features`` holds one block per service, keyed by service type::

        {"ai_text_writer": {"enabled": true, "words_per_day": 10000, "requests_per_day": 100}}

    ``trial`` holds optional trial-conferral parameters::

        {"enabled": true, "duration_days": 7, "limits": {...same shape as features...}}
    """

    __tablename__ = "plan"

    name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    display_name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    plan_type: Mapped[str] = mapped_column(String(20), nullable=False)
    price_monthly: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=0)
    price_yearly: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=0)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")
    features: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)
    trial: Mapped[Optional[dict]] = mapped_column(JSONB, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
