"""Quota enforcer - decides whether a metered request may start.

Given a grant, a service and a limit field, computes today's successful
consumption and returns one of four observable outcomes:

- ``LIMIT_REACHED``: used >= cap. The generator must not be invoked.
- ``ESTIMATED_OVERAGE``: used + estimate > cap for length-estimated services.
  Reaching the cap exactly is allowed.
- ``ALLOWED`` with ``warning`` set when used / cap >= 80%.
- ``ALLOWED`` without warning.

A resolved cap of exactly zero is replaced by a fixed per-field fallback so a
misconfigured plan degrades to a small quota instead of locking users out.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Mapping, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from aiportal.core.logging import logger
from aiportal.domains.entitlements.exceptions import ServiceNotEntitledError
from aiportal.domains.usage.protocols import QuotaEnforcerProtocol, UsageLedgerProtocol
from aiportal.domains.usage.types import (
    WARNING_THRESHOLD,
    LengthClass,
    LimitField,
    QuotaCheck,
    QuotaDecision,
    ServiceType,
    estimate_cost,
    is_length_metered,
    usage_ratio,
)

if TYPE_CHECKING:
    from aiportal.domains.catalog.types import ServiceRef
    from aiportal.domains.entitlements.types import Grant

DEFAULT_ZERO_CAP_FALLBACKS: Mapping[LimitField, int] = {
    LimitField.WORDS_PER_DAY: 500,
    LimitField.IMAGES_PER_DAY: 3,
    LimitField.REQUESTS_PER_DAY: 10,
}


class QuotaEnforcer(QuotaEnforcerProtocol):
    """Stateless quota pre-check over the usage ledger."""

    def __init__(
        self,
        ledger: UsageLedgerProtocol,
        zero_cap_fallbacks: Optional[Mapping[LimitField, int]] = None,
    ) -> None:
        """Initialize with the ledger and the zero-cap fallback table."""
        self._ledger = ledger
        self._fallbacks = dict(zero_cap_fallbacks or DEFAULT_ZERO_CAP_FALLBACKS)

    def resolve_cap(
        self, grant: "Grant", service_type: ServiceType, limit_field: LimitField
    ) -> int:
        """Cap for the service and field.

        Raises:
            ServiceNotEntitledError: the grant has no enabled block for the service.
        """
        limits = grant.limits_for(service_type)
        if limits is None or not limits.enabled:
            raise ServiceNotEntitledError(owner_id=grant.owner_id, service=service_type.value)

        cap = limits.cap(limit_field)
        if cap == 0:
            fallback = self._fallbacks[limit_field]
            logger.with_context(
                owner_id=grant.owner_id, plan=grant.plan_name, service=service_type.value
            ).warning(
                f"[QuotaEnforcer] Zero {limit_field.value} cap on '{grant.plan_name}', "
                f"using fallback {fallback}"
            )
            return fallback
        return cap

    async def check_and_estimate(
        self,
        db: AsyncSession,
        grant: "Grant",
        service: "ServiceRef",
        limit_field: LimitField,
        requested_length: Optional[LengthClass] = None,
        *,
        now: Optional[datetime] = None,
    ) -> QuotaCheck:
        """Compute today's usage and decide whether the request may proceed."""
        max_allowed = self.resolve_cap(grant, service.service_type, limit_field)
        used_today = await self._ledger.used_today(
            db,
            owner_id=grant.owner_id,
            service_id=service.id,
            field=limit_field.consumption,
            now=now,
        )

        estimated = (
            estimate_cost(requested_length)
            if is_length_metered(service.service_type, limit_field)
            else 0
        )

        if used_today >= max_allowed:
            decision = QuotaDecision.LIMIT_REACHED
        elif estimated and used_today + estimated > max_allowed:
            decision = QuotaDecision.ESTIMATED_OVERAGE
        else:
            decision = QuotaDecision.ALLOWED

        return QuotaCheck(
            owner_id=grant.owner_id,
            service_type=service.service_type,
            limit_field=limit_field,
            used_today=used_today,
            max_allowed=max_allowed,
            estimated_cost=estimated,
            decision=decision,
            warning=(
                decision == QuotaDecision.ALLOWED
                and usage_ratio(used_today, max_allowed) >= WARNING_THRESHOLD
            ),
        )
