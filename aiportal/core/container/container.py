"""Dependency Injection Container.

The container is an immutable dataclass holding protocol implementations.
It has no construction logic; that belongs in the factory.

- Container serves, factory builds
- Fields are protocol types, so ``Inject(Protocol)`` can find them
- Tests construct it directly with fakes
"""

from dataclasses import dataclass, replace
from typing import Any

from aiportal.core.protocols import CircuitBreaker, LiveConnectionPush
from aiportal.domains.catalog.protocols import ServiceCatalogProtocol
from aiportal.domains.entitlements.protocols import (
    EntitlementResolverProtocol,
    SubscriptionServiceProtocol,
    TrialServiceProtocol,
)
from aiportal.domains.generation.protocols import (
    MeteredGenerationServiceProtocol,
    TextGeneratorProtocol,
)
from aiportal.domains.notifications.protocols import NotificationEmitterProtocol
from aiportal.domains.usage.protocols import QuotaEnforcerProtocol, UsageLedgerProtocol


@dataclass(frozen=True)
class Container:
    """Immutable container holding all protocol implementations.

    Usage:
        # FastAPI endpoints: pull individual protocols with Inject()
        from aiportal.api.deps import Inject

        async def generate(
            generation: MeteredGenerationServiceProtocol = Inject(MeteredGenerationServiceProtocol),
        ):
            ...

        # Testing: construct directly with fakes (see conftest.py test_container)
        test_container = Container(live_connections=InMemoryConnectionRegistry(), ...)
    """

    # Live-connection registry (SSE fan-out)
    live_connections: LiveConnectionPush

    # Best-effort push notifications on top of the registry
    notifier: NotificationEmitterProtocol

    # Upstream generator failover
    circuit_breaker: CircuitBreaker
    text_generator: TextGeneratorProtocol

    # Metering
    catalog: ServiceCatalogProtocol
    usage_ledger: UsageLedgerProtocol
    quota_enforcer: QuotaEnforcerProtocol

    # Entitlements
    entitlement_resolver: EntitlementResolverProtocol
    trial_service: TrialServiceProtocol
    subscription_service: SubscriptionServiceProtocol

    # Metered text generation, the service the text endpoints talk to
    generation_service: MeteredGenerationServiceProtocol

    def replace(self, **changes: Any) -> "Container":
        """Create a new container with some dependencies replaced.

            modified = container.replace(text_generator=FakeTextGenerator())
        """
        return replace(self, **changes)
