"""Container Factory.

All construction logic lives here. The factory reads settings and builds
the container with environment-appropriate implementations.

- Single place for all wiring decisions
- Broken wiring crashes at startup, not on the first request
- Testable: can unit test factory logic with explicit settings
"""

from aiportal.adapters.circuit_breaker import InMemoryCircuitBreaker
from aiportal.adapters.generators import (
    MockTextGenerator,
    OpenAITextGenerator,
    QuotaFallbackGenerator,
)
from aiportal.adapters.pubsub import RedisPubSub
from aiportal.adapters.realtime import InMemoryConnectionRegistry, PubSubConnectionRegistry
from aiportal.core.config import RealtimeBackend, Settings
from aiportal.core.container.container import Container
from aiportal.core.logging import logger
from aiportal.core.protocols import CircuitBreaker, LiveConnectionPush
from aiportal.domains.catalog.repository import ServiceDefinitionRepository
from aiportal.domains.catalog.service import ServiceCatalog
from aiportal.domains.entitlements.repository import (
    PlanRepository,
    SubscriptionRepository,
    TrialRepository,
)
from aiportal.domains.entitlements.resolver import EntitlementResolver
from aiportal.domains.entitlements.subscription_service import SubscriptionService
from aiportal.domains.entitlements.trial_service import TrialService
from aiportal.domains.entitlements.types import free_tier_limits
from aiportal.domains.generation.locks import OwnerLocks
from aiportal.domains.generation.protocols import TextGeneratorProtocol
from aiportal.domains.generation.service import MeteredGenerationService
from aiportal.domains.notifications.emitter import NotificationEmitter
from aiportal.domains.usage.ledger import UsageLedger
from aiportal.domains.usage.quota import QuotaEnforcer
from aiportal.domains.usage.repository import UsageRecordRepository
from aiportal.domains.usage.types import LimitField


def create_container(settings: Settings) -> Container:
    """Build container with environment-appropriate implementations.

    Args:
        settings: Application settings (from core/config)

    Returns:
        Fully constructed Container ready for use
    """
    # -----------------------------------------------------------------
    # Realtime
    # In-process registry for a single node, Redis pub/sub across nodes.
    # -----------------------------------------------------------------
    live_connections = _create_live_connections(settings)
    notifier = NotificationEmitter(
        live_connections, timeout_seconds=settings.NOTIFICATION_TIMEOUT_SECONDS
    )

    # -----------------------------------------------------------------
    # Text generator
    # Upstream with mock fallback on quota exhaustion, or mock alone.
    # -----------------------------------------------------------------
    circuit_breaker = _create_circuit_breaker(settings)
    text_generator = _create_text_generator(circuit_breaker, settings)

    # -----------------------------------------------------------------
    # Repositories (thin wrappers around crud singletons)
    # -----------------------------------------------------------------
    subscription_repo = SubscriptionRepository()
    trial_repo = TrialRepository()
    plan_repo = PlanRepository()

    # -----------------------------------------------------------------
    # Metering
    # -----------------------------------------------------------------
    catalog = ServiceCatalog(ServiceDefinitionRepository())
    usage_ledger = UsageLedger(UsageRecordRepository())
    quota_enforcer = QuotaEnforcer(
        usage_ledger,
        zero_cap_fallbacks={
            LimitField.WORDS_PER_DAY: settings.ZERO_CAP_FALLBACK_WORDS,
            LimitField.IMAGES_PER_DAY: settings.ZERO_CAP_FALLBACK_IMAGES,
            LimitField.REQUESTS_PER_DAY: settings.ZERO_CAP_FALLBACK_REQUESTS,
        },
    )

    # -----------------------------------------------------------------
    # Entitlements
    # -----------------------------------------------------------------
    entitlement_resolver = EntitlementResolver(
        subscription_repo=subscription_repo,
        trial_repo=trial_repo,
        plan_repo=plan_repo,
        policy=settings.GRANT_POLICY,
        free_tier=free_tier_limits(
            words_per_day=settings.FREE_TIER_WORDS_PER_DAY,
            requests_per_day=settings.FREE_TIER_REQUESTS_PER_DAY,
            images_per_day=settings.FREE_TIER_IMAGES_PER_DAY,
        ),
    )
    trial_service = TrialService(
        trial_repo, plan_repo, notifier, duration_days=settings.TRIAL_DURATION_DAYS
    )
    subscription_service = SubscriptionService(
        subscription_repo, plan_repo, trial_service, notifier
    )

    # -----------------------------------------------------------------
    # Metered generation
    # -----------------------------------------------------------------
    generation_service = MeteredGenerationService(
        resolver=entitlement_resolver,
        enforcer=quota_enforcer,
        ledger=usage_ledger,
        catalog=catalog,
        generator=text_generator,
        notifier=notifier,
        locks=OwnerLocks() if settings.SERIALIZE_METERED_REQUESTS else None,
    )

    return Container(
        live_connections=live_connections,
        notifier=notifier,
        circuit_breaker=circuit_breaker,
        text_generator=text_generator,
        catalog=catalog,
        usage_ledger=usage_ledger,
        quota_enforcer=quota_enforcer,
        entitlement_resolver=entitlement_resolver,
        trial_service=trial_service,
        subscription_service=subscription_service,
        generation_service=generation_service,
    )


# ---------------------------------------------------------------------------
# Private factory functions
# ---------------------------------------------------------------------------


def _create_live_connections(settings: Settings) -> LiveConnectionPush:
    """Pick the live-connection registry for REALTIME_BACKEND."""
    if settings.REALTIME_BACKEND == RealtimeBackend.REDIS:
        return PubSubConnectionRegistry(RedisPubSub())
    return InMemoryConnectionRegistry()


def _create_circuit_breaker(settings: Settings) -> CircuitBreaker:
    """Shared breaker remembering upstream quota exhaustion."""
    return InMemoryCircuitBreaker(cooldown_seconds=settings.TEXT_FALLBACK_COOLDOWN_SECONDS)


def _create_text_generator(
    circuit_breaker: CircuitBreaker, settings: Settings
) -> TextGeneratorProtocol:
    """Upstream generator wrapped with the mock fallback, or the mock alone.

    Without OPENAI_API_KEY every request is served by the mock generator.
    """
    mock = MockTextGenerator()
    if not settings.OPENAI_API_KEY:
        logger.warning("OPENAI_API_KEY not set, serving text generation from the mock generator")
        return mock

    upstream = OpenAITextGenerator(
        api_key=settings.OPENAI_API_KEY,
        model=settings.TEXT_MODEL,
        base_url=settings.OPENAI_BASE_URL,
        max_tokens=settings.TEXT_MAX_TOKENS,
        temperature=settings.TEXT_TEMPERATURE,
        timeout=settings.TEXT_TIMEOUT_SECONDS,
    )
    return QuotaFallbackGenerator(upstream, mock, circuit_breaker)
