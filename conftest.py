"""Root conftest for pytest configuration and shared fixtures.

Loaded before every colocated test package under aiportal/, so the fixtures
below are available to domain, adapter and API tests alike.
"""

import os

import pytest

# Register pytest-asyncio plugin at the root level
pytest_plugins = ("pytest_asyncio",)

# ---------------------------------------------------------------------------
# Environment variables - must be set before any aiportal module import
# Uses setdefault so real env vars (CI) are never overridden.
# ---------------------------------------------------------------------------
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("POSTGRES_HOST", "localhost")
os.environ.setdefault("POSTGRES_USER", "test_user")
os.environ.setdefault("POSTGRES_PASSWORD", "test_password")
os.environ.setdefault("POSTGRES_DB", "test_db")
os.environ.setdefault("OPENAI_API_KEY", "")
os.environ.setdefault("REALTIME_BACKEND", "memory")
os.environ.setdefault("CREATE_TABLES_ON_STARTUP", "false")
os.environ.setdefault("SEED_CATALOG_ON_STARTUP", "false")


# ---------------------------------------------------------------------------
# Shared fake fixtures - individual protocol fakes
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_circuit_breaker():
    """Fake CircuitBreaker that tracks provider state."""
    from aiportal.adapters.circuit_breaker.fake import FakeCircuitBreaker

    return FakeCircuitBreaker()


@pytest.fixture
def fake_text_generator():
    """Fake text generator returning canned content."""
    from aiportal.adapters.generators.fake import FakeTextGenerator

    return FakeTextGenerator()


@pytest.fixture
def fake_notifier():
    """Fake NotificationEmitter that records every notification."""
    from aiportal.domains.notifications.fakes.emitter import FakeNotificationEmitter

    return FakeNotificationEmitter()


@pytest.fixture
def live_connections():
    """Real in-process registry; it has no external dependencies."""
    from aiportal.adapters.realtime import InMemoryConnectionRegistry

    return InMemoryConnectionRegistry()


@pytest.fixture
def fake_service_repo():
    """Service catalog fake seeded with an active text writer."""
    from aiportal.domains.catalog.fakes.repository import (
        FakeServiceDefinitionRepository,
        make_service_definition,
    )

    repo = FakeServiceDefinitionRepository()
    repo.seed(make_service_definition())
    return repo


@pytest.fixture
def fake_usage_repo():
    """In-memory usage record store."""
    from aiportal.domains.usage.fakes.repository import FakeUsageRecordRepository

    return FakeUsageRecordRepository()


@pytest.fixture
def fake_subscription_repo():
    from aiportal.domains.entitlements.fakes.repository import FakeSubscriptionRepository

    return FakeSubscriptionRepository()


@pytest.fixture
def fake_trial_repo():
    from aiportal.domains.entitlements.fakes.repository import FakeTrialRepository

    return FakeTrialRepository()


@pytest.fixture
def fake_plan_repo():
    from aiportal.domains.entitlements.fakes.repository import FakePlanRepository

    return FakePlanRepository()


# ---------------------------------------------------------------------------
# Test container - real domain services over fakes
# ---------------------------------------------------------------------------


@pytest.fixture
def test_container(
    fake_circuit_breaker,
    fake_text_generator,
    fake_notifier,
    live_connections,
    fake_service_repo,
    fake_usage_repo,
    fake_subscription_repo,
    fake_trial_repo,
    fake_plan_repo,
):
    """A Container whose IO boundaries are all fakes.

    Domain services are the real implementations so endpoint tests exercise
    the same metering logic production does. For partial overrides use
    container.replace():
        container = test_container.replace(text_generator=other_generator)
    """
    from aiportal.core.container import Container
    from aiportal.domains.catalog.service import ServiceCatalog
    from aiportal.domains.entitlements.resolver import EntitlementResolver
    from aiportal.domains.entitlements.subscription_service import SubscriptionService
    from aiportal.domains.entitlements.trial_service import TrialService
    from aiportal.domains.entitlements.types import GrantPolicy, free_tier_limits
    from aiportal.domains.generation.locks import OwnerLocks
    from aiportal.domains.generation.service import MeteredGenerationService
    from aiportal.domains.usage.ledger import UsageLedger
    from aiportal.domains.usage.quota import QuotaEnforcer

    catalog = ServiceCatalog(fake_service_repo)
    usage_ledger = UsageLedger(fake_usage_repo)
    quota_enforcer = QuotaEnforcer(usage_ledger)
    resolver = EntitlementResolver(
        subscription_repo=fake_subscription_repo,
        trial_repo=fake_trial_repo,
        plan_repo=fake_plan_repo,
        policy=GrantPolicy.FREE_TIER_FALLBACK,
        free_tier=free_tier_limits(words_per_day=500, requests_per_day=10, images_per_day=3),
    )
    trial_service = TrialService(fake_trial_repo, fake_plan_repo, fake_notifier, duration_days=7)
    subscription_service = SubscriptionService(
        fake_subscription_repo, fake_plan_repo, trial_service, fake_notifier
    )
    generation_service = MeteredGenerationService(
        resolver=resolver,
        enforcer=quota_enforcer,
        ledger=usage_ledger,
        catalog=catalog,
        generator=fake_text_generator,
        notifier=fake_notifier,
        locks=OwnerLocks(),
    )

    return Container(
        live_connections=live_connections,
        notifier=fake_notifier,
        circuit_breaker=fake_circuit_breaker,
        text_generator=fake_text_generator,
        catalog=catalog,
        usage_ledger=usage_ledger,
        quota_enforcer=quota_enforcer,
        entitlement_resolver=resolver,
        trial_service=trial_service,
        subscription_service=subscription_service,
        generation_service=generation_service,
    )
