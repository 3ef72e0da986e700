"""Unit tests for ServiceCatalog."""

from unittest.mock import AsyncMock

import pytest

from aiportal.domains.catalog.exceptions import ServiceUnavailableError
from aiportal.domains.catalog.fakes.repository import (
    FakeServiceDefinitionRepository,
    make_service_definition,
)
from aiportal.domains.catalog.service import ServiceCatalog
from aiportal.domains.usage.types import ServiceType


@pytest.fixture
def db():
    return AsyncMock()


@pytest.fixture
def repo():
    return FakeServiceDefinitionRepository()


class TestGetActive:
    @pytest.mark.asyncio
    async def test_returns_detached_ref(self, db, repo):
        definition = make_service_definition()
        repo.seed(definition)

        ref = await ServiceCatalog(repo).get_active(db, ServiceType.AI_TEXT_WRITER)

        assert ref.id == definition.id
        assert ref.service_type == ServiceType.AI_TEXT_WRITER

    @pytest.mark.asyncio
    async def test_missing_service(self, db, repo):
        with pytest.raises(ServiceUnavailableError):
            await ServiceCatalog(repo).get_active(db, ServiceType.AI_TEXT_WRITER)

    @pytest.mark.asyncio
    async def test_inactive_service(self, db, repo):
        repo.seed(make_service_definition(status="maintenance"))

        with pytest.raises(ServiceUnavailableError, match="ai_text_writer"):
            await ServiceCatalog(repo).get_active(db, ServiceType.AI_TEXT_WRITER)


class TestRecordAttempt:
    @pytest.mark.asyncio
    async def test_running_mean(self, db, repo):
        definition = make_service_definition()
        repo.seed(definition)
        catalog = ServiceCatalog(repo)

        await catalog.record_attempt(db, definition.id, success=True, consumption=100, duration_ms=200)
        await catalog.record_attempt(db, definition.id, success=False, duration_ms=400)

        assert definition.total_requests == 2
        assert definition.successful_requests == 1
        assert definition.failed_requests == 1
        assert definition.total_usage == 100
        assert definition.average_response_time_ms == 300

    @pytest.mark.asyncio
    async def test_failure_is_swallowed(self, db, repo):
        definition = make_service_definition()
        repo.seed(definition)
        repo.fail_on_increment = RuntimeError("deadlock")

        await ServiceCatalog(repo).record_attempt(db, definition.id, success=True)

        assert repo.call_count("increment_stats") == 1
