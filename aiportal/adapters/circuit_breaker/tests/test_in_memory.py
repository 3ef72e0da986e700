"""Unit tests for InMemoryCircuitBreaker."""

import time

import pytest

from aiportal.adapters.circuit_breaker.in_memory import InMemoryCircuitBreaker

PROVIDER = "openai/gpt-3.5-turbo"


class TestInitialState:
    @pytest.mark.asyncio
    async def test_available_by_default(self):
        cb = InMemoryCircuitBreaker()
        assert await cb.is_available(PROVIDER) is True

    def test_nothing_tripped(self):
        assert InMemoryCircuitBreaker().tripped_providers == {}


class TestRecordFailure:
    @pytest.mark.asyncio
    async def test_failure_trips_provider(self):
        cb = InMemoryCircuitBreaker()

        await cb.record_failure(PROVIDER)

        assert await cb.is_available(PROVIDER) is False
        assert PROVIDER in cb.tripped_providers

    @pytest.mark.asyncio
    async def test_other_provider_unaffected(self):
        cb = InMemoryCircuitBreaker()

        await cb.record_failure(PROVIDER)

        assert await cb.is_available("openrouter/qwen") is True


class TestCooldown:
    @pytest.mark.asyncio
    async def test_available_after_cooldown(self):
        cb = InMemoryCircuitBreaker(cooldown_seconds=0.05)
        await cb.record_failure(PROVIDER)

        cb._failures[PROVIDER] = time.monotonic() - 1.0

        assert await cb.is_available(PROVIDER) is True
        assert PROVIDER not in cb._failures

    @pytest.mark.asyncio
    async def test_refailure_restarts_cooldown(self):
        cb = InMemoryCircuitBreaker(cooldown_seconds=60)
        await cb.record_failure(PROVIDER)
        cb._failures[PROVIDER] = time.monotonic() - 59

        await cb.record_failure(PROVIDER)

        assert cb.tripped_providers[PROVIDER] < 1.0


class TestRecordSuccess:
    @pytest.mark.asyncio
    async def test_success_clears_failure(self):
        cb = InMemoryCircuitBreaker()
        await cb.record_failure(PROVIDER)

        await cb.record_success(PROVIDER)

        assert await cb.is_available(PROVIDER) is True

    @pytest.mark.asyncio
    async def test_success_without_failure_is_noop(self):
        cb = InMemoryCircuitBreaker()

        await cb.record_success(PROVIDER)

        assert cb.tripped_providers == {}
