"""Tests for stream event rendering and per-owner locks."""

import asyncio
import json

import pytest

from aiportal.domains.generation.events import ChunkEvent, ErrorEvent
from aiportal.domains.generation.locks import OwnerLocks
from aiportal.domains.usage.exceptions import EstimatedOverageError, UsageLimitReachedError


def _body(event) -> dict:
    sse = event.to_sse()
    assert sse.startswith("data: ") and sse.endswith("\n\n")
    return json.loads(sse[len("data: ") : -2])


class TestEvents:
    def test_chunk(self):
        assert _body(ChunkEvent(chunk="Hi ")) == {"chunk": "Hi ", "partial": True}

    def test_limit_reached(self):
        denial = UsageLimitReachedError(service="ai_text_writer", used=500, limit=500)

        body = _body(ErrorEvent.from_denial(denial))

        assert body["limitExceeded"] is True
        assert "limitWarning" not in body
        assert body["usage"] == {"used": 500, "limit": 500, "remaining": 0}
        assert body["error"].startswith("Daily word limit reached (500 words)")

    def test_estimated_overage(self):
        denial = EstimatedOverageError(
            service="ai_text_writer", used=450, limit=500, estimated_cost=400
        )

        body = _body(ErrorEvent.from_denial(denial))

        assert body["limitWarning"] is True
        assert "limitExceeded" not in body

    def test_plain_error_omits_empty_fields(self):
        assert _body(ErrorEvent(error="Service unavailable")) == {"error": "Service unavailable"}


class TestOwnerLocks:
    @pytest.mark.asyncio
    async def test_same_key_is_exclusive(self):
        locks = OwnerLocks()
        order = []

        async def worker(name):
            async with locks.hold("owner", "svc"):
                order.append(f"{name}-in")
                await asyncio.sleep(0)
                order.append(f"{name}-out")

        await asyncio.gather(worker("a"), worker("b"))

        assert order == ["a-in", "a-out", "b-in", "b-out"]

    @pytest.mark.asyncio
    async def test_different_keys_interleave(self):
        locks = OwnerLocks()
        release = asyncio.Event()

        async def holder():
            async with locks.hold("owner-1", "svc"):
                await release.wait()

        task = asyncio.create_task(holder())
        await asyncio.sleep(0)

        async with locks.hold("owner-2", "svc"):
            assert locks.is_held("owner-1", "svc")

        release.set()
        await task

    @pytest.mark.asyncio
    async def test_entries_dropped_when_idle(self):
        locks = OwnerLocks()

        async with locks.hold("owner", "svc"):
            assert len(locks) == 1

        assert len(locks) == 0
        assert not locks.is_held("owner", "svc")

    @pytest.mark.asyncio
    async def test_released_on_error(self):
        locks = OwnerLocks()

        with pytest.raises(ValueError):
            async with locks.hold("owner", "svc"):
                raise ValueError("boom")

        assert len(locks) == 0
