"""Unit tests for NotificationEmitter and the usage-warning helpers."""

import asyncio
from uuid import UUID

import pytest

from aiportal.adapters.realtime.in_memory import InMemoryConnectionRegistry
from aiportal.domains.notifications.emitter import NotificationEmitter
from aiportal.domains.notifications.types import (
    NotificationKind,
    WarningStage,
    should_warn,
    usage_warning_message,
    usage_warning_payload,
)
from aiportal.domains.usage.types import UsageSnapshot

OWNER_ID = UUID("00000000-0000-0000-0000-000000000001")


class _ExplodingPush(InMemoryConnectionRegistry):
    async def emit_to_user(self, owner_id, event, payload):
        raise ConnectionError("socket gone")


class _StalledPush(InMemoryConnectionRegistry):
    async def emit_to_user(self, owner_id, event, payload):
        await asyncio.sleep(10)
        return True


class TestNotify:
    @pytest.mark.asyncio
    async def test_delivers_to_connected_owner(self):
        registry = InMemoryConnectionRegistry()
        connection = await registry.connect(str(OWNER_ID))
        emitter = NotificationEmitter(registry)

        delivered = await emitter.notify(
            OWNER_ID, NotificationKind.GENERATION_STARTED, {"service": "ai_text_writer"}
        )

        assert delivered is True
        message = await connection.receive(timeout=0.1)
        assert message["event"] == "generation_started"
        assert message["data"] == {"service": "ai_text_writer"}

    @pytest.mark.asyncio
    async def test_not_connected_is_noop(self):
        emitter = NotificationEmitter(InMemoryConnectionRegistry())

        assert await emitter.notify(OWNER_ID, NotificationKind.USAGE_WARNING) is False

    @pytest.mark.asyncio
    async def test_push_error_never_raises(self):
        emitter = NotificationEmitter(_ExplodingPush())

        assert await emitter.notify(OWNER_ID, NotificationKind.USAGE_WARNING, {}) is False

    @pytest.mark.asyncio
    async def test_stalled_push_times_out(self):
        emitter = NotificationEmitter(_StalledPush(), timeout_seconds=0.01)

        assert await emitter.notify(OWNER_ID, NotificationKind.USAGE_WARNING, {}) is False


class TestUsageWarning:
    def test_below_threshold(self):
        assert should_warn(UsageSnapshot(used=399, limit=500)) is False

    def test_at_threshold(self):
        snapshot = UsageSnapshot(used=400, limit=500)

        assert should_warn(snapshot) is True
        assert usage_warning_message(snapshot) == "You've used 80% of your daily limit."

    def test_critical_tier_message(self):
        snapshot = UsageSnapshot(used=480, limit=500)

        assert usage_warning_message(snapshot) == "You've used 96% of your daily limit!"

    def test_payload(self):
        payload = usage_warning_payload(
            UsageSnapshot(used=450, limit=500), "ai_text_writer", WarningStage.POST_COMPLETION
        )

        assert payload["stage"] == "post_completion"
        assert payload["percentage"] == 90
        assert payload["usage"] == {"used": 450, "limit": 500, "remaining": 50}
