"""Unit tests for PubSubConnectionRegistry over the fake PubSub."""

import pytest

from aiportal.adapters.pubsub.fake import FakePubSub
from aiportal.adapters.realtime import PubSubConnectionRegistry
from aiportal.adapters.realtime.pubsub import USER_NAMESPACE
from aiportal.core.protocols.realtime import CONNECTION_REPLACED

OWNER = "owner-1"


@pytest.fixture
def pubsub():
    return FakePubSub()


@pytest.fixture
def registry(pubsub):
    return PubSubConnectionRegistry(pubsub)


async def _next_event(connection):
    """Skip control messages addressed to the connection itself."""
    for _ in range(5):
        message = await connection.receive(timeout=0.05)
        if message is not None:
            return message
    return None


class TestDelivery:
    @pytest.mark.asyncio
    async def test_emit_to_connected_owner(self, registry):
        connection = await registry.connect(OWNER)

        delivered = await registry.emit_to_user(OWNER, "generation_started", {"service": "x"})

        assert delivered is True
        message = await _next_event(connection)
        assert message["event"] == "generation_started"
        assert message["data"] == {"service": "x"}

    @pytest.mark.asyncio
    async def test_emit_without_subscriber(self, registry, pubsub):
        assert await registry.emit_to_user(OWNER, "usage_warning", {}) is False
        assert pubsub.published[(USER_NAMESPACE, OWNER)][0]["event"] == "usage_warning"

    @pytest.mark.asyncio
    async def test_role_channel(self, registry):
        connection = await registry.connect(OWNER, role="admin")

        assert await registry.emit_to_role("admin", "maintenance", {}) == 1
        assert (await _next_event(connection))["event"] == "maintenance"

    @pytest.mark.asyncio
    async def test_broadcast(self, registry):
        await registry.connect("a")
        await registry.connect("b")

        assert await registry.emit_to_all("announcement", {}) == 2


class TestPresence:
    @pytest.mark.asyncio
    async def test_connect_marks_presence(self, registry):
        await registry.connect(OWNER)

        assert await registry.is_connected(OWNER) is True

    @pytest.mark.asyncio
    async def test_close_clears_presence(self, registry):
        connection = await registry.connect(OWNER)

        await connection.close()

        assert await registry.is_connected(OWNER) is False


class TestReplacement:
    @pytest.mark.asyncio
    async def test_second_connection_evicts_first(self, registry, pubsub):
        first = await registry.connect(OWNER)
        second = await registry.connect(OWNER)

        message = await _next_event(first)

        assert message["event"] == CONNECTION_REPLACED
        assert first.closed
        assert not second.closed
        assert await registry.is_connected(OWNER) is True

    @pytest.mark.asyncio
    async def test_own_control_message_is_ignored(self, registry):
        connection = await registry.connect(OWNER)

        assert await connection.receive(timeout=0.01) is None
        assert not connection.closed
