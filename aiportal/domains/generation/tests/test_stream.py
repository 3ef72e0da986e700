"""Tests for MeteredGenerationService.generate_stream (incremental mode)."""

import asyncio
import json

import anyio
import pytest

from aiportal.domains.generation.events import ChunkEvent, DoneEvent, ErrorEvent
from aiportal.domains.generation.exceptions import GenerationValidationError, GeneratorError
from aiportal.domains.generation.tests.conftest import (
    DEFAULT_OWNER_ID,
    PROMPT,
    _drain,
    _make_service,
    _seed_usage,
    _words,
)
from aiportal.domains.notifications.types import NotificationKind


class TestHappyPath:
    @pytest.mark.asyncio
    async def test_chunks_then_done(self, db):
        h = _make_service(content="one two three")

        events = await _drain(h.service.generate_stream(db, DEFAULT_OWNER_ID, PROMPT, "email"))

        assert [type(e) for e in events] == [ChunkEvent, ChunkEvent, ChunkEvent, DoneEvent]
        assert "".join(e.chunk for e in events[:-1]) == "one two three"
        done = events[-1]
        assert done.full_text == "one two three"
        assert done.words_generated == 3
        assert done.content_type == "email"
        assert done.usage.model_dump() == {"used": 3, "limit": 500, "remaining": 497}

    @pytest.mark.asyncio
    async def test_meters_full_text_once(self, db):
        h = _make_service(content=_words(40))

        await _drain(h.service.generate_stream(db, DEFAULT_OWNER_ID, PROMPT, "general"))

        assert len(h.records.records) == 1
        assert h.successes[0].words_generated == 40
        assert h.successes[0].response_truncated is False
        assert h.successes[0].output == _words(40)

    @pytest.mark.asyncio
    async def test_empty_fragments_are_skipped(self, db):
        h = _make_service()
        h.generator.fragments = ["Hello", "", " world"]

        events = await _drain(h.service.generate_stream(db, DEFAULT_OWNER_ID, PROMPT, "general"))

        assert [e.chunk for e in events if isinstance(e, ChunkEvent)] == ["Hello", " world"]

    @pytest.mark.asyncio
    async def test_sse_rendering_uses_camel_case(self, db):
        h = _make_service(content="one two")

        events = await _drain(h.service.generate_stream(db, DEFAULT_OWNER_ID, PROMPT, "general"))
        body = json.loads(events[-1].to_sse()[len("data: ") :])

        assert body["done"] is True
        assert body["fullText"] == "one two"
        assert body["wordsGenerated"] == 2
        assert body["contentType"] == "general"

    @pytest.mark.asyncio
    async def test_notifications(self, db):
        h = _make_service(content="one two")

        await _drain(h.service.generate_stream(db, DEFAULT_OWNER_ID, PROMPT, "general"))

        assert h.notifier.kinds() == [
            NotificationKind.GENERATION_STARTED,
            NotificationKind.GENERATION_COMPLETED,
        ]


class TestValidation:
    def test_raises_before_any_event(self, db):
        h = _make_service()

        with pytest.raises(GenerationValidationError):
            h.service.generate_stream(db, DEFAULT_OWNER_ID, "tiny", "general")

        assert h.generator.call_count() == 0


class TestDenial:
    @pytest.mark.asyncio
    async def test_limit_reached_is_single_error_event(self, db):
        h = _make_service()
        _seed_usage(h, 500)

        events = await _drain(h.service.generate_stream(db, DEFAULT_OWNER_ID, PROMPT, "general"))

        assert len(events) == 1
        assert isinstance(events[0], ErrorEvent)
        assert events[0].limit_exceeded is True
        assert events[0].usage.remaining == 0
        assert h.generator.call_count() == 0

    @pytest.mark.asyncio
    async def test_estimated_overage_flags_warning(self, db):
        h = _make_service()
        _seed_usage(h, 450)

        events = await _drain(
            h.service.generate_stream(db, DEFAULT_OWNER_ID, PROMPT, "general", length="long")
        )

        assert events[0].limit_warning is True
        assert events[0].limit_exceeded is None
        assert h.generator.call_count() == 0

    @pytest.mark.asyncio
    async def test_inactive_service_is_error_event(self, db):
        h = _make_service()
        h.text_service.status = "inactive"

        events = await _drain(h.service.generate_stream(db, DEFAULT_OWNER_ID, PROMPT, "general"))

        assert len(events) == 1
        assert isinstance(events[0], ErrorEvent)


class TestFailures:
    @pytest.mark.asyncio
    async def test_mid_stream_failure_meters_partial_text(self, db):
        h = _make_service(content="one two three four")
        h.generator.fail_with = GeneratorError("upstream dropped", code="CONNECTION_ERROR")
        h.generator.fail_after = 2

        events = await _drain(h.service.generate_stream(db, DEFAULT_OWNER_ID, PROMPT, "general"))

        assert [type(e) for e in events] == [ChunkEvent, ChunkEvent, ErrorEvent]
        assert events[-1].code == "CONNECTION_ERROR"
        assert events[-1].usage.used == 2
        assert len(h.records.records) == 1
        assert h.successes[0].words_generated == 2
        assert h.successes[0].response_truncated is True

    @pytest.mark.asyncio
    async def test_failure_before_first_fragment_writes_failure_record(self, db):
        h = _make_service()
        h.generator.fail_with = GeneratorError("no route", code="CONNECTION_ERROR")

        events = await _drain(h.service.generate_stream(db, DEFAULT_OWNER_ID, PROMPT, "general"))

        assert [type(e) for e in events] == [ErrorEvent]
        assert h.successes == []
        assert h.failures[0].error_code == "CONNECTION_ERROR"
        assert h.text_service.failed_requests == 1

    @pytest.mark.asyncio
    async def test_whitespace_only_output_is_not_metered_as_success(self, db):
        h = _make_service()
        h.generator.fragments = [" ", "\n"]

        events = await _drain(h.service.generate_stream(db, DEFAULT_OWNER_ID, PROMPT, "general"))

        assert isinstance(events[-1], DoneEvent)
        assert events[-1].words_generated == 0
        assert h.records.records == []

    @pytest.mark.asyncio
    async def test_ledger_failure_still_completes_stream(self, db):
        h = _make_service(content="one two")
        h.records.fail_on_create = RuntimeError("db down")

        events = await _drain(h.service.generate_stream(db, DEFAULT_OWNER_ID, PROMPT, "general"))

        assert isinstance(events[-1], DoneEvent)
        assert NotificationKind.GENERATION_COMPLETED not in h.notifier.kinds()


class TestClientDisconnect:
    @pytest.mark.asyncio
    async def test_closing_early_meters_delivered_text(self, db):
        h = _make_service(content="one two three four")
        stream = h.service.generate_stream(db, DEFAULT_OWNER_ID, PROMPT, "general")

        first = await stream.__anext__()
        second = await stream.__anext__()
        await stream.aclose()

        assert (first.chunk, second.chunk) == ("one ", "two ")
        assert len(h.records.records) == 1
        assert h.successes[0].words_generated == 2
        assert h.successes[0].response_truncated is True
        assert h.generator.closed_streams == 1

    @pytest.mark.asyncio
    async def test_lock_released_after_disconnect(self, db):
        h = _make_service(content="one two three")
        stream = h.service.generate_stream(db, DEFAULT_OWNER_ID, PROMPT, "general")

        await stream.__anext__()
        assert h.locks.is_held(DEFAULT_OWNER_ID, h.text_service.id)
        await stream.aclose()

        assert len(h.locks) == 0


class TestCancelledConsumer:
    """The server cancels the response task while it waits on the next fragment."""

    @pytest.mark.asyncio
    async def test_partial_text_recorded_before_lock_is_released(self, db):
        h = _make_service(content="one two three four")
        h.generator.stall_after = 2
        h.records.create_delay = 0.05
        stream = h.service.generate_stream(db, DEFAULT_OWNER_ID, PROMPT, "general")
        received = []
        two_chunks = asyncio.Event()
        seen_by_next_request = []

        async def consume():
            async for event in stream:
                received.append(event)
                if len(received) == 2:
                    two_chunks.set()

        async def next_request():
            async with h.locks.hold(DEFAULT_OWNER_ID, h.text_service.id):
                seen_by_next_request.append(len(h.records.records))

        async with anyio.create_task_group() as tg:
            tg.start_soon(consume)
            await two_chunks.wait()
            waiter = asyncio.create_task(next_request())
            await asyncio.sleep(0)
            tg.cancel_scope.cancel()

        await waiter

        assert [e.chunk for e in received] == ["one ", "two "]
        assert seen_by_next_request == [1]
        assert h.successes[0].words_generated == 2
        assert h.successes[0].response_truncated is True
        assert len(h.locks) == 0
