"""Fake text generator for testing.

Scriptable: set ``content`` for the happy path, ``fail_with`` to raise,
``fail_after`` to break a stream mid-flight, ``report_failure`` to return
``success=False``, ``gate`` to hold a call until the test releases it, and
``stall_after`` to leave a stream hanging after that many fragments.
"""

import asyncio
from typing import AsyncIterator, Optional

from aiportal.adapters.generators.mock import split_fragments
from aiportal.domains.generation.types import ContentType, GenerationOptions, GenerationResult
from aiportal.domains.usage.types import count_words

DEFAULT_CONTENT = "Fresh words about the topic you asked for"


class FakeTextGenerator:
    """Test implementation of TextGeneratorProtocol.

    Usage:
        generator = FakeTextGenerator(content="one two three")
        generator.fail_after = 2
        generator.fail_with = GeneratorError("upstream dropped")
    """

    def __init__(self, content: str = DEFAULT_CONTENT, *, model_id: str = "fake-model") -> None:
        """Initialize with the content every call produces."""
        self.content = content
        self._model_id = model_id
        self.fragments: Optional[list[str]] = None
        self.fail_with: Optional[Exception] = None
        self.fail_after: Optional[int] = None
        self.report_failure: Optional[tuple[str, str]] = None
        self.gate: Optional[asyncio.Event] = None
        self.stall_after: Optional[int] = None
        self.started = asyncio.Event()
        self.calls: list[tuple[str, str, ContentType, GenerationOptions]] = []
        self.closed_streams = 0

    @property
    def model_id(self) -> str:
        return self._model_id

    def call_count(self, method: Optional[str] = None) -> int:
        """Number of calls, optionally filtered to ``generate`` or ``stream``."""
        return sum(1 for name, *_ in self.calls if method is None or name == method)

    async def generate(
        self, prompt: str, content_type: ContentType, options: GenerationOptions
    ) -> GenerationResult:
        self.calls.append(("generate", prompt, content_type, options))
        self.started.set()
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_with is not None:
            raise self.fail_with
        if self.report_failure is not None:
            message, code = self.report_failure
            return GenerationResult(
                success=False, model_id=self._model_id, error=message, error_code=code
            )
        return GenerationResult(
            success=True,
            content=self.content,
            words_generated=count_words(self.content),
            model_id=self._model_id,
            duration_ms=5,
        )

    async def stream(
        self, prompt: str, content_type: ContentType, options: GenerationOptions
    ) -> AsyncIterator[str]:
        self.calls.append(("stream", prompt, content_type, options))
        self.started.set()
        fragments = self.fragments if self.fragments is not None else split_fragments(self.content)
        try:
            if self.gate is not None:
                await self.gate.wait()
            for i, fragment in enumerate(fragments):
                if self.fail_with is not None and i == (self.fail_after or 0):
                    raise self.fail_with
                if i == self.stall_after:
                    await asyncio.Event().wait()
                yield fragment
            if self.fail_with is not None and (self.fail_after or 0) >= len(fragments):
                raise self.fail_with
        finally:
            self.closed_streams += 1
