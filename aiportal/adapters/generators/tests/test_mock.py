"""Unit tests for MockTextGenerator."""

import pytest

from aiportal.adapters.generators.mock import (
    MOCK_CONTENT,
    MOCK_MODEL_ID,
    MockTextGenerator,
    split_fragments,
)
from aiportal.domains.generation.types import ContentType, GenerationOptions
from aiportal.domains.usage.types import count_words

PROMPT = "Launching our new product line"


def test_every_content_type_has_canned_text():
    assert set(MOCK_CONTENT) == set(ContentType)


class TestSplitFragments:
    def test_concatenates_back(self):
        text = "Subject: hi\n\nDear  friend,\nbye"
        assert "".join(split_fragments(text)) == text

    def test_one_word_per_fragment(self):
        assert split_fragments("a b  c") == ["a ", "b  ", "c"]

    def test_empty(self):
        assert split_fragments("") == []


class TestMockTextGenerator:
    @pytest.mark.asyncio
    async def test_generate_embeds_prompt(self):
        result = await MockTextGenerator().generate(
            PROMPT, ContentType.EMAIL, GenerationOptions()
        )

        assert result.success is True
        assert result.content.startswith(f"Subject: {PROMPT}")
        assert result.model_id == MOCK_MODEL_ID
        assert result.words_generated == count_words(result.content)

    @pytest.mark.asyncio
    async def test_stream_matches_generate(self):
        gen = MockTextGenerator()

        result = await gen.generate(PROMPT, ContentType.AD_COPY, GenerationOptions())
        fragments = [f async for f in gen.stream(PROMPT, ContentType.AD_COPY, GenerationOptions())]

        assert "".join(fragments) == result.content
        assert len(fragments) == result.words_generated
