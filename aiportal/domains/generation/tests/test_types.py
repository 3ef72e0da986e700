"""Tests for generation request parsing and prompt templates."""

import pytest

from aiportal.domains.generation.types import (
    PROMPT_TEMPLATES,
    ContentType,
    GenerationOptions,
    GenerationRequest,
    Tone,
    build_prompt,
    validate_request,
)
from aiportal.domains.usage.types import LengthClass

PROMPT = "Tips for a productive morning"


class TestValidateRequest:
    def test_defaults(self):
        request, errors = validate_request(PROMPT, "general")

        assert errors == []
        assert request.options == GenerationOptions(
            tone=Tone.PROFESSIONAL, length=LengthClass.MEDIUM, language="English"
        )

    def test_prompt_is_trimmed(self):
        request, _ = validate_request(f"\n  {PROMPT}  \t", "general")

        assert request.prompt == PROMPT

    def test_length_bounds_apply_after_trim(self):
        _, errors = validate_request("  123456789  ", "general")
        assert errors == ["Prompt must be at least 10 characters long"]

        request, errors = validate_request("1234567890", "general")
        assert errors == [] and request is not None

    def test_too_long(self):
        _, errors = validate_request("x" * 1001, "general")

        assert errors == ["Prompt must be less than 1000 characters"]

    def test_max_length_is_accepted(self):
        request, _ = validate_request("x" * 1000, "general")

        assert request is not None

    def test_missing_prompt(self):
        _, errors = validate_request(None, "general")

        assert errors == ["Prompt must be at least 10 characters long"]

    @pytest.mark.parametrize(
        "kwargs,message",
        [
            ({"content_type": "poem"}, "Invalid content type"),
            ({"content_type": None}, "Invalid content type"),
            ({"content_type": "email", "tone": "sarcastic"}, "Invalid tone"),
            ({"content_type": "email", "length": "epic"}, "Invalid length"),
        ],
    )
    def test_invalid_choices(self, kwargs, message):
        request, errors = validate_request(PROMPT, **kwargs)

        assert request is None
        assert errors == [message]

    def test_collects_all_errors(self):
        _, errors = validate_request("short", "poem", tone="loud")

        assert len(errors) == 3

    def test_blank_language_defaults(self):
        request, _ = validate_request(PROMPT, "email", language="   ")

        assert request.options.language == "English"


class TestBuildPrompt:
    def test_every_content_type_has_a_template(self):
        assert set(PROMPT_TEMPLATES) == set(ContentType)

    def test_blog_post(self):
        prompt = build_prompt(
            GenerationRequest(
                PROMPT,
                ContentType.BLOG_POST,
                GenerationOptions(tone=Tone.FRIENDLY, length=LengthClass.LONG, language="German"),
            )
        )

        assert prompt == (
            f"Write a comprehensive blog post about: {PROMPT}. Tone: friendly. Length: long. "
            "Language: German. Include an engaging introduction, well-structured body "
            "paragraphs, and a compelling conclusion."
        )

    def test_general(self):
        prompt = build_prompt(GenerationRequest(PROMPT, ContentType.GENERAL))

        assert prompt.startswith(f"Write content about: {PROMPT}.")
        assert prompt.endswith("Make it informative and engaging.")
