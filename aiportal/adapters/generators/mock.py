"""Canned-content generator.

Serves when no upstream key is configured and as the fallback when the
upstream runs out of quota. Output is deterministic per content type.
"""

import asyncio
import time
from typing import AsyncIterator, Callable

from aiportal.domains.generation.types import ContentType, GenerationOptions, GenerationResult
from aiportal.domains.usage.types import count_words

MOCK_MODEL_ID = "mock-ai-service"


def _blog_post(prompt: str) -> str:
    return (
        f"# {prompt}\n\n"
        f'This is a comprehensive blog post about "{prompt}". In today\'s rapidly evolving '
        "digital landscape, understanding this topic is crucial for success. This article "
        "explores the key aspects, benefits, and practical applications.\n\n"
        "## Key Points\n\n"
        f"1. **Introduction**: {prompt} represents a significant opportunity for growth "
        "and innovation.\n"
        "2. **Main Content**: The core concepts involve strategic thinking and implementation.\n"
        "3. **Conclusion**: By following these principles, you can achieve remarkable results."
        "\n\n*This content was generated using our AI Text Writer service.*"
    )


def _social_media(prompt: str) -> str:
    return (
        f"🚀 {prompt}\n\n"
        "Excited to share insights about this amazing topic! 💡\n\n"
        "Key takeaways:\n"
        "✅ Important point 1\n"
        "✅ Important point 2\n"
        "✅ Important point 3\n\n"
        "#AI #Innovation #Business"
    )


def _email(prompt: str) -> str:
    return (
        f"Subject: {prompt}\n\n"
        "Dear [Recipient],\n\n"
        f"I hope this email finds you well. I wanted to reach out regarding {prompt}.\n\n"
        "This is an important topic that I believe would be valuable for you to consider. "
        "The key benefits include:\n\n"
        "• Benefit 1\n• Benefit 2\n• Benefit 3\n\n"
        "I would love to discuss this further with you. Please let me know if you're "
        "interested in learning more.\n\n"
        "Best regards,\n[Your Name]"
    )


def _product_description(prompt: str) -> str:
    return (
        f"**{prompt}**\n\n"
        "Transform your business with our innovative solution! This powerful tool delivers "
        "exceptional results through cutting-edge technology.\n\n"
        "**Key Features:**\n"
        "• Advanced functionality\n• User-friendly interface\n"
        "• Reliable performance\n• 24/7 support\n\n"
        "**Benefits:**\n"
        "• Increased efficiency\n• Cost savings\n• Better results\n\n"
        "Perfect for businesses looking to streamline operations and boost productivity."
    )


def _ad_copy(prompt: str) -> str:
    return (
        f"🎯 {prompt}\n\n"
        "Don't miss out! Limited time offer.\n\n"
        "✨ Special features\n✨ Amazing benefits\n✨ Proven results\n\n"
        "Act now and transform your business today!"
    )


def _general(prompt: str) -> str:
    return (
        f"**{prompt}**\n\n"
        f'This is a well-crafted piece of content about "{prompt}". The content covers the '
        "essential aspects and provides valuable insights.\n\n"
        "Key highlights include:\n"
        "- Important aspect 1\n- Important aspect 2\n- Important aspect 3\n\n"
        "This content demonstrates the power of AI-driven text generation."
    )


MOCK_CONTENT: dict[ContentType, Callable[[str], str]] = {
    ContentType.BLOG_POST: _blog_post,
    ContentType.SOCIAL_MEDIA: _social_media,
    ContentType.EMAIL: _email,
    ContentType.PRODUCT_DESCRIPTION: _product_description,
    ContentType.AD_COPY: _ad_copy,
    ContentType.GENERAL: _general,
}


def split_fragments(text: str) -> list[str]:
    """Split text into word-sized fragments that concatenate back to ``text``."""
    fragments: list[str] = []
    current = ""
    for ch in text:
        if current and not ch.isspace() and current[-1].isspace():
            fragments.append(current)
            current = ""
        current += ch
    if current:
        fragments.append(current)
    return fragments


class MockTextGenerator:
    """TextGeneratorProtocol implementation returning canned content."""

    def __init__(self, fragment_delay_seconds: float = 0.0) -> None:
        """Initialize.

        Args:
            fragment_delay_seconds: Pause between streamed fragments.
        """
        self._delay = fragment_delay_seconds

    @property
    def model_id(self) -> str:
        return MOCK_MODEL_ID

    async def generate(
        self, prompt: str, content_type: ContentType, options: GenerationOptions
    ) -> GenerationResult:
        started = time.monotonic()
        content = MOCK_CONTENT[content_type](prompt)
        return GenerationResult(
            success=True,
            content=content,
            words_generated=count_words(content),
            model_id=MOCK_MODEL_ID,
            duration_ms=int((time.monotonic() - started) * 1000),
        )

    async def stream(
        self, prompt: str, content_type: ContentType, options: GenerationOptions
    ) -> AsyncIterator[str]:
        for fragment in split_fragments(MOCK_CONTENT[content_type](prompt)):
            if self._delay:
                await asyncio.sleep(self._delay)
            yield fragment
