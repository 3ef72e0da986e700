"""Text generator adapters."""

from aiportal.adapters.generators.fake import FakeTextGenerator
from aiportal.adapters.generators.fallback import QuotaFallbackGenerator
from aiportal.adapters.generators.mock import MockTextGenerator
from aiportal.adapters.generators.openai import OpenAITextGenerator

__all__ = [
    "FakeTextGenerator",
    "MockTextGenerator",
    "OpenAITextGenerator",
    "QuotaFallbackGenerator",
]
