"""Text generation request and response schemas."""

from typing import Optional

from pydantic import Field

from aiportal.schemas._base import CamelModel
from aiportal.schemas.usage import UsageSnapshotSchema


class GenerateRequest(CamelModel):
    """Body of the generate and generate-stream endpoints.

    Only the shape is checked here; content rules (prompt length, known
    content types) are enforced by the generation domain.
    """

    prompt: str
    content_type: str = "general"
    tone: Optional[str] = None
    length: Optional[str] = None
    language: Optional[str] = Field(default=None, max_length=50)


class GenerationResponse(CamelModel):
    """Buffered generation result."""

    generated_text: str
    words_generated: int
    content_type: str
    model_id: Optional[str] = None
    duration_ms: int
    usage: UsageSnapshotSchema


class OptionSchema(CamelModel):
    """A selectable option with a label and description."""

    value: str
    label: str
    description: str
    estimated_words: Optional[int] = None


class GenerationOptionsResponse(CamelModel):
    """Content types, tones and lengths offered by the text writer."""

    content_types: list[OptionSchema]
    tones: list[OptionSchema]
    lengths: list[OptionSchema]
