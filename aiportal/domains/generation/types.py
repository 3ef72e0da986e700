"""Generation domain types and pure business logic.

Content types are a closed enum; each member maps to exactly one prompt
template, checked when the module is imported.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional

from aiportal.domains.usage.types import DEFAULT_LENGTH, LengthClass

PROMPT_MIN_LENGTH = 10
PROMPT_MAX_LENGTH = 1000
DEFAULT_LANGUAGE = "English"
REQUEST_TYPE = "content_generation"
SYSTEM_MESSAGE = (
    "You are a professional content writer. Write high-quality, engaging content "
    "that meets the user's requirements."
)


class ContentType(str, Enum):
    """Kinds of text the writer produces."""

    BLOG_POST = "blog_post"
    SOCIAL_MEDIA = "social_media"
    EMAIL = "email"
    PRODUCT_DESCRIPTION = "product_description"
    AD_COPY = "ad_copy"
    GENERAL = "general"


class Tone(str, Enum):
    """Writing tone."""

    PROFESSIONAL = "professional"
    CASUAL = "casual"
    CREATIVE = "creative"
    PERSUASIVE = "persuasive"
    FRIENDLY = "friendly"
    FORMAL = "formal"


@dataclass(frozen=True)
class GenerationOptions:
    """Tone, length and language of a generation request."""

    tone: Tone = Tone.PROFESSIONAL
    length: LengthClass = DEFAULT_LENGTH
    language: str = DEFAULT_LANGUAGE

    def to_dict(self) -> dict[str, str]:
        return {"tone": self.tone.value, "length": self.length.value, "language": self.language}


@dataclass(frozen=True)
class GenerationRequest:
    """A validated request: trimmed prompt, closed content type, options."""

    prompt: str
    content_type: ContentType
    options: GenerationOptions = field(default_factory=GenerationOptions)


@dataclass(frozen=True)
class GenerationResult:
    """What a buffered generator returns."""

    success: bool
    content: str = ""
    words_generated: int = 0
    model_id: Optional[str] = None
    duration_ms: int = 0
    error: Optional[str] = None
    error_code: Optional[str] = None


# ---------------------------------------------------------------------------
# Prompt templates
# ---------------------------------------------------------------------------


def _suffix(options: GenerationOptions) -> str:
    return (
        f"Tone: {options.tone.value}. Length: {options.length.value}. "
        f"Language: {options.language}."
    )


def _blog_post(prompt: str, options: GenerationOptions) -> str:
    return (
        f"Write a comprehensive blog post about: {prompt}. {_suffix(options)} "
        "Include an engaging introduction, well-structured body paragraphs, "
        "and a compelling conclusion."
    )


def _social_media(prompt: str, options: GenerationOptions) -> str:
    return (
        f"Write engaging social media content about: {prompt}. {_suffix(options)} "
        "Make it shareable and include relevant hashtags."
    )


def _email(prompt: str, options: GenerationOptions) -> str:
    return (
        f"Write a professional email about: {prompt}. {_suffix(options)} "
        "Include proper greeting, clear subject line suggestion, and professional closing."
    )


def _product_description(prompt: str, options: GenerationOptions) -> str:
    return (
        f"Write a compelling product description for: {prompt}. {_suffix(options)} "
        "Highlight key features, benefits, and include a call-to-action."
    )


def _ad_copy(prompt: str, options: GenerationOptions) -> str:
    return (
        f"Write persuasive ad copy for: {prompt}. {_suffix(options)} "
        "Focus on benefits, create urgency, and include a strong call-to-action."
    )


def _general(prompt: str, options: GenerationOptions) -> str:
    return f"Write content about: {prompt}. {_suffix(options)} Make it informative and engaging."


PROMPT_TEMPLATES: dict[ContentType, Callable[[str, GenerationOptions], str]] = {
    ContentType.BLOG_POST: _blog_post,
    ContentType.SOCIAL_MEDIA: _social_media,
    ContentType.EMAIL: _email,
    ContentType.PRODUCT_DESCRIPTION: _product_description,
    ContentType.AD_COPY: _ad_copy,
    ContentType.GENERAL: _general,
}

_missing = set(ContentType) - set(PROMPT_TEMPLATES)
if _missing:
    raise RuntimeError(f"Content types without a prompt template: {sorted(_missing)}")


def build_prompt(request: GenerationRequest) -> str:
    """Render the user message for a request."""
    return PROMPT_TEMPLATES[request.content_type](request.prompt, request.options)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def validate_request(
    prompt: Optional[str],
    content_type: Optional[str],
    tone: Optional[str] = None,
    length: Optional[str] = None,
    language: Optional[str] = None,
) -> tuple[Optional[GenerationRequest], list[str]]:
    """Parse raw input into a GenerationRequest.

    Returns the request (None when invalid) and the list of error messages.
    """
    errors: list[str] = []
    text = (prompt or "").strip()
    if len(text) < PROMPT_MIN_LENGTH:
        errors.append(f"Prompt must be at least {PROMPT_MIN_LENGTH} characters long")
    if len(text) > PROMPT_MAX_LENGTH:
        errors.append(f"Prompt must be less than {PROMPT_MAX_LENGTH} characters")

    parsed_type = _parse_enum(ContentType, content_type)
    if parsed_type is None:
        errors.append("Invalid content type")

    parsed_tone = _parse_enum(Tone, tone) if tone else Tone.PROFESSIONAL
    if parsed_tone is None:
        errors.append("Invalid tone")

    parsed_length = _parse_enum(LengthClass, length) if length else DEFAULT_LENGTH
    if parsed_length is None:
        errors.append("Invalid length")

    if errors:
        return None, errors

    return (
        GenerationRequest(
            prompt=text,
            content_type=parsed_type,
            options=GenerationOptions(
                tone=parsed_tone,
                length=parsed_length,
                language=(language or "").strip() or DEFAULT_LANGUAGE,
            ),
        ),
        [],
    )


def _parse_enum(enum_cls: Any, value: Optional[str]) -> Any:
    try:
        return enum_cls(value)
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# Options listing
# ---------------------------------------------------------------------------

CONTENT_TYPE_OPTIONS: list[dict[str, str]] = [
    {"value": "blog_post", "label": "Blog Post", "description": "Comprehensive articles and blog posts"},
    {"value": "social_media", "label": "Social Media", "description": "Posts for social media platforms"},
    {"value": "email", "label": "Email", "description": "Professional email content"},
    {"value": "product_description", "label": "Product Description", "description": "Marketing product descriptions"},
    {"value": "ad_copy", "label": "Ad Copy", "description": "Persuasive advertising content"},
    {"value": "general", "label": "General", "description": "General purpose content"},
]

TONE_OPTIONS: list[dict[str, str]] = [
    {"value": "professional", "label": "Professional", "description": "Formal and business-like"},
    {"value": "casual", "label": "Casual", "description": "Relaxed and conversational"},
    {"value": "creative", "label": "Creative", "description": "Imaginative and artistic"},
    {"value": "persuasive", "label": "Persuasive", "description": "Convincing and compelling"},
    {"value": "friendly", "label": "Friendly", "description": "Warm and approachable"},
    {"value": "formal", "label": "Formal", "description": "Structured and official"},
]

LENGTH_OPTIONS: list[dict[str, str]] = [
    {"value": "short", "label": "Short", "description": "Brief and concise (50-150 words)"},
    {"value": "medium", "label": "Medium", "description": "Balanced length (150-400 words)"},
    {"value": "long", "label": "Long", "description": "Detailed and comprehensive (400+ words)"},
]
