"""Generation domain protocols.

TextGeneratorProtocol: the external generator contract (buffered and streaming).
MeteredGenerationServiceProtocol: the only thing the text-service endpoints need injected.
"""

from typing import AsyncIterator, Optional, Protocol, runtime_checkable
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from aiportal.domains.generation.events import StreamEvent
from aiportal.domains.generation.types import ContentType, GenerationOptions, GenerationResult
from aiportal.schemas.generation import GenerationOptionsResponse, GenerationResponse
from aiportal.schemas.usage import HistoryResponse, UsageSummaryResponse


@runtime_checkable
class TextGeneratorProtocol(Protocol):
    """External text generator.

    ``generate`` reports failure either with ``success=False`` or by raising
    ``GeneratorError``. ``stream`` yields text fragments only; there is no
    final structured object.
    """

    @property
    def model_id(self) -> str:
        """Model that will serve the next call."""
        ...

    async def generate(
        self, prompt: str, content_type: ContentType, options: GenerationOptions
    ) -> GenerationResult:
        """Generate the full text."""
        ...

    def stream(
        self, prompt: str, content_type: ContentType, options: GenerationOptions
    ) -> AsyncIterator[str]:
        """Yield text fragments as they are produced."""
        ...


@runtime_checkable
class MeteredGenerationServiceProtocol(Protocol):
    """Quota-gated text generation plus usage reporting."""

    async def generate(
        self,
        db: AsyncSession,
        owner_id: UUID,
        prompt: Optional[str],
        content_type: Optional[str],
        *,
        tone: Optional[str] = None,
        length: Optional[str] = None,
        language: Optional[str] = None,
    ) -> GenerationResponse:
        """Buffered metered generation."""
        ...

    def generate_stream(
        self,
        db: AsyncSession,
        owner_id: UUID,
        prompt: Optional[str],
        content_type: Optional[str],
        *,
        tone: Optional[str] = None,
        length: Optional[str] = None,
        language: Optional[str] = None,
    ) -> AsyncIterator[StreamEvent]:
        """Streaming metered generation; validation errors raise before the first event."""
        ...

    async def get_usage_summary(self, db: AsyncSession, owner_id: UUID) -> UsageSummaryResponse:
        """Today's and this month's usage against the resolved grant."""
        ...

    async def get_history(
        self, db: AsyncSession, owner_id: UUID, page: int = 1, page_size: int = 10
    ) -> HistoryResponse:
        """Paginated successful generations."""
        ...

    def get_options(self) -> GenerationOptionsResponse:
        """Content types, tones and lengths."""
        ...
