"""Streaming generation events.

Each event is one server-sent ``data:`` line with a camelCase JSON body:

- ``{"chunk": "...", "partial": true}`` for every fragment
- ``{"done": true, "fullText": ..., "wordsGenerated": ..., "contentType": ..., "success": true, "usage": {...}}``
- ``{"error": "...", "limitExceeded": true, "usage": {...}}`` on denial or failure
"""

from typing import Optional, Union

from aiportal.domains.usage.exceptions import QuotaDeniedError, UsageLimitReachedError
from aiportal.schemas._base import CamelModel
from aiportal.schemas.usage import UsageSnapshotSchema


class _Event(CamelModel):
    def to_sse(self) -> str:
        """Render as one server-sent event."""
        return f"data: {self.model_dump_json(by_alias=True, exclude_none=True)}\n\n"


class ChunkEvent(_Event):
    """A fragment forwarded as soon as the generator produced it."""

    chunk: str
    partial: bool = True


class DoneEvent(_Event):
    """Terminal event of a stream that ran to completion."""

    done: bool = True
    full_text: str
    words_generated: int
    content_type: str
    success: bool = True
    usage: Optional[UsageSnapshotSchema] = None


class ErrorEvent(_Event):
    """Terminal event for a denial or a failure."""

    error: str
    limit_exceeded: Optional[bool] = None
    limit_warning: Optional[bool] = None
    usage: Optional[UsageSnapshotSchema] = None
    code: Optional[str] = None

    @classmethod
    def from_denial(cls, denial: QuotaDeniedError) -> "ErrorEvent":
        """In-band rendering of a quota denial."""
        hard = isinstance(denial, UsageLimitReachedError)
        return cls(
            error=denial.message,
            limit_exceeded=True if hard else None,
            limit_warning=None if hard else True,
            usage=UsageSnapshotSchema(**denial.usage()),
        )


StreamEvent = Union[ChunkEvent, DoneEvent, ErrorEvent]
