"""Metered text generation endpoints.

Mounted under ``/services/text`` in ``api/v1/api.py``.
"""

from contextlib import aclosing

import anyio
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from aiportal.api import deps
from aiportal.api.context import ApiContext
from aiportal.api.deps import Inject
from aiportal.api.sse import sse_response
from aiportal.db.session import AsyncSessionLocal
from aiportal.domains.generation.protocols import MeteredGenerationServiceProtocol
from aiportal.schemas.generation import (
    GenerateRequest,
    GenerationOptionsResponse,
    GenerationResponse,
)
from aiportal.schemas.usage import HistoryResponse, UsageSummaryResponse

router = APIRouter()


@router.post("/generate", response_model=GenerationResponse)
async def generate(
    body: GenerateRequest,
    db: AsyncSession = Depends(deps.get_db),
    ctx: ApiContext = Depends(deps.get_context),
    service: MeteredGenerationServiceProtocol = Inject(MeteredGenerationServiceProtocol),
) -> GenerationResponse:
    """Generate text in one response, metered against today's word budget."""
    ctx.logger.info(f"Text generation requested: content_type={body.content_type}")
    return await service.generate(
        db,
        ctx.owner_id,
        body.prompt,
        body.content_type,
        tone=body.tone,
        length=body.length,
        language=body.language,
    )


@router.post("/generate-stream")
async def generate_stream(
    body: GenerateRequest,
    ctx: ApiContext = Depends(deps.get_context),
    service: MeteredGenerationServiceProtocol = Inject(MeteredGenerationServiceProtocol),
):
    """Stream generated text as server-sent events.

    Malformed input is rejected with a normal 400 before the stream opens.
    Denials and failures after that arrive in-band as a terminal error event.
    The stream owns its database session because it outlives the request
    dependencies.
    """
    db = AsyncSessionLocal()
    try:
        events = service.generate_stream(
            db,
            ctx.owner_id,
            body.prompt,
            body.content_type,
            tone=body.tone,
            length=body.length,
            language=body.language,
        )
    except Exception:
        await db.close()
        raise

    async def event_stream():
        try:
            async with aclosing(events) as stream:
                async for event in stream:
                    yield event.to_sse()
        finally:
            with anyio.CancelScope(shield=True):
                await db.close()
            ctx.logger.info("[TextStream] Closed")

    return sse_response(event_stream())


@router.get("/usage", response_model=UsageSummaryResponse)
async def usage(
    db: AsyncSession = Depends(deps.get_db),
    ctx: ApiContext = Depends(deps.get_context),
    service: MeteredGenerationServiceProtocol = Inject(MeteredGenerationServiceProtocol),
) -> UsageSummaryResponse:
    """Today's words against the cap and month-to-date totals."""
    return await service.get_usage_summary(db, ctx.owner_id)


@router.get("/history", response_model=HistoryResponse)
async def history(
    page: int = Query(1, description="1-based page number"),
    limit: int = Query(10, description="Records per page (1-100)"),
    db: AsyncSession = Depends(deps.get_db),
    ctx: ApiContext = Depends(deps.get_context),
    service: MeteredGenerationServiceProtocol = Inject(MeteredGenerationServiceProtocol),
) -> HistoryResponse:
    """Successful generations, newest first."""
    return await service.get_history(db, ctx.owner_id, page=page, page_size=limit)


@router.get("/options", response_model=GenerationOptionsResponse)
async def options(
    service: MeteredGenerationServiceProtocol = Inject(MeteredGenerationServiceProtocol),
) -> GenerationOptionsResponse:
    """Content types, tones and lengths accepted by the text writer."""
    return service.get_options()
