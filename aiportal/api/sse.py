"""Server-sent event helpers shared by the streaming endpoints."""

import json
from datetime import datetime, timezone
from typing import Any, AsyncIterator

from fastapi.responses import StreamingResponse

SSE_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def sse_data(payload: dict[str, Any]) -> str:
    """Render one ``data:`` frame."""
    return f"data: {json.dumps(payload, default=str)}\n\n"


def heartbeat() -> str:
    return sse_data({"type": "heartbeat", "ts": datetime.now(timezone.utc).isoformat()})


def sse_response(body: AsyncIterator[str]) -> StreamingResponse:
    return StreamingResponse(body, media_type="text/event-stream", headers=SSE_HEADERS)
