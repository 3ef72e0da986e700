"""Live notification stream.

Each owner has at most one live connection. Opening a second one
supersedes the first, which receives a final ``connection_replaced`` event
and is closed.
"""

import asyncio
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from aiportal.api import deps
from aiportal.api.context import ApiContext
from aiportal.api.deps import Inject
from aiportal.api.sse import heartbeat, sse_data, sse_response
from aiportal.core.config import settings
from aiportal.core.protocols import LiveConnectionPush
from aiportal.core.protocols.realtime import CONNECTION_REPLACED

router = APIRouter()


@router.get("/events")
async def events(
    ctx: ApiContext = Depends(deps.get_context),
    live_connections: LiveConnectionPush = Inject(LiveConnectionPush),
):
    """Server-sent events carrying the caller's notifications."""
    owner_id = str(ctx.owner_id)
    connection = await live_connections.connect(owner_id, ctx.role)
    ctx.logger.info("[Realtime] Connection opened")

    async def event_stream():
        try:
            yield sse_data(
                {
                    "type": "connected",
                    "request_id": ctx.request_id,
                    "ts": datetime.now(timezone.utc).isoformat(),
                }
            )
            while not connection.closed:
                message = await connection.receive(timeout=settings.REALTIME_HEARTBEAT_SECONDS)
                if message is None:
                    yield heartbeat()
                    continue
                yield sse_data(message)
                if message.get("event") == CONNECTION_REPLACED:
                    break
        except asyncio.CancelledError:
            ctx.logger.info("[Realtime] Client disconnected")
            raise
        finally:
            await connection.close()
            ctx.logger.info("[Realtime] Connection closed")

    return sse_response(event_stream())
