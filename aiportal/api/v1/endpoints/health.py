"""Health check endpoints."""

from fastapi import APIRouter, Depends, Response
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from aiportal.api import deps
from aiportal.core.logging import logger

router = APIRouter()


@router.get("")
async def health_check() -> dict[str, str]:
    """Check if the API is healthy.

    Returns:
    --------
        dict: A dictionary containing the status of the API.
    """
    return {"status": "healthy"}


@router.get("/ready")
async def readiness(response: Response, db: AsyncSession = Depends(deps.get_db)) -> dict[str, str]:
    """Readiness probe. Only Postgres gates the status code."""
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning(f"Readiness check failed: {e}")
        response.status_code = 503
        return {"status": "unavailable", "postgres": "down"}
    return {"status": "ready", "postgres": "up"}
