"""API routes for the FastAPI application."""

from fastapi import APIRouter

from aiportal.api.v1.endpoints import generation, health, realtime, subscriptions

api_router = APIRouter()
api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(generation.router, prefix="/services/text", tags=["text-writer"])
api_router.include_router(subscriptions.router, prefix="/subscriptions", tags=["subscriptions"])
api_router.include_router(realtime.router, prefix="/realtime", tags=["realtime"])
