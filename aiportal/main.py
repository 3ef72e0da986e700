"""Main module of the FastAPI application.

This module sets up the FastAPI application, the middleware that logs
incoming requests and unhandled exceptions, and the domain exception handlers.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from aiportal.api.middleware import (
    add_request_id,
    aiportal_exception_handler,
    bad_request_exception_handler,
    exception_logging_middleware,
    external_service_exception_handler,
    invalid_state_exception_handler,
    log_requests,
    not_found_exception_handler,
    permission_exception_handler,
    quota_denied_exception_handler,
    validation_exception_handler,
)
from aiportal.api.v1.api import api_router
from aiportal.core.config import settings
from aiportal.core.exceptions import (
    AiPortalException,
    BadRequestError,
    ExternalServiceError,
    InvalidStateError,
    NotFoundException,
    PermissionException,
)
from aiportal.core.logging import logger
from aiportal.core.redis_client import redis_client
from aiportal.db.init_db import create_tables, seed_catalog
from aiportal.db.session import AsyncSessionLocal, async_engine
from aiportal.domains.usage.exceptions import QuotaDeniedError


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events.

    Initializes the DI container, creates missing tables and seeds the
    service and plan catalogs.
    """
    from aiportal.core.container import initialize_container

    logger.info("Initializing dependency injection container...")
    initialize_container(settings)
    logger.info("Container initialized successfully")

    if settings.CREATE_TABLES_ON_STARTUP:
        logger.info("Creating missing tables...")
        await create_tables(async_engine)

    if settings.SEED_CATALOG_ON_STARTUP:
        async with AsyncSessionLocal() as db:
            await seed_catalog(db)

    yield

    await redis_client.close()
    await async_engine.dispose()


app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

app.include_router(api_router, prefix="/api/v1")

# Last registered = outermost middleware (sees the request first)
app.middleware("http")(exception_logging_middleware)
app.middleware("http")(log_requests)
app.middleware("http")(add_request_id)

# Handlers are resolved along the exception MRO, most specific first.
app.exception_handler(RequestValidationError)(validation_exception_handler)
app.exception_handler(ValidationError)(validation_exception_handler)
app.exception_handler(QuotaDeniedError)(quota_denied_exception_handler)
app.exception_handler(PermissionException)(permission_exception_handler)
app.exception_handler(NotFoundException)(not_found_exception_handler)
app.exception_handler(InvalidStateError)(invalid_state_exception_handler)
app.exception_handler(BadRequestError)(bad_request_exception_handler)
app.exception_handler(ExternalServiceError)(external_service_exception_handler)
app.exception_handler(AiPortalException)(aiportal_exception_handler)
