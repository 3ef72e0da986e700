"""Middleware for the FastAPI application.

This module contains middleware that process requests and responses, and the
exception handlers that map domain exceptions onto HTTP responses.
"""

import time
import traceback
import uuid

from fastapi import Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from aiportal.core.config import settings
from aiportal.core.exceptions import (
    AiPortalException,
    BadRequestError,
    ExternalServiceError,
    InvalidStateError,
    NotFoundException,
    PermissionException,
    unpack_validation_error,
)
from aiportal.core.logging import logger
from aiportal.domains.usage.exceptions import QuotaDeniedError

REQUEST_ID_HEADER = "X-Request-Id"


async def add_request_id(request: Request, call_next: callable) -> Response:
    """Middleware to attach a request ID to the request for tracing.

    An incoming ``X-Request-Id`` is reused so traces can be joined with the
    caller's; otherwise a fresh UUID is generated. The id is echoed back on
    the response.

    Args:
    ----
        request (Request): The incoming request.
        call_next (callable): The next middleware in the chain.

    Returns:
    -------
        Response: The response to the incoming request.

    """
    request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
    request.state.request_id = request_id
    response = await call_next(request)
    response.headers[REQUEST_ID_HEADER] = request_id
    return response


async def log_requests(request: Request, call_next: callable) -> Response:
    """Middleware to log incoming requests.

    Args:
    ----
        request (Request): The incoming request.
        call_next (callable): The next middleware in the chain.

    Returns:
    -------
        Response: The response to the incoming request.

    """
    start_time = time.time()
    response = await call_next(request)
    duration = time.time() - start_time
    logger.info(
        f"Handled request {request.method} {request.url.path} in {duration:.2f} seconds. "
        f"Response code: {response.status_code}"
    )
    return response


async def exception_logging_middleware(request: Request, call_next: callable) -> Response:
    """Middleware to log unhandled exceptions.

    Args:
    ----
        request (Request): The incoming request.
        call_next (callable): The next middleware in the chain.

    Returns:
    -------
        Response: The response to the incoming request.

    """
    try:
        return await call_next(request)
    except Exception as exc:
        logger.error(f"Unhandled exception: {exc}\n{traceback.format_exc()}")

        response_content = {
            "detail": f"Internal Server Error: {exc.__class__.__name__}: {str(exc)}"
        }
        if settings.DEBUG:
            response_content["trace"] = traceback.format_exc()

        return JSONResponse(status_code=500, content=response_content)


# Exception handlers
async def validation_exception_handler(
    request: Request, exc: RequestValidationError | ValidationError
) -> JSONResponse:
    """Exception handler for request bodies that fail schema validation.

    Returns:
    -------
        JSONResponse: A 422 response listing ``{location: message}`` per error.

    """
    error_messages = unpack_validation_error(exc)
    logger.warning(f"Validation error: {error_messages}")
    return JSONResponse(status_code=422, content=error_messages)


async def quota_denied_exception_handler(request: Request, exc: QuotaDeniedError) -> JSONResponse:
    """Exception handler for pre-generation quota denials.

    The body carries the usage snapshot so clients can render an upgrade
    prompt without a second request.

    Returns:
    -------
        JSONResponse: A 403 Forbidden status response with the usage snapshot.

    """
    return JSONResponse(status_code=403, content=exc.to_payload())


async def permission_exception_handler(request: Request, exc: PermissionException) -> JSONResponse:
    """Exception handler for PermissionException.

    Args:
    ----
        request (Request): The incoming request that triggered the exception.
        exc (PermissionException): The exception object that was raised.

    Returns:
    -------
        JSONResponse: A 403 Forbidden status response that details the error message.

    """
    return JSONResponse(status_code=403, content={"detail": str(exc)})


async def not_found_exception_handler(request: Request, exc: NotFoundException) -> JSONResponse:
    """Exception handler for NotFoundException.

    Args:
    ----
        request (Request): The incoming request that triggered the exception.
        exc (NotFoundException): The exception object that was raised.

    Returns:
    -------
        JSONResponse: A 404 Not Found status response that details the error message.

    """
    return JSONResponse(status_code=404, content={"detail": str(exc)})


async def invalid_state_exception_handler(request: Request, exc: InvalidStateError) -> JSONResponse:
    """Exception handler for InvalidStateError.

    Args:
    ----
        request (Request): The incoming request that triggered the exception.
        exc (InvalidStateError): The exception object that was raised.

    Returns:
    -------
        JSONResponse: A 400 Bad Request status response that details the error message.

    """
    return JSONResponse(status_code=400, content={"detail": str(exc)})


async def bad_request_exception_handler(request: Request, exc: BadRequestError) -> JSONResponse:
    """Exception handler for BadRequestError, listing each rejected input."""
    return JSONResponse(status_code=400, content={"detail": exc.message, "errors": exc.errors})


async def external_service_exception_handler(
    request: Request, exc: ExternalServiceError
) -> JSONResponse:
    """Exception handler for failures of an upstream dependency."""
    content = {"detail": exc.message, "service": exc.service_name}
    code = getattr(exc, "code", None)
    if code:
        content["code"] = code
    return JSONResponse(status_code=502, content=content)


async def aiportal_exception_handler(request: Request, exc: AiPortalException) -> JSONResponse:
    """Fallback handler for AiPortalException types without a dedicated handler.

    Handlers are looked up along the exception's MRO, so subclasses of the
    mapped bases above never reach here.
    """
    logger.error(f"Unmapped {exc.__class__.__name__}: {exc}")
    return JSONResponse(status_code=500, content={"detail": str(exc)})
