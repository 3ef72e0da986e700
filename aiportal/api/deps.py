"""Dependencies that are used in the API endpoints."""

import uuid
from typing import Optional, get_type_hints

from fastapi import Depends, Header, HTTPException, Request

from aiportal.api.context import ApiContext
from aiportal.core import container as container_mod
from aiportal.core.container import Container
from aiportal.core.logging import logger
from aiportal.db.session import get_db

__all__ = ["get_container", "get_context", "get_db", "Inject"]


def _parse_owner_id(x_user_id: Optional[str]) -> uuid.UUID:
    """Parse the authenticated owner id set by the upstream identity layer.

    Raises:
    ------
        HTTPException: 401 when the header is missing, 400 when it is not a UUID.

    """
    if not x_user_id:
        raise HTTPException(status_code=401, detail="No valid authentication provided")
    try:
        return uuid.UUID(x_user_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail="X-User-Id must be a valid UUID") from e


async def get_context(
    request: Request,
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
    x_user_role: Optional[str] = Header(None, alias="X-User-Role"),
) -> ApiContext:
    """Create the API context for the request.

    Args:
    ----
        request (Request): The FastAPI request object.
        x_user_id (Optional[str]): Authenticated owner id.
        x_user_role (Optional[str]): Optional role, used for role broadcasts.

    Returns:
    -------
        ApiContext: Owner identity with a request-scoped logger.

    """
    request_id = getattr(request.state, "request_id", str(uuid.uuid4()))
    owner_id = _parse_owner_id(x_user_id)

    ctx_logger = logger.with_context(
        request_id=request_id,
        owner_id=str(owner_id),
        role=x_user_role,
        context_base="api",
    )

    return ApiContext(
        request_id=request_id,
        owner_id=owner_id,
        role=x_user_role,
        logger=ctx_logger,
    )


# ---------------------------------------------------------------------------
# Container
# ---------------------------------------------------------------------------


def get_container() -> Container:
    """Get the DI container. Initialized at startup."""
    c = container_mod.container
    if c is None:
        raise RuntimeError("Container not initialized. Call initialize_container() first.")
    return c


# ---------------------------------------------------------------------------
# Protocol Injection
# ---------------------------------------------------------------------------

# Cache of protocol_type → Container field name, built once at first call.
_INJECT_CACHE: dict[type, str] = {}


def _resolve_field_name(protocol_type: type) -> str:
    """Find which Container field matches the given protocol type.

    Uses get_type_hints() to introspect the Container dataclass.
    Result is cached so the lookup happens at most once per protocol type.
    """
    if not _INJECT_CACHE:
        for name, hint in get_type_hints(Container).items():
            _INJECT_CACHE[hint] = name

    field_name = _INJECT_CACHE.get(protocol_type)
    if field_name is None:
        available = list(_INJECT_CACHE.values())
        raise TypeError(
            f"No binding for {protocol_type.__name__} in Container. Available fields: {available}"
        )
    return field_name


def Inject(protocol_type: type):  # noqa: N802 - uppercase to match FastAPI convention
    """Resolve a protocol implementation from the DI container.

    Works like ``Depends()`` but looks up the implementation by protocol type
    instead of requiring the caller to know about the Container internals.

    Usage in FastAPI endpoints::

        from aiportal.api.deps import Inject
        from aiportal.domains.generation.protocols import MeteredGenerationServiceProtocol


        @router.get("/usage")
        async def usage(
            service: MeteredGenerationServiceProtocol = Inject(MeteredGenerationServiceProtocol),
        ):
            ...
    """
    field_name = _resolve_field_name(protocol_type)

    def _resolve(c: Container = Depends(get_container)):
        return getattr(c, field_name)

    return Depends(_resolve)
