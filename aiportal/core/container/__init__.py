"""Dependency Injection Container Module.

Usage:
------
    # Initialize at startup (main.py lifespan)
    from aiportal.core.container import initialize_container
    from aiportal.core.config import settings
    initialize_container(settings)

    # In FastAPI deps.py
    from aiportal.core import container as container_mod
    container_mod.container.generation_service

    # In tests (construct directly with fakes, don't use global)
    from aiportal.core.container import Container
    test_container = Container(...)

Module structure:
-----------------
    container/
    ├── __init__.py      # This file - exports public API
    ├── container.py     # Container dataclass (serves)
    └── factory.py       # create_container() (builds)
"""

from typing import TYPE_CHECKING

from aiportal.core.container.container import Container
from aiportal.core.container.factory import create_container

if TYPE_CHECKING:
    from aiportal.core.config import Settings

__all__ = ["Container", "create_container", "container", "initialize_container"]


container: Container | None = None
"""Global container instance, set by ``initialize_container()``.

Only the API layer reads it. Domains receive their dependencies through
constructor parameters, never by importing the container.
"""


def initialize_container(settings: "Settings") -> None:
    """Initialize the global container. Call once at startup.

    Raises:
        RuntimeError: If the container was already initialized.
    """
    global container

    if container is not None:
        raise RuntimeError(
            "Container already initialized. "
            "initialize_container() should only be called once at startup."
        )

    container = create_container(settings)


def reset_container() -> None:
    """Reset the global container to None. For testing only."""
    global container
    container = None
