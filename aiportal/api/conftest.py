"""API test fixtures.

Provides an async HTTP client wired to the FastAPI app with the DI container
overridden to use fakes. Available to all colocated API tests under api/.

Pattern:
    1. Override get_container -> returns test_container (fakes at the IO edges)
    2. Override get_db        -> yields an AsyncMock session
    3. Test hits the endpoint with an X-User-Id header, asserts on HTTP
       response + fake state
"""

from unittest.mock import AsyncMock
from uuid import UUID

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from aiportal.api.deps import get_container, get_db

TEST_OWNER_ID = UUID("00000000-0000-0000-0000-0000000000aa")
AUTH_HEADERS = {"X-User-Id": str(TEST_OWNER_ID)}


@pytest_asyncio.fixture
async def client(test_container, monkeypatch):
    """Async HTTP client with faked DI container and database session."""
    from aiportal.api.v1.endpoints import generation
    from aiportal.main import app

    async def _fake_db():
        yield AsyncMock()

    app.dependency_overrides[get_container] = lambda: test_container
    app.dependency_overrides[get_db] = _fake_db
    # Streaming endpoints open their own session outside the dependency graph.
    monkeypatch.setattr(generation, "AsyncSessionLocal", lambda: AsyncMock())

    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport, base_url="http://test/api/v1", headers=AUTH_HEADERS
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
