"""
Pytest configuration and fixtures for Pagekit backend tests.

Every todo backend is served by a MemoryTodoStore unless a test builds its
own app. Postgres tests need DATABASE_URL and skip without it.
"""

from __future__ import annotations

import os

# Set test environment variables before importing config
os.environ.setdefault("TESTING", "true")
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-testing-only")
os.environ.setdefault("ENVIRONMENT", "development")

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from backend.auth import create_jwt  # noqa: E402
from backend.backends import Backends  # noqa: E402
from backend.main import create_app  # noqa: E402
from backend.stores import MemoryTodoStore  # noqa: E402
from engine.kernel.types import TODO_BACKENDS  # noqa: E402

EMAIL = "ada@example.com"
OTHER_EMAIL = "grace@example.com"


@pytest.fixture
def stores():
    """One MemoryTodoStore per backend name."""
    return {name: MemoryTodoStore() for name in TODO_BACKENDS}


@pytest.fixture
def app(stores):
    return create_app(backends=Backends(stores))


@pytest.fixture
def session_token():
    return create_jwt(EMAIL)


@pytest_asyncio.fixture
async def async_client(app):
    """Async HTTP client against the ASGI app, not signed in."""
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client


@pytest_asyncio.fixture
async def auth_client(app, session_token):
    """Async HTTP client signed in as EMAIL."""
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://test",
        cookies={"session": session_token},
    ) as client:
        yield client


@pytest_asyncio.fixture
async def other_client(app):
    """Async HTTP client signed in as OTHER_EMAIL."""
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://test",
        cookies={"session": create_jwt(OTHER_EMAIL)},
    ) as client:
        yield client


@pytest.fixture
def ws_client(app, session_token):
    """Synchronous TestClient (runs the lifespan) signed in as EMAIL, for websocket tests."""
    with TestClient(app) as client:
        client.cookies.set("session", session_token)
        yield client
