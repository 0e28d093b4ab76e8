"""Shared test fixtures for authgate."""

from __future__ import annotations

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from authgate.auth.sessions import SQLiteSessionStore
from authgate.config import settings
from authgate.db import database


@pytest.fixture(autouse=True)
def fast_bcrypt(monkeypatch):
    """Lowest bcrypt work factor; the production default is exercised explicitly."""
    monkeypatch.setattr(settings, "bcrypt_rounds", 4)


# ---------------------------------------------------------------------------
# Database fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def db():
    """In-memory SQLite database with migrations applied."""
    conn = await database.connect(":memory:")
    yield conn
    await conn.close()


@pytest.fixture
def sessions(db):
    return SQLiteSessionStore(db, ttl_hours=24)


# ---------------------------------------------------------------------------
# App / client fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def app(db, sessions):
    """FastAPI app with the test DB and session store injected."""
    from authgate.main import create_app

    return create_app(db=db, sessions=sessions)


@pytest_asyncio.fixture
async def client(app):
    """Async HTTP client for testing."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
