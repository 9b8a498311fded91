"""Shared test fixtures."""

from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.main import app
from src.pm_common.database import get_db_session


@pytest.fixture
def db() -> MagicMock:
    """Stand-in AsyncSession: execute/commit are awaitable, rows set per test."""
    session = MagicMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    return session


@pytest_asyncio.fixture
async def client(db: MagicMock) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for testing FastAPI endpoints without a database."""

    async def _override_db() -> AsyncGenerator[MagicMock, None]:
        yield db

    app.dependency_overrides[get_db_session] = _override_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
