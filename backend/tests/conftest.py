"""Shared test configuration and fixtures.

Uses a transactional rollback strategy per test for full isolation:
- Each test gets its own transaction that rolls back after the test.
- The database comes from ``TEST_DATABASE_URL``; without it an in-memory
  SQLite database (aiosqlite) is used.
"""

import os
from collections.abc import AsyncGenerator
from datetime import date, timedelta

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

import areahub.models  # noqa: F401
from areahub.database import Base, engine_options, get_db
from areahub.main import app

_test_db_url = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")


def _make_engine():
    if _test_db_url.startswith("sqlite"):
        # One shared connection so every session sees the same in-memory DB.
        return create_async_engine(_test_db_url, poolclass=StaticPool, **engine_options(_test_db_url))
    return create_async_engine(_test_db_url, **engine_options(_test_db_url))


# ---------------------------------------------------------------------------
# Engine: tables created and dropped around each test
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def test_engine():
    engine = _make_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


# ---------------------------------------------------------------------------
# Per-test: transactional rollback for isolation
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Yield an async session wrapped in a transaction that always rolls back."""
    async with test_engine.connect() as connection:
        transaction = await connection.begin()
        session = AsyncSession(bind=connection, expire_on_commit=False)

        try:
            yield session
        finally:
            await session.close()
            await transaction.rollback()


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Provide an httpx AsyncClient wired to use the test DB session."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Convenience fixtures: areas with special prices
# ---------------------------------------------------------------------------


def future(days: int) -> date:
    """A date ``days`` from today."""
    return date.today() + timedelta(days=days)


@pytest_asyncio.fixture
async def test_area(client: AsyncClient) -> dict:
    """Create and return a plain area (base price 100, no special prices)."""
    response = await client.post(
        "/api/v1/areas",
        json={
            "name": "Test Chácara",
            "address": "Estrada Velha, 100",
            "base_price": 100.00,
            "max_guests": 10,
            "amenities": ["pool", "wifi"],
            "description": "An area for automated tests.",
        },
    )
    assert response.status_code == 201, f"Failed to create test area: {response.text}"
    return response.json()


@pytest_asyncio.fixture
async def package_area(client: AsyncClient) -> dict:
    """Area with a package period from day 60 to day 64 (flat price 900)."""
    response = await client.post(
        "/api/v1/areas",
        json={
            "name": "Package Chácara",
            "base_price": 100.00,
            "max_guests": 20,
            "special_prices": [
                {
                    "type": "date_range",
                    "name": "Carnaval",
                    "price": 900,
                    "start_date": future(60).isoformat(),
                    "end_date": future(64).isoformat(),
                    "is_package": True,
                },
            ],
        },
    )
    assert response.status_code == 201, f"Failed to create package area: {response.text}"
    return response.json()
