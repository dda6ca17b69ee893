"""Tests for health check endpoints."""

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.database import get_db
from app.main import app


class _BrokenSession:
    async def execute(self, _stmt):
        raise OperationalError("SELECT 1", {}, ConnectionRefusedError("connection refused"))


@pytest.mark.asyncio
async def test_health_check_returns_ok(client):
    """Health endpoint should return status ok."""
    response = await client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["environment"]
    assert data["database"] is None


@pytest.mark.asyncio
async def test_api_health_alias(client):
    """The /api/health path serves the same liveness check."""
    response = await client.get("/api/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_service_banner(client):
    response = await client.get("/")

    assert response.status_code == 200
    assert response.json() == {"message": "SalesView API", "status": "running", "version": "1.0.0"}


@pytest.mark.asyncio
async def test_health_check_includes_request_id_header(client):
    """Health endpoint should include X-Request-ID in response."""
    response = await client.get("/health")

    assert "X-Request-ID" in response.headers
    assert len(response.headers["X-Request-ID"]) > 0


@pytest.mark.asyncio
async def test_health_check_uses_provided_request_id(client):
    """Health endpoint should echo back provided X-Request-ID."""
    custom_id = "test-request-id-12345"
    response = await client.get("/health", headers={"X-Request-ID": custom_id})

    assert response.headers["X-Request-ID"] == custom_id


@pytest.mark.asyncio
async def test_readiness_connected(client, tmp_path):
    """Readiness reports connected when SELECT 1 succeeds."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'ready.db'}")
    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    try:
        response = await client.get("/health/ready")
    finally:
        app.dependency_overrides.pop(get_db, None)
        await engine.dispose()

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["database"] == "connected"


@pytest.mark.asyncio
async def test_readiness_disconnected(client):
    """Readiness reports unhealthy instead of raising when the database is down."""

    async def override_get_db():
        yield _BrokenSession()

    app.dependency_overrides[get_db] = override_get_db
    try:
        response = await client.get("/health/ready")
    finally:
        app.dependency_overrides.pop(get_db, None)

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "unhealthy"
    assert data["database"] == "disconnected"
