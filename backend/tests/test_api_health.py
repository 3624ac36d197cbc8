"""Tests for health and root API endpoints."""

from unittest.mock import patch

import pytest
from httpx import ASGITransport, AsyncClient

from concept_dictionary.main import app


@pytest.fixture
async def client():
    """Create async test client."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac


class TestHealthEndpoint:
    """Test health check endpoint."""

    @pytest.mark.asyncio
    async def test_health_returns_healthy_status(self, client: AsyncClient) -> None:
        """Test health endpoint returns healthy status."""
        response = await client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["service"] == "concept-dictionary"
        assert data["version"] == "0.1.0"

    @pytest.mark.asyncio
    async def test_health_returns_timestamp(self, client: AsyncClient) -> None:
        """Test health endpoint returns an ISO timestamp."""
        response = await client.get("/health")
        assert "T" in response.json()["timestamp"]


class TestReadinessEndpoint:
    """Test readiness endpoint."""

    @pytest.mark.asyncio
    async def test_ready_reports_redis(self, client: AsyncClient) -> None:
        """Test the readiness payload carries the Redis ping result."""
        with patch("concept_dictionary.main.ping_redis", return_value=True):
            response = await client.get("/ready")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ready"
        assert data["redis"] is True

    @pytest.mark.asyncio
    async def test_ready_without_redis(self, client: AsyncClient) -> None:
        """Test the API stays ready when Redis is unreachable."""
        with patch("concept_dictionary.main.ping_redis", return_value=False):
            response = await client.get("/ready")

        assert response.status_code == 200
        assert response.json()["redis"] is False


class TestRootEndpoint:
    """Test root endpoint."""

    @pytest.mark.asyncio
    async def test_root_returns_api_info(self, client: AsyncClient) -> None:
        response = await client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "Concept Dictionary API"
        assert data["docs"] == "/docs"
        assert data["health"] == "/health"
