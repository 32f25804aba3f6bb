"""Tests for main application endpoints."""

import pytest
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

from app.main import app

client = TestClient(app)


def test_root_endpoint():
    """Test root endpoint returns service information."""
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert "Submeter Billing" in data["message"]
    assert "version" in data


def test_health_check():
    """Test health check endpoint."""
    response = client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["service"] == "submeter-billing"


@pytest.mark.asyncio
async def test_health_endpoint_async() -> None:
    """Test the health endpoint through the ASGI transport."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        response = await ac.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_protected_routes_require_token():
    """Meter routes reject requests without a bearer token."""
    response = client.get("/api/main-meters")
    assert response.status_code == 401
