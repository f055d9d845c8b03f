"""Tests for application wiring: health, middleware, error envelope and static files."""

from unittest.mock import MagicMock

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from pymongo.errors import ServerSelectionTimeoutError

from user_registry.services import ImageStore


@pytest.mark.asyncio
async def test_health_check_healthy(client: AsyncClient) -> None:
    """
    GIVEN a reachable document store
    WHEN calling the health endpoint
    THEN it should report healthy with a passing database check
    """
    response = await client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["checks"] == {"database": True}
    assert "timestamp" in data


@pytest.mark.asyncio
async def test_health_check_database_down(app: FastAPI) -> None:
    """
    GIVEN a document store whose ping times out
    WHEN calling the health endpoint
    THEN it should answer 503 with a failing database check
    """
    store = MagicMock()
    store.ping.side_effect = ServerSelectionTimeoutError("no servers")
    app.state.user_store = store

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get("/health")

    assert response.status_code == 503
    data = response.json()
    assert data["status"] == "unhealthy"
    assert data["checks"] == {"database": False}


@pytest.mark.asyncio
async def test_request_id_is_echoed(client: AsyncClient) -> None:
    response = await client.get("/health", headers={"X-Request-ID": "req-123"})

    assert response.headers["X-Request-ID"] == "req-123"


@pytest.mark.asyncio
async def test_request_id_is_generated(client: AsyncClient) -> None:
    response = await client.get("/health")

    assert len(response.headers["X-Request-ID"]) == 36


@pytest.mark.asyncio
async def test_unknown_route_uses_error_envelope(client: AsyncClient) -> None:
    response = await client.get("/api/nothing-here")

    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Not Found"}


@pytest.mark.asyncio
async def test_uploaded_image_is_served(client: AsyncClient, image_store: ImageStore) -> None:
    content = b"GIF89a-test-image"
    path = image_store.save(filename="me.gif", content_type="image/gif", content=content)

    response = await client.get(path)

    assert response.status_code == 200
    assert response.content == content


@pytest.mark.asyncio
async def test_missing_upload_returns_404(client: AsyncClient) -> None:
    response = await client.get("/uploads/does-not-exist.png")

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_cors_preflight(client: AsyncClient) -> None:
    response = await client.options(
        "/api/users",
        headers={
            "Origin": "http://localhost:5173",
            "Access-Control-Request-Method": "POST",
        },
    )

    assert response.status_code == 200
    assert "POST" in response.headers["access-control-allow-methods"]


@pytest.mark.asyncio
async def test_unhandled_error_keeps_request_id(app: FastAPI, user_store, monkeypatch) -> None:
    """
    GIVEN a handler that fails with an unexpected exception
    WHEN the request carries an X-Request-ID header
    THEN the 500 response should carry the same header and the JSON envelope
    """

    def _explode(*args, **kwargs):
        raise RuntimeError("unexpected failure")

    monkeypatch.setattr(user_store, "get_by_id", _explode)

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get(f"/api/users/{'a' * 24}", headers={"X-Request-ID": "abc"})

    assert response.status_code == 500
    assert response.headers["X-Request-ID"] == "abc"
    assert response.json() == {"success": False, "message": "unexpected failure", "request_id": "abc"}
