"""API tests for health, readiness and client error reporting."""

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient


@pytest.fixture
async def client(app: FastAPI):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.mark.asyncio
async def test_health(client: AsyncClient) -> None:
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_ready(client: AsyncClient) -> None:
    response = await client.get("/ready")
    assert response.status_code == 200
    assert response.json()["checks"] == {"database": True, "image_storage": True}


@pytest.mark.asyncio
async def test_request_headers(client: AsyncClient) -> None:
    response = await client.get("/health")
    assert "X-Request-ID" in response.headers
    assert "X-Process-Time" in response.headers


@pytest.mark.asyncio
async def test_client_error_report(client: AsyncClient) -> None:
    response = await client.post(
        "/api/v1/health/client-error",
        json={
            "message": "Save failed: connection refused",
            "url": "http://localhost:5173/patients/abc/history?tab=lab_results",
            "form": "history",
            "section": "lab_results",
            "userAgent": "pytest",
        },
    )
    assert response.status_code == 204
