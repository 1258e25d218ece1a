"""Health check endpoint tests."""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_health_returns_ok(client: AsyncClient):
    response = await client.get("/api/v1/health")
    assert response.status_code == 200
    data = response.json()
    assert data["version"] == "0.1.0"
    assert data["status"] == "ok"
    assert data["db"] == "ok"
    assert "X-Request-Id" in response.headers


@pytest.mark.asyncio
async def test_openapi_documents_problem_responses(client: AsyncClient):
    response = await client.get("/openapi.json")
    assert response.status_code == 200
    schema = response.json()
    assert "ErrorResponse" in schema["components"]["schemas"]
    team_get = schema["paths"]["/api/v1/teams/{team_id}"]["get"]
    assert "404" in team_get["responses"]
