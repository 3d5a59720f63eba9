"""Integration tests for health endpoints."""

from typing import Any
from unittest.mock import AsyncMock, patch

import pytest
from httpx import AsyncClient

HEALTHY = {"status": "healthy", "latency_ms": 1}
UNHEALTHY = {"status": "unhealthy", "error": "connection refused"}


@pytest.mark.asyncio
async def test_readiness_healthy_when_dependencies_up(client: AsyncClient) -> None:
    with (
        patch("eventdesk.backend.api.health.check_database", AsyncMock(return_value=HEALTHY)),
        patch("eventdesk.backend.api.health.check_redis", AsyncMock(return_value=HEALTHY)),
    ):
        response = await client.get("/health/ready")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert set(data["checks"]) == {"database", "redis"}


@pytest.mark.asyncio
async def test_readiness_503_when_redis_down(client: AsyncClient) -> None:
    with (
        patch("eventdesk.backend.api.health.check_database", AsyncMock(return_value=HEALTHY)),
        patch("eventdesk.backend.api.health.check_redis", AsyncMock(return_value=UNHEALTHY)),
    ):
        response = await client.get("/health/ready")

    assert response.status_code == 503
    assert response.json()["detail"]["checks"]["redis"]["status"] == "unhealthy"


@pytest.mark.asyncio
async def test_detailed_reports_integrations(client: AsyncClient) -> None:
    with (
        patch("eventdesk.backend.api.health.check_database", AsyncMock(return_value=HEALTHY)),
        patch("eventdesk.backend.api.health.check_redis", AsyncMock(return_value=HEALTHY)),
    ):
        response = await client.get("/health/detailed")

    data: dict[str, Any] = response.json()
    assert data["status"] == "healthy"
    assert isinstance(data["semaphores"], dict)
    assert {"name", "env", "version"} <= set(data["application"])
    assert set(data["integrations"]) == {"email", "payments", "webhooks"}
    assert data["integrations"]["payments"]["status"] == "configured"
    assert isinstance(data["circuit_breakers"], dict)


@pytest.mark.asyncio
async def test_detailed_unhealthy_dependency(client: AsyncClient) -> None:
    with (
        patch("eventdesk.backend.api.health.check_database", AsyncMock(return_value=UNHEALTHY)),
        patch("eventdesk.backend.api.health.check_redis", AsyncMock(return_value=HEALTHY)),
    ):
        response = await client.get("/health/detailed")

    assert response.json()["status"] == "unhealthy"


@pytest.mark.asyncio
async def test_liveness_always_healthy(client: AsyncClient) -> None:
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}
