"""
Integration Test Fixtures.

Fixtures for integration tests - uses the real app, database and services.
Outbound HTTP (email provider, Razorpay, webhook receivers) goes through
httpx.MockTransport so every request is recorded instead of sent.
"""

import json
from collections.abc import AsyncGenerator, Awaitable, Callable
from typing import Any

import httpx
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.backend.core.database import get_db_session
from eventdesk.backend.integrations.email import EmailClient, get_email_client
from eventdesk.backend.integrations.razorpay import RazorpayClient, get_razorpay_client
from eventdesk.backend.integrations.webhooks import WebhookDispatcher, get_webhook_dispatcher

API = "/api/v1"
WEBHOOK_URL = "https://hooks.example.com/eventdesk"
WEBHOOK_SIGNING_SECRET = "test-outbound-signing-secret"


# =============================================================================
# Outbound HTTP Fakes
# =============================================================================


@pytest.fixture
def email_outbox() -> list[dict[str, Any]]:
    """Every JSON body posted to the email provider."""
    return []


@pytest.fixture
def gateway_orders() -> list[dict[str, Any]]:
    """Every order body posted to Razorpay."""
    return []


@pytest.fixture
def webhook_calls() -> list[httpx.Request]:
    """Every request delivered to the webhook receiver."""
    return []


@pytest.fixture
def email_client(email_outbox: list[dict[str, Any]]) -> EmailClient:
    def handler(request: httpx.Request) -> httpx.Response:
        email_outbox.append(json.loads(request.content))
        return httpx.Response(200, json={"id": f"msg_{len(email_outbox)}"})

    return EmailClient(api_key="test-email-key", transport=httpx.MockTransport(handler))


@pytest.fixture
def razorpay_client(gateway_orders: list[dict[str, Any]]) -> RazorpayClient:
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        gateway_orders.append(body)
        return httpx.Response(
            200,
            json={
                "id": f"order_test{len(gateway_orders)}",
                "amount": body["amount"],
                "currency": body["currency"],
                "receipt": body["receipt"],
                "status": "created",
            },
        )

    return RazorpayClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def webhook_dispatcher(webhook_calls: list[httpx.Request]) -> WebhookDispatcher:
    def handler(request: httpx.Request) -> httpx.Response:
        webhook_calls.append(request)
        return httpx.Response(204)

    return WebhookDispatcher(
        urls=[WEBHOOK_URL],
        signing_secret=WEBHOOK_SIGNING_SECRET,
        enabled=True,
        transport=httpx.MockTransport(handler),
    )


# =============================================================================
# API Client Fixtures
# =============================================================================


@pytest.fixture
async def client(
    db_session: AsyncSession,
    email_client: EmailClient,
    razorpay_client: RazorpayClient,
    webhook_dispatcher: WebhookDispatcher,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Create a test client with database and integration overrides.

    The client uses the test database session, ensuring all API
    operations use the same session that gets rolled back after the test.

    Usage:
        async def test_health_endpoint(client: AsyncClient):
            response = await client.get("/health")
            assert response.status_code == 200
    """
    from eventdesk.backend.main import create_app

    async def override_get_db_session() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app = create_app()
    app.dependency_overrides[get_db_session] = override_get_db_session
    app.dependency_overrides[get_email_client] = lambda: email_client
    app.dependency_overrides[get_razorpay_client] = lambda: razorpay_client
    app.dependency_overrides[get_webhook_dispatcher] = lambda: webhook_dispatcher

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# =============================================================================
# API Response Assertion Helpers
# =============================================================================


class ApiAssertions:
    """Helper class for API response assertions."""

    @staticmethod
    def assert_success(response: Any, expected_status: int = 200) -> dict[str, Any]:
        """
        Assert API response is successful.

        Returns:
            Response JSON data
        """
        assert response.status_code == expected_status, (
            f"Expected status {expected_status}, got {response.status_code}: "
            f"{response.text}"
        )
        data = response.json()
        assert data.get("success") is True, f"Response not successful: {data}"
        return data

    @staticmethod
    def assert_error(
        response: Any,
        expected_status: int,
        expected_code: str | None = None,
    ) -> dict[str, Any]:
        """
        Assert API response is an error.

        Returns:
            Response JSON data
        """
        assert response.status_code == expected_status, (
            f"Expected status {expected_status}, got {response.status_code}: "
            f"{response.text}"
        )
        data = response.json()
        assert data.get("success") is False, f"Response should be error: {data}"
        assert data.get("error") is not None, f"Missing error details: {data}"

        if expected_code:
            actual_code = data["error"].get("code")
            assert actual_code == expected_code, (
                f"Expected error code {expected_code}, got {actual_code}"
            )

        return data

    @staticmethod
    def assert_validation_error(
        response: Any,
        field: str | None = None,
    ) -> dict[str, Any]:
        """Assert API response is a request validation error (422)."""
        data = ApiAssertions.assert_error(response, 422, "VAL_REQUEST_INVALID")

        if field:
            errors = data["error"].get("details", {}).get("validation_errors", [])
            fields = [e.get("field", "") for e in errors]
            assert any(field in f for f in fields), (
                f"Expected validation error for field '{field}', "
                f"got errors for: {fields}"
            )

        return data


@pytest.fixture
def api() -> ApiAssertions:
    """Provide API assertion helpers."""
    return ApiAssertions()


# =============================================================================
# Authentication Fixtures
# =============================================================================


@pytest.fixture
def auth_headers() -> dict[str, str]:
    """
    Bearer headers for a staff admin.

    Usage:
        async def test_protected_endpoint(client: AsyncClient, auth_headers: dict):
            response = await client.get("/api/v1/events", headers=auth_headers)
            assert response.status_code == 200
    """
    from eventdesk.backend.core.security import create_access_token

    token = create_access_token(
        data={"sub": "staff-1", "email": "coordinator@example.com", "name": "Coordinator", "role": "admin"},
    )
    return {"Authorization": f"Bearer {token}"}


# =============================================================================
# Data Builders
# =============================================================================


@pytest.fixture
async def event(client: AsyncClient) -> dict[str, Any]:
    """A published event open for registration."""
    response = await client.post(
        f"{API}/events",
        json={
            "name": "Annual Cardiology Conference",
            "slug": "cardiocon",
            "short_name": "CardioCon",
            "start_date": "2026-11-20",
            "end_date": "2026-11-22",
            "venue_name": "Convention Centre",
            "city": "Bengaluru",
            "status": "published",
        },
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


@pytest.fixture
def create_ticket(client: AsyncClient) -> Callable[..., Awaitable[dict[str, Any]]]:
    """Builder for ticket types; defaults to a paid Delegate ticket with 18% tax."""

    async def _create(event_id: str, **overrides: Any) -> dict[str, Any]:
        body = {"event_id": event_id, "name": "Delegate", "price": 1000, "tax_percentage": 18}
        body.update(overrides)
        response = await client.post(f"{API}/ticket-types", json=body)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _create


@pytest.fixture
def register(client: AsyncClient) -> Callable[..., Awaitable[dict[str, Any]]]:
    """Builder for single registrations; returns {registration, payment, requires_payment}."""

    async def _register(event_id: str, ticket_type_id: str, **overrides: Any) -> dict[str, Any]:
        body = {
            "event_id": event_id,
            "ticket_type_id": ticket_type_id,
            "attendee_name": "Asha Rao",
            "attendee_email": "asha.rao@example.com",
        }
        body.update(overrides)
        response = await client.post(f"{API}/registrations", json=body)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _register
