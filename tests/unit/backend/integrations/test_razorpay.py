"""Unit tests for the Razorpay integration."""

import hashlib
import hmac
import json
from types import SimpleNamespace
from unittest.mock import patch

import httpx
import pytest

from eventdesk.backend.core.exceptions import ConfigurationError, ExternalServiceError
from eventdesk.backend.integrations.razorpay import (
    RazorpayClient,
    RazorpayCredentials,
    resolve_credentials,
    resolve_key_secret,
    resolve_webhook_secret,
    verify_payment_signature,
    verify_webhook_signature,
)


def _sign(secret: str, message: str) -> str:
    return hmac.new(secret.encode(), message.encode(), hashlib.sha256).hexdigest()


def _event(key_id=None, key_secret=None, webhook_secret=None) -> SimpleNamespace:
    return SimpleNamespace(
        razorpay_key_id=key_id,
        razorpay_key_secret=key_secret,
        razorpay_webhook_secret=webhook_secret,
    )


class TestSignatures:
    def test_payment_signature(self):
        signature = _sign("secret", "order_1|pay_1")

        assert verify_payment_signature("order_1", "pay_1", signature, "secret")
        assert not verify_payment_signature("order_1", "pay_2", signature, "secret")
        assert not verify_payment_signature("order_1", "pay_1", signature, "other")

    def test_missing_signature_fails(self):
        assert not verify_payment_signature("order_1", "pay_1", None, "secret")

    def test_webhook_signature_over_raw_body(self):
        body = '{"event":"payment.captured"}'
        signature = _sign("hook-secret", body)

        assert verify_webhook_signature(body, signature, "hook-secret")
        assert verify_webhook_signature(body.encode(), signature, "hook-secret")
        assert not verify_webhook_signature(body + " ", signature, "hook-secret")


class TestCredentials:
    def test_event_keys_win(self, mock_settings):
        event = _event("rzp_event", "event-secret", "event-hook")

        with patch("eventdesk.backend.integrations.razorpay.get_settings", return_value=mock_settings):
            credentials = resolve_credentials(event)

        assert credentials == RazorpayCredentials("rzp_event", "event-secret", "event-hook")

    def test_falls_back_to_default_keys(self, mock_settings):
        with patch("eventdesk.backend.integrations.razorpay.get_settings", return_value=mock_settings):
            credentials = resolve_credentials(_event(key_id="rzp_event"))

        assert credentials.key_id == "rzp_test_default"
        assert credentials.webhook_secret == "default-webhook-secret"

    def test_unconfigured(self, mock_settings):
        mock_settings.razorpay_key_secret = ""

        with patch("eventdesk.backend.integrations.razorpay.get_settings", return_value=mock_settings):
            with pytest.raises(ConfigurationError):
                resolve_credentials(None)
            with pytest.raises(ConfigurationError):
                resolve_key_secret(None)

    def test_secret_resolution(self, mock_settings):
        with patch("eventdesk.backend.integrations.razorpay.get_settings", return_value=mock_settings):
            assert resolve_key_secret(_event(key_secret="event-secret")) == "event-secret"
            assert resolve_key_secret(None) == "default-secret"
            assert resolve_webhook_secret(_event(webhook_secret="event-hook")) == "event-hook"
            assert resolve_webhook_secret(_event()) == "default-webhook-secret"

    def test_webhook_secret_unconfigured(self, mock_settings):
        mock_settings.razorpay_webhook_secret = ""

        with patch("eventdesk.backend.integrations.razorpay.get_settings", return_value=mock_settings):
            with pytest.raises(ConfigurationError, match="Webhook secret not configured"):
                resolve_webhook_secret(None)


class TestRazorpayClient:
    @pytest.fixture(autouse=True)
    def app_config(self, mock_app_config):
        with patch("eventdesk.backend.integrations.razorpay.get_app_config", return_value=mock_app_config), \
                patch("eventdesk.backend.core.config.get_app_config", return_value=mock_app_config):
            yield

    @pytest.mark.asyncio
    async def test_create_order(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"id": "order_abc", "amount": 118000, "currency": "INR"})

        client = RazorpayClient(transport=httpx.MockTransport(handler))
        order = await client.create_order(
            RazorpayCredentials("rzp_key", "rzp_secret"),
            amount_paise=118000,
            receipt="PAY-ABC",
            notes={"event_id": "e-1"},
        )

        assert order["id"] == "order_abc"
        request = seen[0]
        assert str(request.url) == "https://api.razorpay.com/v1/orders"
        assert request.headers["authorization"].startswith("Basic ")
        assert json.loads(request.content) == {
            "amount": 118000,
            "currency": "INR",
            "receipt": "PAY-ABC",
            "notes": {"event_id": "e-1"},
        }

    @pytest.mark.asyncio
    async def test_rejected_order(self):
        client = RazorpayClient(
            transport=httpx.MockTransport(lambda request: httpx.Response(400, json={"error": "bad amount"})),
        )

        with pytest.raises(ExternalServiceError) as exc_info:
            await client.create_order(RazorpayCredentials("k", "s"), 100, "PAY-1")

        assert exc_info.value.details == {"status_code": 400}

    @pytest.mark.asyncio
    async def test_unreachable_gateway(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        client = RazorpayClient(transport=httpx.MockTransport(handler))

        with pytest.raises(ExternalServiceError, match="Payment gateway unreachable"):
            await client.create_order(RazorpayCredentials("k", "s"), 100, "PAY-1")

    def test_currency_from_config(self):
        assert RazorpayClient().currency == "INR"
