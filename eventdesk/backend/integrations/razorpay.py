"""
Razorpay Integration.

Order creation over the Razorpay REST API and HMAC-SHA256 signature
checks for checkout callbacks and webhooks. Events may carry their own
key pair; otherwise the default keys from config/.env are used.
"""

import hashlib
import hmac
from dataclasses import dataclass
from typing import Any

import httpx

from eventdesk.backend.core.config import get_app_config, get_settings
from eventdesk.backend.core.exceptions import ConfigurationError, ExternalServiceError
from eventdesk.backend.core.logging import get_logger
from eventdesk.backend.core.resilience import call_external

logger = get_logger(__name__)


@dataclass(frozen=True)
class RazorpayCredentials:
    key_id: str
    key_secret: str
    webhook_secret: str | None = None


def _hmac_hex(secret: str, message: bytes) -> str:
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


def verify_payment_signature(order_id: str, payment_id: str, signature: str, secret: str) -> bool:
    """Checkout signature: HMAC-SHA256 of "order_id|payment_id"."""
    expected = _hmac_hex(secret, f"{order_id}|{payment_id}".encode())
    return hmac.compare_digest(expected, signature or "")


def verify_webhook_signature(body: bytes | str, signature: str, secret: str) -> bool:
    """Webhook signature: HMAC-SHA256 of the raw request body."""
    raw = body.encode() if isinstance(body, str) else body
    return hmac.compare_digest(_hmac_hex(secret, raw), signature or "")


def resolve_credentials(event: Any | None = None) -> RazorpayCredentials:
    """
    Key pair for an event, falling back to the default keys.

    Raises:
        ConfigurationError: Neither the event nor config/.env has keys
    """
    if event is not None and event.razorpay_key_id and event.razorpay_key_secret:
        return RazorpayCredentials(
            key_id=event.razorpay_key_id,
            key_secret=event.razorpay_key_secret,
            webhook_secret=event.razorpay_webhook_secret,
        )
    settings = get_settings()
    if not settings.razorpay_key_id or not settings.razorpay_key_secret:
        raise ConfigurationError("Payment gateway not configured")
    return RazorpayCredentials(
        key_id=settings.razorpay_key_id,
        key_secret=settings.razorpay_key_secret,
        webhook_secret=settings.razorpay_webhook_secret or None,
    )


def resolve_key_secret(event: Any | None = None) -> str:
    if event is not None and event.razorpay_key_secret:
        return event.razorpay_key_secret
    secret = get_settings().razorpay_key_secret
    if not secret:
        raise ConfigurationError("Payment gateway not configured")
    return secret


def resolve_webhook_secret(event: Any | None = None) -> str:
    if event is not None and event.razorpay_webhook_secret:
        return event.razorpay_webhook_secret
    secret = get_settings().razorpay_webhook_secret
    if not secret:
        raise ConfigurationError("Webhook secret not configured")
    return secret


class RazorpayClient:
    """Creates orders through POST {api_base}/orders with basic auth."""

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        config = get_app_config()
        self._config = config.integrations.razorpay
        self._timeout = float(config.application.timeouts.external_api)
        self._transport = transport

    @property
    def currency(self) -> str:
        return self._config.currency

    async def create_order(
        self,
        credentials: RazorpayCredentials,
        amount_paise: int,
        receipt: str,
        notes: dict[str, str] | None = None,
        currency: str | None = None,
    ) -> dict[str, Any]:
        """
        Create an order and return the gateway's order object.

        Raises:
            ExternalServiceError: Gateway rejected the order or is unavailable
        """
        payload = {
            "amount": amount_paise,
            "currency": currency or self._config.currency,
            "receipt": receipt,
            "notes": notes or {},
        }
        url = f"{self._config.api_base.rstrip('/')}/orders"

        async def _post() -> httpx.Response:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                return await client.post(
                    url,
                    json=payload,
                    auth=(credentials.key_id, credentials.key_secret),
                )

        try:
            response = await call_external("payments", _post)
        except httpx.HTTPError as e:
            logger.error("Payment gateway unreachable", extra={"error": str(e)})
            raise ExternalServiceError("Payment gateway unreachable") from e

        if response.status_code >= 400:
            logger.error(
                "Payment gateway rejected order",
                extra={"status_code": response.status_code, "body": response.text[:500]},
            )
            raise ExternalServiceError(
                "Failed to create payment order",
                details={"status_code": response.status_code},
            )

        order = response.json()
        logger.info("Payment order created", extra={"order_id": order.get("id"), "receipt": receipt})
        return order


def get_razorpay_client() -> RazorpayClient:
    """FastAPI dependency; override in tests."""
    return RazorpayClient()
