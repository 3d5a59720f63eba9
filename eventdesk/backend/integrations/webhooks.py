"""
Outbound Webhooks.

Posts JSON event notifications to every URL in integrations.yaml
(webhooks.urls). Delivery failures are logged and counted, never raised,
so a broken receiver cannot fail the request that triggered it.
"""

import hashlib
import hmac
import json
from dataclasses import dataclass, field
from typing import Any

import httpx

from eventdesk.backend.core.config import get_app_config, get_settings
from eventdesk.backend.core.exceptions import ExternalServiceError
from eventdesk.backend.core.logging import get_logger
from eventdesk.backend.core.resilience import call_external
from eventdesk.backend.core.utils import utc_now

logger = get_logger(__name__)

EVENT_HEADER = "X-EventDesk-Event"
SIGNATURE_HEADER = "X-EventDesk-Signature"


@dataclass
class DispatchResult:
    """Outcome of one dispatch across all configured URLs."""

    event: str
    delivered: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)


class WebhookDispatcher:
    def __init__(
        self,
        urls: list[str] | None = None,
        signing_secret: str | None = None,
        enabled: bool | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        config = get_app_config()
        self.urls = urls if urls is not None else list(config.integrations.webhooks.urls)
        self.signing_secret = (
            signing_secret if signing_secret is not None else get_settings().webhook_signing_secret
        )
        self.enabled = enabled if enabled is not None else config.features.webhooks_enabled
        self._timeout = float(config.application.timeouts.external_api)
        self._transport = transport

    def sign(self, body: bytes) -> str:
        return hmac.new(self.signing_secret.encode(), body, hashlib.sha256).hexdigest()

    async def dispatch(self, event: str, payload: dict[str, Any]) -> DispatchResult:
        """
        Deliver `payload` as event `event` to every configured URL.

        Returns a DispatchResult; never raises for delivery failures.
        """
        result = DispatchResult(event=event)
        if not self.enabled or not self.urls:
            logger.debug("Webhook dispatch skipped", extra={"event": event, "enabled": self.enabled})
            return result

        body = json.dumps(
            {"event": event, "timestamp": utc_now().isoformat(), "data": payload},
            default=str,
        ).encode()
        headers = {"Content-Type": "application/json", EVENT_HEADER: event}
        if self.signing_secret:
            headers[SIGNATURE_HEADER] = self.sign(body)

        for url in self.urls:
            try:
                response = await call_external("webhooks", lambda url=url: self._post(url, body, headers))
            except (httpx.HTTPError, ExternalServiceError) as e:
                self._record_failure(result, url, str(e))
                continue
            if response.status_code >= 400:
                self._record_failure(result, url, f"HTTP {response.status_code}")
                continue
            result.delivered += 1

        logger.info(
            "Webhook dispatched",
            extra={"event": event, "delivered": result.delivered, "failed": result.failed},
        )
        return result

    def _record_failure(self, result: DispatchResult, url: str, error: str) -> None:
        result.failed += 1
        result.errors.append(f"{url}: {error}")
        logger.warning(
            "Webhook delivery failed",
            extra={"event": result.event, "url": url, "error": error},
        )

    async def _post(self, url: str, body: bytes, headers: dict[str, str]) -> httpx.Response:
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            return await client.post(url, content=body, headers=headers)


def get_webhook_dispatcher() -> WebhookDispatcher:
    """FastAPI dependency; override in tests."""
    return WebhookDispatcher()
