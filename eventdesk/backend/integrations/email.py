"""
Email Provider Client.

Sends transactional email through a Resend-compatible HTTP API
(POST {api_base}/emails). Every call runs through call_external, so it is
rate limited by the "email" semaphore, retried on transport errors and
guarded by the "email" circuit breaker.

Usage:
    client = get_email_client()
    message_id = await client.send(
        to="speaker@example.com",
        subject="Invitation",
        html="<p>Hello</p>",
    )
"""

from typing import Any

import httpx

from eventdesk.backend.core.config import get_app_config, get_settings
from eventdesk.backend.core.exceptions import ConfigurationError, ExternalServiceError
from eventdesk.backend.core.logging import get_logger
from eventdesk.backend.core.resilience import call_external

logger = get_logger(__name__)


class EmailClient:
    """Thin async client for the configured email provider."""

    def __init__(
        self,
        api_key: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        config = get_app_config()
        self._config = config.integrations.email
        self._timeout = float(config.application.timeouts.external_api)
        self._api_key = api_key if api_key is not None else get_settings().email_api_key
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    @property
    def sender(self) -> str:
        return f"{self._config.from_name} <{self._config.from_address}>"

    def ensure_configured(self) -> None:
        """Raise ConfigurationError (503) when no API key is set."""
        if not self.configured:
            raise ConfigurationError("Email service not configured")

    async def send(
        self,
        to: str | list[str],
        subject: str,
        html: str,
        text: str | None = None,
        reply_to: str | None = None,
    ) -> str | None:
        """
        Send one email.

        Returns:
            The provider's message id

        Raises:
            ConfigurationError: No API key configured
            ExternalServiceError: Provider rejected the request or is unavailable
        """
        self.ensure_configured()

        payload: dict[str, Any] = {
            "from": self.sender,
            "to": [to] if isinstance(to, str) else list(to),
            "subject": subject,
            "html": html,
        }
        if text:
            payload["text"] = text
        reply_to = reply_to or self._config.reply_to
        if reply_to:
            payload["reply_to"] = reply_to

        url = f"{self._config.api_base.rstrip('/')}/emails"

        async def _post() -> httpx.Response:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                return await client.post(
                    url,
                    json=payload,
                    headers={"Authorization": f"Bearer {self._api_key}"},
                )

        try:
            response = await call_external("email", _post)
        except httpx.HTTPError as e:
            logger.warning("Email provider unreachable", extra={"error": str(e)})
            raise ExternalServiceError("Email provider unreachable") from e

        if response.status_code >= 400:
            logger.warning(
                "Email provider rejected message",
                extra={"status_code": response.status_code, "body": response.text[:500]},
            )
            raise ExternalServiceError(
                "Failed to send email",
                details={"status_code": response.status_code},
            )

        message_id = response.json().get("id")
        logger.debug("Email sent", extra={"message_id": message_id, "subject": subject})
        return message_id


def get_email_client() -> EmailClient:
    """FastAPI dependency; override in tests."""
    return EmailClient()
