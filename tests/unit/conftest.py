"""
Unit Test Fixtures.

Fixtures for unit tests - all external dependencies are mocked.
Unit tests should be fast and isolated, never touching real databases
or the network.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from eventdesk.backend.core.config import AppConfig
from eventdesk.backend.core.config_schema import RetrySchema, WebhooksSchema


# =============================================================================
# Database Mock Fixtures
# =============================================================================


@pytest.fixture
def mock_db_session() -> AsyncMock:
    """
    Mock database session for unit tests.

    Usage:
        def test_service(mock_db_session: AsyncMock):
            service = SponsorService(mock_db_session)
    """
    session = AsyncMock()
    session.add = MagicMock()
    return session


# =============================================================================
# Settings Mock Fixtures
# =============================================================================


@pytest.fixture
def mock_settings() -> MagicMock:
    """
    Mock environment secrets.

    Usage:
        def test_with_settings(mock_settings):
            with patch("module.get_settings", return_value=mock_settings):
                ...
    """
    settings = MagicMock()
    settings.db_password = "test_pass"
    settings.redis_password = ""
    settings.jwt_secret = "test-secret-key-with-at-least-32-characters"
    settings.api_key_salt = "test-salt"
    settings.email_api_key = "re_test_key"
    settings.razorpay_key_id = "rzp_test_default"
    settings.razorpay_key_secret = "default-secret"
    settings.razorpay_webhook_secret = "default-webhook-secret"
    settings.webhook_signing_secret = "signing-secret"
    return settings


@pytest.fixture
def mock_app_config() -> SimpleNamespace:
    """
    The shipped YAML configuration with fast retries and two webhook URLs.

    Sections are the real validated schema objects, so attribute access
    matches production.
    """
    real = AppConfig()
    return SimpleNamespace(
        application=real.application,
        database=real.database,
        logging=real.logging,
        features=real.features.model_copy(update={"webhooks_enabled": True}),
        security=real.security,
        observability=real.observability,
        concurrency=real.concurrency,
        integrations=real.integrations.model_copy(
            update={
                "retry": RetrySchema(max_attempts=2, backoff_multiplier=0, backoff_max=0),
                "webhooks": WebhooksSchema(
                    urls=["https://hooks.example.com/a", "https://hooks.example.com/b"],
                ),
            },
        ),
    )
