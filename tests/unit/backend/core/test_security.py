"""
Unit Tests for Security Module.

Black box tests against the public interface of security.py and the staff
dependencies built on it. JWT operations execute for real. Only the config
boundary is stubbed with real Pydantic schema objects.
"""

from datetime import timedelta
from types import SimpleNamespace
from unittest.mock import patch

import pytest
from jose import jwt

from eventdesk.backend.core.config_schema import JwtSchema
from eventdesk.backend.core.dependencies import get_optional_staff, require_staff
from eventdesk.backend.core.exceptions import AuthenticationError, AuthorizationError
from eventdesk.backend.core.security import (
    ANONYMOUS_STAFF,
    StaffPrincipal,
    create_access_token,
    decode_token,
    principal_from_token,
)

TEST_JWT_SECRET = "test-secret-key-that-is-long-enough-for-testing-purposes"


@pytest.fixture
def jwt_config():
    """Real Pydantic JwtSchema with test values."""
    return JwtSchema(
        algorithm="HS256",
        access_token_expire_minutes=30,
        refresh_token_expire_days=7,
        audience="test-api",
    )


def _app_config(jwt_config, require_auth: bool = False):
    return SimpleNamespace(
        security=SimpleNamespace(jwt=jwt_config, staff_roles=["admin", "staff", "reviewer"]),
        features=SimpleNamespace(auth_require_api_authentication=require_auth),
    )


@pytest.fixture
def _stub_config(jwt_config):
    """Stub the config boundary so security functions can resolve settings."""
    settings = SimpleNamespace(jwt_secret=TEST_JWT_SECRET)
    app_config = _app_config(jwt_config)
    with (
        patch("eventdesk.backend.core.security.get_settings", return_value=settings),
        patch("eventdesk.backend.core.security.get_app_config", return_value=app_config),
        patch("eventdesk.backend.core.dependencies.get_app_config", return_value=app_config),
    ):
        yield app_config


# =============================================================================
# Tokens
# =============================================================================


@pytest.mark.usefixtures("_stub_config")
class TestAccessTokens:
    """Tests for create_access_token / decode_token."""

    def test_round_trip_carries_claims(self):
        token = create_access_token({"sub": "u1", "email": "desk@example.com", "role": "staff"})

        payload = decode_token(token)

        assert payload["sub"] == "u1"
        assert payload["type"] == "access"
        assert payload["aud"] == "test-api"

    def test_expired_token_rejected(self):
        token = create_access_token({"sub": "u1"}, expires_delta=timedelta(seconds=-5))

        with pytest.raises(AuthenticationError, match="Invalid or expired token"):
            decode_token(token)

    def test_wrong_audience_rejected(self):
        token = jwt.encode(
            {"sub": "u1", "type": "access", "aud": "someone-else"},
            TEST_JWT_SECRET,
            algorithm="HS256",
        )

        with pytest.raises(AuthenticationError):
            decode_token(token)

    def test_wrong_secret_rejected(self):
        token = jwt.encode({"sub": "u1", "type": "access", "aud": "test-api"}, "x" * 40, algorithm="HS256")

        with pytest.raises(AuthenticationError):
            decode_token(token)


@pytest.mark.usefixtures("_stub_config")
class TestPrincipalFromToken:
    """Tests for staff principal resolution."""

    def test_builds_principal(self):
        token = create_access_token({"sub": "u1", "name": "Desk Lead", "role": "reviewer"})

        principal = principal_from_token(token)

        assert principal == StaffPrincipal(id="u1", email=None, name="Desk Lead", role="reviewer")
        assert principal.display_name == "Desk Lead"

    def test_role_defaults_to_staff(self):
        principal = principal_from_token(create_access_token({"sub": "u1", "email": "a@example.com"}))

        assert principal.role == "staff"
        assert principal.display_name == "a@example.com"

    def test_non_staff_role_forbidden(self):
        token = create_access_token({"sub": "u1", "role": "attendee"})

        with pytest.raises(AuthorizationError):
            principal_from_token(token)

    def test_non_access_token_rejected(self):
        token = jwt.encode({"sub": "u1", "type": "refresh", "aud": "test-api"}, TEST_JWT_SECRET, algorithm="HS256")

        with pytest.raises(AuthenticationError, match="Invalid token type"):
            principal_from_token(token)


# =============================================================================
# Staff dependencies
# =============================================================================


class TestRequireStaff:
    """Tests for the require_staff / get_optional_staff dependencies."""

    @pytest.mark.asyncio
    async def test_anonymous_when_auth_disabled(self, _stub_config):
        assert await require_staff(None) is ANONYMOUS_STAFF
        assert ANONYMOUS_STAFF.display_name == "System"

    @pytest.mark.asyncio
    async def test_header_required_when_auth_enabled(self, _stub_config):
        _stub_config.features.auth_require_api_authentication = True

        with pytest.raises(AuthenticationError, match="Authentication required"):
            await require_staff(None)

    @pytest.mark.asyncio
    async def test_bearer_token_resolved(self, _stub_config):
        token = create_access_token({"sub": "u9", "role": "admin"})

        principal = await require_staff(f"Bearer {token}")

        assert principal.id == "u9"
        assert principal.authenticated is True

    @pytest.mark.asyncio
    async def test_malformed_header_rejected(self, _stub_config):
        with pytest.raises(AuthenticationError, match="Invalid authorization header"):
            await require_staff("Token abc")

    @pytest.mark.asyncio
    async def test_optional_staff_swallows_bad_token(self, _stub_config):
        assert await get_optional_staff("Bearer not-a-jwt") is None
