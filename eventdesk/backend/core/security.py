"""
Security Utilities.

JWT issuing and decoding for staff access, plus the principal type that
staff-only endpoints receive.
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from jose import JWTError, jwt

from eventdesk.backend.core.config import get_app_config, get_settings
from eventdesk.backend.core.exceptions import AuthenticationError, AuthorizationError
from eventdesk.backend.core.logging import get_logger
from eventdesk.backend.core.utils import utc_now

logger = get_logger(__name__)


@dataclass(frozen=True)
class StaffPrincipal:
    """The authenticated caller of a staff endpoint."""

    id: str
    email: str | None
    name: str | None
    role: str
    authenticated: bool = True

    @property
    def display_name(self) -> str:
        return self.name or self.email or self.id


ANONYMOUS_STAFF = StaffPrincipal(
    id="anonymous",
    email=None,
    name="System",
    role="admin",
    authenticated=False,
)


def create_access_token(data: dict[str, Any], expires_delta: timedelta | None = None) -> str:
    """
    Create a JWT access token.

    Args:
        data: Payload data to encode (sub, email, name, role)
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token
    """
    settings = get_settings()
    jwt_config = get_app_config().security.jwt
    to_encode = data.copy()

    if expires_delta:
        expire = utc_now() + expires_delta
    else:
        expire = utc_now() + timedelta(minutes=jwt_config.access_token_expire_minutes)

    to_encode.update({"exp": expire, "type": "access", "aud": jwt_config.audience})
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=jwt_config.algorithm)


def decode_token(token: str) -> dict[str, Any]:
    """
    Decode and validate a JWT token.

    Raises:
        AuthenticationError: If token is invalid or expired
    """
    settings = get_settings()
    jwt_config = get_app_config().security.jwt
    try:
        return jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[jwt_config.algorithm],
            audience=jwt_config.audience,
        )
    except JWTError as e:
        logger.warning("Token decode failed", extra={"error": str(e)})
        raise AuthenticationError("Invalid or expired token")


def principal_from_token(token: str) -> StaffPrincipal:
    """
    Build a StaffPrincipal from a bearer token.

    Raises:
        AuthenticationError: If the token is invalid or not an access token
        AuthorizationError: If the role is not one of security.staff_roles
    """
    payload = decode_token(token)
    if payload.get("type") != "access":
        raise AuthenticationError("Invalid token type")

    role = payload.get("role", "staff")
    if role not in get_app_config().security.staff_roles:
        raise AuthorizationError("Staff access required")

    return StaffPrincipal(
        id=str(payload.get("sub", "")),
        email=payload.get("email"),
        name=payload.get("name"),
        role=role,
    )
