"""
FastAPI Dependencies.

Shared dependencies for request handling.
"""

import uuid
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.backend.core.config import get_app_config
from eventdesk.backend.core.database import get_db_session
from eventdesk.backend.core.exceptions import AuthenticationError
from eventdesk.backend.core.logging import get_logger
from eventdesk.backend.core.security import (
    ANONYMOUS_STAFF,
    StaffPrincipal,
    principal_from_token,
)

logger = get_logger(__name__)

# Type alias for database session dependency
DbSession = Annotated[AsyncSession, Depends(get_db_session)]


async def get_request_id(x_request_id: str | None = Header(None)) -> str:
    """Extract or generate request ID from headers."""
    return x_request_id or str(uuid.uuid4())


RequestId = Annotated[str, Depends(get_request_id)]


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise AuthenticationError("Invalid authorization header")
    return token.strip()


async def require_staff(
    authorization: str | None = Header(None),
) -> StaffPrincipal:
    """
    Resolve the staff caller from the Authorization header.

    When features.auth_require_api_authentication is off, requests without
    a header run as the anonymous system principal.
    """
    token = _bearer_token(authorization)
    if token is not None:
        return principal_from_token(token)

    if get_app_config().features.auth_require_api_authentication:
        raise AuthenticationError("Authentication required")
    return ANONYMOUS_STAFF


async def get_optional_staff(
    authorization: str | None = Header(None),
) -> StaffPrincipal | None:
    """Like require_staff but returns None for unauthenticated public callers."""
    try:
        return await require_staff(authorization)
    except AuthenticationError:
        return None


CurrentStaff = Annotated[StaffPrincipal, Depends(require_staff)]
OptionalStaff = Annotated[StaffPrincipal | None, Depends(get_optional_staff)]


@dataclass(frozen=True)
class ClientInfo:
    """Network identity of the caller, as far as proxies report it."""

    ip: str
    user_agent: str


async def get_client_info(request: Request) -> ClientInfo:
    forwarded_for = request.headers.get("x-forwarded-for")
    real_ip = request.headers.get("x-real-ip")
    if forwarded_for:
        ip = forwarded_for.split(",")[0].strip()
    elif real_ip:
        ip = real_ip
    elif request.client:
        ip = request.client.host
    else:
        ip = "unknown"
    return ClientInfo(ip=ip, user_agent=request.headers.get("user-agent", "unknown"))


Client = Annotated[ClientInfo, Depends(get_client_info)]
