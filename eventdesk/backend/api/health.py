"""
Health Check Endpoints.

Endpoints:
- /health: Liveness check (process running)
- /health/ready: Readiness check (database, plus Redis when the task
  broker is in use)
- /health/detailed: Dependency checks, outbound provider configuration,
  semaphores and circuit breakers
"""

import asyncio
from typing import Any

from fastapi import APIRouter, Depends, Header, HTTPException

from eventdesk.backend.core.concurrency import semaphore_status
from eventdesk.backend.core.exceptions import AuthenticationError
from eventdesk.backend.core.logging import get_logger
from eventdesk.backend.core.resilience import breaker_status
from eventdesk.backend.core.utils import utc_now

router = APIRouter()
logger = get_logger(__name__)

# Statuses that take the service out of rotation
FAILING_STATUSES = {"unhealthy", "error"}


async def check_database() -> dict[str, Any]:
    """Run SELECT 1 on a fresh session and report the round trip."""
    from sqlalchemy import text

    from eventdesk.backend.core.config import get_app_config
    from eventdesk.backend.core.database import get_session_factory

    db_config = get_app_config().database
    if not db_config.host or not db_config.name:
        return {"status": "not_configured"}

    try:
        start = utc_now()
        async with get_session_factory()() as session:
            await session.execute(text("SELECT 1"))
        return {
            "status": "healthy",
            "latency_ms": int((utc_now() - start).total_seconds() * 1000),
        }
    except Exception as e:
        logger.warning("Database health check failed", extra={"error": str(e)})
        return {"status": "unhealthy", "error": str(e)}


async def check_redis() -> dict[str, Any]:
    """
    Ping the Redis instance behind the task broker.

    Redis only carries queued confirmation emails, so with background
    tasks disabled it is reported as disabled and never pinged.
    """
    from eventdesk.backend.core.config import get_app_config, get_redis_url

    if not get_app_config().features.background_tasks_enabled:
        return {"status": "disabled"}

    import redis.asyncio as redis

    try:
        start = utc_now()
        client = redis.from_url(get_redis_url())
        try:
            await client.ping()
        finally:
            await client.aclose()
        return {
            "status": "healthy",
            "latency_ms": int((utc_now() - start).total_seconds() * 1000),
        }
    except Exception as e:
        logger.warning("Redis health check failed", extra={"error": str(e)})
        return {"status": "unhealthy", "error": str(e)}


def integration_status() -> dict[str, dict[str, Any]]:
    """
    Which outbound providers have default credentials.

    Events may carry their own gateway keys, so an unconfigured default
    is informational and never fails readiness.
    """
    from eventdesk.backend.core.config import get_app_config, get_settings

    settings = get_settings()
    app_config = get_app_config()
    webhook_urls = app_config.integrations.webhooks.urls

    def configured(flag: bool) -> str:
        return "configured" if flag else "not_configured"

    if not app_config.features.webhooks_enabled:
        webhooks: dict[str, Any] = {"status": "disabled"}
    else:
        webhooks = {
            "status": configured(bool(webhook_urls)),
            "receivers": len(webhook_urls),
            "signed": bool(settings.webhook_signing_secret),
        }

    return {
        "email": {"status": configured(bool(settings.email_api_key))},
        "payments": {
            "status": configured(bool(settings.razorpay_key_id and settings.razorpay_key_secret)),
            "webhook_secret": bool(settings.razorpay_webhook_secret),
        },
        "webhooks": webhooks,
    }


async def _run_checks(timeout: float | None = None) -> dict[str, dict[str, Any]]:
    names = ("database", "redis")
    checks: dict[str, dict[str, Any]] = {
        name: {"status": "error", "error": "check did not run"} for name in names
    }
    try:
        async with asyncio.timeout(timeout):
            results = await asyncio.gather(check_database(), check_redis(), return_exceptions=True)
    except TimeoutError:
        logger.warning("Health checks timed out", extra={"timeout": timeout})
        return checks

    for name, result in zip(names, results):
        if isinstance(result, Exception):
            logger.warning("Health check task failed", extra={"check": name, "error": str(result)})
            checks[name] = {"status": "error", "error": str(result)}
        else:
            checks[name] = result
    return checks


def _failing(checks: dict[str, dict[str, Any]]) -> list[str]:
    return [name for name, check in checks.items() if check.get("status") in FAILING_STATUSES]


async def require_detailed_access(authorization: str | None = Header(None)) -> None:
    """
    Demand a staff token when health_checks.detailed_auth_required is set.

    Applies even while API authentication is switched off.
    """
    from eventdesk.backend.core.config import get_app_config
    from eventdesk.backend.core.dependencies import require_staff

    if not get_app_config().observability.health_checks.detailed_auth_required:
        return
    if not authorization:
        raise AuthenticationError("Authentication required")
    await require_staff(authorization)


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Liveness: answers as long as the process runs."""
    return {"status": "healthy"}


@router.get("/health/ready")
async def readiness_check() -> dict[str, Any]:
    """
    Readiness check.

    Returns 503 when the database, or Redis while the task broker is in
    use, cannot be reached within health_checks.ready_timeout_seconds.
    """
    from eventdesk.backend.core.config import get_app_config

    timeout = get_app_config().observability.health_checks.ready_timeout_seconds
    checks = await _run_checks(timeout)

    failing = _failing(checks)
    if failing:
        logger.warning("Readiness check failed", extra={"unhealthy": failing, "checks": checks})
        raise HTTPException(
            status_code=503,
            detail={
                "status": "unhealthy",
                "checks": checks,
                "timestamp": utc_now().isoformat(),
            },
        )

    return {
        "status": "healthy",
        "checks": checks,
        "timestamp": utc_now().isoformat(),
    }


@router.get("/health/detailed", dependencies=[Depends(require_detailed_access)])
async def detailed_health_check() -> dict[str, Any]:
    """Dependency checks plus the state of every outbound integration."""
    from eventdesk.backend.core.config import get_app_config

    checks = await _run_checks()
    app_settings = get_app_config().application

    return {
        "status": "unhealthy" if _failing(checks) else "healthy",
        "application": {
            "name": app_settings.name,
            "env": app_settings.environment,
            "debug": app_settings.debug,
            "version": app_settings.version,
        },
        "checks": checks,
        "integrations": integration_status(),
        "semaphores": semaphore_status(),
        "circuit_breakers": breaker_status(),
        "timestamp": utc_now().isoformat(),
    }
