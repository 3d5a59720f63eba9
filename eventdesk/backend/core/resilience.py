"""
Resilience Infrastructure.

Circuit breaker listener, retry callback, and the composed call wrapper used
by every outbound integration (email provider, Razorpay, webhooks).

The composed stack is always applied in this order (outside-in):
    Circuit Breaker (aiobreaker) → Retry (tenacity) → Semaphore → Call

Usage:
    from eventdesk.backend.core.resilience import call_external

    response = await call_external("email", lambda: client.post(url, json=payload))
"""

from collections.abc import Awaitable, Callable
from datetime import timedelta
from typing import Any, TypeVar

import aiobreaker
import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from eventdesk.backend.core.concurrency import get_semaphore
from eventdesk.backend.core.exceptions import ExternalServiceError
from eventdesk.backend.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

# Only transport-level failures are worth another attempt; HTTP error
# responses are final.
RETRYABLE_EXCEPTIONS: tuple[type[Exception], ...] = (
    httpx.TransportError,
    TimeoutError,
)

_breakers: dict[str, aiobreaker.CircuitBreaker] = {}


class ResilienceLogger(aiobreaker.CircuitBreakerListener):
    """Circuit breaker listener that emits structured resilience events.

        jq 'select(.resilience_event != null)' logs/system.jsonl
    """

    def __init__(self, dependency: str) -> None:
        self.dependency = dependency

    def state_change(self, cb: aiobreaker.CircuitBreaker, old_state: Any, new_state: Any) -> None:
        event_map = {
            "open": "circuit_breaker_opened",
            "half-open": "circuit_breaker_half_open",
            "closed": "circuit_breaker_closed",
        }
        new_str = str(getattr(new_state, "state", new_state)).lower()
        new_str = new_str.rsplit(".", 1)[-1].replace("_", "-")
        event = event_map.get(new_str, f"circuit_breaker_{new_str}")
        log_level = "error" if new_str == "open" else "info"

        getattr(logger, log_level)(
            f"Circuit breaker {self.dependency}: {old_state} -> {new_state}",
            extra={
                "resilience_event": event,
                "dependency": self.dependency,
                "failure_count": cb.fail_counter,
            },
        )

    def failure(self, cb: aiobreaker.CircuitBreaker, exception: Exception) -> None:
        logger.warning(
            f"Circuit breaker {self.dependency}: failure recorded",
            extra={
                "resilience_event": "circuit_breaker_failure",
                "dependency": self.dependency,
                "failure_count": cb.fail_counter,
                "error": str(exception),
            },
        )


def log_retry(retry_state: Any) -> None:
    """Tenacity before_sleep callback that emits structured retry events."""
    duration_ms = None
    if retry_state.outcome_timestamp and retry_state.start_time:
        duration_ms = round(
            (retry_state.outcome_timestamp - retry_state.start_time) * 1000
        )

    error = None
    if retry_state.outcome and retry_state.outcome.failed:
        error = str(retry_state.outcome.exception())

    fn_name = getattr(retry_state.fn, "__name__", "unknown")

    logger.warning(
        f"Retrying {fn_name} (attempt {retry_state.attempt_number})",
        extra={
            "resilience_event": "retry_attempt",
            "dependency": fn_name,
            "attempt": retry_state.attempt_number,
            "duration_ms": duration_ms,
            "error": error,
        },
    )


def create_circuit_breaker(
    dependency: str,
    fail_max: int = 5,
    timeout_duration: int = 30,
) -> aiobreaker.CircuitBreaker:
    """Create a circuit breaker with structured logging.

    Args:
        dependency: Name of the external dependency (for logging)
        fail_max: Number of failures before opening
        timeout_duration: Seconds to wait before half-open test
    """
    return aiobreaker.CircuitBreaker(
        fail_max=fail_max,
        timeout_duration=timedelta(seconds=timeout_duration),
        listeners=[ResilienceLogger(dependency)],
        name=dependency,
    )


def get_circuit_breaker(dependency: str) -> aiobreaker.CircuitBreaker:
    """Process-wide breaker per dependency, sized from integrations.yaml."""
    if dependency not in _breakers:
        from eventdesk.backend.core.config import get_app_config
        cfg = get_app_config().integrations.circuit_breaker
        _breakers[dependency] = create_circuit_breaker(
            dependency,
            fail_max=cfg.fail_max,
            timeout_duration=cfg.timeout_duration,
        )
    return _breakers[dependency]


def breaker_status() -> dict[str, dict[str, Any]]:
    """State and failure count of every breaker created so far."""
    return {
        name: {
            "state": str(cb.current_state).rsplit(".", 1)[-1].lower().replace("_", "-"),
            "failures": cb.fail_counter,
        }
        for name, cb in _breakers.items()
    }


def reset_circuit_breakers() -> None:
    _breakers.clear()


async def call_external(
    dependency: str,
    operation: Callable[[], Awaitable[T]],
) -> T:
    """
    Run an outbound call under breaker, retry and semaphore.

    Args:
        dependency: Semaphore and breaker name (email, payments, webhooks)
        operation: Zero-argument coroutine factory; called once per attempt

    Raises:
        ExternalServiceError: When the breaker is open
    """
    from eventdesk.backend.core.config import get_app_config

    retry_cfg = get_app_config().integrations.retry

    async def _attempts() -> T:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(retry_cfg.max_attempts),
            wait=wait_exponential(
                multiplier=retry_cfg.backoff_multiplier,
                max=retry_cfg.backoff_max,
            ),
            retry=retry_if_exception_type(RETRYABLE_EXCEPTIONS),
            before_sleep=log_retry,
            reraise=True,
        ):
            with attempt:
                async with get_semaphore(dependency):
                    return await operation()
        raise RuntimeError("unreachable")  # pragma: no cover

    try:
        return await get_circuit_breaker(dependency).call_async(_attempts)
    except aiobreaker.CircuitBreakerError as e:
        raise ExternalServiceError(f"{dependency} is temporarily unavailable") from e
