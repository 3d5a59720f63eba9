"""
Notification Background Tasks.

Plain async functions wrapped with broker.task() by register_tasks(), so
they can be called directly (tests, no Redis) or dispatched with .kiq().

Usage:
    # Queue from a service
    queued = await enqueue_registration_confirmation(registration.id)

    # Worker
    taskiq worker eventdesk.backend.tasks.notifications:broker
"""

from typing import Any

from eventdesk.backend.core.config import get_app_config
from eventdesk.backend.core.database import get_session_factory
from eventdesk.backend.core.exceptions import ApplicationError
from eventdesk.backend.core.logging import get_logger

logger = get_logger(__name__)

TASK_CONFIG: dict[str, dict[str, Any]] = {
    "send_registration_confirmation": {"retry_on_error": True, "max_retries": 3},
}

_registered: dict[str, Any] = {}


async def send_registration_confirmation(registration_id: str) -> dict[str, Any]:
    """
    Render and send the confirmation email for one registration.

    Runs in its own database session; the same code path serves direct
    calls and worker execution.
    """
    from eventdesk.backend.services.notifications import NotificationService

    session_factory = get_session_factory()
    async with session_factory() as session:
        try:
            message_id = await NotificationService(session).send_registration_confirmation(
                registration_id
            )
            await session.commit()
        except ApplicationError as e:
            await session.rollback()
            logger.warning(
                "Registration confirmation not sent",
                extra={"registration_id": registration_id, "error": e.message, "source": "tasks"},
            )
            return {"status": "failed", "registration_id": registration_id, "error": e.message}

    logger.info(
        "Registration confirmation sent",
        extra={"registration_id": registration_id, "message_id": message_id, "source": "tasks"},
    )
    return {"status": "sent", "registration_id": registration_id, "message_id": message_id}


def register_tasks() -> dict[str, Any]:
    """
    Wrap the task functions with the Taskiq broker.

    Returns:
        Dict mapping task names to registered task objects
    """
    if not _registered:
        from eventdesk.backend.tasks.broker import get_broker

        broker = get_broker()
        timeout = get_app_config().application.timeouts.background
        _registered["send_registration_confirmation"] = broker.task(
            task_name="send_registration_confirmation",
            timeout=timeout,
            **TASK_CONFIG["send_registration_confirmation"],
        )(send_registration_confirmation)
    return _registered


async def enqueue_registration_confirmation(registration_id: str) -> bool:
    """
    Queue a confirmation email when background tasks are enabled.

    Returns True when the task was handed to the broker. With
    features.background_tasks_enabled off, nothing is queued.
    """
    if not get_app_config().features.background_tasks_enabled:
        logger.debug(
            "Background tasks disabled, confirmation not queued",
            extra={"registration_id": registration_id},
        )
        return False

    task = register_tasks()["send_registration_confirmation"]
    await task.kiq(registration_id=registration_id)
    return True


async def enqueue_registration_confirmations(registration_ids: list[str]) -> int:
    """
    Queue confirmations for registrations that are already committed.

    A broker failure is logged for that registration and the rest are
    still queued. Returns how many were handed to the broker.
    """
    queued = 0
    for registration_id in registration_ids:
        try:
            if await enqueue_registration_confirmation(registration_id):
                queued += 1
        except Exception as e:
            logger.warning(
                "Registration confirmation not queued",
                extra={"registration_id": registration_id, "error": str(e), "source": "tasks"},
            )
    return queued


def __getattr__(name: str):
    """Broker with every notification task registered (used by `taskiq worker`)."""
    if name == "broker":
        from eventdesk.backend.tasks.broker import get_broker

        register_tasks()
        return get_broker()
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
