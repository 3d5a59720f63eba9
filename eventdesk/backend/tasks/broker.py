"""
Taskiq Broker Configuration.

Redis list-queue broker for background notification work. Queue name and
result expiry come from database.yaml (redis.broker).

Usage:
    python cli.py --service worker

    # Or directly with taskiq
    taskiq worker eventdesk.backend.tasks.broker:broker eventdesk.backend.tasks.notifications
"""

from typing import TYPE_CHECKING

from eventdesk.backend.core.config import get_app_config, get_redis_url
from eventdesk.backend.core.logging import get_logger

logger = get_logger(__name__)

if TYPE_CHECKING:
    from taskiq_redis import ListQueueBroker


def create_broker() -> "ListQueueBroker":
    """
    Create and configure the Taskiq broker.

    Returns:
        Configured ListQueueBroker instance
    """
    from taskiq_redis import ListQueueBroker, RedisAsyncResultBackend

    redis_url = get_redis_url()
    broker_config = get_app_config().database.redis.broker

    result_backend = RedisAsyncResultBackend(
        redis_url=redis_url,
        result_ex_time=broker_config.result_expiry_seconds,
    )

    broker = ListQueueBroker(
        url=redis_url,
        queue_name=broker_config.queue_name,
    ).with_result_backend(result_backend)

    logger.debug(
        "Taskiq broker configured",
        extra={
            "queue_name": broker_config.queue_name,
            "result_expiry": broker_config.result_expiry_seconds,
        },
    )

    return broker


_broker: "ListQueueBroker | None" = None


def get_broker() -> "ListQueueBroker":
    """
    Get the broker instance, creating it if necessary.

    Returns:
        Configured broker instance
    """
    global _broker
    if _broker is None:
        _broker = create_broker()

        @_broker.on_event("startup")
        async def on_startup() -> None:
            logger.info("Taskiq worker starting up", extra={"source": "tasks"})

        @_broker.on_event("shutdown")
        async def on_shutdown() -> None:
            from eventdesk.backend.core.database import dispose_engine

            await dispose_engine()
            logger.info("Taskiq worker shutting down", extra={"source": "tasks"})

    return _broker


def __getattr__(name: str):
    """Lazy attribute access for broker (used by `taskiq worker`)."""
    if name == "broker":
        return get_broker()
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
