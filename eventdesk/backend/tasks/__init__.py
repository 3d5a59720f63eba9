"""
Background Tasks Package.

Taskiq tasks backed by a Redis list queue. Task functions are plain async
functions; register_tasks() wraps them with the broker when Redis is
available.

Usage (with Redis):
    from eventdesk.backend.tasks import enqueue_registration_confirmation

    await enqueue_registration_confirmation(registration_id)

Usage (without Redis, tests):
    from eventdesk.backend.tasks.notifications import send_registration_confirmation

    result = await send_registration_confirmation(registration_id)

Worker:
    python cli.py --service worker
"""

from eventdesk.backend.tasks.broker import get_broker
from eventdesk.backend.tasks.notifications import (
    TASK_CONFIG,
    enqueue_registration_confirmation,
    enqueue_registration_confirmations,
    register_tasks,
    send_registration_confirmation,
)

__all__ = [
    "get_broker",
    "register_tasks",
    "enqueue_registration_confirmation",
    "enqueue_registration_confirmations",
    "TASK_CONFIG",
    "send_registration_confirmation",
]
