"""
Concurrency Limits.

Named semaphores that cap concurrent access to external dependencies
(email provider, payment gateway, webhook receivers). Sizing is
configured in config/settings/concurrency.yaml.

Usage:
    from eventdesk.backend.core.concurrency import get_semaphore

    async with get_semaphore("email"):
        response = await client.post(url, json=payload)
"""

import asyncio

from eventdesk.backend.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_CAPACITY = 20

_semaphores: dict[str, asyncio.Semaphore] = {}
_semaphore_capacities: dict[str, int] = {}


def get_semaphore(name: str) -> asyncio.Semaphore:
    """Get a named semaphore, creating it lazily.

    The capacity is read from concurrency.yaml under `semaphores.<name>`.
    Unconfigured names default to DEFAULT_CAPACITY.
    """
    if name not in _semaphores:
        from eventdesk.backend.core.config import get_app_config
        semaphore_config = get_app_config().concurrency.semaphores
        capacity = getattr(semaphore_config, name, DEFAULT_CAPACITY)
        _semaphores[name] = asyncio.Semaphore(capacity)
        _semaphore_capacities[name] = capacity
        logger.debug("Semaphore created", extra={"name": name, "capacity": capacity})
    return _semaphores[name]


def semaphore_status() -> dict[str, dict[str, int]]:
    """Capacity and free slots of every semaphore created so far."""
    return {
        name: {
            "capacity": _semaphore_capacities.get(name, DEFAULT_CAPACITY),
            "available": sem._value,
        }
        for name, sem in _semaphores.items()
    }


def reset_semaphores() -> None:
    """Forget all semaphores. Called on shutdown; each event loop needs fresh ones."""
    _semaphores.clear()
    _semaphore_capacities.clear()
    logger.debug("Semaphores cleared")
