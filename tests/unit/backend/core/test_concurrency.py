"""Unit tests for eventdesk.backend.core.concurrency."""

import asyncio
from types import SimpleNamespace
from unittest.mock import patch

import pytest

from eventdesk.backend.core.concurrency import (
    DEFAULT_CAPACITY,
    _semaphore_capacities,
    get_semaphore,
    reset_semaphores,
    semaphore_status,
)


def _concurrency_config(email=5, payments=3):
    semaphores = SimpleNamespace(email=email, payments=payments, webhooks=10)
    return SimpleNamespace(concurrency=SimpleNamespace(semaphores=semaphores))


@pytest.fixture(autouse=True)
def _reset():
    reset_semaphores()
    yield
    reset_semaphores()


class TestGetSemaphore:
    @patch("eventdesk.backend.core.config.get_app_config")
    def test_creates_with_config_capacity(self, mock_get_config):
        mock_get_config.return_value = _concurrency_config(email=5)

        sem = get_semaphore("email")

        assert sem._value == 5
        assert _semaphore_capacities["email"] == 5

    @patch("eventdesk.backend.core.config.get_app_config")
    def test_returns_same_instance(self, mock_get_config):
        mock_get_config.return_value = _concurrency_config()

        assert get_semaphore("payments") is get_semaphore("payments")
        mock_get_config.assert_called_once()

    @patch("eventdesk.backend.core.config.get_app_config")
    def test_defaults_for_unknown_name(self, mock_get_config):
        mock_get_config.return_value = _concurrency_config()

        assert get_semaphore("sms")._value == DEFAULT_CAPACITY


class TestSemaphoreStatus:
    @pytest.mark.asyncio
    @patch("eventdesk.backend.core.config.get_app_config")
    async def test_reports_free_slots(self, mock_get_config):
        mock_get_config.return_value = _concurrency_config(payments=3)
        sem = get_semaphore("payments")

        async with sem:
            inside = semaphore_status()

        assert inside == {"payments": {"capacity": 3, "available": 2}}
        assert semaphore_status()["payments"]["available"] == 3

    @pytest.mark.asyncio
    @patch("eventdesk.backend.core.config.get_app_config")
    async def test_caps_concurrency(self, mock_get_config):
        mock_get_config.return_value = _concurrency_config(email=2)
        active = 0
        peak = 0

        async def send():
            nonlocal active, peak
            async with get_semaphore("email"):
                active += 1
                peak = max(peak, active)
                await asyncio.sleep(0.01)
                active -= 1

        await asyncio.gather(*(send() for _ in range(6)))

        assert peak == 2

    def test_reset_forgets_semaphores(self):
        with patch("eventdesk.backend.core.config.get_app_config", return_value=_concurrency_config()):
            get_semaphore("email")

        reset_semaphores()

        assert semaphore_status() == {}
