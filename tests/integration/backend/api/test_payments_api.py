"""
Integration tests for Razorpay order creation, checkout verification and webhooks.

Default gateway keys come from the test environment (see tests/conftest.py).
"""

import hashlib
import hmac
import json
from types import SimpleNamespace
from typing import Any
from unittest.mock import patch

from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

API = "/api/v1"
KEY_SECRET = "test-key-secret"
WEBHOOK_SECRET = "test-webhook-secret"


def checkout_signature(order_id: str, payment_id: str, secret: str = KEY_SECRET) -> str:
    return hmac.new(secret.encode(), f"{order_id}|{payment_id}".encode(), hashlib.sha256).hexdigest()


def webhook_body(event: str, order_id: str, payment_id: str = "pay_hook1") -> bytes:
    return json.dumps(
        {
            "event": event,
            "payload": {
                "payment": {
                    "entity": {
                        "id": payment_id,
                        "order_id": order_id,
                        "error_description": "Card declined",
                    }
                }
            },
        }
    ).encode()


def sign_webhook(body: bytes, secret: str = WEBHOOK_SECRET) -> str:
    return hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


def refund_body(payment_id: str, amount: int = 118000) -> bytes:
    return json.dumps(
        {
            "event": "refund.processed",
            "payload": {"refund": {"entity": {"id": "rfnd_1", "payment_id": payment_id, "amount": amount}}},
        }
    ).encode()


UNCONFIGURED_GATEWAY = SimpleNamespace(razorpay_key_id="", razorpay_key_secret="", razorpay_webhook_secret="")


async def _pending_registration(
    client: AsyncClient,
    event: dict,
    create_ticket: Any,
    register: Any,
) -> tuple[dict, dict]:
    ticket = await create_ticket(event["id"], price=1000, tax_percentage=18)
    data = await register(event["id"], ticket["id"])
    return ticket, data["registration"]


async def _verified_order(
    client: AsyncClient,
    event: dict,
    create_ticket: Any,
    register: Any,
    gateway_payment_id: str = "pay_abc",
) -> tuple[dict, dict]:
    ticket, registration = await _pending_registration(client, event, create_ticket, register)
    order = (await _create_order(client, event, ticket, registration)).json()["data"]
    response = await client.post(
        f"{API}/payments/razorpay/verify",
        json={
            "razorpay_order_id": order["order_id"],
            "razorpay_payment_id": gateway_payment_id,
            "razorpay_signature": checkout_signature(order["order_id"], gateway_payment_id),
        },
    )
    assert response.status_code == 200, response.text
    return order, registration


async def _create_order(client: AsyncClient, event: dict, ticket: dict, registration: dict) -> Any:
    return await client.post(
        f"{API}/payments/razorpay/create-order",
        json={
            "event_id": event["id"],
            "payer_name": "Asha Rao",
            "payer_email": "asha.rao@example.com",
            "tickets": [{"ticket_type_id": ticket["id"], "quantity": 1}],
            "registration_ids": [registration["id"]],
        },
    )


class TestCreateOrder:
    async def test_amount_is_computed_server_side(
        self,
        client: AsyncClient,
        api: Any,
        event: dict,
        create_ticket: Any,
        register: Any,
        gateway_orders: list,
    ) -> None:
        ticket, registration = await _pending_registration(client, event, create_ticket, register)

        data = api.assert_success(await _create_order(client, event, ticket, registration))["data"]

        assert data["amount"] == 118000
        assert data["currency"] == "INR"
        assert data["key_id"] == "rzp_test_key"
        assert data["is_duplicate"] is False
        assert gateway_orders[0]["amount"] == 118000
        assert gateway_orders[0]["receipt"] == data["payment_number"]

    async def test_repeat_checkout_reuses_pending_order(
        self,
        client: AsyncClient,
        api: Any,
        event: dict,
        create_ticket: Any,
        register: Any,
        gateway_orders: list,
    ) -> None:
        ticket, registration = await _pending_registration(client, event, create_ticket, register)
        first = api.assert_success(await _create_order(client, event, ticket, registration))["data"]

        second = api.assert_success(await _create_order(client, event, ticket, registration))["data"]

        assert second["is_duplicate"] is True
        assert second["payment_id"] == first["payment_id"]
        assert second["order_id"] == first["order_id"]
        assert len(gateway_orders) == 1

    async def test_free_order_rejected(
        self,
        client: AsyncClient,
        api: Any,
        event: dict,
        create_ticket: Any,
    ) -> None:
        ticket = await create_ticket(event["id"], price=0, tax_percentage=0)

        response = await client.post(
            f"{API}/payments/razorpay/create-order",
            json={
                "event_id": event["id"],
                "payer_name": "Asha Rao",
                "payer_email": "asha@example.com",
                "tickets": [{"ticket_type_id": ticket["id"]}],
            },
        )

        api.assert_error(response, 400)

    async def test_foreign_ticket_rejected(
        self,
        client: AsyncClient,
        api: Any,
        event: dict,
    ) -> None:
        response = await client.post(
            f"{API}/payments/razorpay/create-order",
            json={
                "event_id": event["id"],
                "payer_name": "Asha Rao",
                "payer_email": "asha@example.com",
                "tickets": [{"ticket_type_id": "00000000-0000-0000-0000-000000000000"}],
            },
        )

        api.assert_error(response, 400, "VAL_VALIDATION_ERROR")

    async def test_unconfigured_gateway_unavailable(
        self,
        client: AsyncClient,
        api: Any,
        event: dict,
        create_ticket: Any,
        register: Any,
        gateway_orders: list,
    ) -> None:
        ticket, registration = await _pending_registration(client, event, create_ticket, register)

        with patch("eventdesk.backend.integrations.razorpay.get_settings", return_value=UNCONFIGURED_GATEWAY):
            response = await _create_order(client, event, ticket, registration)

        api.assert_error(response, 503, "SYS_NOT_CONFIGURED")
        assert gateway_orders == []


class TestVerify:
    async def test_valid_signature_confirms_linked_registration(
        self,
        client: AsyncClient,
        api: Any,
        event: dict,
        create_ticket: Any,
        register: Any,
    ) -> None:
        ticket, registration = await _pending_registration(client, event, create_ticket, register)
        order = api.assert_success(await _create_order(client, event, ticket, registration))["data"]
        body = {
            "razorpay_order_id": order["order_id"],
            "razorpay_payment_id": "pay_abc",
            "razorpay_signature": checkout_signature(order["order_id"], "pay_abc"),
        }

        result = api.assert_success(await client.post(f"{API}/payments/razorpay/verify", json=body))["data"]

        assert result["status"] == "completed"
        assert result["registrations_confirmed"] == 1
        confirmed = api.assert_success(await client.get(f"{API}/registrations/{registration['id']}"))["data"]
        assert confirmed["status"] == "confirmed"
        assert confirmed["payment_status"] == "completed"

        again = api.assert_success(await client.post(f"{API}/payments/razorpay/verify", json=body))["data"]
        assert again["is_duplicate"] is True

        tickets = api.assert_success(
            await client.get(f"{API}/ticket-types", params={"event_id": event["id"]})
        )["data"]
        assert tickets[0]["quantity_sold"] == 1

    async def test_bad_signature_fails_payment(
        self,
        client: AsyncClient,
        api: Any,
        event: dict,
        create_ticket: Any,
        register: Any,
    ) -> None:
        ticket, registration = await _pending_registration(client, event, create_ticket, register)
        order = api.assert_success(await _create_order(client, event, ticket, registration))["data"]

        response = await client.post(
            f"{API}/payments/razorpay/verify",
            json={
                "razorpay_order_id": order["order_id"],
                "razorpay_payment_id": "pay_abc",
                "razorpay_signature": "0" * 64,
            },
        )

        api.assert_error(response, 400)
        payment = api.assert_success(await client.get(f"{API}/payments/{order['payment_id']}"))["data"]
        assert payment["status"] == "failed"
        assert payment["failure_reason"] == "Invalid payment signature"

    async def test_missing_fields_rejected(self, client: AsyncClient, api: Any) -> None:
        response = await client.post(f"{API}/payments/razorpay/verify", json={"razorpay_order_id": "order_x"})

        body = api.assert_error(response, 400)
        assert "razorpay_signature" in body["error"]["details"]["missing_fields"]

    async def test_completed_payment_reports_duplicate(
        self,
        client: AsyncClient,
        api: Any,
        event: dict,
        create_ticket: Any,
        register: Any,
    ) -> None:
        order, _ = await _verified_order(client, event, create_ticket, register)

        result = api.assert_success(
            await client.post(
                f"{API}/payments/razorpay/verify",
                json={
                    "razorpay_order_id": order["order_id"],
                    "razorpay_payment_id": "pay_other",
                    "razorpay_signature": "0" * 64,
                },
            )
        )["data"]

        assert result["is_duplicate"] is True
        assert result["status"] == "completed"
        assert result["registrations_confirmed"] == 0
        payment = api.assert_success(await client.get(f"{API}/payments/{order['payment_id']}"))["data"]
        assert payment["razorpay_payment_id"] == "pay_abc"

    async def test_missing_key_secret_unavailable(
        self,
        client: AsyncClient,
        api: Any,
        event: dict,
        create_ticket: Any,
        register: Any,
    ) -> None:
        ticket, registration = await _pending_registration(client, event, create_ticket, register)
        order = api.assert_success(await _create_order(client, event, ticket, registration))["data"]

        with patch("eventdesk.backend.integrations.razorpay.get_settings", return_value=UNCONFIGURED_GATEWAY):
            response = await client.post(
                f"{API}/payments/razorpay/verify",
                json={
                    "razorpay_order_id": order["order_id"],
                    "razorpay_payment_id": "pay_abc",
                    "razorpay_signature": checkout_signature(order["order_id"], "pay_abc"),
                },
            )

        api.assert_error(response, 503, "SYS_NOT_CONFIGURED")
        payment = api.assert_success(await client.get(f"{API}/payments/{order['payment_id']}"))["data"]
        assert payment["status"] == "pending"

    async def test_confirmation_queued_after_commit(
        self,
        client: AsyncClient,
        api: Any,
        event: dict,
        create_ticket: Any,
        register: Any,
        db_session: AsyncSession,
    ) -> None:
        open_transaction: list[bool] = []

        async def record(registration_id: str) -> bool:
            open_transaction.append(db_session.in_transaction())
            raise ConnectionError("redis down")

        with patch("eventdesk.backend.tasks.notifications.enqueue_registration_confirmation", side_effect=record):
            _, registration = await _verified_order(client, event, create_ticket, register)

        assert open_transaction == [False]
        confirmed = api.assert_success(await client.get(f"{API}/registrations/{registration['id']}"))["data"]
        assert confirmed["status"] == "confirmed"


class TestWebhook:
    async def test_captured_after_verify_is_applied_once(
        self,
        client: AsyncClient,
        api: Any,
        event: dict,
        create_ticket: Any,
        register: Any,
    ) -> None:
        ticket, registration = await _pending_registration(client, event, create_ticket, register)
        order = api.assert_success(await _create_order(client, event, ticket, registration))["data"]
        await client.post(
            f"{API}/payments/razorpay/verify",
            json={
                "razorpay_order_id": order["order_id"],
                "razorpay_payment_id": "pay_abc",
                "razorpay_signature": checkout_signature(order["order_id"], "pay_abc"),
            },
        )
        body = webhook_body("payment.captured", order["order_id"], "pay_abc")

        response = await client.post(
            f"{API}/payments/razorpay/webhook",
            content=body,
            headers={"X-Razorpay-Signature": sign_webhook(body), "Content-Type": "application/json"},
        )

        assert api.assert_success(response)["data"] == {"received": True, "event": "payment.captured"}
        tickets = api.assert_success(
            await client.get(f"{API}/ticket-types", params={"event_id": event["id"]})
        )["data"]
        assert tickets[0]["quantity_sold"] == 1

    async def test_captured_without_verify_confirms(
        self,
        client: AsyncClient,
        api: Any,
        event: dict,
        create_ticket: Any,
        register: Any,
    ) -> None:
        ticket, registration = await _pending_registration(client, event, create_ticket, register)
        order = api.assert_success(await _create_order(client, event, ticket, registration))["data"]
        body = webhook_body("payment.captured", order["order_id"])

        response = await client.post(
            f"{API}/payments/razorpay/webhook",
            content=body,
            headers={"X-Razorpay-Signature": sign_webhook(body)},
        )

        api.assert_success(response)
        payment = api.assert_success(await client.get(f"{API}/payments/{order['payment_id']}"))["data"]
        assert payment["status"] == "completed"
        assert payment["razorpay_payment_id"] == "pay_hook1"
        assert payment["details"]["completed_via"] == "webhook"

    async def test_failed_event_marks_pending_payment(
        self,
        client: AsyncClient,
        api: Any,
        event: dict,
        create_ticket: Any,
        register: Any,
    ) -> None:
        ticket, registration = await _pending_registration(client, event, create_ticket, register)
        order = api.assert_success(await _create_order(client, event, ticket, registration))["data"]
        body = webhook_body("payment.failed", order["order_id"])

        await client.post(
            f"{API}/payments/razorpay/webhook",
            content=body,
            headers={"X-Razorpay-Signature": sign_webhook(body)},
        )

        payment = api.assert_success(await client.get(f"{API}/payments/{order['payment_id']}"))["data"]
        assert payment["status"] == "failed"
        assert payment["failure_reason"] == "Card declined"

    async def test_bad_signature_rejected(self, client: AsyncClient, api: Any) -> None:
        body = webhook_body("payment.captured", "order_unknown")

        response = await client.post(
            f"{API}/payments/razorpay/webhook",
            content=body,
            headers={"X-Razorpay-Signature": "bad"},
        )

        api.assert_error(response, 400)

    async def test_missing_signature_rejected(self, client: AsyncClient, api: Any) -> None:
        response = await client.post(
            f"{API}/payments/razorpay/webhook",
            content=webhook_body("payment.captured", "order_unknown"),
        )

        api.assert_error(response, 400)

    async def test_unknown_payment_acknowledged(self, client: AsyncClient, api: Any) -> None:
        body = webhook_body("payment.captured", "order_unknown", "pay_unknown")

        response = await client.post(
            f"{API}/payments/razorpay/webhook",
            content=body,
            headers={"X-Razorpay-Signature": sign_webhook(body)},
        )

        assert api.assert_success(response)["data"]["received"] is True

    async def test_missing_webhook_secret_unavailable(self, client: AsyncClient, api: Any) -> None:
        body = webhook_body("payment.captured", "order_unknown")

        with patch("eventdesk.backend.integrations.razorpay.get_settings", return_value=UNCONFIGURED_GATEWAY):
            response = await client.post(
                f"{API}/payments/razorpay/webhook",
                content=body,
                headers={"X-Razorpay-Signature": sign_webhook(body)},
            )

        api.assert_error(response, 503, "SYS_NOT_CONFIGURED")


class TestRefunds:
    async def _refund(self, client: AsyncClient, api: Any, gateway_payment_id: str = "pay_abc") -> None:
        body = refund_body(gateway_payment_id)
        response = await client.post(
            f"{API}/payments/razorpay/webhook",
            content=body,
            headers={"X-Razorpay-Signature": sign_webhook(body)},
        )
        assert api.assert_success(response)["data"] == {"received": True, "event": "refund.processed"}

    async def test_refund_marks_payment_and_registrations(
        self,
        client: AsyncClient,
        api: Any,
        event: dict,
        create_ticket: Any,
        register: Any,
    ) -> None:
        order, registration = await _verified_order(client, event, create_ticket, register)

        await self._refund(client, api)

        payment = api.assert_success(await client.get(f"{API}/payments/{order['payment_id']}"))["data"]
        assert payment["status"] == "refunded"
        assert payment["details"]["refund_status"] == "processed"
        assert payment["details"]["refund_id"] == "rfnd_1"
        assert payment["details"]["refund_amount"] == 1180
        refunded = api.assert_success(await client.get(f"{API}/registrations/{registration['id']}"))["data"]
        assert refunded["status"] == "refunded"
        assert refunded["payment_status"] == "refunded"

    async def test_refund_is_logged(
        self,
        client: AsyncClient,
        api: Any,
        event: dict,
        create_ticket: Any,
        register: Any,
    ) -> None:
        order, _ = await _verified_order(client, event, create_ticket, register)

        await self._refund(client, api)

        logs = api.assert_success(
            await client.get(f"{API}/activity-logs", params={"event_id": event["id"], "entity_type": "payment"})
        )["data"]
        assert {log["action"] for log in logs} == {"payment_completed", "payment_refunded"}

    async def test_capture_replayed_after_refund_is_ignored(
        self,
        client: AsyncClient,
        api: Any,
        event: dict,
        create_ticket: Any,
        register: Any,
    ) -> None:
        order, registration = await _verified_order(client, event, create_ticket, register)
        await self._refund(client, api)
        body = webhook_body("payment.captured", order["order_id"], "pay_abc")

        response = await client.post(
            f"{API}/payments/razorpay/webhook",
            content=body,
            headers={"X-Razorpay-Signature": sign_webhook(body)},
        )

        api.assert_success(response)
        payment = api.assert_success(await client.get(f"{API}/payments/{order['payment_id']}"))["data"]
        assert payment["status"] == "refunded"
        assert payment["details"]["refund_status"] == "processed"
        still_refunded = api.assert_success(await client.get(f"{API}/registrations/{registration['id']}"))["data"]
        assert still_refunded["status"] == "refunded"
        tickets = api.assert_success(
            await client.get(f"{API}/ticket-types", params={"event_id": event["id"]})
        )["data"]
        assert tickets[0]["quantity_sold"] == 1

    async def test_verify_after_refund_does_not_complete(
        self,
        client: AsyncClient,
        api: Any,
        event: dict,
        create_ticket: Any,
        register: Any,
    ) -> None:
        order, _ = await _verified_order(client, event, create_ticket, register)
        await self._refund(client, api)

        result = api.assert_success(
            await client.post(
                f"{API}/payments/razorpay/verify",
                json={
                    "razorpay_order_id": order["order_id"],
                    "razorpay_payment_id": "pay_abc",
                    "razorpay_signature": checkout_signature(order["order_id"], "pay_abc"),
                },
            )
        )["data"]

        assert result["is_duplicate"] is True
        assert result["status"] == "refunded"
