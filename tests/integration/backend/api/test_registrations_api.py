"""
Integration tests for registration, cancellation and bulk import endpoints.
"""

from typing import Any
from unittest.mock import AsyncMock, patch

from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

API = "/api/v1"


class TestCreateRegistration:
    async def test_paid_ticket_is_pending_with_server_side_price(
        self,
        client: AsyncClient,
        api: Any,
        event: dict,
        create_ticket: Any,
    ) -> None:
        ticket = await create_ticket(event["id"], price=1000, tax_percentage=18)

        response = await client.post(
            f"{API}/registrations",
            json={
                "event_id": event["id"],
                "ticket_type_id": ticket["id"],
                "attendee_name": "  Asha Rao ",
                "attendee_email": "Asha.Rao@Example.com",
            },
        )

        data = api.assert_success(response, 201)["data"]
        registration = data["registration"]
        assert data["requires_payment"] is True
        assert registration["status"] == "pending"
        assert registration["payment_status"] == "pending"
        assert registration["attendee_name"] == "Asha Rao"
        assert registration["attendee_email"] == "asha.rao@example.com"
        assert registration["tax_amount"] == 180
        assert registration["total_amount"] == 1180
        assert data["payment"]["status"] == "pending"
        assert data["payment"]["net_amount"] == 1180

    async def test_free_ticket_confirms_and_counts_sale(
        self,
        client: AsyncClient,
        api: Any,
        event: dict,
        create_ticket: Any,
        register: Any,
    ) -> None:
        ticket = await create_ticket(event["id"], name="Student", price=0, tax_percentage=0)

        data = await register(event["id"], ticket["id"])

        assert data["requires_payment"] is False
        assert data["registration"]["status"] == "confirmed"
        assert data["registration"]["confirmed_at"] is not None
        assert data["payment"]["status"] == "completed"
        assert data["payment"]["payment_method"] == "free"

        tickets = api.assert_success(
            await client.get(f"{API}/ticket-types", params={"event_id": event["id"]})
        )["data"]
        assert tickets[0]["quantity_sold"] == 1

    async def test_free_method_rejected_for_paid_ticket(
        self,
        client: AsyncClient,
        api: Any,
        event: dict,
        create_ticket: Any,
    ) -> None:
        ticket = await create_ticket(event["id"])

        response = await client.post(
            f"{API}/registrations",
            json={
                "event_id": event["id"],
                "ticket_type_id": ticket["id"],
                "attendee_name": "Asha Rao",
                "attendee_email": "asha@example.com",
                "payment_method": "free",
            },
        )

        api.assert_error(response, 400, "VAL_VALIDATION_ERROR")

    async def test_missing_fields_listed_together(self, client: AsyncClient, api: Any, event: dict) -> None:
        response = await client.post(f"{API}/registrations", json={"event_id": event["id"]})

        body = api.assert_error(response, 400, "VAL_VALIDATION_ERROR")
        missing = body["error"]["details"]["missing_fields"]
        assert set(missing) == {"ticket_type_id", "attendee_name", "attendee_email"}

    async def test_invalid_email_rejected(
        self,
        client: AsyncClient,
        api: Any,
        event: dict,
        create_ticket: Any,
    ) -> None:
        ticket = await create_ticket(event["id"])

        response = await client.post(
            f"{API}/registrations",
            json={
                "event_id": event["id"],
                "ticket_type_id": ticket["id"],
                "attendee_name": "Asha Rao",
                "attendee_email": "not-an-email",
            },
        )

        api.assert_error(response, 400)

    async def test_closed_registration_forbidden(
        self,
        client: AsyncClient,
        api: Any,
        event: dict,
        create_ticket: Any,
    ) -> None:
        ticket = await create_ticket(event["id"])
        await client.patch(f"{API}/events/{event['id']}", json={"registration_open": False})

        response = await client.post(
            f"{API}/registrations",
            json={
                "event_id": event["id"],
                "ticket_type_id": ticket["id"],
                "attendee_name": "Asha Rao",
                "attendee_email": "asha@example.com",
            },
        )

        api.assert_error(response, 403, "AUTHZ_FORBIDDEN")

    async def test_sold_out_ticket_rejected(
        self,
        client: AsyncClient,
        api: Any,
        event: dict,
        create_ticket: Any,
        register: Any,
    ) -> None:
        ticket = await create_ticket(event["id"], price=0, tax_percentage=0, quantity_total=1)
        await register(event["id"], ticket["id"])

        response = await client.post(
            f"{API}/registrations",
            json={
                "event_id": event["id"],
                "ticket_type_id": ticket["id"],
                "attendee_name": "Ravi Kumar",
                "attendee_email": "ravi@example.com",
            },
        )

        body = api.assert_error(response, 400)
        assert body["error"]["details"]["available"] == 0

    async def test_discount_applied_to_total(
        self,
        client: AsyncClient,
        event: dict,
        create_ticket: Any,
        register: Any,
    ) -> None:
        ticket = await create_ticket(event["id"], price=1000, tax_percentage=0)
        await client.post(
            f"{API}/discount-codes",
            json={"event_id": event["id"], "code": "FLAT200", "discount_type": "fixed", "discount_value": 200},
        )

        data = await register(event["id"], ticket["id"], discount_code="flat200")

        assert data["registration"]["discount_amount"] == 200
        assert data["registration"]["total_amount"] == 800

    async def test_custom_registration_numbers_are_sequential(
        self,
        client: AsyncClient,
        event: dict,
        create_ticket: Any,
        register: Any,
    ) -> None:
        await client.put(
            f"{API}/events/{event['id']}/settings",
            json={
                "customize_registration_id": True,
                "registration_prefix": "CC26-",
                "registration_start_number": 100,
            },
        )
        ticket = await create_ticket(event["id"], price=0, tax_percentage=0)

        first = await register(event["id"], ticket["id"])
        second = await register(event["id"], ticket["id"], attendee_email="ravi@example.com")

        assert first["registration"]["registration_number"] == "CC26-100"
        assert second["registration"]["registration_number"] == "CC26-101"


class TestListRegistrations:
    async def test_search_and_status_filter(
        self,
        client: AsyncClient,
        api: Any,
        event: dict,
        create_ticket: Any,
        register: Any,
    ) -> None:
        free = await create_ticket(event["id"], name="Student", price=0, tax_percentage=0)
        paid = await create_ticket(event["id"])
        await register(event["id"], free["id"], attendee_name="Meera Iyer", attendee_email="meera@example.com")
        await register(event["id"], paid["id"], attendee_name="Ravi Kumar", attendee_email="ravi@example.com")

        confirmed = api.assert_success(
            await client.get(f"{API}/registrations", params={"event_id": event["id"], "status": "confirmed"})
        )
        searched = api.assert_success(
            await client.get(f"{API}/registrations", params={"event_id": event["id"], "search": "RAVI"})
        )
        everything = api.assert_success(
            await client.get(f"{API}/registrations", params={"event_id": event["id"], "status": "all"})
        )

        assert [r["attendee_name"] for r in confirmed["data"]] == ["Meera Iyer"]
        assert [r["attendee_name"] for r in searched["data"]] == ["Ravi Kumar"]
        assert everything["pagination"]["total"] == 2


class TestCancelRegistration:
    async def test_unpaid_cancel_has_no_refund_and_releases_seat(
        self,
        client: AsyncClient,
        api: Any,
        event: dict,
        create_ticket: Any,
        register: Any,
    ) -> None:
        ticket = await create_ticket(event["id"], price=0, tax_percentage=0)
        data = await register(event["id"], ticket["id"])

        response = await client.post(
            f"{API}/registrations/{data['registration']['id']}/cancel",
            json={"reason": "Cannot travel"},
        )

        result = api.assert_success(response)["data"]
        assert result["registration"]["status"] == "cancelled"
        assert result["refund_amount"] == 0
        assert result["refund_status"] == "none"

        tickets = api.assert_success(
            await client.get(f"{API}/ticket-types", params={"event_id": event["id"]})
        )["data"]
        assert tickets[0]["quantity_sold"] == 0

    async def test_cancel_twice_rejected(
        self,
        client: AsyncClient,
        api: Any,
        event: dict,
        create_ticket: Any,
        register: Any,
    ) -> None:
        ticket = await create_ticket(event["id"], price=0, tax_percentage=0)
        data = await register(event["id"], ticket["id"])
        url = f"{API}/registrations/{data['registration']['id']}/cancel"
        await client.post(url, json={})

        response = await client.post(url, json={})

        api.assert_error(response, 400)


class TestImport:
    async def test_import_help_and_csv_template(self, client: AsyncClient, api: Any) -> None:
        help_body = api.assert_success(await client.get(f"{API}/registrations/import"))
        csv_response = await client.get(f"{API}/registrations/import", params={"format": "csv"})

        assert "email" in help_body["data"]["required"]
        assert csv_response.status_code == 200
        assert csv_response.headers["content-type"].startswith("text/csv")
        assert csv_response.text.splitlines()[0].startswith("ticket,name,email")

    async def test_csv_template_names_event_tickets(
        self,
        client: AsyncClient,
        event: dict,
        create_ticket: Any,
    ) -> None:
        await create_ticket(event["id"], name="Faculty", sort_order=2)
        await create_ticket(event["id"], name="Delegate, Early Bird", sort_order=1)

        response = await client.get(
            f"{API}/registrations/import",
            params={"format": "csv", "event_id": event["id"]},
        )

        lines = response.text.splitlines()
        assert response.status_code == 200
        assert lines[1].startswith('"Delegate, Early Bird",Dr. Asha Rao')
        assert lines[2].startswith("Faculty,Dr. Ravi Kumar")
        assert len(lines) == 3

    async def test_csv_template_for_unknown_event(self, client: AsyncClient, api: Any) -> None:
        response = await client.get(
            f"{API}/registrations/import",
            params={"format": "csv", "event_id": "00000000-0000-0000-0000-000000000000"},
        )

        api.assert_error(response, 404)

    async def test_rows_are_validated_one_by_one(
        self,
        client: AsyncClient,
        api: Any,
        event: dict,
        create_ticket: Any,
    ) -> None:
        await create_ticket(event["id"], name="Delegate", sort_order=1)
        await create_ticket(event["id"], name="Faculty", price=0, tax_percentage=0, sort_order=2)

        response = await client.post(
            f"{API}/registrations/import",
            json={
                "event_id": event["id"],
                "registrations": [
                    {"Name": "Asha Rao", "Email": "ASHA@example.com", "Q:Diet": "Vegetarian"},
                    {"name": "Ravi Kumar", "email": "ravi@example.com", "ticket": "faculty"},
                    {"name": "", "email": "blank@example.com"},
                    {"name": "Bad Mail", "email": "nope"},
                    {"name": "Asha Again", "email": "asha@example.com"},
                    {"name": "Mystery", "email": "m@example.com", "ticket": "Platinum"},
                ],
            },
        )

        result = api.assert_success(response)["data"]
        assert result["summary"] == {
            "total": 6,
            "created": 2,
            "skipped": 1,
            "failed": 3,
            "notifications_queued": 0,
        }
        assert [row["row"] for row in result["created"]] == [2, 3]
        assert any(error.startswith("Row 4:") for error in result["errors"])
        assert any("already registered" in error for error in result["errors"])

        listed = api.assert_success(
            await client.get(f"{API}/registrations", params={"event_id": event["id"], "search": "asha"})
        )["data"]
        assert listed[0]["custom_fields"]["Diet"] == "Vegetarian"
        assert listed[0]["custom_fields"]["imported"] is True

    async def test_import_without_ticket_types_rejected(
        self,
        client: AsyncClient,
        api: Any,
        event: dict,
    ) -> None:
        response = await client.post(
            f"{API}/registrations/import",
            json={"event_id": event["id"], "registrations": [{"name": "A", "email": "a@example.com"}]},
        )

        api.assert_error(response, 400)

    async def test_import_respects_capacity(
        self,
        client: AsyncClient,
        api: Any,
        event: dict,
        create_ticket: Any,
    ) -> None:
        await create_ticket(event["id"], quantity_total=1)

        response = await client.post(
            f"{API}/registrations/import",
            json={
                "event_id": event["id"],
                "registrations": [
                    {"name": "One", "email": "one@example.com"},
                    {"name": "Two", "email": "two@example.com"},
                ],
            },
        )

        result = api.assert_success(response)["data"]
        assert result["summary"]["created"] == 1
        assert result["summary"]["failed"] == 1
        assert "sold out" in result["errors"][0]

    async def test_broker_failure_keeps_imported_rows(
        self,
        client: AsyncClient,
        api: Any,
        event: dict,
        create_ticket: Any,
    ) -> None:
        await create_ticket(event["id"], price=0, tax_percentage=0)
        enqueue = AsyncMock(side_effect=ConnectionError("redis down"))

        with patch("eventdesk.backend.tasks.notifications.enqueue_registration_confirmation", enqueue):
            response = await client.post(
                f"{API}/registrations/import",
                json={
                    "event_id": event["id"],
                    "registrations": [
                        {"name": "One", "email": "one@example.com"},
                        {"name": "Two", "email": "two@example.com", "notify": "Y"},
                    ],
                },
            )

        result = api.assert_success(response)["data"]
        assert result["summary"]["created"] == 2
        assert result["summary"]["notifications_queued"] == 0
        enqueue.assert_awaited_once()
        listed = api.assert_success(
            await client.get(f"{API}/registrations", params={"event_id": event["id"]})
        )
        assert listed["pagination"]["total"] == 2

    async def test_confirmations_queued_after_commit(
        self,
        client: AsyncClient,
        api: Any,
        event: dict,
        create_ticket: Any,
        db_session: AsyncSession,
    ) -> None:
        await create_ticket(event["id"], price=0, tax_percentage=0)
        open_transaction: list[bool] = []

        async def record(registration_id: str) -> bool:
            open_transaction.append(db_session.in_transaction())
            return True

        with patch("eventdesk.backend.tasks.notifications.enqueue_registration_confirmation", side_effect=record):
            response = await client.post(
                f"{API}/registrations/import",
                json={
                    "event_id": event["id"],
                    "registrations": [
                        {"name": "One", "email": "one@example.com", "notify": "Y"},
                        {"name": "Two", "email": "two@example.com", "notify": "y"},
                    ],
                },
            )

        result = api.assert_success(response)["data"]
        assert result["summary"]["notifications_queued"] == 2
        assert open_transaction == [False, False]
