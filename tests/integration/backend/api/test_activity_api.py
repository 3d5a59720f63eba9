"""
Integration tests for the activity log.
"""

from typing import Any

from httpx import AsyncClient

API = "/api/v1"


class TestActivityLogs:
    async def test_registration_lifecycle_is_logged(
        self,
        client: AsyncClient,
        api: Any,
        event: dict,
        create_ticket: Any,
        register: Any,
    ) -> None:
        ticket = await create_ticket(event["id"], price=0, tax_percentage=0)
        data = await register(event["id"], ticket["id"])
        await client.post(
            f"{API}/registrations/{data['registration']['id']}/cancel",
            json={"reason": "Schedule clash"},
        )

        body = api.assert_success(
            await client.get(
                f"{API}/activity-logs",
                params={"event_id": event["id"], "entity_type": "registration"},
            )
        )

        actions = {log["action"]: log for log in body["data"]}
        assert set(actions) == {"registration_created", "registration_cancelled"}
        assert body["pagination"]["total"] == 2
        assert actions["registration_created"]["entity_name"] == "Asha Rao"
        assert actions["registration_created"]["details"]["status"] == "confirmed"
        assert actions["registration_cancelled"]["description"] == "Schedule clash"
        assert actions["registration_cancelled"]["details"]["refund_status"] == "none"

    async def test_filters_by_entity_type(
        self,
        client: AsyncClient,
        api: Any,
        event: dict,
        create_ticket: Any,
        register: Any,
    ) -> None:
        ticket = await create_ticket(event["id"], price=0, tax_percentage=0)
        await register(event["id"], ticket["id"])

        body = api.assert_success(
            await client.get(f"{API}/activity-logs", params={"entity_type": "abstract"})
        )

        assert body["data"] == []
        assert body["pagination"]["total"] == 0

    async def test_pagination_limits_page(
        self,
        client: AsyncClient,
        api: Any,
        event: dict,
        create_ticket: Any,
        register: Any,
    ) -> None:
        ticket = await create_ticket(event["id"], price=0, tax_percentage=0)
        for n in range(3):
            await register(event["id"], ticket["id"], attendee_email=f"guest{n}@example.com")

        body = api.assert_success(
            await client.get(f"{API}/activity-logs", params={"event_id": event["id"], "limit": 2})
        )

        assert len(body["data"]) == 2
        assert body["pagination"]["total"] == 3
        assert body["pagination"]["has_more"] is True
