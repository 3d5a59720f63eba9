"""
Integration tests for sessions, the public program, faculty assignments,
invitations, the respond portal and the speaker portal.
"""

import hashlib
import hmac
import json
from typing import Any

import httpx
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.backend.models.faculty import FacultyAssignment
from eventdesk.backend.models.registration import Registration

API = "/api/v1"


async def _session(client: AsyncClient, event: dict, **fields: Any) -> dict:
    body = {"event_id": event["id"], "session_name": "Keynote"}
    body.update(fields)
    response = await client.post(f"{API}/sessions", json=body)
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def _token_for(db_session: AsyncSession, name: str) -> str:
    result = await db_session.execute(
        select(FacultyAssignment.invitation_token).where(FacultyAssignment.faculty_name == name).limit(1)
    )
    return result.scalar_one()


class TestSessions:
    async def test_create_list_and_filter(self, client: AsyncClient, api: Any, event: dict) -> None:
        await _session(client, event, session_name="Day 1 Keynote", session_date="2026-11-20", hall="Hall A")
        await _session(client, event, session_name="Day 2 Panel", session_date="2026-11-21", hall="Hall B")

        everything = api.assert_success(await client.get(f"{API}/sessions", params={"event_id": event["id"]}))
        day_two = api.assert_success(
            await client.get(f"{API}/sessions", params={"event_id": event["id"], "date": "2026-11-21"})
        )
        hall_a = api.assert_success(
            await client.get(f"{API}/sessions", params={"event_id": event["id"], "hall": "Hall A"})
        )

        assert len(everything["data"]) == 2
        assert [s["session_name"] for s in day_two["data"]] == ["Day 2 Panel"]
        assert [s["session_name"] for s in hall_a["data"]] == ["Day 1 Keynote"]

    async def test_update_session(self, client: AsyncClient, api: Any, event: dict) -> None:
        created = await _session(client, event)

        body = api.assert_success(
            await client.patch(f"{API}/sessions/{created['id']}", json={"hall": "Auditorium"})
        )

        assert body["data"]["hall"] == "Auditorium"
        assert body["data"]["session_name"] == "Keynote"

    async def test_public_program_groups_by_day(self, client: AsyncClient, api: Any, event: dict) -> None:
        await _session(client, event, session_name="Late", session_date="2026-11-20", start_time="14:00", hall="B")
        await _session(client, event, session_name="Early", session_date="2026-11-20", start_time="09:00", hall="A")
        await _session(client, event, session_name="Closing", session_date="2026-11-21", start_time="16:00", hall="A")

        program = api.assert_success(await client.get(f"{API}/program/{event['id']}"))["data"]

        assert program["event"]["name"] == event["name"]
        assert [day["date"] for day in program["days"]] == ["2026-11-20", "2026-11-21"]
        first_day = program["days"][0]
        assert [s["session_name"] for s in first_day["sessions"]] == ["Early", "Late"]
        assert first_day["halls"] == ["A", "B"]


class TestSyncAssignments:
    async def test_sync_is_idempotent(self, client: AsyncClient, api: Any, event: dict) -> None:
        await _session(
            client,
            event,
            session_name="Heart Failure Update",
            session_date="2026-11-20",
            start_time="10:00",
            hall="Hall A",
            speakers_text="Asha Rao (asha@example.com, 98450) | Vikram Shah",
            chairpersons_text="Meera Iyer (meera@example.com)",
        )
        url = f"{API}/events/{event['id']}/program/sync-assignments"

        first = api.assert_success(await client.post(url))["data"]
        second = api.assert_success(await client.post(url))["data"]

        assert first["created"] == 3
        assert first["total"] == 3
        assert second["created"] == 0
        assert second["skipped"] == 3

        listed = api.assert_success(
            await client.get(f"{API}/faculty-assignments", params={"event_id": event["id"], "role": "speaker"})
        )
        assert {a["faculty_name"] for a in listed["data"]} == {"Asha Rao", "Vikram Shah"}
        asha = next(a for a in listed["data"] if a["faculty_name"] == "Asha Rao")
        assert asha["faculty_email"] == "asha@example.com"
        assert asha["faculty_phone"] == "98450"
        assert asha["hall"] == "Hall A"
        assert asha["status"] == "pending"


class TestInvitations:
    async def test_invitations_are_emailed_and_recorded(
        self,
        client: AsyncClient,
        api: Any,
        event: dict,
        email_outbox: list,
    ) -> None:
        await _session(
            client,
            event,
            session_name="Heart Failure Update",
            session_date="2026-11-20",
            start_time="10:00",
            end_time="10:30",
            speakers_text="Asha Rao (asha@example.com) | Vikram Shah",
        )
        await client.post(f"{API}/events/{event['id']}/program/sync-assignments")
        assignments = api.assert_success(
            await client.get(f"{API}/faculty-assignments", params={"event_id": event["id"]})
        )["data"]

        response = await client.post(
            f"{API}/events/{event['id']}/program/send-invitations",
            json={"assignment_ids": [a["id"] for a in assignments]},
        )

        result = api.assert_success(response)["data"]
        assert result["sent"] == 1
        assert result["failed"] == 1
        assert "Vikram Shah" in result["errors"][0]

        message = email_outbox[0]
        assert message["to"] == ["asha@example.com"]
        assert message["subject"] == f"Invitation to Speaker at {event['name']}"
        assert "10:00 - 10:30" in message["text"]
        assert "/respond/" in message["text"]
        assert "<strong>Speaker</strong>" in message["html"]

        invited = api.assert_success(
            await client.get(f"{API}/faculty-assignments", params={"event_id": event["id"], "status": "invited"})
        )["data"]
        assert [a["faculty_name"] for a in invited] == ["Asha Rao"]
        assert invited[0]["invitation_sent_at"] is not None

    async def test_empty_selection_rejected(self, client: AsyncClient, api: Any, event: dict) -> None:
        response = await client.post(
            f"{API}/events/{event['id']}/program/send-invitations",
            json={"assignment_ids": []},
        )

        api.assert_error(response, 400)


class TestRespondPortal:
    async def _setup(self, client: AsyncClient, event: dict) -> None:
        await _session(client, event, session_name="Morning", speakers_text="Asha Rao (asha@example.com)")
        await _session(client, event, session_name="Evening", chairpersons_text="Asha Rao (ASHA@example.com)")
        await client.post(f"{API}/events/{event['id']}/program/sync-assignments")

    async def test_portal_lists_all_assignments(
        self,
        client: AsyncClient,
        api: Any,
        event: dict,
        db_session: AsyncSession,
    ) -> None:
        await self._setup(client, event)
        token = await _token_for(db_session, "Asha Rao")

        portal = api.assert_success(await client.get(f"{API}/respond/{token}"))["data"]

        assert portal["faculty"]["name"] == "Asha Rao"
        assert len(portal["assignments"]) == 2
        assert portal["event"]["id"] == event["id"]

    async def test_global_response_applies_to_all(
        self,
        client: AsyncClient,
        api: Any,
        event: dict,
        db_session: AsyncSession,
    ) -> None:
        await self._setup(client, event)
        token = await _token_for(db_session, "Asha Rao")

        result = api.assert_success(
            await client.post(
                f"{API}/respond/{token}",
                json={"global_response": "confirmed", "notes": "Happy to join"},
            )
        )["data"]

        assert result["updated"] == 2
        confirmed = api.assert_success(
            await client.get(f"{API}/faculty-assignments", params={"event_id": event["id"], "status": "confirmed"})
        )["data"]
        assert len(confirmed) == 2
        assert confirmed[0]["response_notes"] == "Happy to join"
        assert confirmed[0]["responded_at"] is not None

    async def test_change_request_keeps_details(
        self,
        client: AsyncClient,
        api: Any,
        event: dict,
        db_session: AsyncSession,
    ) -> None:
        await self._setup(client, event)
        token = await _token_for(db_session, "Asha Rao")
        portal = api.assert_success(await client.get(f"{API}/respond/{token}"))["data"]
        target = portal["assignments"][0]["id"]

        result = api.assert_success(
            await client.post(
                f"{API}/respond/{token}",
                json={
                    "responses": {target: "change_requested", "not-mine": "confirmed"},
                    "notes": {target: "Please move to afternoon"},
                },
            )
        )["data"]

        assert result["updated"] == 1
        changed = api.assert_success(
            await client.get(
                f"{API}/faculty-assignments",
                params={"event_id": event["id"], "status": "change_requested"},
            )
        )["data"]
        assert changed[0]["change_request_details"] == "Please move to afternoon"

    async def test_unknown_response_rejected(
        self,
        client: AsyncClient,
        api: Any,
        event: dict,
        db_session: AsyncSession,
    ) -> None:
        await self._setup(client, event)
        token = await _token_for(db_session, "Asha Rao")

        response = await client.post(f"{API}/respond/{token}", json={"global_response": "maybe"})

        api.assert_error(response, 400)

    async def test_unknown_token_not_found(self, client: AsyncClient, api: Any) -> None:
        response = await client.get(f"{API}/respond/not-a-real-token")

        body = api.assert_error(response, 404)
        assert body["error"]["message"] == "Invalid or expired invitation link"


class TestSpeakerRegistrations:
    async def test_speakers_registered_once(self, client: AsyncClient, api: Any, event: dict) -> None:
        await _session(client, event, session_name="Talk 1", description="Dr. Asha Rao | Asha@Example.com | 98450")
        await _session(client, event, session_name="Talk 2", description="Asha Rao | asha@example.com")
        await _session(client, event, session_name="Talk 3", description="Vikram Shah")
        body = {"event_id": event["id"]}

        first = api.assert_success(
            await client.post(f"{API}/program/create-speaker-registrations", json=body)
        )["data"]
        second = api.assert_success(
            await client.post(f"{API}/program/create-speaker-registrations", json=body)
        )["data"]

        assert first["created"] == 1
        assert first["total"] == 1
        assert first["details"][0]["name"] == "Asha Rao"
        assert first["details"][0]["email"] == "asha@example.com"
        assert first["details"][0]["registration_number"].startswith("SPK-")
        assert second["created"] == 0
        assert second["skipped"] == 1

        tickets = api.assert_success(
            await client.get(f"{API}/ticket-types", params={"event_id": event["id"]})
        )["data"]
        assert tickets[0]["name"] == "Speaker"
        assert tickets[0]["price"] == 0

    async def test_no_faculty_email_rejected(self, client: AsyncClient, api: Any, event: dict) -> None:
        await _session(client, event, description="Vikram Shah")

        response = await client.post(
            f"{API}/program/create-speaker-registrations",
            json={"event_id": event["id"]},
        )

        body = api.assert_error(response, 400)
        assert body["error"]["message"] == "No faculty with email found in sessions"


class TestSpeakerPortal:
    async def _speaker(self, client: AsyncClient, event: dict, db_session: AsyncSession) -> str:
        await _session(
            client,
            event,
            session_name="Heart Failure Update",
            description="Dr. Asha Rao | asha@example.com",
            speakers_text="Asha Rao (asha@example.com)",
        )
        await _session(client, event, session_name="Unrelated", speakers_text="Vikram Shah")
        await client.post(f"{API}/program/create-speaker-registrations", json={"event_id": event["id"]})
        await client.post(f"{API}/events/{event['id']}/program/sync-assignments")
        result = await db_session.execute(
            select(Registration).where(Registration.attendee_email == "asha@example.com")
        )
        return result.scalar_one().custom_fields["portal_token"]

    async def test_portal_token_resolves_sessions(
        self,
        client: AsyncClient,
        api: Any,
        event: dict,
        db_session: AsyncSession,
    ) -> None:
        token = await self._speaker(client, event, db_session)

        portal = api.assert_success(await client.get(f"{API}/speaker/{token}"))["data"]

        assert portal["matched_by"] == "portal_token"
        assert portal["registration"]["attendee_email"] == "asha@example.com"
        assert [s["session_name"] for s in portal["sessions"]] == ["Heart Failure Update"]
        assert len(portal["assignments"]) == 1

    async def test_invitation_token_matches_registration_by_email(
        self,
        client: AsyncClient,
        api: Any,
        event: dict,
        db_session: AsyncSession,
    ) -> None:
        await self._speaker(client, event, db_session)
        invitation = await _token_for(db_session, "Asha Rao")

        portal = api.assert_success(await client.get(f"{API}/speaker/{invitation}"))["data"]

        assert portal["matched_by"] == "invitation_token:email_match"
        assert portal["registration"] is not None

    async def test_accept_confirms_and_fires_webhook(
        self,
        client: AsyncClient,
        api: Any,
        event: dict,
        db_session: AsyncSession,
        webhook_calls: list[httpx.Request],
    ) -> None:
        token = await self._speaker(client, event, db_session)

        result = api.assert_success(
            await client.put(f"{API}/speaker/{token}", json={"action": "accept"})
        )["data"]

        assert result["registration"]["status"] == "confirmed"
        assert result["assignments_updated"] == 1
        request = webhook_calls[0]
        payload = json.loads(request.content)
        assert request.headers["X-EventDesk-Event"] == "speaker.responded"
        assert payload["data"]["response"] == "accepted"
        expected = hmac.new(b"test-outbound-signing-secret", request.content, hashlib.sha256).hexdigest()
        assert request.headers["X-EventDesk-Signature"] == expected

    async def test_decline_records_reason(
        self,
        client: AsyncClient,
        api: Any,
        event: dict,
        db_session: AsyncSession,
    ) -> None:
        token = await self._speaker(client, event, db_session)

        result = api.assert_success(
            await client.put(f"{API}/speaker/{token}", json={"action": "decline", "data": {"reason": "Travelling"}})
        )["data"]

        assert result["registration"]["status"] == "declined"
        assert result["registration"]["custom_fields"]["decline_reason"] == "Travelling"

    async def test_update_stores_travel_details(
        self,
        client: AsyncClient,
        api: Any,
        event: dict,
        db_session: AsyncSession,
        webhook_calls: list[httpx.Request],
    ) -> None:
        token = await self._speaker(client, event, db_session)

        result = api.assert_success(
            await client.put(
                f"{API}/speaker/{token}",
                json={"action": "update", "data": {"travel_details": {"arrival": "2026-11-19"}}},
            )
        )["data"]

        assert result["registration"]["custom_fields"]["travel_details"] == {"arrival": "2026-11-19"}
        assert result["registration"]["custom_fields"]["portal_token"] == token
        assert webhook_calls[0].headers["X-EventDesk-Event"] == "speaker.travel_submitted"

    async def test_unknown_action_rejected(self, client: AsyncClient, api: Any) -> None:
        response = await client.put(f"{API}/speaker/anything", json={"action": "teleport"})

        api.assert_error(response, 400)

    async def test_unknown_token_not_found(self, client: AsyncClient, api: Any) -> None:
        response = await client.get(f"{API}/speaker/missing-token")

        api.assert_error(response, 404)
