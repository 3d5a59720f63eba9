"""
Speaker Portal Service.

Token-addressed portal where a speaker reviews their sessions, accepts or
declines, and submits travel details.
"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.backend.core.exceptions import NotFoundError, ValidationError
from eventdesk.backend.core.utils import utc_now
from eventdesk.backend.integrations.webhooks import WebhookDispatcher
from eventdesk.backend.repositories.event import EventRepository
from eventdesk.backend.repositories.faculty import FacultyAssignmentRepository
from eventdesk.backend.repositories.registration import RegistrationRepository
from eventdesk.backend.schemas.faculty import SpeakerAction
from eventdesk.backend.services.base import BaseService
from eventdesk.backend.services.faculty import INVALID_LINK
from eventdesk.backend.services.token_resolution import ResolvedSpeaker, SpeakerTokenResolver

SPEAKER_ACTIONS = ("accept", "decline", "update")
OPEN_ASSIGNMENT_STATUSES = ("pending", "invited")


class SpeakerPortalService(BaseService):
    def __init__(
        self,
        session: AsyncSession,
        webhooks: WebhookDispatcher | None = None,
    ) -> None:
        super().__init__(session)
        self.resolver = SpeakerTokenResolver(session)
        self.registrations = RegistrationRepository(session)
        self.assignments = FacultyAssignmentRepository(session)
        self.events = EventRepository(session)
        self._webhooks = webhooks

    @property
    def webhooks(self) -> WebhookDispatcher:
        if self._webhooks is None:
            self._webhooks = WebhookDispatcher()
        return self._webhooks

    async def _resolve(self, token: str) -> ResolvedSpeaker:
        speaker = await self.resolver.resolve(token)
        if speaker is None:
            raise NotFoundError(INVALID_LINK)
        return speaker

    async def get_portal(self, token: str) -> dict[str, Any]:
        speaker = await self._resolve(token)
        return {
            "registration": speaker.registration,
            "assignments": speaker.assignments,
            "sessions": await self.resolver.sessions_for(speaker),
            "event": await self.events.get_by_id_or_none(speaker.event_id),
            "matched_by": speaker.matched_by,
        }

    async def act(self, token: str, data: SpeakerAction) -> dict[str, Any]:
        """
        Apply accept, decline or update.

        Raises:
            NotFoundError: Token does not resolve
            ValidationError: Unknown action, or update without a registration
        """
        self._validate_choice(data.action, SPEAKER_ACTIONS, "action")
        speaker = await self._resolve(token)
        registration = speaker.registration
        now = utc_now()
        updated = 0

        if data.action == "accept":
            if registration is not None:
                registration = await self.registrations.apply(
                    registration,
                    status="confirmed",
                    confirmed_at=now,
                    custom_fields={
                        **(registration.custom_fields or {}),
                        "response_date": now.isoformat(),
                    },
                )
            for assignment in speaker.assignments:
                if assignment.status in OPEN_ASSIGNMENT_STATUSES:
                    await self.assignments.apply(assignment, status="confirmed", responded_at=now)
                    updated += 1
            await self._notify("speaker.responded", speaker, {"response": "accepted"})

        elif data.action == "decline":
            reason = data.data.get("reason") or data.data.get("decline_reason")
            if registration is not None:
                registration = await self.registrations.apply(
                    registration,
                    status="declined",
                    custom_fields={
                        **(registration.custom_fields or {}),
                        "response_date": now.isoformat(),
                        "decline_reason": reason,
                    },
                )
            for assignment in speaker.assignments:
                await self.assignments.apply(
                    assignment,
                    status="declined",
                    responded_at=now,
                    response_notes=reason or assignment.response_notes,
                )
                updated += 1
            await self._notify("speaker.responded", speaker, {"response": "declined", "reason": reason})

        else:
            if registration is None:
                raise ValidationError("No registration is linked to this invitation")
            registration = await self.registrations.apply(
                registration,
                custom_fields={**(registration.custom_fields or {}), **data.data},
            )
            if "travel_details" in data.data:
                await self._notify(
                    "speaker.travel_submitted",
                    speaker,
                    {"travel_details": data.data["travel_details"]},
                )

        self._log_operation(
            "Speaker portal action",
            action=data.action,
            event_id=speaker.event_id,
            matched_by=speaker.matched_by,
            assignments_updated=updated,
        )
        return {"registration": registration, "assignments_updated": updated}

    async def _notify(self, event: str, speaker: ResolvedSpeaker, extra: dict[str, Any]) -> None:
        payload = {
            "event_id": speaker.event_id,
            "registration_id": speaker.registration.id if speaker.registration else None,
            "speaker_name": speaker.name,
            "speaker_email": speaker.email,
            **extra,
        }
        result = await self.webhooks.dispatch(event, payload)
        if result.failed:
            self._logger.warning(
                "Speaker webhook not delivered",
                extra={"service": self.__class__.__name__, "event": event, "errors": result.errors},
            )
