"""
Faculty Service.

Assignment listing for organisers and the public respond portal reached
through the emailed invitation link.
"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.backend.core.exceptions import NotFoundError, ValidationError
from eventdesk.backend.core.utils import utc_now
from eventdesk.backend.models.faculty import RESPONSE_STATUSES, FacultyAssignment
from eventdesk.backend.repositories.event import EventRepository
from eventdesk.backend.repositories.faculty import FacultyAssignmentRepository
from eventdesk.backend.schemas.faculty import RespondRequest
from eventdesk.backend.services.base import BaseService

INVALID_LINK = "Invalid or expired invitation link"


class FacultyService(BaseService):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.repo = FacultyAssignmentRepository(session)
        self.events = EventRepository(session)

    async def list_assignments(
        self,
        event_id: str | None = None,
        status: str | None = None,
        role: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[FacultyAssignment], int]:
        return await self.repo.search(event_id, status, role, limit, offset)

    async def _by_token(self, token: str) -> FacultyAssignment:
        assignment = await self.repo.get_by_token(token)
        if assignment is None:
            raise NotFoundError(INVALID_LINK)
        return assignment

    async def get_portal(self, token: str) -> dict[str, Any]:
        """The faculty member behind a token with all their assignments in the event."""
        assignment = await self._by_token(token)
        return {
            "faculty": {
                "name": assignment.faculty_name,
                "email": assignment.faculty_email,
                "phone": assignment.faculty_phone,
            },
            "assignments": await self.repo.list_for_faculty(assignment),
            "event": await self.events.get_by_id_or_none(assignment.event_id),
        }

    async def respond(self, token: str, data: RespondRequest) -> dict[str, int]:
        """
        Record confirm/decline/change requests.

        A global_response applies to every assignment of the faculty
        member; per-assignment responses ignore ids that are not theirs.

        Raises:
            NotFoundError: Unknown token
            ValidationError: Unknown response status or empty body
        """
        assignment = await self._by_token(token)
        owned = {a.id: a for a in await self.repo.list_for_faculty(assignment)}

        if data.global_response:
            note = data.notes if isinstance(data.notes, str) else None
            planned = [(a, data.global_response, note) for a in owned.values()]
        elif data.responses:
            notes = data.notes if isinstance(data.notes, dict) else {}
            planned = [
                (owned[assignment_id], status, notes.get(assignment_id))
                for assignment_id, status in data.responses.items()
                if assignment_id in owned
            ]
        else:
            raise ValidationError("Provide global_response or responses")

        for _, status, _ in planned:
            self._validate_choice(status, RESPONSE_STATUSES, "response")

        now = utc_now()
        for target, status, note in planned:
            changes: dict[str, Any] = {"status": status, "responded_at": now}
            if note:
                if status == "change_requested":
                    changes["change_request_details"] = note
                else:
                    changes["response_notes"] = note
            await self.repo.apply(target, **changes)

        self._log_operation(
            "Faculty responded",
            event_id=assignment.event_id,
            faculty=assignment.faculty_name,
            updated=len(planned),
        )
        return {"updated": len(planned)}
