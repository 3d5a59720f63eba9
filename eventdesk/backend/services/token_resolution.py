"""
Speaker Token Resolution.

Speakers reach their portal through links carrying either a registration
portal token or a faculty invitation token. SpeakerTokenResolver tries
each lookup strategy in order and reports which one matched, then
gathers the sessions the speaker appears in.
"""

from dataclasses import dataclass, field
from datetime import time

from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.backend.core.logging import get_logger
from eventdesk.backend.core.utils import normalize_email, strip_title
from eventdesk.backend.models.faculty import FacultyAssignment
from eventdesk.backend.models.program import Session
from eventdesk.backend.models.registration import Registration
from eventdesk.backend.repositories.faculty import FacultyAssignmentRepository
from eventdesk.backend.repositories.program import SessionRepository
from eventdesk.backend.repositories.registration import RegistrationRepository
from eventdesk.backend.services.program import ROLE_COLUMNS, parse_description

logger = get_logger(__name__)

PORTAL_TOKEN = "portal_token"
INVITATION_TOKEN = "invitation_token"
LINKED_REGISTRATION = "linked_registration"
EMAIL_MATCH = "email_match"
NAME_MATCH = "name_match"


def _name_key(name: str | None) -> str:
    return strip_title(name or "").lower()


@dataclass
class ResolvedSpeaker:
    """
    The outcome of a token lookup.

    matched_by is "portal_token", or "invitation_token" optionally
    followed by how the registration was found, e.g.
    "invitation_token:email_match".
    """

    event_id: str
    matched_by: str
    registration: Registration | None = None
    assignment: FacultyAssignment | None = None
    assignments: list[FacultyAssignment] = field(default_factory=list)

    @property
    def email(self) -> str:
        if self.registration is not None:
            return normalize_email(self.registration.attendee_email)
        if self.assignment is not None:
            return normalize_email(self.assignment.faculty_email)
        return ""

    @property
    def name(self) -> str:
        if self.registration is not None:
            return self.registration.attendee_name
        if self.assignment is not None:
            return self.assignment.faculty_name
        return ""


class SpeakerTokenResolver:
    """
    Usage:
        resolver = SpeakerTokenResolver(session)
        speaker = await resolver.resolve(token)
        if speaker is not None:
            sessions = await resolver.sessions_for(speaker)
    """

    def __init__(self, session: AsyncSession) -> None:
        self.registrations = RegistrationRepository(session)
        self.assignments = FacultyAssignmentRepository(session)
        self.sessions = SessionRepository(session)

    async def resolve(self, token: str) -> ResolvedSpeaker | None:
        if not token:
            return None

        registration = await self.registrations.find_by_portal_token(token)
        if registration is not None:
            speaker = ResolvedSpeaker(
                event_id=registration.event_id,
                matched_by=PORTAL_TOKEN,
                registration=registration,
            )
            speaker.assignments = await self._assignments_for(speaker)
            logger.debug("Speaker token resolved", extra={"matched_by": PORTAL_TOKEN})
            return speaker

        assignment = await self.assignments.get_by_token(token)
        if assignment is None:
            return None

        registration, how = await self._registration_for(assignment)
        speaker = ResolvedSpeaker(
            event_id=assignment.event_id,
            matched_by=f"{INVITATION_TOKEN}:{how}" if how else INVITATION_TOKEN,
            registration=registration,
            assignment=assignment,
        )
        speaker.assignments = await self.assignments.list_for_faculty(assignment)
        logger.debug("Speaker token resolved", extra={"matched_by": speaker.matched_by})
        return speaker

    async def _registration_for(
        self,
        assignment: FacultyAssignment,
    ) -> tuple[Registration | None, str | None]:
        if assignment.registration_id:
            registration = await self.registrations.get_by_id_or_none(assignment.registration_id)
            if registration is not None:
                return registration, LINKED_REGISTRATION

        if assignment.faculty_email:
            registration = await self.registrations.find_by_email(
                assignment.event_id,
                assignment.faculty_email,
            )
            if registration is not None:
                return registration, EMAIL_MATCH

        wanted = _name_key(assignment.faculty_name)
        if wanted:
            for registration in await self.registrations.list_for_event_all(assignment.event_id):
                if _name_key(registration.attendee_name) == wanted:
                    return registration, NAME_MATCH

        return None, None

    async def _assignments_for(self, speaker: ResolvedSpeaker) -> list[FacultyAssignment]:
        if not speaker.email:
            return []
        return await self.assignments.list_by_email(speaker.event_id, speaker.email)

    async def sessions_for(self, speaker: ResolvedSpeaker) -> list[Session]:
        """
        Sessions from the speaker's assignments, description email matches
        and text matches on the speaker columns, de-duplicated and ordered
        by date and time.
        """
        all_sessions = await self.sessions.list_filtered(speaker.event_id)
        assigned = {a.session_id for a in speaker.assignments if a.session_id}
        email = speaker.email
        name = _name_key(speaker.name)

        matched: dict[str, Session] = {}
        for program_session in all_sessions:
            if program_session.id in assigned:
                matched[program_session.id] = program_session
                continue

            person = parse_description(program_session.description)
            if email and person is not None and person.email == email:
                matched[program_session.id] = program_session
                continue

            haystack = " ".join(
                (getattr(program_session, column) or "") for column, _ in ROLE_COLUMNS
            ) + " " + (program_session.description or "")
            haystack = haystack.lower()
            if (email and email in haystack) or (name and name in haystack):
                matched[program_session.id] = program_session

        return sorted(
            matched.values(),
            key=lambda s: (
                s.session_date is None,
                s.session_date.toordinal() if s.session_date else 0,
                s.start_time or time.min,
            ),
        )
