"""
Program Service.

Sessions, the public program, and the organiser tools that turn free-text
speaker columns into faculty assignments, invitations and speaker
registrations.
"""

import random
import re
import uuid
from dataclasses import dataclass
from datetime import date, time
from itertools import groupby
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.backend.core.config import get_app_config
from eventdesk.backend.core.exceptions import ExternalServiceError, ValidationError
from eventdesk.backend.core.utils import generate_token, normalize_email, strip_title, utc_now
from eventdesk.backend.integrations.email import EmailClient
from eventdesk.backend.models.event import Event
from eventdesk.backend.models.faculty import FacultyAssignment
from eventdesk.backend.models.program import Session
from eventdesk.backend.repositories.event import EventRepository, EventSettingsRepository
from eventdesk.backend.repositories.faculty import (
    AssignmentEmailRepository,
    FacultyAssignmentRepository,
)
from eventdesk.backend.repositories.program import SessionRepository
from eventdesk.backend.repositories.registration import RegistrationRepository
from eventdesk.backend.repositories.ticket import TicketTypeRepository
from eventdesk.backend.schemas.program import SendInvitationsRequest, SessionCreate, SessionUpdate
from eventdesk.backend.services.base import BaseService
from eventdesk.backend.services.notifications import render_template, to_html

PERSON_PATTERN = re.compile(r"^([^(]+)\s*(?:\(([^,]*),?\s*([^)]*)\))?$")

ROLE_COLUMNS = (
    ("speakers_text", "speaker"),
    ("chairpersons_text", "chairperson"),
    ("moderators_text", "moderator"),
)

MAX_SAMPLE_ERRORS = 5
BODY_PREVIEW_LENGTH = 200

INVITATION_SUBJECT = "Invitation to {{role}} at {{event_name}}"
INVITATION_BODY = """Dear {{faculty_name}},

We are delighted to invite you as a **{{role}}** at **{{event_name}}**.

Session: **{{session_name}}**
Date: {{session_date}}
Time: {{start_time}} - {{end_time}}
Hall: {{hall}}

Please confirm your participation using the link below:
{{confirmation_link}}

Warm regards,
{{event_name}} Organising Committee"""


@dataclass
class Person:
    name: str
    email: str | None = None
    phone: str | None = None


def parse_people(text: str | None) -> list[Person]:
    """
    Split "Name (email, phone) | Name2 (email2, phone2)" into people.

    Email and phone are optional; blank parts are ignored.
    """
    people = []
    for part in (text or "").split("|"):
        part = part.strip()
        if not part:
            continue
        match = PERSON_PATTERN.match(part)
        if match is None:
            continue
        name = match.group(1).strip()
        if not name:
            continue
        email = (match.group(2) or "").strip() or None
        phone = (match.group(3) or "").strip() or None
        people.append(Person(name=name, email=email, phone=phone))
    return people


def parse_description(description: str | None) -> Person | None:
    """Read "Name | email | phone" from a session description."""
    if not description:
        return None
    parts = [part.strip() for part in description.split("|")]
    name = strip_title(parts[0]) if parts and parts[0] else ""
    if not name:
        return None
    email = normalize_email(parts[1]) if len(parts) > 1 else ""
    phone = parts[2] if len(parts) > 2 and parts[2] else None
    return Person(name=name, email=email or None, phone=phone)


def _hhmm(value: time | str | None) -> str:
    if value is None:
        return ""
    return str(value)[:5]


class ProgramService(BaseService):
    """Service for sessions and program tooling."""

    def __init__(self, session: AsyncSession, email: EmailClient | None = None) -> None:
        super().__init__(session)
        self.repo = SessionRepository(session)
        self.events = EventRepository(session)
        self.event_settings = EventSettingsRepository(session)
        self.assignments = FacultyAssignmentRepository(session)
        self.assignment_emails = AssignmentEmailRepository(session)
        self.registrations = RegistrationRepository(session)
        self.tickets = TicketTypeRepository(session)
        self._email = email

    @property
    def email(self) -> EmailClient:
        if self._email is None:
            self._email = EmailClient()
        return self._email

    async def create_session(self, data: SessionCreate) -> Session:
        await self.events.get_by_id(data.event_id)
        self._log_operation("Creating session", event_id=data.event_id, name=data.session_name)
        return await self._execute_db_operation(
            "create_session",
            self.repo.create(**data.model_dump()),
        )

    async def update_session(self, session_id: str, data: SessionUpdate) -> Session:
        update_data = data.model_dump(exclude_unset=True)
        if not update_data:
            return await self.repo.get_by_id(session_id)
        return await self._execute_db_operation(
            "update_session",
            self.repo.update(session_id, **update_data),
        )

    async def list_sessions(
        self,
        event_id: str,
        session_date: date | None = None,
        hall: str | None = None,
    ) -> list[Session]:
        return await self.repo.list_filtered(event_id, session_date, hall)

    async def public_program(self, event_id: str) -> dict[str, Any]:
        """Sessions grouped by day, each day ordered by start time."""
        event = await self.events.get_by_id(event_id)
        sessions = await self.repo.list_filtered(event.id)
        days = []
        for day, items in groupby(sessions, key=lambda s: s.session_date):
            day_sessions = sorted(items, key=lambda s: (s.start_time is None, s.start_time or time.min))
            halls = sorted({s.hall for s in day_sessions if s.hall})
            days.append({"date": day, "halls": halls, "sessions": day_sessions})
        return {"event": event, "days": days}

    async def sync_assignments(self, event_id: str) -> dict[str, Any]:
        """
        Create faculty assignments from session speaker columns.

        Existing (session, name, role) triples are skipped.
        """
        event = await self.events.get_by_id(event_id)
        sessions = await self.repo.list_filtered(event.id)
        existing = await self.assignments.existing_keys(event.id)

        created = skipped = failed = total = 0
        errors: list[str] = []

        for program_session in sessions:
            for column, role in ROLE_COLUMNS:
                for person in parse_people(getattr(program_session, column)):
                    total += 1
                    key = (program_session.id, person.name.lower(), role)
                    if key in existing:
                        skipped += 1
                        continue
                    try:
                        async with self.session.begin_nested():
                            await self.assignments.create(
                                event_id=event.id,
                                session_id=program_session.id,
                                faculty_name=person.name,
                                faculty_email=normalize_email(person.email) or None,
                                faculty_phone=person.phone,
                                role=role,
                                session_name=program_session.session_name,
                                session_date=program_session.session_date,
                                start_time=program_session.start_time,
                                end_time=program_session.end_time,
                                hall=program_session.hall,
                                status="pending",
                                invitation_token=generate_token(32),
                            )
                    except SQLAlchemyError as e:
                        failed += 1
                        errors.append(f"{person.name} ({program_session.session_name}): {e.__class__.__name__}")
                        continue
                    existing.add(key)
                    created += 1

        self._log_operation(
            "Assignments synced",
            event_id=event.id,
            created=created,
            skipped=skipped,
            failed=failed,
        )
        return {
            "created": created,
            "skipped": skipped,
            "failed": failed,
            "total": total,
            "first_error": errors[0] if errors else None,
            "sample_errors": errors[:MAX_SAMPLE_ERRORS],
        }

    async def send_invitations(self, event_id: str, data: SendInvitationsRequest) -> dict[str, Any]:
        """
        Email invitation links to faculty.

        Raises:
            ValidationError: No assignment ids
            NotFoundError: Event not found
            ConfigurationError: Email provider not configured
        """
        if not data.assignment_ids:
            raise ValidationError("No assignments selected")
        event = await self.events.get_by_id(event_id)
        self.email.ensure_configured()

        subject_template = data.subject or INVITATION_SUBJECT
        body_template = data.body or INVITATION_BODY
        base_url = get_app_config().integrations.public_base_url.rstrip("/")

        sent = failed = 0
        errors: list[str] = []
        for assignment in await self.assignments.get_many(data.assignment_ids):
            if assignment.event_id != event.id:
                continue
            if not assignment.faculty_email:
                failed += 1
                errors.append(f"{assignment.faculty_name}: no email address")
                continue

            values = self._invitation_values(event, assignment, base_url)
            subject = render_template(subject_template, values)
            body = render_template(body_template, values)
            try:
                message_id = await self.email.send(
                    to=assignment.faculty_email,
                    subject=subject,
                    html=to_html(body),
                    text=body,
                )
            except ExternalServiceError as e:
                failed += 1
                errors.append(f"{assignment.faculty_name}: {e.message}")
                await self._record_email(assignment, subject, body, status="failed", error=e.message)
                continue

            now = utc_now()
            await self.assignments.apply(
                assignment,
                status="invited" if assignment.status == "pending" else assignment.status,
                invitation_sent_at=now,
            )
            await self._record_email(assignment, subject, body, external_id=message_id, sent_at=now)
            sent += 1

        self._log_operation("Invitations sent", event_id=event.id, sent=sent, failed=failed)
        return {"sent": sent, "failed": failed, "errors": errors}

    def _invitation_values(
        self,
        event: Event,
        assignment: FacultyAssignment,
        base_url: str,
    ) -> dict[str, Any]:
        return {
            "faculty_name": assignment.faculty_name,
            "event_name": event.name,
            "role": assignment.role.capitalize(),
            "session_name": assignment.session_name or "",
            "session_date": assignment.session_date.isoformat() if assignment.session_date else "",
            "start_time": _hhmm(assignment.start_time),
            "end_time": _hhmm(assignment.end_time),
            "hall": assignment.hall or "",
            "confirmation_link": f"{base_url}/respond/{assignment.invitation_token}",
        }

    async def _record_email(
        self,
        assignment: FacultyAssignment,
        subject: str,
        body: str,
        status: str = "sent",
        external_id: str | None = None,
        error: str | None = None,
        sent_at: Any = None,
    ) -> None:
        await self.assignment_emails.create(
            assignment_id=assignment.id,
            event_id=assignment.event_id,
            email_type="invitation",
            recipient_email=assignment.faculty_email,
            recipient_name=assignment.faculty_name,
            subject=subject,
            body_preview=body[:BODY_PREVIEW_LENGTH],
            status=status,
            external_id=external_id,
            error_message=error,
            sent_at=sent_at,
        )

    async def create_speaker_registrations(self, event_id: str | None) -> dict[str, Any]:
        """
        Register every speaker named in session descriptions.

        Raises:
            ValidationError: No event_id, or no session names a speaker with an email
            NotFoundError: Event not found
        """
        if not event_id:
            raise ValidationError("event_id is required")
        event = await self.events.get_by_id(event_id)

        speakers: dict[str, Person] = {}
        for program_session in await self.repo.list_filtered(event.id):
            person = parse_description(program_session.description)
            if person and person.email and "@" in person.email:
                speakers[person.email] = person
        if not speakers:
            raise ValidationError("No faculty with email found in sessions")

        ticket = await self._speaker_ticket(event.id)
        registered = await self.registrations.emails_for_event(event.id)
        settings = await self.event_settings.get_for_event(event.id)

        created = skipped = 0
        details = []
        for email, person in speakers.items():
            if email in registered:
                skipped += 1
                continue
            registration = await self._execute_db_operation(
                "create_speaker_registration",
                self.registrations.create(
                    event_id=event.id,
                    ticket_type_id=ticket.id,
                    registration_number=await self._speaker_number(event.id, settings),
                    attendee_name=person.name,
                    attendee_email=email,
                    attendee_phone=person.phone,
                    attendee_designation="Speaker",
                    quantity=1,
                    unit_price=0,
                    total_amount=0,
                    status="pending",
                    payment_status="free",
                    custom_fields={
                        "portal_token": str(uuid.uuid4()),
                        "invitation_sent": False,
                        "needs_travel": False,
                    },
                ),
                conflict_message="Registration number collision, please retry",
            )
            registered.add(email)
            created += 1
            details.append(
                {
                    "registration_id": registration.id,
                    "registration_number": registration.registration_number,
                    "name": person.name,
                    "email": email,
                }
            )

        self._log_operation(
            "Speaker registrations created",
            event_id=event.id,
            created=created,
            skipped=skipped,
        )
        return {
            "created": created,
            "skipped": skipped,
            "total": len(speakers),
            "ticket_type_id": ticket.id,
            "details": details,
        }

    async def _speaker_ticket(self, event_id: str) -> Any:
        for ticket in await self.tickets.list_for_event_ordered(event_id):
            name = ticket.name.lower()
            if "speaker" in name or "faculty" in name:
                return ticket
        return await self.tickets.create(
            event_id=event_id,
            name="Speaker",
            description="Complimentary ticket for speakers and faculty",
            price=0,
            status="hidden",
        )

    async def _speaker_number(self, event_id: str, settings: Any) -> str:
        if settings is not None and settings.customize_registration_id:
            number = await self.event_settings.claim_registration_number(event_id)
            return f"{settings.registration_prefix or ''}{number}{settings.registration_suffix or ''}"
        return f"SPK-{utc_now():%Y%m%d}-{random.randint(1000, 9999)}"
