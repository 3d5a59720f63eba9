"""
Registration Import Service.

Bulk creation of registrations from parsed CSV rows. Rows are validated
one by one; a bad row is reported and the batch carries on. Ticket
inventory is settled once per ticket type after the loop.
"""

import csv
import io
from collections import Counter
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.backend.core.exceptions import ValidationError
from eventdesk.backend.core.utils import is_valid_email, normalize_email, random_base36, utc_now
from eventdesk.backend.models.ticket import TicketType
from eventdesk.backend.repositories.event import EventRepository
from eventdesk.backend.repositories.registration import RegistrationRepository
from eventdesk.backend.repositories.ticket import TicketTypeRepository
from eventdesk.backend.schemas.registration import ImportRequest
from eventdesk.backend.services.activity import ActivityLogService
from eventdesk.backend.services.base import BaseService
from eventdesk.backend.tasks.notifications import enqueue_registration_confirmations

MAX_REPORTED_ERRORS = 50
QUESTION_PREFIX = "q:"

TEMPLATE_COLUMNS = [
    "ticket",
    "name",
    "email",
    "phone",
    "designation",
    "institution",
    "city",
    "state",
    "country",
    "notify",
]
TEMPLATE_EXAMPLE_PEOPLE = [
    ["Dr. Asha Rao", "asha.rao@example.com", "+91 98450 00000", "Consultant", "City Hospital",
     "Bengaluru", "Karnataka", "India", "Y"],
    ["Dr. Ravi Kumar", "ravi.kumar@example.com", "", "Associate Professor", "Medical College",
     "Chennai", "Tamil Nadu", "India", "N"],
]
DEFAULT_TEMPLATE_TICKET = "Delegate"

IMPORT_HELP: dict[str, Any] = {
    "columns": TEMPLATE_COLUMNS + ["status", "Q:<question>"],
    "required": ["name", "email"],
    "notes": [
        "ticket is matched by ticket type name, ignoring case; blank uses the default ticket",
        "status may be confirmed (default) or pending",
        "notify=Y queues a confirmation email",
        "Q:-prefixed columns are stored as custom answers without the prefix",
        "emails already registered for the event are skipped",
        "format=csv with event_id gives a template naming that event's ticket types",
    ],
}

_PROFILE_FIELDS = ("designation", "institution", "city", "state", "country")


def import_template_csv(ticket_names: list[str] | None = None) -> str:
    """
    Header plus one example row per ticket type name.

    Without names a single Delegate row is written. Example emails stay
    unique so the template imports cleanly as-is.
    """
    out = io.StringIO()
    writer = csv.writer(out, lineterminator="\n")
    writer.writerow(TEMPLATE_COLUMNS)
    for index, ticket in enumerate(ticket_names or [DEFAULT_TEMPLATE_TICKET]):
        person = list(TEMPLATE_EXAMPLE_PEOPLE[index % len(TEMPLATE_EXAMPLE_PEOPLE)])
        rounds = index // len(TEMPLATE_EXAMPLE_PEOPLE)
        if rounds:
            local, domain = person[1].split("@")
            person[1] = f"{local}+{rounds}@{domain}"
        writer.writerow([ticket, *person])
    return out.getvalue()


def generate_import_number() -> str:
    """REG-YYYYMMDD-XXXX with four random base36 characters."""
    return f"REG-{utc_now():%Y%m%d}-{random_base36(4)}"


def _clean(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _normalize_row(row: dict[str, Any]) -> tuple[dict[str, str], dict[str, str]]:
    """Lower-case column names; split off Q: answer columns."""
    fields: dict[str, str] = {}
    answers: dict[str, str] = {}
    for key, value in row.items():
        name = _clean(key)
        if name.lower().startswith(QUESTION_PREFIX):
            question = name[len(QUESTION_PREFIX):].strip()
            if question:
                answers[question] = _clean(value)
        else:
            fields[name.lower()] = _clean(value)
    return fields, answers


def _row_amount(fields: dict[str, str], ticket: TicketType) -> float:
    raw = fields.get("total_amount") or fields.get("amount")
    if raw:
        try:
            return round(float(raw), 2)
        except ValueError:
            pass
    return ticket.price


class RegistrationImportService(BaseService):
    """Bulk registration import."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.repo = RegistrationRepository(session)
        self.events = EventRepository(session)
        self.tickets = TicketTypeRepository(session)
        self.activity = ActivityLogService(session)

    async def template_csv(self, event_id: str) -> str:
        """CSV template whose example rows name the event's ticket types."""
        event = await self.events.get_by_id(event_id)
        tickets = await self.tickets.list_for_event_ordered(event.id)
        return import_template_csv([ticket.name for ticket in tickets])

    async def import_registrations(
        self,
        data: ImportRequest,
        actor: str | None = None,
    ) -> dict[str, Any]:
        """
        Import rows into an event.

        Raises:
            ValidationError: No event_id, no rows, or the event has no ticket types
            NotFoundError: Event not found
        """
        if not data.event_id:
            raise ValidationError("event_id is required")
        if not data.registrations:
            raise ValidationError("No registrations to import")

        event = await self.events.get_by_id(data.event_id)
        ticket_types = await self.tickets.list_for_event_ordered(event.id)
        if not ticket_types:
            raise ValidationError("No ticket types found")

        by_name = {ticket.name.strip().lower(): ticket for ticket in ticket_types}
        by_id = {ticket.id: ticket for ticket in ticket_types}
        default_ticket = by_id.get(data.ticket_type_id) if data.ticket_type_id else ticket_types[0]

        seen = await self.repo.emails_for_event(event.id)
        deltas: Counter[str] = Counter()
        created: list[dict[str, Any]] = []
        errors: list[str] = []
        to_notify: list[str] = []
        skipped = failed = 0

        self._log_operation(
            "Importing registrations",
            event_id=event.id,
            rows=len(data.registrations),
        )

        for index, raw in enumerate(data.registrations):
            row_number = index + 2
            fields, answers = _normalize_row(raw)
            name = fields.get("name", "")
            email = normalize_email(fields.get("email"))

            if not name:
                errors.append(f"Row {row_number}: Name is required")
                failed += 1
                continue
            if not email:
                errors.append(f"Row {row_number}: Email is required")
                failed += 1
                continue
            if not is_valid_email(email):
                errors.append(f"Row {row_number}: Invalid email '{email}'")
                failed += 1
                continue
            if email in seen:
                errors.append(f"Row {row_number}: {email} is already registered, skipped")
                skipped += 1
                continue

            ticket_name = fields.get("ticket", "")
            if ticket_name:
                ticket = by_name.get(ticket_name.lower())
                if ticket is None:
                    errors.append(f"Row {row_number}: Unknown ticket type '{ticket_name}'")
                    failed += 1
                    continue
            else:
                ticket = default_ticket
            if ticket is None:
                errors.append(f"Row {row_number}: No ticket type could be resolved")
                failed += 1
                continue
            if (
                ticket.quantity_total is not None
                and ticket.quantity_sold + deltas[ticket.id] >= ticket.quantity_total
            ):
                errors.append(f"Row {row_number}: Ticket type '{ticket.name}' is sold out")
                failed += 1
                continue

            status = "pending" if fields.get("status", "").lower() == "pending" else "confirmed"
            now = utc_now()
            custom_fields: dict[str, Any] = {
                field: fields[field] for field in _PROFILE_FIELDS if fields.get(field)
            }
            custom_fields.update(answers)
            custom_fields["imported"] = True
            custom_fields["imported_at"] = now.isoformat()

            amount = _row_amount(fields, ticket)
            try:
                async with self.session.begin_nested():
                    registration = await self.repo.create(
                        event_id=event.id,
                        ticket_type_id=ticket.id,
                        registration_number=generate_import_number(),
                        attendee_name=name,
                        attendee_email=email,
                        attendee_phone=fields.get("phone") or None,
                        attendee_institution=fields.get("institution") or None,
                        attendee_designation=fields.get("designation") or None,
                        attendee_city=fields.get("city") or None,
                        attendee_state=fields.get("state") or None,
                        attendee_country=fields.get("country") or None,
                        quantity=1,
                        unit_price=ticket.price,
                        tax_amount=0,
                        discount_amount=0,
                        total_amount=amount,
                        status=status,
                        payment_status="free" if not ticket.price else "completed",
                        confirmed_at=now if status == "confirmed" else None,
                        custom_fields=custom_fields,
                    )
            except SQLAlchemyError as e:
                self._logger.warning(
                    "Import row insert failed",
                    extra={"service": self.__class__.__name__, "row": row_number, "error": str(e)},
                )
                errors.append(f"Row {row_number}: Could not be saved")
                failed += 1
                continue

            if fields.get("notify", "").upper() == "Y":
                to_notify.append(registration.id)

            seen.add(email)
            deltas[ticket.id] += 1
            created.append(
                {
                    "row": row_number,
                    "registration_number": registration.registration_number,
                    "name": name,
                    "email": email,
                }
            )

        for ticket_id, delta in deltas.items():
            await self.tickets.increment_sold(ticket_id, delta)

        # Workers read the rows, so they must be committed before queueing
        await self.session.commit()
        queued = await enqueue_registration_confirmations(to_notify)

        summary = {
            "total": len(data.registrations),
            "created": len(created),
            "skipped": skipped,
            "failed": failed,
            "notifications_queued": queued,
        }

        await self.activity.log(
            "registrations_imported",
            "event",
            entity_id=event.id,
            event_id=event.id,
            entity_name=event.name,
            actor=actor,
            description=f"Imported {len(created)} of {len(data.registrations)} registrations",
            details=summary,
        )
        self._log_operation("Import finished", event_id=event.id, **summary)

        return {
            "summary": summary,
            "created": created,
            "errors": errors[:MAX_REPORTED_ERRORS],
        }
