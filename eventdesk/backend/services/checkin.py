"""
Check-in Service.

Check-in lists, attendee search, scanning, bulk actions and live stats.
A registration is checked in on a list while it has an open record there.
"""

from collections import Counter
from datetime import timedelta
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.backend.core.exceptions import NotFoundError, ValidationError
from eventdesk.backend.core.utils import is_valid_uuid, utc_now
from eventdesk.backend.models.checkin import CheckinList, CheckinRecord
from eventdesk.backend.models.registration import Registration
from eventdesk.backend.repositories.checkin import CheckinListRepository, CheckinRecordRepository
from eventdesk.backend.repositories.event import EventRepository
from eventdesk.backend.repositories.registration import (
    RegistrationAddonRepository,
    RegistrationRepository,
)
from eventdesk.backend.repositories.ticket import TicketTypeRepository
from eventdesk.backend.schemas.checkin import BulkCheckinRequest, CheckinListCreate, ScanRequest
from eventdesk.backend.services.activity import ActivityLogService
from eventdesk.backend.services.base import BaseService

RECENT_CHECKINS = 10


def _percentage(part: int, total: int) -> int:
    return round(part * 100 / total) if total else 0


class CheckinService(BaseService):
    """Service for check-in lists and scanning."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.lists = CheckinListRepository(session)
        self.records = CheckinRecordRepository(session)
        self.registrations = RegistrationRepository(session)
        self.registration_addons = RegistrationAddonRepository(session)
        self.tickets = TicketTypeRepository(session)
        self.events = EventRepository(session)
        self.activity = ActivityLogService(session)

    async def create_list(self, data: CheckinListCreate) -> CheckinList:
        await self.events.get_by_id(data.event_id)
        self._log_operation("Creating check-in list", event_id=data.event_id, name=data.name)
        return await self._execute_db_operation(
            "create_checkin_list",
            self.lists.create(**data.model_dump()),
        )

    async def list_lists(self, event_id: str, active_only: bool = False) -> list[dict[str, Any]]:
        """Lists ordered by sort_order, each with {total, checked_in, remaining, percentage}."""
        lists = await self.lists.list_for_event_filtered(event_id, active_only)
        results = []
        for checkin_list in lists:
            eligible = await self._eligible(checkin_list.event_id, checkin_list)
            open_ids = await self._open_registration_ids([checkin_list.id])
            checked_in = len({r.id for r in eligible} & open_ids)
            results.append(
                {
                    **{
                        column: getattr(checkin_list, column)
                        for column in (
                            "id",
                            "event_id",
                            "name",
                            "description",
                            "ticket_type_ids",
                            "addon_ids",
                            "allow_multiple_checkins",
                            "is_active",
                            "sort_order",
                        )
                    },
                    "stats": {
                        "total": len(eligible),
                        "checked_in": checked_in,
                        "remaining": len(eligible) - checked_in,
                        "percentage": _percentage(checked_in, len(eligible)),
                    },
                }
            )
        return results

    async def _eligible(
        self,
        event_id: str,
        checkin_list: CheckinList | None,
        search: str | None = None,
    ) -> list[Registration]:
        """Confirmed registrations admitted by a list's ticket and add-on filters."""
        ticket_type_ids = checkin_list.ticket_type_ids if checkin_list else None
        registrations = await self.registrations.list_confirmed(
            event_id,
            ticket_type_ids=ticket_type_ids or None,
            search=search,
        )
        if checkin_list and checkin_list.addon_ids:
            holders = await self.registration_addons.registrations_with_addons(checkin_list.addon_ids)
            registrations = [r for r in registrations if r.id in holders]
        return registrations

    async def _open_registration_ids(self, checkin_list_ids: list[str]) -> set[str]:
        records = await self.records.list_for_lists(checkin_list_ids)
        return {record.registration_id for record in records if record.is_open}

    async def _get_list(self, checkin_list_id: str, event_id: str) -> CheckinList:
        checkin_list = await self.lists.get_in_event(checkin_list_id, event_id)
        if checkin_list is None:
            raise NotFoundError("Check-in list not found")
        return checkin_list

    async def search_attendees(
        self,
        event_id: str | None,
        checkin_list_id: str | None = None,
        q: str | None = None,
        ticket_type_id: str | None = None,
        checked_in: bool | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[dict[str, Any]], int]:
        """
        Attendee rows for a scanning screen.

        Raises:
            ValidationError: event_id missing or not a UUID
            NotFoundError: Check-in list not in the event
        """
        if not event_id or not is_valid_uuid(event_id):
            raise ValidationError("A valid event_id is required")

        checkin_list = await self._get_list(checkin_list_id, event_id) if checkin_list_id else None
        registrations = await self._eligible(event_id, checkin_list, search=q)
        if ticket_type_id:
            registrations = [r for r in registrations if r.ticket_type_id == ticket_type_id]

        latest = await self.records.latest_by_registration(checkin_list.id) if checkin_list else {}
        ticket_names = await self._ticket_names(event_id)

        rows = []
        for registration in registrations:
            record = latest.get(registration.id)
            is_in = record is not None and record.is_open
            if checked_in is not None and is_in != checked_in:
                continue
            rows.append(self._attendee_row(registration, record, ticket_names))

        return rows[offset:offset + limit], len(rows)

    async def _ticket_names(self, event_id: str) -> dict[str, str]:
        return {t.id: t.name for t in await self.tickets.list_for_event_ordered(event_id)}

    def _attendee_row(
        self,
        registration: Registration,
        record: CheckinRecord | None,
        ticket_names: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        return {
            "id": registration.id,
            "registration_number": registration.registration_number,
            "attendee_name": registration.attendee_name,
            "attendee_email": registration.attendee_email,
            "attendee_phone": registration.attendee_phone,
            "attendee_institution": registration.attendee_institution,
            "ticket_type_id": registration.ticket_type_id,
            "ticket_type_name": (ticket_names or {}).get(registration.ticket_type_id or ""),
            "status": registration.status,
            "checked_in": record is not None and record.is_open,
            "checked_in_at": record.checked_in_at if record else None,
            "checked_out_at": record.checked_out_at if record else None,
        }

    async def scan(self, data: ScanRequest) -> dict[str, Any]:
        """
        Check an attendee in or out of a list.

        Raises:
            ValidationError: Missing fields, attendee not confirmed or not admitted by the list
            NotFoundError: Attendee or list not in the event
        """
        self._validate_required(data.model_dump(), ["event_id", "checkin_list_id"])
        if not data.registration_id and not data.registration_number:
            raise ValidationError(
                "Missing required fields: registration_id or registration_number",
                details={"missing_fields": ["registration_id", "registration_number"]},
            )

        if data.registration_id:
            registration = await self.registrations.get_in_event(data.registration_id, data.event_id)
        else:
            registration = await self.registrations.get_by_number(
                data.event_id,
                data.registration_number.strip(),
            )
        if registration is None:
            raise NotFoundError("Registration not found")
        if registration.status != "confirmed":
            raise ValidationError(
                f"Registration is {registration.status}, only confirmed attendees can check in",
                details={"status": registration.status},
            )

        checkin_list = await self._get_list(data.checkin_list_id, data.event_id)
        await self._check_admitted(checkin_list, registration)

        record = await self.records.get_open(checkin_list.id, registration.id)
        action = data.action
        if action == "toggle":
            action = "check_out" if record is not None else "check_in"

        if action == "check_in":
            if record is not None:
                outcome = "already_checked_in"
            else:
                if not checkin_list.allow_multiple_checkins:
                    await self._check_first_entry(checkin_list, registration)
                record = await self.records.create(
                    checkin_list_id=checkin_list.id,
                    registration_id=registration.id,
                    checked_in_at=utc_now(),
                    checked_in_by=data.performed_by,
                )
                outcome = "checked_in"
        elif record is None:
            outcome = "already_checked_out"
        else:
            record = await self.records.apply(
                record,
                checked_out_at=utc_now(),
                checked_out_by=data.performed_by,
            )
            outcome = "checked_out"

        self._log_operation(
            "Check-in scan",
            checkin_list_id=checkin_list.id,
            registration_id=registration.id,
            outcome=outcome,
        )
        return {
            "outcome": outcome,
            "registration": self._attendee_row(registration, record),
            "checked_in_at": record.checked_in_at if record else None,
            "checked_out_at": record.checked_out_at if record else None,
        }

    async def _check_first_entry(self, checkin_list: CheckinList, registration: Registration) -> None:
        """Single-entry lists (meals, kits) refuse anyone already checked out of them."""
        previous = await self.records.get_latest(checkin_list.id, registration.id)
        if previous is not None:
            self._log_debug(
                "Repeat check-in refused",
                checkin_list_id=checkin_list.id,
                registration_id=registration.id,
            )
            raise ValidationError(
                f"Already checked in on {checkin_list.name}",
                details={
                    "checked_in_at": previous.checked_in_at.isoformat(),
                    "checked_out_at": previous.checked_out_at.isoformat() if previous.checked_out_at else None,
                },
            )

    async def _check_admitted(self, checkin_list: CheckinList, registration: Registration) -> None:
        if checkin_list.ticket_type_ids and registration.ticket_type_id not in checkin_list.ticket_type_ids:
            raise ValidationError("Ticket type is not valid for this check-in list")
        if checkin_list.addon_ids:
            holders = await self.registration_addons.registrations_with_addons(checkin_list.addon_ids)
            if registration.id not in holders:
                raise ValidationError("Attendee does not hold an add-on required by this check-in list")

    async def bulk(self, data: BulkCheckinRequest, actor: str | None = None) -> dict[str, int]:
        """Check many registrations in or out of one list."""
        self._validate_required(data.model_dump(), ["event_id", "checkin_list_id"])
        if not data.registration_ids:
            raise ValidationError(
                "Missing required fields: registration_ids",
                details={"missing_fields": ["registration_ids"]},
            )
        checkin_list = await self._get_list(data.checkin_list_id, data.event_id)
        registration_ids = list(dict.fromkeys(data.registration_ids))
        open_records = await self.records.list_open(checkin_list.id, registration_ids)
        now = utc_now()

        if data.action == "check_out":
            for record in open_records:
                record.checked_out_at = now
                record.checked_out_by = data.performed_by
            await self.session.flush()
            result = {"count": len(open_records), "skipped": 0}
        else:
            already_in = {record.registration_id for record in open_records}
            if not checkin_list.allow_multiple_checkins:
                already_in |= await self.records.registrations_with_records(checkin_list.id, registration_ids)
            eligible = await self.registrations.list_confirmed(
                data.event_id,
                ticket_type_ids=checkin_list.ticket_type_ids or None,
                registration_ids=[rid for rid in registration_ids if rid not in already_in],
            )
            if checkin_list.addon_ids:
                holders = await self.registration_addons.registrations_with_addons(checkin_list.addon_ids)
                eligible = [r for r in eligible if r.id in holders]
            for registration in eligible:
                self.session.add(
                    CheckinRecord(
                        checkin_list_id=checkin_list.id,
                        registration_id=registration.id,
                        checked_in_at=now,
                        checked_in_by=data.performed_by,
                    )
                )
            await self.session.flush()
            result = {"count": len(eligible), "skipped": len(registration_ids) - len(eligible)}

        self._log_operation(
            "Bulk check-in",
            checkin_list_id=checkin_list.id,
            action=data.action,
            **result,
        )
        await self.activity.log(
            f"bulk_{data.action}",
            "checkin_list",
            entity_id=checkin_list.id,
            event_id=checkin_list.event_id,
            entity_name=checkin_list.name,
            actor=actor,
            details={**result, "registration_ids": registration_ids},
        )
        return result

    async def stats(self, event_id: str | None, checkin_list_id: str | None = None) -> dict[str, Any]:
        """Totals, per-ticket breakdown, recent scans and today's hourly histogram."""
        if not event_id or not is_valid_uuid(event_id):
            raise ValidationError("A valid event_id is required")

        if checkin_list_id:
            checkin_list = await self._get_list(checkin_list_id, event_id)
            list_ids = [checkin_list.id]
        else:
            checkin_list = None
            list_ids = [cl.id for cl in await self.lists.list_for_event_filtered(event_id)]

        eligible = await self._eligible(event_id, checkin_list)
        eligible_by_id = {r.id: r for r in eligible}
        records = await self.records.list_for_lists(list_ids)
        checked_in_ids = {
            r.registration_id for r in records if r.is_open and r.registration_id in eligible_by_id
        }

        ticket_names = await self._ticket_names(event_id)
        totals = Counter(r.ticket_type_id for r in eligible)
        arrived = Counter(eligible_by_id[rid].ticket_type_id for rid in checked_in_ids)
        by_ticket_type = [
            {
                "ticket_type_id": ticket_type_id,
                "name": ticket_names.get(ticket_type_id or "", "Unknown"),
                "total": count,
                "checked_in": arrived.get(ticket_type_id, 0),
            }
            for ticket_type_id, count in totals.items()
        ]

        recent = []
        for record in records:
            if len(recent) == RECENT_CHECKINS:
                break
            registration = eligible_by_id.get(record.registration_id)
            if registration is None:
                registration = await self.registrations.get_by_id_or_none(record.registration_id)
            if registration is None:
                continue
            recent.append(
                {
                    "registration_id": registration.id,
                    "attendee_name": registration.attendee_name,
                    "registration_number": registration.registration_number,
                    "checked_in_at": record.checked_in_at,
                }
            )

        today = utc_now().replace(hour=0, minute=0, second=0, microsecond=0)
        hourly = [0] * 24
        today_count = 0
        for record in records:
            if today <= record.checked_in_at < today + timedelta(days=1):
                hourly[record.checked_in_at.hour] += 1
                today_count += 1

        total = len(eligible)
        return {
            "total": total,
            "checked_in": len(checked_in_ids),
            "not_checked_in": total - len(checked_in_ids),
            "percentage": _percentage(len(checked_in_ids), total),
            "by_ticket_type": by_ticket_type,
            "recent_checkins": recent,
            "hourly_distribution": hourly,
            "today_checkins": today_count,
        }
