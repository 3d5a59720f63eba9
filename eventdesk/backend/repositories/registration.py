"""
Registration Repositories.
"""

from typing import Any

from sqlalchemy import func, or_, select

from eventdesk.backend.models.registration import Registration, RegistrationAddon
from eventdesk.backend.repositories.base import BaseRepository


class RegistrationRepository(BaseRepository[Registration]):
    model = Registration

    async def search(
        self,
        event_id: str | None = None,
        status: str | None = None,
        search: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Registration], int]:
        """
        Newest-first page of registrations.

        `search` is a case-insensitive substring match on attendee name,
        email and registration number. A status of "all" is no filter.
        """
        conditions: list[Any] = []
        if event_id:
            conditions.append(Registration.event_id == event_id)
        if status and status != "all":
            conditions.append(Registration.status == status)
        if search:
            pattern = f"%{search.strip().lower()}%"
            conditions.append(
                or_(
                    func.lower(Registration.attendee_name).like(pattern),
                    func.lower(Registration.attendee_email).like(pattern),
                    func.lower(Registration.registration_number).like(pattern),
                )
            )
        return await self.paginate(
            *conditions,
            order_by=(Registration.created_at.desc(),),
            limit=limit,
            offset=offset,
        )

    async def emails_for_event(self, event_id: str) -> set[str]:
        """Lower-cased attendee emails already registered for an event."""
        result = await self.session.execute(
            select(Registration.attendee_email).where(Registration.event_id == event_id)
        )
        return {email.strip().lower() for email in result.scalars().all() if email}

    async def get_by_number(self, event_id: str, registration_number: str) -> Registration | None:
        result = await self.session.execute(
            select(Registration).where(
                Registration.event_id == event_id,
                Registration.registration_number == registration_number,
            )
        )
        return result.scalar_one_or_none()

    async def get_in_event(self, registration_id: str, event_id: str) -> Registration | None:
        result = await self.session.execute(
            select(Registration).where(
                Registration.id == registration_id,
                Registration.event_id == event_id,
            )
        )
        return result.scalar_one_or_none()

    async def find_by_email(
        self,
        event_id: str,
        email: str,
        status: str | None = None,
    ) -> Registration | None:
        stmt = select(Registration).where(
            Registration.event_id == event_id,
            func.lower(Registration.attendee_email) == email.strip().lower(),
        )
        if status:
            stmt = stmt.where(Registration.status == status)
        result = await self.session.execute(stmt.order_by(Registration.created_at).limit(1))
        return result.scalar_one_or_none()

    async def find_by_portal_token(self, token: str) -> Registration | None:
        result = await self.session.execute(
            select(Registration)
            .where(Registration.custom_fields["portal_token"].as_string() == token)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def list_for_event_all(self, event_id: str) -> list[Registration]:
        return await self.list_for_event(event_id, Registration.created_at)

    async def list_by_payment(self, payment_id: str) -> list[Registration]:
        result = await self.session.execute(
            select(Registration).where(Registration.payment_id == payment_id)
        )
        return list(result.scalars().all())

    async def list_confirmed(
        self,
        event_id: str,
        ticket_type_ids: list[str] | None = None,
        registration_ids: list[str] | None = None,
        search: str | None = None,
    ) -> list[Registration]:
        """Confirmed registrations of an event, optionally narrowed."""
        stmt = select(Registration).where(
            Registration.event_id == event_id,
            Registration.status == "confirmed",
        )
        if ticket_type_ids:
            stmt = stmt.where(Registration.ticket_type_id.in_(ticket_type_ids))
        if registration_ids is not None:
            stmt = stmt.where(Registration.id.in_(registration_ids))
        if search:
            pattern = f"%{search.strip().lower()}%"
            stmt = stmt.where(
                or_(
                    func.lower(Registration.attendee_name).like(pattern),
                    func.lower(Registration.attendee_email).like(pattern),
                    func.lower(Registration.registration_number).like(pattern),
                    func.lower(Registration.attendee_phone).like(pattern),
                )
            )
        result = await self.session.execute(stmt.order_by(Registration.attendee_name))
        return list(result.scalars().all())


class RegistrationAddonRepository(BaseRepository[RegistrationAddon]):
    model = RegistrationAddon

    async def registrations_with_addons(self, addon_ids: list[str]) -> set[str]:
        """Ids of registrations holding at least one of the given add-ons."""
        if not addon_ids:
            return set()
        result = await self.session.execute(
            select(RegistrationAddon.registration_id).where(
                RegistrationAddon.addon_id.in_(addon_ids)
            )
        )
        return set(result.scalars().all())
