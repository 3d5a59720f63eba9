"""
Event Repositories.
"""

from sqlalchemy import select, update

from eventdesk.backend.models.event import Event, EventSettings
from eventdesk.backend.repositories.base import BaseRepository


class EventRepository(BaseRepository[Event]):
    model = Event

    async def get_by_slug(self, slug: str) -> Event | None:
        result = await self.session.execute(select(Event).where(Event.slug == slug))
        return result.scalar_one_or_none()


class EventSettingsRepository(BaseRepository[EventSettings]):
    model = EventSettings

    async def get_for_event(self, event_id: str) -> EventSettings | None:
        result = await self.session.execute(
            select(EventSettings).where(EventSettings.event_id == event_id)
        )
        return result.scalar_one_or_none()

    async def get_or_create(self, event_id: str) -> EventSettings:
        """Settings row for an event, inserted with defaults on first access."""
        settings = await self.get_for_event(event_id)
        if settings is None:
            settings = await self.create(event_id=event_id)
        return settings

    async def claim_registration_number(self, event_id: str) -> int:
        """
        Claim the next custom registration number.

        The counter moves to max(start, current + 1) in one UPDATE and the
        claimed value comes back through RETURNING, so concurrent claims
        never collide.
        """
        result = await self.session.execute(
            update(EventSettings)
            .where(EventSettings.event_id == event_id)
            .values(
                current_registration_number=self._greatest(
                    EventSettings.registration_start_number,
                    EventSettings.current_registration_number + 1,
                )
            )
            .returning(EventSettings.current_registration_number)
            .execution_options(synchronize_session=False)
        )
        return result.scalar_one()
