"""
Event Service.

Event CRUD and the per-event settings row that drives registration
numbering and approval.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.backend.core.exceptions import ConflictError
from eventdesk.backend.models.event import Event, EventSettings
from eventdesk.backend.repositories.event import EventRepository, EventSettingsRepository
from eventdesk.backend.schemas.event import EventCreate, EventSettingsUpdate, EventUpdate
from eventdesk.backend.services.base import BaseService


class EventService(BaseService):
    """Service for event business logic."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.repo = EventRepository(session)
        self.settings_repo = EventSettingsRepository(session)

    async def create_event(self, data: EventCreate) -> Event:
        """
        Create a new event.

        Raises:
            ConflictError: If the slug is already used
        """
        if await self.repo.get_by_slug(data.slug):
            raise ConflictError(f"Event slug '{data.slug}' is already in use")

        self._log_operation("Creating event", slug=data.slug)
        event = await self._execute_db_operation(
            "create_event",
            self.repo.create(**data.model_dump()),
            conflict_message=f"Event slug '{data.slug}' is already in use",
        )
        self._log_debug("Event created", event_id=event.id)
        return event

    async def get_event(self, event_id: str) -> Event:
        return await self.repo.get_by_id(event_id)

    async def list_events(
        self,
        status: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Event], int]:
        conditions = [Event.status == status] if status else []
        return await self.repo.paginate(
            *conditions,
            order_by=(Event.start_date.desc(), Event.created_at.desc()),
            limit=limit,
            offset=offset,
        )

    async def update_event(self, event_id: str, data: EventUpdate) -> Event:
        update_data = data.model_dump(exclude_unset=True)
        if not update_data:
            return await self.repo.get_by_id(event_id)

        self._log_operation("Updating event", event_id=event_id, fields=list(update_data.keys()))
        return await self._execute_db_operation(
            "update_event",
            self.repo.update(event_id, **update_data),
        )

    async def get_settings(self, event_id: str) -> EventSettings:
        """Settings for an event, created with defaults on first access."""
        await self.repo.get_by_id(event_id)
        return await self.settings_repo.get_or_create(event_id)

    async def update_settings(self, event_id: str, data: EventSettingsUpdate) -> EventSettings:
        settings = await self.get_settings(event_id)
        update_data = data.model_dump(exclude_unset=True)
        if not update_data:
            return settings

        self._log_operation("Updating event settings", event_id=event_id, fields=list(update_data.keys()))
        return await self._execute_db_operation(
            "update_event_settings",
            self.settings_repo.apply(settings, **update_data),
        )
