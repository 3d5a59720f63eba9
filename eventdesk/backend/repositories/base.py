"""
Base Repository.

Base class for all repositories with common CRUD operations.
"""

from typing import Any, Generic, TypeVar
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.backend.core.exceptions import NotFoundError
from eventdesk.backend.core.logging import get_logger
from eventdesk.backend.models.base import Base

logger = get_logger(__name__)

ModelType = TypeVar("ModelType", bound=Base)

# Readable names for NotFoundError messages
_ENTITY_NAMES = {
    "FacultyAssignment": "Assignment",
    "TicketType": "Ticket type",
    "CheckinList": "Check-in list",
    "AbstractCategory": "Category",
    "FormSubmission": "Submission",
    "SponsorTier": "Tier",
}


class BaseRepository(Generic[ModelType]):
    """
    Base repository with common CRUD operations.

    Subclasses set the model class:

        class SponsorRepository(BaseRepository[Sponsor]):
            model = Sponsor
    """

    model: type[ModelType]

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    @property
    def entity_name(self) -> str:
        return _ENTITY_NAMES.get(self.model.__name__, self.model.__name__)

    async def get_by_id(self, id: str | UUID) -> ModelType:
        """
        Get a single record by ID.

        Raises:
            NotFoundError: If record not found
        """
        instance = await self.get_by_id_or_none(id)
        if instance is None:
            raise NotFoundError(f"{self.entity_name} not found")
        return instance

    async def get_by_id_or_none(self, id: str | UUID) -> ModelType | None:
        """Get a single record by ID, returning None if not found."""
        result = await self.session.execute(
            select(self.model).where(self.model.id == str(id))
        )
        return result.scalar_one_or_none()

    async def get_many(self, ids: list[str]) -> list[ModelType]:
        if not ids:
            return []
        result = await self.session.execute(
            select(self.model).where(self.model.id.in_(ids))
        )
        return list(result.scalars().all())

    async def list_for_event(self, event_id: str, *order_by: Any) -> list[ModelType]:
        """All rows of an event-scoped model, in the given order."""
        stmt = select(self.model).where(self.model.event_id == event_id)
        if order_by:
            stmt = stmt.order_by(*order_by)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def paginate(
        self,
        *conditions: Any,
        order_by: tuple[Any, ...] = (),
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[ModelType], int]:
        """
        Filtered page of rows with the total count of matching rows.

        Args:
            *conditions: SQLAlchemy where clauses, ANDed together
            order_by: Ordering columns
            limit: Page size
            offset: Rows to skip

        Returns:
            Tuple of (rows, total)
        """
        stmt = select(self.model).where(*conditions)
        if order_by:
            stmt = stmt.order_by(*order_by)
        result = await self.session.execute(stmt.limit(limit).offset(offset))
        total = await self.count(*conditions)
        return list(result.scalars().all()), total

    async def count(self, *conditions: Any) -> int:
        """Count rows matching the given where clauses."""
        result = await self.session.execute(
            select(func.count()).select_from(self.model).where(*conditions)
        )
        return result.scalar_one()

    async def create(self, **kwargs: Any) -> ModelType:
        """Create a new record."""
        instance = self.model(**kwargs)
        self.session.add(instance)
        await self.session.flush()
        await self.session.refresh(instance)
        return instance

    async def update(self, id: str | UUID, **kwargs: Any) -> ModelType:
        """
        Update an existing record.

        Raises:
            NotFoundError: If record not found
        """
        instance = await self.get_by_id(id)
        return await self.apply(instance, **kwargs)

    async def apply(self, instance: ModelType, **kwargs: Any) -> ModelType:
        """Set attributes on an already loaded row and flush."""
        for key, value in kwargs.items():
            if hasattr(instance, key):
                setattr(instance, key, value)

        await self.session.flush()
        await self.session.refresh(instance)
        return instance

    async def increment(
        self,
        id: str,
        column: str,
        amount: int = 1,
        floor: int | None = None,
    ) -> None:
        """
        Atomically add `amount` to an integer column.

        Runs as a single UPDATE so concurrent writers never lose counts.
        With `floor`, the stored value never drops below it. A row already
        loaded in the session is reloaded with the new value.
        """
        value = getattr(self.model, column) + amount
        if floor is not None:
            value = self._greatest(value, floor)
        await self.session.execute(
            update(self.model)
            .where(self.model.id == id)
            .values({column: value})
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(
            select(self.model)
            .where(self.model.id == id)
            .execution_options(populate_existing=True)
        )
        result.scalar_one_or_none()

    def _greatest(self, *values: Any) -> Any:
        """GREATEST() on PostgreSQL, scalar MAX() on SQLite."""
        if self.session.get_bind().dialect.name == "sqlite":
            return func.max(*values)
        return func.greatest(*values)

    async def delete(self, id: str | UUID) -> None:
        """
        Delete a record by ID.

        Raises:
            NotFoundError: If record not found
        """
        instance = await self.get_by_id(id)
        await self.session.delete(instance)
        await self.session.flush()

    async def exists(self, id: str | UUID) -> bool:
        """Check if a record exists by ID."""
        result = await self.session.execute(
            select(self.model.id).where(self.model.id == str(id))
        )
        return result.scalar_one_or_none() is not None
