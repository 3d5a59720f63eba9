"""
Abstract Repositories.
"""

from typing import Any

from sqlalchemy import func, or_, select

from eventdesk.backend.models.abstract import (
    Abstract,
    AbstractAuthor,
    AbstractCategory,
    AbstractReview,
    AbstractSettings,
)
from eventdesk.backend.repositories.base import BaseRepository


class AbstractCategoryRepository(BaseRepository[AbstractCategory]):
    model = AbstractCategory

    async def list_ordered(self, event_id: str) -> list[AbstractCategory]:
        return await self.list_for_event(event_id, AbstractCategory.sort_order, AbstractCategory.name)

    async def find_redirect_target(self, event_id: str, exclude_id: str | None) -> AbstractCategory | None:
        """Active non-award category with the highest sort_order, other than exclude_id."""
        stmt = select(AbstractCategory).where(
            AbstractCategory.event_id == event_id,
            AbstractCategory.is_active.is_(True),
            AbstractCategory.is_award_category.is_(False),
        )
        if exclude_id:
            stmt = stmt.where(AbstractCategory.id != exclude_id)
        result = await self.session.execute(
            stmt.order_by(AbstractCategory.sort_order.desc()).limit(1)
        )
        return result.scalar_one_or_none()


class AbstractSettingsRepository(BaseRepository[AbstractSettings]):
    model = AbstractSettings

    async def get_for_event(self, event_id: str) -> AbstractSettings | None:
        result = await self.session.execute(
            select(AbstractSettings).where(AbstractSettings.event_id == event_id)
        )
        return result.scalar_one_or_none()


class AbstractRepository(BaseRepository[Abstract]):
    model = Abstract

    async def search(
        self,
        event_id: str | None = None,
        status: str | None = None,
        category_id: str | None = None,
        presentation_type: str | None = None,
        email: str | None = None,
        search: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Abstract], int]:
        conditions: list[Any] = []
        if event_id:
            conditions.append(Abstract.event_id == event_id)
        if status:
            conditions.append(Abstract.status == status)
        if category_id:
            conditions.append(Abstract.category_id == category_id)
        if presentation_type:
            conditions.append(Abstract.presentation_type == presentation_type)
        if email:
            conditions.append(func.lower(Abstract.presenting_author_email) == email.strip().lower())
        if search:
            pattern = f"%{search.strip().lower()}%"
            conditions.append(
                or_(
                    func.lower(Abstract.title).like(pattern),
                    func.lower(Abstract.abstract_number).like(pattern),
                    func.lower(Abstract.presenting_author_name).like(pattern),
                )
            )
        return await self.paginate(
            *conditions,
            order_by=(Abstract.submitted_at.desc(), Abstract.created_at.desc()),
            limit=limit,
            offset=offset,
        )

    async def count_for_event(self, event_id: str) -> int:
        return await self.count(Abstract.event_id == event_id)

    async def count_active_by_email(self, event_id: str, email: str) -> int:
        return await self.count(
            Abstract.event_id == event_id,
            func.lower(Abstract.presenting_author_email) == email.strip().lower(),
            Abstract.status != "withdrawn",
        )


class AbstractAuthorRepository(BaseRepository[AbstractAuthor]):
    model = AbstractAuthor

    async def list_for_abstract(self, abstract_id: str) -> list[AbstractAuthor]:
        result = await self.session.execute(
            select(AbstractAuthor)
            .where(AbstractAuthor.abstract_id == abstract_id)
            .order_by(AbstractAuthor.author_order)
        )
        return list(result.scalars().all())


class AbstractReviewRepository(BaseRepository[AbstractReview]):
    model = AbstractReview

    async def list_for_abstract(self, abstract_id: str) -> list[AbstractReview]:
        result = await self.session.execute(
            select(AbstractReview)
            .where(AbstractReview.abstract_id == abstract_id)
            .order_by(AbstractReview.created_at)
        )
        return list(result.scalars().all())
