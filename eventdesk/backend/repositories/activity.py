"""
Activity Log Repository.
"""

from typing import Any

from eventdesk.backend.models.activity import ActivityLog
from eventdesk.backend.repositories.base import BaseRepository


class ActivityLogRepository(BaseRepository[ActivityLog]):
    model = ActivityLog

    async def search(
        self,
        event_id: str | None = None,
        entity_type: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[ActivityLog], int]:
        conditions: list[Any] = []
        if event_id:
            conditions.append(ActivityLog.event_id == event_id)
        if entity_type:
            conditions.append(ActivityLog.entity_type == entity_type)
        return await self.paginate(
            *conditions,
            order_by=(ActivityLog.created_at.desc(),),
            limit=limit,
            offset=offset,
        )
