"""
Activity Log Service.

Append-only audit trail written by registrations, payments, check-in
and abstract decisions.
"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.backend.models.activity import ActivityLog
from eventdesk.backend.repositories.activity import ActivityLogRepository
from eventdesk.backend.services.base import BaseService


class ActivityLogService(BaseService):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.repo = ActivityLogRepository(session)

    async def log(
        self,
        action: str,
        entity_type: str,
        entity_id: str | None = None,
        event_id: str | None = None,
        entity_name: str | None = None,
        actor: str | None = None,
        description: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> ActivityLog:
        self._log_debug(
            "Activity recorded",
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
        )
        return await self._execute_db_operation(
            "log_activity",
            self.repo.create(
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
                event_id=event_id,
                entity_name=entity_name,
                actor=actor,
                description=description,
                details=details or {},
            ),
        )

    async def list_logs(
        self,
        event_id: str | None = None,
        entity_type: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[ActivityLog], int]:
        return await self.repo.search(
            event_id=event_id,
            entity_type=entity_type,
            limit=limit,
            offset=offset,
        )
