"""
Program Session Repository.
"""

from datetime import date

from sqlalchemy import select

from eventdesk.backend.models.program import Session
from eventdesk.backend.repositories.base import BaseRepository


class SessionRepository(BaseRepository[Session]):
    model = Session

    async def list_filtered(
        self,
        event_id: str,
        session_date: date | None = None,
        hall: str | None = None,
    ) -> list[Session]:
        """Sessions of an event ordered by date then start time."""
        stmt = select(Session).where(Session.event_id == event_id)
        if session_date is not None:
            stmt = stmt.where(Session.session_date == session_date)
        if hall:
            stmt = stmt.where(Session.hall == hall)
        result = await self.session.execute(
            stmt.order_by(Session.session_date, Session.start_time, Session.hall)
        )
        return list(result.scalars().all())
