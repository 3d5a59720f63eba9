"""
Faculty Assignment Repositories.
"""

from typing import Any

from sqlalchemy import func, select

from eventdesk.backend.models.faculty import AssignmentEmail, FacultyAssignment
from eventdesk.backend.repositories.base import BaseRepository

_ORDER = (FacultyAssignment.session_date, FacultyAssignment.start_time)


class FacultyAssignmentRepository(BaseRepository[FacultyAssignment]):
    model = FacultyAssignment

    async def get_by_token(self, token: str) -> FacultyAssignment | None:
        result = await self.session.execute(
            select(FacultyAssignment).where(FacultyAssignment.invitation_token == token)
        )
        return result.scalar_one_or_none()

    async def search(
        self,
        event_id: str | None = None,
        status: str | None = None,
        role: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[FacultyAssignment], int]:
        conditions: list[Any] = []
        if event_id:
            conditions.append(FacultyAssignment.event_id == event_id)
        if status:
            conditions.append(FacultyAssignment.status == status)
        if role:
            conditions.append(FacultyAssignment.role == role)
        return await self.paginate(*conditions, order_by=_ORDER, limit=limit, offset=offset)

    async def list_for_faculty(self, assignment: FacultyAssignment) -> list[FacultyAssignment]:
        """
        Every assignment in the event held by the same person.

        Matched on email (case-insensitive) when the assignment has one,
        otherwise on faculty name.
        """
        stmt = select(FacultyAssignment).where(FacultyAssignment.event_id == assignment.event_id)
        if assignment.faculty_email:
            stmt = stmt.where(
                func.lower(FacultyAssignment.faculty_email) == assignment.faculty_email.strip().lower()
            )
        else:
            stmt = stmt.where(FacultyAssignment.faculty_name == assignment.faculty_name)
        result = await self.session.execute(stmt.order_by(*_ORDER))
        return list(result.scalars().all())

    async def list_by_email(self, event_id: str, email: str) -> list[FacultyAssignment]:
        result = await self.session.execute(
            select(FacultyAssignment)
            .where(
                FacultyAssignment.event_id == event_id,
                func.lower(FacultyAssignment.faculty_email) == email.strip().lower(),
            )
            .order_by(*_ORDER)
        )
        return list(result.scalars().all())

    async def existing_keys(self, event_id: str) -> set[tuple[str | None, str, str]]:
        """(session_id, lower name, role) of every assignment in an event."""
        result = await self.session.execute(
            select(
                FacultyAssignment.session_id,
                FacultyAssignment.faculty_name,
                FacultyAssignment.role,
            ).where(FacultyAssignment.event_id == event_id)
        )
        return {
            (session_id, name.strip().lower(), role)
            for session_id, name, role in result.all()
        }


class AssignmentEmailRepository(BaseRepository[AssignmentEmail]):
    model = AssignmentEmail
