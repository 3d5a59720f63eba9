"""
Form Repositories.
"""

from typing import Any

from sqlalchemy import func, select

from eventdesk.backend.models.form import Form, FormField, FormSubmission
from eventdesk.backend.repositories.base import BaseRepository


class FormRepository(BaseRepository[Form]):
    model = Form

    async def list_filtered(self, event_id: str | None = None, status: str | None = None) -> list[Form]:
        conditions: list[Any] = []
        if event_id:
            conditions.append(Form.event_id == event_id)
        if status:
            conditions.append(Form.status == status)
        result = await self.session.execute(
            select(Form).where(*conditions).order_by(Form.created_at.desc())
        )
        return list(result.scalars().all())


class FormFieldRepository(BaseRepository[FormField]):
    model = FormField

    async def list_for_form(self, form_id: str) -> list[FormField]:
        result = await self.session.execute(
            select(FormField).where(FormField.form_id == form_id).order_by(FormField.sort_order)
        )
        return list(result.scalars().all())


class FormSubmissionRepository(BaseRepository[FormSubmission]):
    model = FormSubmission

    async def count_for_form(self, form_id: str) -> int:
        return await self.count(FormSubmission.form_id == form_id)

    async def exists_for_email(self, form_id: str, email: str) -> bool:
        total = await self.count(
            FormSubmission.form_id == form_id,
            func.lower(FormSubmission.submitter_email) == email.strip().lower(),
        )
        return total > 0

    async def search(
        self,
        form_id: str | None = None,
        status: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[FormSubmission], int]:
        conditions: list[Any] = []
        if form_id:
            conditions.append(FormSubmission.form_id == form_id)
        if status:
            conditions.append(FormSubmission.status == status)
        return await self.paginate(
            *conditions,
            order_by=(FormSubmission.submitted_at.desc(),),
            limit=limit,
            offset=offset,
        )
