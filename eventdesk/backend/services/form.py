"""
Form Service.

Form builder and public submissions. Submissions honour the form's
publication state, deadline, capacity and one-per-email setting.
"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.backend.core.exceptions import ApplicationError, NotFoundError, ValidationError
from eventdesk.backend.core.utils import normalize_email, utc_now
from eventdesk.backend.integrations.email import EmailClient
from eventdesk.backend.models.form import Form, FormField, FormSubmission
from eventdesk.backend.repositories.form import (
    FormFieldRepository,
    FormRepository,
    FormSubmissionRepository,
)
from eventdesk.backend.schemas.form import (
    FieldCreate,
    FormCreate,
    FormUpdate,
    SubmissionCreate,
)
from eventdesk.backend.services.base import BaseService
from eventdesk.backend.services.notifications import NotificationService

REVIEWED_STATUSES = ("reviewed", "approved", "rejected")


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, dict)):
        return not value
    return False


class FormService(BaseService):
    def __init__(self, session: AsyncSession, email: EmailClient | None = None) -> None:
        super().__init__(session)
        self.repo = FormRepository(session)
        self.fields = FormFieldRepository(session)
        self.submissions = FormSubmissionRepository(session)
        self.notifications = NotificationService(session, email=email)

    async def create_form(self, data: FormCreate) -> Form:
        for address in data.notification_emails:
            self._validate_email(address, "notification_emails")
        self._log_operation("Creating form", slug=data.slug)
        return await self._execute_db_operation(
            "create_form",
            self.repo.create(**data.model_dump()),
            conflict_message=f"Form slug '{data.slug}' already exists",
        )

    async def update_form(self, form_id: str, data: FormUpdate) -> Form:
        update_data = data.model_dump(exclude_unset=True)
        if not update_data:
            return await self.repo.get_by_id(form_id)
        return await self._execute_db_operation(
            "update_form",
            self.repo.update(form_id, **update_data),
        )

    async def list_forms(self, event_id: str | None = None, status: str | None = None) -> list[Form]:
        return await self.repo.list_filtered(event_id, status)

    async def get_form(self, form_id: str) -> dict[str, Any]:
        form = await self.repo.get_by_id(form_id)
        return {
            **{column.key: getattr(form, column.key) for column in Form.__table__.columns},
            "fields": await self.fields.list_for_form(form.id),
        }

    async def add_field(self, form_id: str, data: FieldCreate) -> FormField:
        form = await self.repo.get_by_id(form_id)
        return await self._execute_db_operation(
            "create_form_field",
            self.fields.create(form_id=form.id, **data.model_dump()),
        )

    async def submit(
        self,
        data: SubmissionCreate,
        submitter_ip: str | None = None,
        user_agent: str | None = None,
    ) -> FormSubmission:
        """
        Store a public submission.

        Raises:
            ValidationError: Missing form_id/responses, form closed or full,
                duplicate submitter, or required answers missing
            NotFoundError: Form not found
        """
        self._validate_required(data.model_dump(), ["form_id", "responses"])
        form = await self.repo.get_by_id_or_none(data.form_id)
        if form is None:
            raise NotFoundError("Form not found")
        if form.status != "published":
            raise ValidationError("This form is not accepting submissions")
        if form.submission_deadline and utc_now() > form.submission_deadline:
            raise ValidationError("The submission deadline has passed")
        if form.max_submissions is not None:
            if await self.submissions.count_for_form(form.id) >= form.max_submissions:
                raise ValidationError("This form has reached its submission limit")

        email = normalize_email(data.submitter_email) or None
        if email and not form.allow_multiple_submissions:
            if await self.submissions.exists_for_email(form.id, email):
                raise ValidationError("You have already submitted this form")

        fields = await self.fields.list_for_form(form.id)
        missing = [
            field.label
            for field in fields
            if field.is_required and _is_blank(data.responses.get(field.id))
        ]
        if missing:
            raise ValidationError(
                f"Missing required fields: {', '.join(missing)}",
                details={"missing_fields": missing},
            )

        now = utc_now()
        responses = {
            **data.responses,
            "_metadata": {
                "verified_emails": data.verified_emails,
                "submitted_at": now.isoformat(),
            },
        }
        submission = await self._execute_db_operation(
            "create_form_submission",
            self.submissions.create(
                form_id=form.id,
                submitter_email=email,
                submitter_name=data.submitter_name,
                submitter_ip=submitter_ip,
                user_agent=(user_agent or "")[:500] or None,
                responses=responses,
                status="pending",
                submitted_at=now,
            ),
        )
        self._log_operation("Form submitted", form_id=form.id, submission_id=submission.id)

        if form.notify_on_submission and form.notification_emails:
            try:
                await self.notifications.send_form_notification(form, submission)
            except ApplicationError as e:
                self._logger.warning(
                    "Form notification not sent",
                    extra={"service": self.__class__.__name__, "form_id": form.id, "error": e.message},
                )
        return submission

    async def list_submissions(
        self,
        form_id: str | None = None,
        status: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[FormSubmission], int]:
        return await self.submissions.search(form_id, status, limit, offset)

    async def update_submission_status(self, submission_id: str, status: str) -> FormSubmission:
        submission = await self.submissions.get_by_id(submission_id)
        changes: dict[str, Any] = {"status": status}
        if status in REVIEWED_STATUSES:
            changes["reviewed_at"] = utc_now()
        return await self.submissions.apply(submission, **changes)
