"""
Notification Service.

Template rendering and the transactional emails sent outside the
faculty invitation flow: registration confirmations and form
submission alerts.
"""

import html
import re
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.backend.core.config import get_app_config
from eventdesk.backend.integrations.email import EmailClient
from eventdesk.backend.models.form import Form, FormSubmission
from eventdesk.backend.repositories.event import EventRepository
from eventdesk.backend.repositories.registration import RegistrationRepository
from eventdesk.backend.repositories.ticket import TicketTypeRepository
from eventdesk.backend.services.base import BaseService

_PLACEHOLDER = re.compile(r"\{\{\s*(\w+)\s*\}\}")
_BOLD = re.compile(r"\*\*(.+?)\*\*")

REGISTRATION_SUBJECT = "Registration confirmed: {{event_name}}"
REGISTRATION_BODY = """Dear {{attendee_name}},

Your registration for **{{event_name}}** is confirmed.

Registration number: **{{registration_number}}**
Ticket: {{ticket_name}}
Amount: {{total_amount}}

Please keep this email handy for check-in at the venue.

Regards,
{{event_name}} Team"""


def render_template(template: str, values: dict[str, Any]) -> str:
    """Replace {{key}} placeholders; unknown keys render as empty strings."""
    return _PLACEHOLDER.sub(lambda m: str(values.get(m.group(1), "") or ""), template)


def to_html(text: str) -> str:
    """Plain text to HTML: newlines become <br>, **x** becomes <strong>x</strong>."""
    return _BOLD.sub(r"<strong>\1</strong>", text).replace("\n", "<br>")


class NotificationService(BaseService):
    """Sends confirmation and alert emails."""

    def __init__(self, session: AsyncSession, email: EmailClient | None = None) -> None:
        super().__init__(session)
        self.registrations = RegistrationRepository(session)
        self.events = EventRepository(session)
        self.tickets = TicketTypeRepository(session)
        self._email = email

    @property
    def email(self) -> EmailClient:
        if self._email is None:
            self._email = EmailClient()
        return self._email

    async def send_registration_confirmation(self, registration_id: str) -> str | None:
        """
        Email the attendee their confirmation.

        Returns the provider message id.

        Raises:
            NotFoundError: Registration not found
            ConfigurationError: Email provider not configured
            ExternalServiceError: Provider rejected the message
        """
        self.email.ensure_configured()
        registration = await self.registrations.get_by_id(registration_id)
        event = await self.events.get_by_id(registration.event_id)
        ticket = (
            await self.tickets.get_by_id_or_none(registration.ticket_type_id)
            if registration.ticket_type_id
            else None
        )

        values = {
            "attendee_name": registration.attendee_name,
            "event_name": event.name,
            "registration_number": registration.registration_number,
            "ticket_name": ticket.name if ticket else "",
            "total_amount": f"{registration.total_amount:.2f}",
        }
        message_id = await self.email.send(
            to=registration.attendee_email,
            subject=render_template(REGISTRATION_SUBJECT, values),
            html=to_html(render_template(REGISTRATION_BODY, values)),
            text=render_template(REGISTRATION_BODY, values),
        )

        await self.registrations.apply(
            registration,
            custom_fields={
                **(registration.custom_fields or {}),
                "confirmation_email_id": message_id,
            },
        )
        self._log_operation(
            "Registration confirmation sent",
            registration_id=registration.id,
            message_id=message_id,
        )
        return message_id

    async def send_form_notification(self, form: Form, submission: FormSubmission) -> str | None:
        """Alert the form's notification addresses about a new submission."""
        recipients = [address for address in form.notification_emails or [] if address]
        if not recipients:
            return None
        self.email.ensure_configured()

        rows = "".join(
            f"<tr><td><strong>{html.escape(str(key))}</strong></td>"
            f"<td>{html.escape(str(value))}</td></tr>"
            for key, value in (submission.responses or {}).items()
            if not str(key).startswith("_")
        )
        submitter = submission.submitter_name or submission.submitter_email or "Anonymous"
        base_url = get_app_config().integrations.public_base_url.rstrip("/")
        body = (
            f"<p>New submission for <strong>{html.escape(form.name)}</strong> "
            f"from {html.escape(submitter)}.</p>"
            f"<table>{rows}</table>"
            f'<p><a href="{base_url}/forms/{form.id}/submissions">View submissions</a></p>'
        )
        return await self.email.send(
            to=recipients,
            subject=f"New submission: {form.name}",
            html=body,
            reply_to=submission.submitter_email,
        )
