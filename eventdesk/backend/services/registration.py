"""
Registration Service.

Single registration create, listing, lookup and cancellation with refund
calculation. Bulk import lives in registration_import.py.
"""

import random
import time
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.backend.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from eventdesk.backend.core.utils import normalize_email, random_base36, to_base36, utc_now
from eventdesk.backend.models.payment import Payment
from eventdesk.backend.models.registration import Registration
from eventdesk.backend.repositories.event import EventRepository, EventSettingsRepository
from eventdesk.backend.repositories.payment import PaymentRepository
from eventdesk.backend.repositories.registration import RegistrationRepository
from eventdesk.backend.repositories.ticket import DiscountCodeRepository, TicketTypeRepository
from eventdesk.backend.schemas.registration import CancelRequest, RegistrationCreate
from eventdesk.backend.services.activity import ActivityLogService
from eventdesk.backend.services.base import BaseService
from eventdesk.backend.services.ticket import TicketService, check_ticket_available


def generate_payment_number() -> str:
    """PAY-{base36 millisecond timestamp}-{6 random base36}."""
    return f"PAY-{to_base36(int(time.time() * 1000))}-{random_base36(6)}"


def generate_registration_number(prefix: str = "REG") -> str:
    """{prefix}-YYYYMMDD-NNNN with a random four digit suffix."""
    return f"{prefix}-{utc_now():%Y%m%d}-{random.randint(1000, 9999)}"


class RegistrationService(BaseService):
    """Service for registration business logic."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.repo = RegistrationRepository(session)
        self.events = EventRepository(session)
        self.event_settings = EventSettingsRepository(session)
        self.tickets = TicketTypeRepository(session)
        self.discounts = DiscountCodeRepository(session)
        self.payments = PaymentRepository(session)
        self.ticket_service = TicketService(session)
        self.activity = ActivityLogService(session)

    async def create_registration(
        self,
        data: RegistrationCreate,
        actor: str | None = None,
    ) -> dict[str, Any]:
        """
        Register one attendee.

        Returns:
            {"registration", "payment", "requires_payment"}

        Raises:
            ValidationError: Missing fields, bad email, ticket unavailable or bad payment method
            NotFoundError: Event or ticket type not found
            AuthorizationError: Registration closed for the event
        """
        self._validate_required(
            data.model_dump(),
            ["event_id", "ticket_type_id", "attendee_name", "attendee_email"],
        )
        self._validate_email(data.attendee_email, "attendee_email")

        event = await self.events.get_by_id(data.event_id)
        if not event.registration_open:
            raise AuthorizationError("Registration is closed for this event")

        ticket = await self.tickets.get_for_event(data.ticket_type_id, event.id)
        if ticket is None:
            raise NotFoundError("Ticket type not found")
        check_ticket_available(ticket, data.quantity)

        pricing = await self.ticket_service.price(event.id, [(ticket, data.quantity)], data.discount_code)
        is_free = not ticket.price
        if not is_free and data.payment_method == "free":
            raise ValidationError("Payment method 'free' is only allowed for free tickets")

        settings = await self.event_settings.get_for_event(event.id)
        requires_approval = ticket.requires_approval or bool(settings and settings.require_approval)

        now = utc_now()
        if is_free:
            status = "pending" if requires_approval else "confirmed"
            payment_status = "free"
            payment_method = "free"
        else:
            status = "pending"
            payment_status = "pending"
            payment_method = data.payment_method

        self._log_operation(
            "Creating registration",
            event_id=event.id,
            ticket_type_id=ticket.id,
            payment_method=payment_method,
        )

        payment = await self._execute_db_operation(
            "create_payment",
            self.payments.create(
                payment_number=generate_payment_number(),
                event_id=event.id,
                payment_type="registration",
                payment_method=payment_method,
                payer_name=data.attendee_name.strip(),
                payer_email=normalize_email(data.attendee_email),
                payer_phone=data.attendee_phone,
                amount=pricing.subtotal,
                tax_amount=pricing.tax,
                discount_amount=pricing.discount,
                net_amount=pricing.total,
                currency=ticket.currency,
                status="completed" if is_free else "pending",
                completed_at=now if is_free else None,
                details={"ticket_type_id": ticket.id, "quantity": data.quantity},
            ),
        )

        registration = await self._execute_db_operation(
            "create_registration",
            self.repo.create(
                event_id=event.id,
                ticket_type_id=ticket.id,
                registration_number=await self._next_registration_number(event.id, settings),
                attendee_name=data.attendee_name.strip(),
                attendee_email=normalize_email(data.attendee_email),
                attendee_phone=data.attendee_phone,
                attendee_institution=data.attendee_institution,
                attendee_designation=data.attendee_designation,
                attendee_city=data.attendee_city,
                attendee_state=data.attendee_state,
                attendee_country=data.attendee_country,
                quantity=data.quantity,
                unit_price=ticket.price,
                tax_amount=pricing.tax,
                discount_amount=pricing.discount,
                total_amount=pricing.total,
                discount_code_id=pricing.discount_code.id if pricing.discount_code else None,
                status=status,
                payment_status=payment_status,
                payment_id=payment.id,
                confirmed_at=now if status == "confirmed" else None,
                custom_fields=dict(data.custom_fields),
                notes=data.notes,
            ),
            conflict_message="Registration number collision, please retry",
        )

        if status == "confirmed":
            await self.tickets.increment_sold(ticket.id, data.quantity)
            if pricing.discount_code:
                await self.discounts.record_use(pricing.discount_code.id)

        await self.activity.log(
            "registration_created",
            "registration",
            entity_id=registration.id,
            event_id=event.id,
            entity_name=registration.attendee_name,
            actor=actor,
            description=f"Registration {registration.registration_number} created",
            details={"status": status, "total_amount": pricing.total},
        )

        return {
            "registration": registration,
            "payment": payment,
            "requires_payment": not is_free and pricing.total > 0,
        }

    async def _next_registration_number(self, event_id: str, settings: Any) -> str:
        if settings is not None and settings.customize_registration_id:
            number = await self.event_settings.claim_registration_number(event_id)
            return f"{settings.registration_prefix or ''}{number}{settings.registration_suffix or ''}"
        return generate_registration_number()

    async def get_registration(self, registration_id: str) -> Registration:
        return await self.repo.get_by_id(registration_id)

    async def list_registrations(
        self,
        event_id: str | None = None,
        status: str | None = None,
        search: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Registration], int]:
        return await self.repo.search(
            event_id=event_id,
            status=status,
            search=search,
            limit=limit,
            offset=offset,
        )

    async def cancel_registration(
        self,
        registration_id: str,
        data: CancelRequest,
        actor: str | None = None,
    ) -> dict[str, Any]:
        """
        Cancel a registration and schedule its refund.

        refund = net paid - tax (when subtract_tax) - cancellation fee,
        floored at 0 and rounded to 2 places.

        Raises:
            NotFoundError: Registration not found
            ValidationError: Already cancelled or refunded
        """
        registration = await self.repo.get_by_id(registration_id)
        if registration.status in ("cancelled", "refunded"):
            raise ValidationError(f"Registration is already {registration.status}")

        paid = registration.total_amount if registration.payment_status == "completed" else 0.0
        refund = paid
        if data.subtract_tax:
            refund -= registration.tax_amount
        refund = round(max(refund - data.cancellation_fee, 0), 2)
        refund_status = "scheduled" if refund > 0 else "none"

        was_confirmed = registration.status == "confirmed"
        self._log_operation(
            "Cancelling registration",
            registration_id=registration.id,
            refund_amount=refund,
        )

        await self.repo.apply(
            registration,
            status="cancelled",
            custom_fields={
                **(registration.custom_fields or {}),
                "cancelled_at": utc_now().isoformat(),
                "cancellation_reason": data.reason,
                "cancellation_fee": data.cancellation_fee,
            },
        )
        if was_confirmed and registration.ticket_type_id:
            await self.tickets.decrement_sold(registration.ticket_type_id, registration.quantity)

        if registration.payment_id:
            payment = await self.payments.get_by_id_or_none(registration.payment_id)
            if payment is not None:
                await self._record_refund(payment, refund, refund_status, data)

        await self.activity.log(
            "registration_cancelled",
            "registration",
            entity_id=registration.id,
            event_id=registration.event_id,
            entity_name=registration.attendee_name,
            actor=actor,
            description=data.reason,
            details={"refund_amount": refund, "refund_status": refund_status},
        )

        registration = await self.repo.get_by_id(registration.id)
        return {
            "registration": registration,
            "refund_amount": refund,
            "refund_status": refund_status,
        }

    async def _record_refund(
        self,
        payment: Payment,
        refund: float,
        refund_status: str,
        data: CancelRequest,
    ) -> None:
        await self.payments.apply(
            payment,
            details={
                **(payment.details or {}),
                "refund_amount": refund,
                "refund_status": refund_status,
                "cancellation_fee": data.cancellation_fee,
                "refund_tax_deducted": data.subtract_tax,
            },
        )
