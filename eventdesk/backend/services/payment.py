"""
Payment Service.

Razorpay order creation, checkout verification and webhook handling.
Verify and webhook share one completion path, so a payment captured
through both is confirmed exactly once.
"""

import json
from datetime import timedelta
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.backend.core.exceptions import (
    AuthorizationError,
    NotFoundError,
    ValidationError,
)
from eventdesk.backend.core.utils import normalize_email, utc_now
from eventdesk.backend.integrations.razorpay import (
    RazorpayClient,
    resolve_credentials,
    resolve_key_secret,
    resolve_webhook_secret,
    verify_payment_signature,
    verify_webhook_signature,
)
from eventdesk.backend.models.event import Event
from eventdesk.backend.models.payment import Payment
from eventdesk.backend.repositories.event import EventRepository
from eventdesk.backend.repositories.payment import PaymentRepository
from eventdesk.backend.repositories.registration import RegistrationRepository
from eventdesk.backend.repositories.ticket import DiscountCodeRepository, TicketTypeRepository
from eventdesk.backend.schemas.payment import CreateOrderRequest, VerifyPaymentRequest
from eventdesk.backend.services.activity import ActivityLogService
from eventdesk.backend.services.base import BaseService
from eventdesk.backend.services.registration import generate_payment_number
from eventdesk.backend.services.ticket import TicketService, check_ticket_available
from eventdesk.backend.tasks.notifications import enqueue_registration_confirmations

# A repeated checkout for the same payer and amount inside this window
# reuses the pending order.
DUPLICATE_ORDER_WINDOW = timedelta(minutes=5)


def to_paise(amount: float) -> int:
    return int(round(amount * 100))


class PaymentService(BaseService):
    """Service for Razorpay payment flows."""

    def __init__(self, session: AsyncSession, gateway: RazorpayClient | None = None) -> None:
        super().__init__(session)
        self.repo = PaymentRepository(session)
        self.events = EventRepository(session)
        self.registrations = RegistrationRepository(session)
        self.tickets = TicketTypeRepository(session)
        self.discounts = DiscountCodeRepository(session)
        self.ticket_service = TicketService(session)
        self.activity = ActivityLogService(session)
        self._gateway = gateway

    @property
    def gateway(self) -> RazorpayClient:
        if self._gateway is None:
            self._gateway = RazorpayClient()
        return self._gateway

    async def get_payment(self, payment_id: str) -> Payment:
        return await self.repo.get_by_id(payment_id)

    async def create_order(self, data: CreateOrderRequest) -> dict[str, Any]:
        """
        Price tickets server-side and open a Razorpay order.

        Raises:
            NotFoundError: Event not found
            AuthorizationError: Registration closed
            ValidationError: Ticket missing, inactive or sold out; bad email; zero amount
            ConfigurationError: No gateway keys for the event or default
            ExternalServiceError: Gateway failed
        """
        self._validate_email(data.payer_email, "payer_email")
        event = await self.events.get_by_id(data.event_id)
        if not event.registration_open:
            raise AuthorizationError("Registration is closed for this event")

        lines = []
        for item in data.tickets:
            ticket = await self.tickets.get_for_event(item.ticket_type_id, event.id)
            if ticket is None:
                raise ValidationError(f"Ticket type not found: {item.ticket_type_id}")
            check_ticket_available(ticket, item.quantity)
            lines.append((ticket, item.quantity))

        pricing = await self.ticket_service.price(event.id, lines, data.discount_code)
        if pricing.total <= 0:
            raise ValidationError("Invalid amount")

        payer_email = normalize_email(data.payer_email)
        credentials = resolve_credentials(event)

        existing = await self.repo.find_recent_pending(
            payer_email,
            pricing.total,
            utc_now() - DUPLICATE_ORDER_WINDOW,
        )
        if existing is not None and existing.event_id == event.id:
            self._log_operation("Reusing pending order", payment_id=existing.id)
            await self._link_registrations(existing, data.registration_ids)
            return {
                "order_id": existing.razorpay_order_id,
                "amount": to_paise(existing.net_amount),
                "currency": existing.currency,
                "key_id": credentials.key_id,
                "payment_id": existing.id,
                "payment_number": existing.payment_number,
                "is_duplicate": True,
            }

        payment_number = generate_payment_number()
        order = await self.gateway.create_order(
            credentials,
            amount_paise=to_paise(pricing.total),
            receipt=payment_number,
            notes={"event_id": event.id, "payer_email": payer_email},
        )

        validated_tickets = [
            {
                "ticket_type_id": ticket.id,
                "name": ticket.name,
                "price": ticket.price,
                "quantity": quantity,
            }
            for ticket, quantity in lines
        ]
        payment = await self._execute_db_operation(
            "create_payment",
            self.repo.create(
                payment_number=payment_number,
                event_id=event.id,
                payment_type="registration",
                payment_method="razorpay",
                payer_name=data.payer_name.strip(),
                payer_email=payer_email,
                payer_phone=data.payer_phone,
                amount=pricing.total,
                tax_amount=pricing.tax,
                discount_amount=pricing.discount,
                net_amount=pricing.total,
                currency=order.get("currency", self.gateway.currency),
                status="pending",
                razorpay_order_id=order["id"],
                details={
                    "validated_tickets": validated_tickets,
                    "validated_amount": pricing.total,
                    "discount_code": pricing.discount_code.code if pricing.discount_code else None,
                    "uses_event_credentials": bool(event.razorpay_key_id),
                },
            ),
        )
        await self._link_registrations(payment, data.registration_ids)

        self._log_operation(
            "Payment order created",
            payment_id=payment.id,
            order_id=payment.razorpay_order_id,
            amount=pricing.total,
        )
        return {
            "order_id": order["id"],
            "amount": int(order.get("amount", to_paise(pricing.total))),
            "currency": payment.currency,
            "key_id": credentials.key_id,
            "payment_id": payment.id,
            "payment_number": payment.payment_number,
            "is_duplicate": False,
        }

    async def _link_registrations(self, payment: Payment, registration_ids: list[str]) -> None:
        for registration in await self.registrations.get_many(registration_ids):
            if registration.event_id == payment.event_id and registration.status == "pending":
                await self.registrations.apply(registration, payment_id=payment.id)

    async def verify_payment(self, data: VerifyPaymentRequest, actor: str | None = None) -> dict[str, Any]:
        """
        Check a checkout signature and complete the payment.

        Raises:
            ValidationError: Missing fields or signature mismatch
            NotFoundError: Payment not found
            ConfigurationError: No key secret for the event or default
        """
        self._validate_required(
            data.model_dump(),
            ["razorpay_order_id", "razorpay_payment_id", "razorpay_signature"],
        )

        payment = None
        if data.payment_id:
            payment = await self.repo.get_by_id_or_none(data.payment_id)
        if payment is None:
            payment = await self.repo.get_by_order_id(data.razorpay_order_id)
        if payment is None:
            raise NotFoundError("Payment not found")

        if payment.status == "completed":
            return self._verify_result(payment, is_duplicate=True)

        event = await self._event_for(payment)
        secret = resolve_key_secret(event)
        if not verify_payment_signature(
            data.razorpay_order_id,
            data.razorpay_payment_id,
            data.razorpay_signature,
            secret,
        ):
            await self.repo.apply(
                payment,
                status="failed",
                failed_at=utc_now(),
                failure_reason="Invalid payment signature",
            )
            # The failed status must survive the request rollback
            await self.session.commit()
            self._logger.warning(
                "Payment signature mismatch",
                extra={"service": self.__class__.__name__, "payment_id": payment.id},
            )
            raise ValidationError("Invalid payment signature")

        confirmed = await self.complete_payment(
            payment,
            gateway_payment_id=data.razorpay_payment_id,
            signature=data.razorpay_signature,
            source="verify",
            actor=actor,
        )
        if confirmed is None:
            return self._verify_result(payment, is_duplicate=True)
        return self._verify_result(payment, registrations_confirmed=confirmed)

    def _verify_result(
        self,
        payment: Payment,
        is_duplicate: bool = False,
        registrations_confirmed: int = 0,
    ) -> dict[str, Any]:
        return {
            "success": True,
            "is_duplicate": is_duplicate,
            "payment_id": payment.id,
            "status": payment.status,
            "registrations_confirmed": registrations_confirmed,
        }

    async def complete_payment(
        self,
        payment: Payment,
        gateway_payment_id: str | None,
        signature: str | None = None,
        source: str = "verify",
        actor: str | None = None,
    ) -> int | None:
        """
        Mark a payment completed and confirm its pending registrations.

        Returns the number of registrations confirmed, or None when the
        payment was already completed or has been refunded.
        """
        claimed = await self.repo.claim_completion(
            payment.id,
            razorpay_payment_id=gateway_payment_id,
            razorpay_signature=signature,
            completed_at=utc_now(),
            failed_at=None,
            failure_reason=None,
            details={
                **(payment.details or {}),
                "completed_via": source,
            },
        )
        if not claimed:
            self._log_debug("Payment not completable", payment_id=payment.id, status=payment.status)
            return None

        confirmed_ids: list[str] = []
        now = utc_now()
        for registration in await self.registrations.list_by_payment(payment.id):
            if registration.status != "pending":
                continue
            await self.registrations.apply(
                registration,
                status="confirmed",
                payment_status="completed",
                confirmed_at=now,
            )
            if registration.ticket_type_id:
                await self.tickets.increment_sold(registration.ticket_type_id, registration.quantity)
            if registration.discount_code_id:
                await self.discounts.record_use(registration.discount_code_id)
            confirmed_ids.append(registration.id)

        await self.activity.log(
            "payment_completed",
            "payment",
            entity_id=payment.id,
            event_id=payment.event_id,
            entity_name=payment.payment_number,
            actor=actor,
            description=f"Payment {payment.payment_number} completed via {source}",
            details={
                "amount": payment.net_amount,
                "razorpay_payment_id": gateway_payment_id,
                "registrations_confirmed": len(confirmed_ids),
            },
        )
        # Workers read the confirmed rows, so commit before queueing
        await self.session.commit()
        await enqueue_registration_confirmations(confirmed_ids)

        self._log_operation(
            "Payment completed",
            payment_id=payment.id,
            source=source,
            registrations_confirmed=len(confirmed_ids),
        )
        return len(confirmed_ids)

    async def handle_webhook(self, body: bytes, signature: str | None) -> dict[str, Any]:
        """
        Process a signed Razorpay webhook.

        Raises:
            ValidationError: Missing or invalid signature, unreadable body
            ConfigurationError: No webhook secret for the event or default
        """
        if not signature:
            raise ValidationError("Missing webhook signature")
        try:
            envelope = json.loads(body)
        except ValueError as e:
            raise ValidationError("Invalid webhook payload") from e

        event_name = envelope.get("event")
        entities = envelope.get("payload") or {}
        payment_entity = (entities.get("payment") or {}).get("entity") or {}
        refund_entity = (entities.get("refund") or {}).get("entity") or {}

        payment = await self._payment_for_webhook(payment_entity, refund_entity)
        event = await self._event_for(payment) if payment is not None else None
        secret = resolve_webhook_secret(event)
        if not verify_webhook_signature(body, signature, secret):
            raise ValidationError("Invalid webhook signature")

        self._log_operation(
            "Webhook received",
            webhook_event=event_name,
            payment_id=payment.id if payment else None,
        )

        if payment is None:
            return {"received": True, "event": event_name}

        if event_name == "payment.captured":
            await self.complete_payment(
                payment,
                gateway_payment_id=payment_entity.get("id"),
                source="webhook",
            )
        elif event_name == "payment.failed":
            if payment.status == "pending":
                await self.repo.apply(
                    payment,
                    status="failed",
                    razorpay_payment_id=payment_entity.get("id") or payment.razorpay_payment_id,
                    failed_at=utc_now(),
                    failure_reason=payment_entity.get("error_description") or "Payment failed",
                )
        elif event_name == "refund.processed":
            await self._mark_refunded(payment, refund_entity)

        return {"received": True, "event": event_name}

    async def _payment_for_webhook(
        self,
        payment_entity: dict[str, Any],
        refund_entity: dict[str, Any],
    ) -> Payment | None:
        order_id = payment_entity.get("order_id")
        if order_id:
            payment = await self.repo.get_by_order_id(order_id)
            if payment is not None:
                return payment
        gateway_payment_id = refund_entity.get("payment_id") or payment_entity.get("id")
        if gateway_payment_id:
            return await self.repo.get_by_gateway_payment_id(gateway_payment_id)
        return None

    async def _mark_refunded(self, payment: Payment, refund_entity: dict[str, Any]) -> None:
        refund_amount = refund_entity.get("amount")
        await self.repo.apply(
            payment,
            status="refunded",
            details={
                **(payment.details or {}),
                "refund_status": "processed",
                "refund_id": refund_entity.get("id"),
                "refund_amount": refund_amount / 100 if refund_amount else (payment.details or {}).get("refund_amount"),
                "refunded_at": utc_now().isoformat(),
            },
        )
        for registration in await self.registrations.list_by_payment(payment.id):
            await self.registrations.apply(
                registration,
                status="refunded",
                payment_status="refunded",
            )
        await self.activity.log(
            "payment_refunded",
            "payment",
            entity_id=payment.id,
            event_id=payment.event_id,
            entity_name=payment.payment_number,
            description=f"Refund processed for {payment.payment_number}",
        )

    async def _event_for(self, payment: Payment) -> Event | None:
        if not payment.event_id:
            return None
        return await self.events.get_by_id_or_none(payment.event_id)
