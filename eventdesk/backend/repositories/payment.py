"""
Payment Repository.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import select, update

from eventdesk.backend.models.payment import Payment
from eventdesk.backend.repositories.base import BaseRepository

COMPLETABLE_STATUSES = ("pending", "failed")


class PaymentRepository(BaseRepository[Payment]):
    model = Payment

    async def get_by_order_id(self, order_id: str) -> Payment | None:
        result = await self.session.execute(
            select(Payment).where(Payment.razorpay_order_id == order_id)
        )
        return result.scalars().first()

    async def get_by_gateway_payment_id(self, gateway_payment_id: str) -> Payment | None:
        result = await self.session.execute(
            select(Payment).where(Payment.razorpay_payment_id == gateway_payment_id)
        )
        return result.scalars().first()

    async def find_recent_pending(
        self,
        payer_email: str,
        amount: float,
        since: datetime,
    ) -> Payment | None:
        """Newest pending gateway order for the same payer and amount."""
        result = await self.session.execute(
            select(Payment)
            .where(
                Payment.payer_email == payer_email,
                Payment.amount == amount,
                Payment.status == "pending",
                Payment.razorpay_order_id.is_not(None),
                Payment.created_at >= since,
            )
            .order_by(Payment.created_at.desc())
            .limit(1)
        )
        return result.scalars().first()

    async def claim_completion(self, payment_id: str, **values: Any) -> bool:
        """
        Mark a pending or failed payment completed.

        Returns False when the payment is already completed or refunded,
        so a late capture never overrides either. The loaded row, if any,
        is refreshed either way.
        """
        result = await self.session.execute(
            update(Payment)
            .where(Payment.id == payment_id, Payment.status.in_(COMPLETABLE_STATUSES))
            .values(status="completed", **values)
            .execution_options(synchronize_session=False)
        )
        refreshed = await self.session.execute(
            select(Payment)
            .where(Payment.id == payment_id)
            .execution_options(populate_existing=True)
        )
        refreshed.scalar_one_or_none()
        return result.rowcount == 1
