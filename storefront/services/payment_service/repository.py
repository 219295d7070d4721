from typing import Optional, Sequence, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.services.order_service.models import Order
from storefront.shared.utils import utcnow

from .models import Payment


class PaymentRepository:

    @staticmethod
    async def add_payment(db: AsyncSession, payment: Payment) -> Payment:
        db.add(payment)
        await db.flush()
        return payment

    @staticmethod
    async def latest_for_order(db: AsyncSession, order_id: int) -> Optional[Payment]:
        result = await db.execute(
            select(Payment)
            .where(Payment.order_id == order_id)
            .order_by(Payment.created_at.desc(), Payment.id.desc())
            .limit(1)
        )
        return result.scalars().first()

    @staticmethod
    async def has_status(db: AsyncSession, order_id: int, status: str) -> bool:
        result = await db.execute(
            select(Payment.id).where(Payment.order_id == order_id, Payment.payment_status == status)
        )
        return result.first() is not None

    @staticmethod
    async def pending_for_order(db: AsyncSession, order_id: int) -> Optional[Payment]:
        result = await db.execute(
            select(Payment)
            .where(Payment.order_id == order_id, Payment.payment_status == "pending")
            .order_by(Payment.created_at.desc(), Payment.id.desc())
            .limit(1)
        )
        return result.scalars().first()

    @staticmethod
    async def mark_paid(db: AsyncSession, payment_id: int, transaction_id: str, gateway_response: dict) -> bool:
        """Flips a pending payment to paid. False when it is no longer pending."""
        result = await db.execute(
            update(Payment)
            .where(Payment.id == payment_id, Payment.payment_status == "pending")
            .values(
                payment_status="paid",
                transaction_id=transaction_id,
                gateway_response=gateway_response,
                updated_at=utcnow(),
            )
        )
        return result.rowcount == 1

    @staticmethod
    async def get_refundable(db: AsyncSession, transaction_id: str) -> Optional[Payment]:
        result = await db.execute(
            select(Payment).where(
                Payment.transaction_id == transaction_id,
                Payment.payment_status.in_(("paid", "partially_refunded")),
            )
        )
        return result.scalars().first()

    @staticmethod
    async def history_for_user(
        db: AsyncSession,
        user_id: int,
        *,
        limit: int = 10,
        offset: int = 0,
    ) -> Tuple[Sequence[Tuple[Payment, Order]], int]:
        result = await db.execute(
            select(Payment, Order)
            .join(Order, Payment.order_id == Order.id)
            .where(Order.user_id == user_id)
            .order_by(Payment.created_at.desc(), Payment.id.desc())
            .limit(limit)
            .offset(offset)
        )
        total = await db.scalar(
            select(func.count())
            .select_from(Payment)
            .join(Order, Payment.order_id == Order.id)
            .where(Order.user_id == user_id)
        )
        return result.all(), total or 0
