from typing import Optional, Sequence, Tuple

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.services.auth_service.models import User
from storefront.services.order_service.models import Order, OrderTracking
from storefront.services.order_service.repository import OrderRepository
from storefront.shared.config.settings import DEFAULT_CURRENCY
from storefront.shared.errors import (
    AlreadyPaid,
    AmountMismatch,
    InvalidSignature,
    NoPendingPayment,
    OrderNotFound,
    OrderNotPayable,
    PaymentNotCaptured,
    PaymentNotFound,
    ValidationFailed,
)
from storefront.shared.observability import storefront_payment_verifications_total, storefront_refunds_total
from storefront.shared.schemas import PageParams
from storefront.shared.utils import from_minor_units, to_minor_units, utcnow

from .gateway import RazorpayGateway
from .models import Payment
from .repository import PaymentRepository
from .schemas import PaymentCreate, PaymentVerify, RefundRequest

logger = structlog.get_logger(__name__)


class PaymentService:

    @staticmethod
    async def _owned_order(db: AsyncSession, user: User, order_id: int) -> Order:
        order = await OrderRepository.get_owned(db, order_id, user.id)
        if order is None:
            raise OrderNotFound()
        return order

    @staticmethod
    async def create_payment(
        db: AsyncSession, gateway: RazorpayGateway, user: User, data: PaymentCreate
    ) -> Tuple[Payment, str]:
        """Opens a gateway order for the client checkout and records it as a pending payment."""
        order = await PaymentService._owned_order(db, user, data.order_id)
        if order.status == "cancelled":
            raise OrderNotPayable()
        if await PaymentRepository.has_status(db, order.id, "paid"):
            raise AlreadyPaid()
        if round(data.amount, 2) != round(order.total_amount, 2):
            raise ValidationFailed("Payment amount does not match the order total.")

        currency = data.currency or DEFAULT_CURRENCY
        gateway_order = await gateway.create_order(
            to_minor_units(data.amount),
            currency,
            receipt=order.order_number,
            notes={"order_id": str(order.id), "user_id": str(user.id)},
        )

        try:
            payment = await PaymentRepository.add_payment(
                db,
                Payment(
                    order_id=order.id,
                    amount=data.amount,
                    currency=currency,
                    payment_method="razorpay",
                    payment_status="pending",
                    gateway_order_id=gateway_order["id"],
                    gateway_response=gateway_order,
                ),
            )
            order.payment_status = "pending"
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info(
            "payment_created",
            payment_id=payment.id,
            order_id=order.id,
            gateway_order_id=payment.gateway_order_id,
            amount=payment.amount,
        )
        return payment, gateway.key_id

    @staticmethod
    async def verify_payment(
        db: AsyncSession, gateway: RazorpayGateway, user: User, data: PaymentVerify
    ) -> dict:
        """
        Confirms a client-reported payment.

        The signature, the order state, the gateway's capture status and the
        captured amount are all checked before any write. The payment and
        order flips are both conditional on the rows still being pending, so
        a repeated or racing verification is rejected without touching either.
        """
        order = await PaymentService._owned_order(db, user, data.order_id)

        if not gateway.verify_signature(order.id, data.payment_id, data.signature):
            storefront_payment_verifications_total.labels(outcome="invalid_signature").inc()
            logger.warning("payment_signature_mismatch", order_id=order.id, payment_id=data.payment_id)
            raise InvalidSignature()

        if await PaymentRepository.has_status(db, order.id, "paid"):
            storefront_payment_verifications_total.labels(outcome="already_paid").inc()
            raise AlreadyPaid()
        if order.status != "pending":
            storefront_payment_verifications_total.labels(outcome="not_payable").inc()
            raise OrderNotPayable(f"Cannot process payment for {order.status} order.")

        payment = await PaymentRepository.pending_for_order(db, order.id)
        if payment is None:
            raise NoPendingPayment()

        gateway_payment = await gateway.fetch_payment(data.payment_id)
        if gateway_payment.get("status") != "captured":
            storefront_payment_verifications_total.labels(outcome="not_captured").inc()
            logger.warning(
                "payment_not_captured",
                order_id=order.id,
                payment_id=data.payment_id,
                gateway_status=gateway_payment.get("status"),
            )
            raise PaymentNotCaptured()
        if gateway_payment.get("amount") != to_minor_units(payment.amount):
            storefront_payment_verifications_total.labels(outcome="amount_mismatch").inc()
            logger.warning(
                "payment_amount_mismatch",
                order_id=order.id,
                payment_id=data.payment_id,
                expected=to_minor_units(payment.amount),
                captured=gateway_payment.get("amount"),
            )
            raise AmountMismatch()

        try:
            if not await PaymentRepository.mark_paid(db, payment.id, data.payment_id, gateway_payment):
                raise AlreadyPaid()
            if not await OrderRepository.transition(db, order.id, "processing", from_status="pending"):
                raise OrderNotPayable("Order is no longer awaiting payment.")
            order.payment_status = "paid"
            await OrderRepository.add_tracking(
                db,
                OrderTracking(
                    order_id=order.id,
                    status="processing",
                    description="Payment received, order processing started",
                ),
            )
            await db.commit()
        except (AlreadyPaid, OrderNotPayable):
            await db.rollback()
            storefront_payment_verifications_total.labels(outcome="conflict").inc()
            raise
        except Exception:
            await db.rollback()
            raise

        storefront_payment_verifications_total.labels(outcome="paid").inc()
        logger.info("payment_verified", order_id=order.id, payment_id=data.payment_id, user_id=user.id)
        return {
            "id": gateway_payment["id"],
            "status": gateway_payment["status"],
            "amount": from_minor_units(gateway_payment.get("amount", 0)),
            "currency": gateway_payment.get("currency", order.currency),
        }

    @staticmethod
    async def payment_status(db: AsyncSession, user: User, order_id: int) -> Tuple[Order, Optional[Payment]]:
        order = await PaymentService._owned_order(db, user, order_id)
        return order, await PaymentRepository.latest_for_order(db, order.id)

    @staticmethod
    async def history(
        db: AsyncSession, user: User, page: PageParams
    ) -> Tuple[Sequence[Tuple[Payment, Order]], int]:
        return await PaymentRepository.history_for_user(db, user.id, limit=page.limit, offset=page.offset)

    @staticmethod
    async def refund(
        db: AsyncSession, gateway: RazorpayGateway, transaction_id: str, data: RefundRequest, actor: User
    ) -> dict:
        """
        Refunds a captured payment in full or in part.

        A refund that brings the cumulative refunded amount up to the paid
        amount cancels the order; a smaller one leaves the order status as is
        and marks the payment partially refunded.
        """
        payment = await PaymentRepository.get_refundable(db, transaction_id)
        if payment is None:
            raise PaymentNotFound()

        remaining = round(payment.amount - (payment.refunded_amount or 0.0), 2)
        amount = round(data.amount, 2) if data.amount is not None else remaining
        if amount > remaining:
            raise ValidationFailed(f"Refund amount exceeds the remaining balance of {remaining:.2f}.")

        gateway_refund = await gateway.refund(
            transaction_id,
            to_minor_units(amount) if data.amount is not None else None,
            notes={"reason": data.reason or "Refund requested"},
        )

        refunded_total = round((payment.refunded_amount or 0.0) + amount, 2)
        full = refunded_total >= round(payment.amount, 2)
        new_status = "refunded" if full else "partially_refunded"

        try:
            order = await OrderRepository.get_order(db, payment.order_id)
            payment.refunded_amount = refunded_total
            payment.payment_status = new_status
            payment.updated_at = utcnow()
            order.payment_status = new_status

            if full:
                await OrderRepository.transition(db, order.id, "cancelled")
                tracking = OrderTracking(
                    order_id=order.id,
                    status="cancelled",
                    description="Order cancelled due to refund",
                    updated_by=actor.id,
                )
            else:
                tracking = OrderTracking(
                    order_id=order.id,
                    status=order.status,
                    description=f"Partial refund of {amount:.2f} processed",
                    updated_by=actor.id,
                )
            await OrderRepository.add_tracking(db, tracking)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        storefront_refunds_total.labels(kind="full" if full else "partial").inc()
        logger.info(
            "refund_processed",
            payment_id=payment.id,
            order_id=payment.order_id,
            amount=amount,
            refunded_total=refunded_total,
            payment_status=new_status,
            actor_id=actor.id,
        )
        return {
            "id": gateway_refund["id"],
            "amount": amount,
            "status": gateway_refund.get("status", "processed"),
            "payment_status": new_status,
        }
