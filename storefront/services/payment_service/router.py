from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.shared.config.database import get_db
from storefront.shared.schemas import PageParams, page_params
from storefront.shared.security import get_current_admin, get_current_user

from .gateway import RazorpayGateway, get_payment_gateway
from .schemas import (
    CheckoutSession,
    CheckoutSessionResponse,
    PaymentCreate,
    PaymentHistoryEntry,
    PaymentHistoryResponse,
    PaymentOrderSummary,
    PaymentResponse,
    PaymentStatusResponse,
    PaymentVerify,
    PaymentVerifyResponse,
    RefundRequest,
    RefundResponse,
    RefundSummary,
    VerifiedPayment,
)
from .service import PaymentService

router = APIRouter(prefix="/api/payments", tags=["Payments"])


@router.post("/create-order", response_model=CheckoutSessionResponse)
async def create_payment_order(
    payload: PaymentCreate,
    user=Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    gateway: RazorpayGateway = Depends(get_payment_gateway),
):
    payment, key_id = await PaymentService.create_payment(db, gateway, user, payload)
    return CheckoutSessionResponse(
        message="Payment order created successfully",
        payment=CheckoutSession(
            id=payment.id,
            razorpay_order_id=payment.gateway_order_id,
            amount=payment.amount,
            currency=payment.currency,
            key=key_id,
        ),
    )


@router.post("/verify", response_model=PaymentVerifyResponse)
async def verify_payment(
    payload: PaymentVerify,
    user=Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    gateway: RazorpayGateway = Depends(get_payment_gateway),
):
    verified = await PaymentService.verify_payment(db, gateway, user, payload)
    return PaymentVerifyResponse(
        message="Payment verified successfully",
        payment=VerifiedPayment(**verified),
    )


@router.get("/status/{order_id}", response_model=PaymentStatusResponse)
async def payment_status(order_id: int, user=Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    order, payment = await PaymentService.payment_status(db, user, order_id)
    return PaymentStatusResponse(
        order=PaymentOrderSummary.model_validate(order),
        payment=PaymentResponse.model_validate(payment) if payment else None,
    )


@router.get("/history", response_model=PaymentHistoryResponse)
async def payment_history(
    page: PageParams = Depends(page_params(10)),
    user=Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    rows, total = await PaymentService.history(db, user, page)
    payments = [
        PaymentHistoryEntry(
            **PaymentResponse.model_validate(payment).model_dump(),
            order_number=order.order_number,
            order_status=order.status,
        )
        for payment, order in rows
    ]
    return PaymentHistoryResponse(payments=payments, pagination=page.describe(total))


@router.post("/refund/{payment_id}", response_model=RefundResponse)
async def refund_payment(
    payment_id: str,
    payload: Optional[RefundRequest] = None,
    admin=Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
    gateway: RazorpayGateway = Depends(get_payment_gateway),
):
    refund = await PaymentService.refund(db, gateway, payment_id, payload or RefundRequest(), admin)
    return RefundResponse(message="Refund processed successfully", refund=RefundSummary(**refund))
