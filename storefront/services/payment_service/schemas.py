from datetime import datetime
from typing import List, Optional

from pydantic import Field

from storefront.shared.schemas import CamelModel, Pagination


class PaymentCreate(CamelModel):
    order_id: int
    amount: float = Field(gt=0)
    currency: Optional[str] = None


class PaymentVerify(CamelModel):
    order_id: int
    payment_id: str = Field(min_length=1)
    signature: str = Field(min_length=1)


class RefundRequest(CamelModel):
    amount: Optional[float] = Field(default=None, gt=0)
    reason: Optional[str] = None


class PaymentResponse(CamelModel):
    id: int
    order_id: int
    amount: float
    currency: str
    payment_method: str
    payment_status: str
    gateway_order_id: Optional[str]
    transaction_id: Optional[str]
    refunded_amount: float
    created_at: datetime
    updated_at: datetime


class CheckoutSession(CamelModel):
    id: int
    razorpay_order_id: str
    amount: float
    currency: str
    key: str


class CheckoutSessionResponse(CamelModel):
    message: str
    payment: CheckoutSession


class VerifiedPayment(CamelModel):
    id: str
    status: str
    amount: float
    currency: str


class PaymentVerifyResponse(CamelModel):
    message: str
    payment: VerifiedPayment


class PaymentOrderSummary(CamelModel):
    id: int
    order_number: str
    status: str
    total_amount: float


class PaymentStatusResponse(CamelModel):
    order: PaymentOrderSummary
    payment: Optional[PaymentResponse]


class PaymentHistoryEntry(PaymentResponse):
    order_number: str
    order_status: str


class PaymentHistoryResponse(CamelModel):
    payments: List[PaymentHistoryEntry]
    pagination: Pagination


class RefundSummary(CamelModel):
    id: str
    amount: float
    status: str
    payment_status: str


class RefundResponse(CamelModel):
    message: str
    refund: RefundSummary
