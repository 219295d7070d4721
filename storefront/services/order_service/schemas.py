from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import Field

from storefront.shared.schemas import CamelModel, Pagination
from storefront.services.payment_service.schemas import PaymentResponse

OrderStatus = Literal["pending", "processing", "shipped", "delivered", "cancelled"]


class OrderLineIn(CamelModel):
    product_id: int
    quantity: int = Field(ge=1)


class OrderCreate(CamelModel):
    items: List[OrderLineIn] = Field(min_length=1)
    shipping_address: Dict[str, Any]
    billing_address: Optional[Dict[str, Any]] = None
    notes: Optional[str] = None


class OrderStatusUpdate(CamelModel):
    status: OrderStatus
    description: Optional[str] = None
    location: Optional[str] = None
    tracking_number: Optional[str] = None


class OrderCreated(CamelModel):
    id: int
    order_number: str
    total_amount: float
    status: str
    tracking_number: Optional[str]
    created_at: datetime


class OrderCreateResponse(CamelModel):
    message: str
    order: OrderCreated


class OrderSummary(CamelModel):
    id: int
    order_number: str
    status: str
    total_amount: float
    currency: str
    payment_status: Optional[str]
    tracking_number: Optional[str]
    created_at: datetime
    updated_at: datetime


class OrderDetail(OrderSummary):
    shipping_address: Dict[str, Any]
    billing_address: Dict[str, Any]
    notes: Optional[str]


class OrderItemResponse(CamelModel):
    id: int
    product_id: Optional[int]
    product_name: str
    product_price: float
    quantity: int
    total_price: float


class TrackingResponse(CamelModel):
    id: int
    status: str
    description: Optional[str]
    location: Optional[str]
    tracking_number: Optional[str]
    updated_by: Optional[int]
    created_at: datetime


class OrderDetailResponse(CamelModel):
    order: OrderDetail
    items: List[OrderItemResponse]
    tracking: List[TrackingResponse]
    payment: Optional[PaymentResponse]


class OrderListResponse(CamelModel):
    orders: List[OrderSummary]
    pagination: Pagination


class TrackedOrder(CamelModel):
    order_number: str
    status: str
    total_amount: float
    currency: str
    customer_name: str
    customer_email: Optional[str]
    created_at: datetime


class TrackOrderResponse(CamelModel):
    order: TrackedOrder
    tracking: List[TrackingResponse]
