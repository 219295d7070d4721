from datetime import datetime
from typing import Dict, List, Optional

from storefront.shared.schemas import CamelModel, Pagination
from storefront.services.order_service.schemas import (
    OrderDetail,
    OrderItemResponse,
    OrderSummary,
    TrackingResponse,
)
from storefront.services.payment_service.schemas import PaymentResponse


class CustomerSummary(CamelModel):
    id: int
    email: Optional[str]
    first_name: Optional[str]
    last_name: Optional[str]
    phone: Optional[str] = None


class AdminUserView(CustomerSummary):
    auth_provider: str
    is_verified: bool
    is_active: bool
    created_at: datetime


class AdminUserListResponse(CamelModel):
    users: List[AdminUserView]
    pagination: Pagination


class UserStatusUpdate(CamelModel):
    is_active: bool


class UserStatusResponse(CamelModel):
    message: str
    user: AdminUserView


class AdminOrderView(OrderSummary):
    customer: CustomerSummary


class AdminOrderListResponse(CamelModel):
    orders: List[AdminOrderView]
    pagination: Pagination


class AdminOrderDetailResponse(CamelModel):
    order: OrderDetail
    customer: CustomerSummary
    items: List[OrderItemResponse]
    tracking: List[TrackingResponse]
    payment: Optional[PaymentResponse]


class AdminOrderStatusResponse(CamelModel):
    message: str
    order: OrderSummary


class DashboardStats(CamelModel):
    total_users: int
    total_orders: int
    total_revenue: float


class DashboardResponse(CamelModel):
    stats: DashboardStats
    recent_orders: List[AdminOrderView]
    order_status_distribution: Dict[str, int]
