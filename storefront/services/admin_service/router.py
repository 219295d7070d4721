from typing import Literal, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.shared.config.database import get_db
from storefront.shared.schemas import MessageResponse, PageParams, page_params
from storefront.shared.security import get_current_admin
from storefront.services.order_service.schemas import (
    OrderDetail,
    OrderItemResponse,
    OrderStatusUpdate,
    OrderSummary,
    TrackingResponse,
)
from storefront.services.order_service.service import OrderService
from storefront.services.payment_service.schemas import PaymentResponse
from storefront.services.product_service.schemas import (
    ProductCreate,
    ProductDetailResponse,
    ProductListResponse,
    ProductResponse,
    ProductUpdate,
)
from storefront.services.product_service.service import ProductService

from .schemas import (
    AdminOrderDetailResponse,
    AdminOrderListResponse,
    AdminOrderStatusResponse,
    AdminOrderView,
    AdminUserListResponse,
    AdminUserView,
    CustomerSummary,
    DashboardResponse,
    DashboardStats,
    UserStatusResponse,
    UserStatusUpdate,
)
from .service import AdminService

router = APIRouter(
    prefix="/api/admin",
    tags=["Administration"],
    dependencies=[Depends(get_current_admin)],
)


def _order_view(order, customer) -> AdminOrderView:
    return AdminOrderView(
        **OrderSummary.model_validate(order).model_dump(),
        customer=CustomerSummary.model_validate(customer),
    )


@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard(db: AsyncSession = Depends(get_db)):
    data = await AdminService.dashboard(db)
    return DashboardResponse(
        stats=DashboardStats(
            total_users=data["total_users"],
            total_orders=data["total_orders"],
            total_revenue=data["total_revenue"],
        ),
        recent_orders=[_order_view(order, customer) for order, customer in data["recent_orders"]],
        order_status_distribution=data["status_distribution"],
    )


# --- Users ---

@router.get("/users", response_model=AdminUserListResponse)
async def list_users(
    search: Optional[str] = None,
    status: Optional[Literal["active", "inactive"]] = None,
    page: PageParams = Depends(page_params(20)),
    db: AsyncSession = Depends(get_db),
):
    users, total = await AdminService.list_users(db, page, search=search, status=status)
    return AdminUserListResponse(
        users=[AdminUserView.model_validate(u) for u in users],
        pagination=page.describe(total),
    )


@router.put("/users/{user_id}/status", response_model=UserStatusResponse)
async def set_user_status(
    user_id: int,
    payload: UserStatusUpdate,
    admin=Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    user = await AdminService.set_user_active(db, user_id, payload.is_active, admin)
    state = "activated" if user.is_active else "deactivated"
    return UserStatusResponse(message=f"User {state} successfully", user=AdminUserView.model_validate(user))


# --- Orders ---

@router.get("/orders", response_model=AdminOrderListResponse)
async def list_orders(
    status: Optional[str] = None,
    search: Optional[str] = None,
    page: PageParams = Depends(page_params(20)),
    db: AsyncSession = Depends(get_db),
):
    rows, total = await AdminService.list_orders(db, page, status=status, search=search)
    return AdminOrderListResponse(
        orders=[_order_view(order, customer) for order, customer in rows],
        pagination=page.describe(total),
    )


@router.get("/orders/{order_id}", response_model=AdminOrderDetailResponse)
async def get_order(order_id: int, db: AsyncSession = Depends(get_db)):
    details = await AdminService.order_details(db, order_id)
    return AdminOrderDetailResponse(
        order=OrderDetail.model_validate(details["order"]),
        customer=CustomerSummary.model_validate(details["customer"]),
        items=[OrderItemResponse.model_validate(i) for i in details["items"]],
        tracking=[TrackingResponse.model_validate(t) for t in details["tracking"]],
        payment=PaymentResponse.model_validate(details["payment"]) if details["payment"] else None,
    )


@router.put("/orders/{order_id}/status", response_model=AdminOrderStatusResponse)
async def set_order_status(
    order_id: int,
    payload: OrderStatusUpdate,
    admin=Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    order = await OrderService.set_status(db, order_id, payload, admin)
    return AdminOrderStatusResponse(
        message="Order status updated successfully",
        order=OrderSummary.model_validate(order),
    )


# --- Products ---

@router.get("/products", response_model=ProductListResponse)
async def list_products(
    category: Optional[str] = None,
    search: Optional[str] = None,
    page: PageParams = Depends(page_params(20)),
    db: AsyncSession = Depends(get_db),
):
    products, total = await ProductService.list_products(
        db, page, category=category, search=search, active_only=False
    )
    return ProductListResponse(
        products=[ProductResponse.model_validate(p) for p in products],
        pagination=page.describe(total),
    )


@router.post("/products", response_model=ProductDetailResponse, status_code=status.HTTP_201_CREATED)
async def create_product(payload: ProductCreate, db: AsyncSession = Depends(get_db)):
    product = await ProductService.create_product(db, payload)
    return ProductDetailResponse(product=ProductResponse.model_validate(product))


@router.put("/products/{product_id}", response_model=ProductDetailResponse)
async def update_product(product_id: int, payload: ProductUpdate, db: AsyncSession = Depends(get_db)):
    product = await ProductService.update_product(db, product_id, payload)
    return ProductDetailResponse(product=ProductResponse.model_validate(product))


@router.delete("/products/{product_id}", response_model=MessageResponse)
async def delete_product(product_id: int, db: AsyncSession = Depends(get_db)):
    await ProductService.delete_product(db, product_id)
    return MessageResponse(message="Product deleted successfully")
