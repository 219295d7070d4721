from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.shared.config.database import get_db
from storefront.shared.schemas import MessageResponse, PageParams, page_params
from storefront.shared.security import get_current_user, get_optional_user
from storefront.services.payment_service.schemas import PaymentResponse

from .schemas import (
    OrderCreate,
    OrderCreated,
    OrderCreateResponse,
    OrderDetail,
    OrderDetailResponse,
    OrderItemResponse,
    OrderListResponse,
    OrderSummary,
    TrackedOrder,
    TrackingResponse,
    TrackOrderResponse,
)
from .service import OrderService

router = APIRouter(prefix="/api/orders", tags=["Orders"])


@router.post("", response_model=OrderCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    payload: OrderCreate,
    user=Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    order = await OrderService.create_order(db, user, payload)
    return OrderCreateResponse(
        message="Order created successfully",
        order=OrderCreated.model_validate(order),
    )


@router.get("/my-orders", response_model=OrderListResponse)
async def my_orders(
    status: Optional[str] = None,
    page: PageParams = Depends(page_params(10)),
    user=Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    orders, total = await OrderService.list_orders(db, user, page, status=status)
    return OrderListResponse(
        orders=[OrderSummary.model_validate(o) for o in orders],
        pagination=page.describe(total),
    )


# Declared before /{order_id} so the literal segment wins
@router.get("/track/{order_number}", response_model=TrackOrderResponse)
async def track_order(
    order_number: str,
    email: Optional[str] = None,
    user=Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    order, customer, tracking = await OrderService.track(db, order_number, email, user)
    return TrackOrderResponse(
        order=TrackedOrder(
            order_number=order.order_number,
            status=order.status,
            total_amount=order.total_amount,
            currency=order.currency,
            customer_name=f"{customer.first_name} {customer.last_name}",
            customer_email=customer.email,
            created_at=order.created_at,
        ),
        tracking=[TrackingResponse.model_validate(t) for t in tracking],
    )


@router.get("/{order_id}", response_model=OrderDetailResponse)
async def get_order(order_id: int, user=Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    order = await OrderService.get_owned_order(db, user, order_id)
    details = await OrderService.order_details(db, order)
    return OrderDetailResponse(
        order=OrderDetail.model_validate(order),
        items=[OrderItemResponse.model_validate(i) for i in details["items"]],
        tracking=[TrackingResponse.model_validate(t) for t in details["tracking"]],
        payment=PaymentResponse.model_validate(details["payment"]) if details["payment"] else None,
    )


@router.put("/{order_id}/cancel", response_model=MessageResponse)
async def cancel_order(order_id: int, user=Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    await OrderService.cancel_order(db, user, order_id)
    return MessageResponse(message="Order cancelled successfully")
