from typing import Optional, Sequence, Tuple

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.services.auth_service.models import User
from storefront.services.payment_service.repository import PaymentRepository
from storefront.services.product_service.repository import ProductRepository
from storefront.shared.config.settings import DEFAULT_CURRENCY
from storefront.shared.errors import InsufficientStock, InvalidTransition, OrderNotFound, ProductNotFound, ValidationFailed
from storefront.shared.observability import (
    storefront_order_cancellations_total,
    storefront_order_create_duration_seconds,
    storefront_orders_total,
)
from storefront.shared.schemas import PageParams
from storefront.shared.utils import generate_order_number, generate_tracking_number

from .models import Order, OrderItem, OrderTracking
from .repository import OrderRepository
from .schemas import OrderCreate, OrderStatusUpdate

logger = structlog.get_logger(__name__)


class OrderService:

    @staticmethod
    async def create_order(db: AsyncSession, user: User, data: OrderCreate) -> Order:
        """
        Places an order as one transaction.

        Stock for every line is decremented with a conditional update at the
        product's current price; the order, its items and the first tracking
        entry are then inserted. Any failure rolls back all of it.
        """
        with storefront_order_create_duration_seconds.time():
            try:
                items = []
                total = 0.0
                for line in data.items:
                    reserved = await OrderRepository.reserve_stock(db, line.product_id, line.quantity)
                    if reserved is None:
                        product = await ProductRepository.get_product_by_id(db, line.product_id)
                        if product is None:
                            raise ProductNotFound(f"Product {line.product_id} not found")
                        raise InsufficientStock(f"Insufficient stock for {product.name}")

                    line_total = round(reserved.price * line.quantity, 2)
                    total += line_total
                    items.append(
                        OrderItem(
                            product_id=reserved.id,
                            product_name=reserved.name,
                            product_price=reserved.price,
                            quantity=line.quantity,
                            total_price=line_total,
                        )
                    )

                tracking_number = generate_tracking_number()
                order = await OrderRepository.add_order(
                    db,
                    Order(
                        order_number=generate_order_number(),
                        user_id=user.id,
                        total_amount=round(total, 2),
                        currency=DEFAULT_CURRENCY,
                        status="pending",
                        tracking_number=tracking_number,
                        shipping_address=data.shipping_address,
                        billing_address=data.billing_address or data.shipping_address,
                        notes=data.notes,
                        items=items,
                    ),
                )
                await OrderRepository.add_tracking(
                    db,
                    OrderTracking(
                        order_id=order.id,
                        status="pending",
                        description="Order placed successfully",
                        tracking_number=tracking_number,
                    ),
                )
                await db.commit()
            except Exception:
                await db.rollback()
                storefront_orders_total.labels(status="failed").inc()
                raise

        storefront_orders_total.labels(status="created").inc()
        logger.info(
            "order_created",
            order_id=order.id,
            order_number=order.order_number,
            user_id=user.id,
            total_amount=order.total_amount,
            lines=len(items),
        )
        return order

    @staticmethod
    async def list_orders(
        db: AsyncSession, user: User, page: PageParams, status: Optional[str] = None
    ) -> Tuple[Sequence[Order], int]:
        return await OrderRepository.list_for_user(db, user.id, status=status, limit=page.limit, offset=page.offset)

    @staticmethod
    async def get_owned_order(db: AsyncSession, user: User, order_id: int) -> Order:
        order = await OrderRepository.get_owned(db, order_id, user.id)
        if order is None:
            raise OrderNotFound()
        return order

    @staticmethod
    async def order_details(db: AsyncSession, order: Order) -> dict:
        return {
            "order": order,
            "items": order.items,
            "tracking": await OrderRepository.tracking_for(db, order.id),
            "payment": await PaymentRepository.latest_for_order(db, order.id),
        }

    @staticmethod
    async def cancel_order(db: AsyncSession, user: User, order_id: int) -> Order:
        """Cancels a pending order, restocking every line, as one transaction."""
        order = await OrderService.get_owned_order(db, user, order_id)

        try:
            if not await OrderRepository.transition(db, order.id, "cancelled", from_status="pending"):
                raise InvalidTransition()

            for item in order.items:
                if item.product_id is not None:
                    await OrderRepository.restore_stock(db, item.product_id, item.quantity)

            await OrderRepository.add_tracking(
                db,
                OrderTracking(order_id=order.id, status="cancelled", description="Order cancelled by customer"),
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        await db.refresh(order)
        storefront_order_cancellations_total.inc()
        logger.info("order_cancelled", order_id=order.id, user_id=user.id)
        return order

    @staticmethod
    async def track(
        db: AsyncSession, order_number: str, email: Optional[str], user: Optional[User]
    ) -> Tuple[Order, User, Sequence[OrderTracking]]:
        if email:
            found = await OrderRepository.find_by_number(db, order_number, email=email)
        elif user is not None:
            found = await OrderRepository.find_by_number(db, order_number, user_id=user.id)
        else:
            raise ValidationFailed("Email is required for guest tracking.")

        if found is None:
            raise OrderNotFound()

        order, customer = found
        return order, customer, await OrderRepository.tracking_for(db, order.id)

    @staticmethod
    async def set_status(db: AsyncSession, order_id: int, data: OrderStatusUpdate, actor: User) -> Order:
        """Administrator override: any status, recorded in the tracking log."""
        order = await OrderRepository.get_order(db, order_id)
        if order is None:
            raise OrderNotFound()

        try:
            await OrderRepository.transition(db, order.id, data.status)
            if data.tracking_number:
                order.tracking_number = data.tracking_number
            await OrderRepository.add_tracking(
                db,
                OrderTracking(
                    order_id=order.id,
                    status=data.status,
                    description=data.description or f"Order status updated to {data.status}",
                    location=data.location,
                    tracking_number=data.tracking_number,
                    updated_by=actor.id,
                ),
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        await db.refresh(order)
        logger.info("order_status_set", order_id=order.id, status=data.status, actor_id=actor.id)
        return order
