from typing import Optional, Sequence, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.engine import Row
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.services.auth_service.models import User
from storefront.services.product_service.models import Product
from storefront.shared.utils import utcnow

from .models import Order, OrderTracking


class OrderRepository:
    """Order persistence. Nothing here commits; the service owns the transaction."""

    @staticmethod
    async def reserve_stock(db: AsyncSession, product_id: int, quantity: int) -> Optional[Row]:
        """
        Decrements stock in a single conditional statement.

        Returns (id, name, price) of the product at its current price, or None
        when the product is missing, inactive or short of stock.
        """
        result = await db.execute(
            update(Product)
            .where(
                Product.id == product_id,
                Product.is_active.is_(True),
                Product.stock_quantity >= quantity,
            )
            .values(stock_quantity=Product.stock_quantity - quantity, updated_at=utcnow())
            .returning(Product.id, Product.name, Product.price)
        )
        return result.first()

    @staticmethod
    async def restore_stock(db: AsyncSession, product_id: int, quantity: int) -> None:
        await db.execute(
            update(Product)
            .where(Product.id == product_id)
            .values(stock_quantity=Product.stock_quantity + quantity, updated_at=utcnow())
        )

    @staticmethod
    async def add_order(db: AsyncSession, order: Order) -> Order:
        db.add(order)
        await db.flush()
        return order

    @staticmethod
    async def add_tracking(db: AsyncSession, entry: OrderTracking) -> OrderTracking:
        db.add(entry)
        await db.flush()
        return entry

    @staticmethod
    async def transition(db: AsyncSession, order_id: int, to_status: str, from_status: Optional[str] = None) -> bool:
        """Sets the order status, optionally only when it currently is ``from_status``."""
        stmt = update(Order).where(Order.id == order_id)
        if from_status is not None:
            stmt = stmt.where(Order.status == from_status)
        result = await db.execute(stmt.values(status=to_status, updated_at=utcnow()))
        return result.rowcount == 1

    @staticmethod
    async def get_order(db: AsyncSession, order_id: int) -> Optional[Order]:
        result = await db.execute(select(Order).where(Order.id == order_id))
        return result.scalars().first()

    @staticmethod
    async def get_owned(db: AsyncSession, order_id: int, user_id: int) -> Optional[Order]:
        result = await db.execute(select(Order).where(Order.id == order_id, Order.user_id == user_id))
        return result.scalars().first()

    @staticmethod
    async def get_with_customer(db: AsyncSession, order_id: int) -> Optional[Tuple[Order, User]]:
        result = await db.execute(
            select(Order, User).join(User, Order.user_id == User.id).where(Order.id == order_id)
        )
        return result.first()

    @staticmethod
    async def find_by_number(
        db: AsyncSession,
        order_number: str,
        *,
        email: Optional[str] = None,
        user_id: Optional[int] = None,
    ) -> Optional[Tuple[Order, User]]:
        stmt = select(Order, User).join(User, Order.user_id == User.id).where(Order.order_number == order_number)
        if email:
            stmt = stmt.where(func.lower(User.email) == email.lower())
        if user_id is not None:
            stmt = stmt.where(Order.user_id == user_id)
        result = await db.execute(stmt)
        return result.first()

    @staticmethod
    async def list_for_user(
        db: AsyncSession,
        user_id: int,
        *,
        status: Optional[str] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> Tuple[Sequence[Order], int]:
        conditions = [Order.user_id == user_id]
        if status:
            conditions.append(Order.status == status)

        result = await db.execute(
            select(Order)
            .where(*conditions)
            .order_by(Order.created_at.desc(), Order.id.desc())
            .limit(limit)
            .offset(offset)
        )
        total = await db.scalar(select(func.count()).select_from(Order).where(*conditions))
        return result.scalars().all(), total or 0

    @staticmethod
    async def tracking_for(db: AsyncSession, order_id: int) -> Sequence[OrderTracking]:
        result = await db.execute(
            select(OrderTracking)
            .where(OrderTracking.order_id == order_id)
            .order_by(OrderTracking.created_at.desc(), OrderTracking.id.desc())
        )
        return result.scalars().all()
