from typing import Optional, Sequence, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.services.auth_service.models import User
from storefront.services.order_service.models import Order


class BackOfficeRepository:
    """Read-side aggregates for the back office."""

    @staticmethod
    async def count_users(db: AsyncSession) -> int:
        return await db.scalar(select(func.count()).select_from(User)) or 0

    @staticmethod
    async def count_orders(db: AsyncSession) -> int:
        return await db.scalar(select(func.count()).select_from(Order)) or 0

    @staticmethod
    async def revenue(db: AsyncSession) -> float:
        total = await db.scalar(
            select(func.coalesce(func.sum(Order.total_amount), 0.0)).where(Order.status != "cancelled")
        )
        return round(float(total or 0.0), 2)

    @staticmethod
    async def recent_orders(db: AsyncSession, limit: int = 10) -> Sequence[Tuple[Order, User]]:
        result = await db.execute(
            select(Order, User)
            .join(User, Order.user_id == User.id)
            .order_by(Order.created_at.desc(), Order.id.desc())
            .limit(limit)
        )
        return result.all()

    @staticmethod
    async def status_distribution(db: AsyncSession) -> Sequence[Tuple[str, int]]:
        result = await db.execute(
            select(Order.status, func.count(Order.id)).group_by(Order.status).order_by(Order.status)
        )
        return result.all()

    @staticmethod
    async def list_users(
        db: AsyncSession,
        *,
        search: Optional[str] = None,
        is_active: Optional[bool] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> Tuple[Sequence[User], int]:
        conditions = []
        if search:
            term = f"%{search}%"
            conditions.append(
                or_(
                    User.email.ilike(term),
                    User.first_name.ilike(term),
                    User.last_name.ilike(term),
                    User.phone.ilike(term),
                )
            )
        if is_active is not None:
            conditions.append(User.is_active.is_(is_active))

        result = await db.execute(
            select(User).where(*conditions).order_by(User.created_at.desc(), User.id.desc()).limit(limit).offset(offset)
        )
        total = await db.scalar(select(func.count()).select_from(User).where(*conditions))
        return result.scalars().all(), total or 0

    @staticmethod
    async def list_orders(
        db: AsyncSession,
        *,
        status: Optional[str] = None,
        search: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> Tuple[Sequence[Tuple[Order, User]], int]:
        conditions = []
        if status:
            conditions.append(Order.status == status)
        if search:
            term = f"%{search}%"
            conditions.append(or_(Order.order_number.ilike(term), User.email.ilike(term)))

        result = await db.execute(
            select(Order, User)
            .join(User, Order.user_id == User.id)
            .where(*conditions)
            .order_by(Order.created_at.desc(), Order.id.desc())
            .limit(limit)
            .offset(offset)
        )
        total = await db.scalar(
            select(func.count()).select_from(Order).join(User, Order.user_id == User.id).where(*conditions)
        )
        return result.all(), total or 0
