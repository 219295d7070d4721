from typing import Optional, Sequence, Tuple

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.services.auth_service.models import User
from storefront.services.auth_service.repository import UserRepository
from storefront.services.order_service.models import Order
from storefront.services.order_service.repository import OrderRepository
from storefront.services.order_service.service import OrderService
from storefront.shared.errors import OrderNotFound, UserNotFound
from storefront.shared.schemas import PageParams

from .repository import BackOfficeRepository

logger = structlog.get_logger(__name__)


class AdminService:

    @staticmethod
    async def dashboard(db: AsyncSession) -> dict:
        return {
            "total_users": await BackOfficeRepository.count_users(db),
            "total_orders": await BackOfficeRepository.count_orders(db),
            "total_revenue": await BackOfficeRepository.revenue(db),
            "recent_orders": await BackOfficeRepository.recent_orders(db),
            "status_distribution": dict(await BackOfficeRepository.status_distribution(db)),
        }

    @staticmethod
    async def list_users(
        db: AsyncSession, page: PageParams, search: Optional[str] = None, status: Optional[str] = None
    ) -> Tuple[Sequence[User], int]:
        is_active = {"active": True, "inactive": False}.get(status) if status else None
        return await BackOfficeRepository.list_users(
            db, search=search, is_active=is_active, limit=page.limit, offset=page.offset
        )

    @staticmethod
    async def set_user_active(db: AsyncSession, user_id: int, is_active: bool, actor: User) -> User:
        user = await UserRepository.get_by_id(db, user_id)
        if user is None:
            raise UserNotFound()

        user.is_active = is_active
        user = await UserRepository.save(db, user)
        logger.info("user_status_changed", user_id=user.id, is_active=is_active, actor_id=actor.id)
        return user

    @staticmethod
    async def list_orders(
        db: AsyncSession, page: PageParams, status: Optional[str] = None, search: Optional[str] = None
    ) -> Tuple[Sequence[Tuple[Order, User]], int]:
        return await BackOfficeRepository.list_orders(
            db, status=status, search=search, limit=page.limit, offset=page.offset
        )

    @staticmethod
    async def order_details(db: AsyncSession, order_id: int) -> dict:
        found = await OrderRepository.get_with_customer(db, order_id)
        if found is None:
            raise OrderNotFound()

        order, customer = found
        details = await OrderService.order_details(db, order)
        details["customer"] = customer
        return details
