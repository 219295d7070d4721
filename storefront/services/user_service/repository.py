from typing import Optional, Sequence

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import UserAddress


class AddressRepository:

    @staticmethod
    async def list_for_user(db: AsyncSession, user_id: int) -> Sequence[UserAddress]:
        result = await db.execute(
            select(UserAddress)
            .where(UserAddress.user_id == user_id)
            .order_by(UserAddress.is_default.desc(), UserAddress.created_at.desc(), UserAddress.id.desc())
        )
        return result.scalars().all()

    @staticmethod
    async def get_owned(db: AsyncSession, address_id: int, user_id: int) -> Optional[UserAddress]:
        result = await db.execute(
            select(UserAddress).where(UserAddress.id == address_id, UserAddress.user_id == user_id)
        )
        return result.scalars().first()

    @staticmethod
    async def clear_defaults(db: AsyncSession, user_id: int, address_type: str) -> None:
        """Unsets the default flag on every address of one type. Does not commit."""
        await db.execute(
            update(UserAddress)
            .where(UserAddress.user_id == user_id, UserAddress.address_type == address_type)
            .values(is_default=False)
        )

    @staticmethod
    async def save(db: AsyncSession, address: UserAddress) -> UserAddress:
        db.add(address)
        await db.commit()
        await db.refresh(address)
        return address

    @staticmethod
    async def delete(db: AsyncSession, address: UserAddress) -> None:
        await db.delete(address)
        await db.commit()
