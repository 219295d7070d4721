from typing import Sequence

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.services.auth_service.models import User
from storefront.services.auth_service.repository import UserRepository
from storefront.shared.errors import AddressNotFound, UserAlreadyExists, ValidationFailed
from storefront.shared.security import hash_password, verify_password

from .models import UserAddress
from .repository import AddressRepository
from .schemas import AddressCreate, AddressUpdate, PasswordChange, ProfileUpdate

logger = structlog.get_logger(__name__)


class UserService:

    @staticmethod
    async def update_profile(db: AsyncSession, user: User, data: ProfileUpdate) -> User:
        changes = data.model_dump(exclude_none=True)
        if not changes:
            raise ValidationFailed("No fields to update.")

        phone = changes.get("phone")
        if phone and phone != user.phone:
            owner = await UserRepository.get_by_phone(db, phone)
            if owner is not None:
                raise UserAlreadyExists("Phone number is already in use.")

        for field, value in changes.items():
            setattr(user, field, value.strip() if isinstance(value, str) else value)
        return await UserRepository.save(db, user)

    @staticmethod
    async def change_password(db: AsyncSession, user: User, data: PasswordChange) -> None:
        if not verify_password(data.current_password, user.password_hash):
            raise ValidationFailed("Current password is incorrect.")

        user.password_hash = hash_password(data.new_password)
        await UserRepository.save(db, user)
        logger.info("password_changed", user_id=user.id)


class AddressService:

    @staticmethod
    async def list_addresses(db: AsyncSession, user: User) -> Sequence[UserAddress]:
        return await AddressRepository.list_for_user(db, user.id)

    @staticmethod
    async def add_address(db: AsyncSession, user: User, data: AddressCreate) -> UserAddress:
        if data.is_default:
            await AddressRepository.clear_defaults(db, user.id, data.address_type)

        address = UserAddress(user_id=user.id, **data.model_dump())
        return await AddressRepository.save(db, address)

    @staticmethod
    async def update_address(db: AsyncSession, user: User, address_id: int, data: AddressUpdate) -> UserAddress:
        address = await AddressRepository.get_owned(db, address_id, user.id)
        if address is None:
            raise AddressNotFound()

        changes = data.model_dump(exclude_unset=True)
        if not changes:
            raise ValidationFailed("No fields to update.")

        for field, value in changes.items():
            setattr(address, field, value)
        return await AddressRepository.save(db, address)

    @staticmethod
    async def delete_address(db: AsyncSession, user: User, address_id: int) -> None:
        address = await AddressRepository.get_owned(db, address_id, user.id)
        if address is None:
            raise AddressNotFound()
        await AddressRepository.delete(db, address)

    @staticmethod
    async def set_default(db: AsyncSession, user: User, address_id: int) -> UserAddress:
        address = await AddressRepository.get_owned(db, address_id, user.id)
        if address is None:
            raise AddressNotFound()

        await AddressRepository.clear_defaults(db, user.id, address.address_type)
        address.is_default = True
        return await AddressRepository.save(db, address)
