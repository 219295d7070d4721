from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.shared.config.database import get_db
from storefront.shared.schemas import MessageResponse
from storefront.shared.security import get_current_user
from storefront.services.auth_service.schemas import UserResponse

from .schemas import (
    AddressCreate,
    AddressListResponse,
    AddressMutationResponse,
    AddressResponse,
    AddressUpdate,
    PasswordChange,
    ProfileResponse,
    ProfileUpdate,
    ProfileUpdateResponse,
)
from .service import AddressService, UserService

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(user=Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    addresses = await AddressService.list_addresses(db, user)
    return ProfileResponse(
        user=UserResponse.model_validate(user),
        addresses=[AddressResponse.model_validate(a) for a in addresses],
    )


@router.put("/profile", response_model=ProfileUpdateResponse)
async def update_profile(
    payload: ProfileUpdate,
    user=Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    user = await UserService.update_profile(db, user, payload)
    return ProfileUpdateResponse(
        message="Profile updated successfully",
        user=UserResponse.model_validate(user),
    )


@router.put("/change-password", response_model=MessageResponse)
async def change_password(
    payload: PasswordChange,
    user=Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await UserService.change_password(db, user, payload)
    return MessageResponse(message="Password changed successfully.")


@router.get("/addresses", response_model=AddressListResponse)
async def list_addresses(user=Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    addresses = await AddressService.list_addresses(db, user)
    return AddressListResponse(addresses=[AddressResponse.model_validate(a) for a in addresses])


@router.post("/addresses", response_model=AddressMutationResponse, status_code=status.HTTP_201_CREATED)
async def add_address(
    payload: AddressCreate,
    user=Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    address = await AddressService.add_address(db, user, payload)
    return AddressMutationResponse(
        message="Address added successfully",
        address=AddressResponse.model_validate(address),
    )


@router.put("/addresses/{address_id}", response_model=AddressMutationResponse)
async def update_address(
    address_id: int,
    payload: AddressUpdate,
    user=Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    address = await AddressService.update_address(db, user, address_id, payload)
    return AddressMutationResponse(
        message="Address updated successfully",
        address=AddressResponse.model_validate(address),
    )


@router.delete("/addresses/{address_id}", response_model=MessageResponse)
async def delete_address(
    address_id: int,
    user=Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await AddressService.delete_address(db, user, address_id)
    return MessageResponse(message="Address deleted successfully")


@router.put("/addresses/{address_id}/default", response_model=MessageResponse)
async def set_default_address(
    address_id: int,
    user=Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await AddressService.set_default(db, user, address_id)
    return MessageResponse(message="Default address updated successfully")
