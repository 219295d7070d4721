from datetime import datetime
from typing import List, Literal, Optional

from pydantic import Field, field_validator

from storefront.shared.schemas import CamelModel
from storefront.services.auth_service.schemas import UserResponse

PHONE_PATTERN = r"^\+?[0-9]{10,15}$"


class ProfileUpdate(CamelModel):
    first_name: Optional[str] = Field(default=None, min_length=2)
    last_name: Optional[str] = Field(default=None, min_length=2)
    phone: Optional[str] = Field(default=None, pattern=PHONE_PATTERN)


class PasswordChange(CamelModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=6)


class AddressCreate(CamelModel):
    full_name: str = Field(min_length=1)
    address_line1: str = Field(min_length=1)
    address_line2: Optional[str] = None
    city: str = Field(min_length=1)
    state: str = Field(min_length=1)
    postal_code: str = Field(min_length=1)
    country: str = "India"
    phone: Optional[str] = Field(default=None, pattern=PHONE_PATTERN)
    address_type: Literal["shipping", "billing"] = "shipping"
    is_default: bool = False


class AddressUpdate(CamelModel):
    full_name: Optional[str] = Field(default=None, min_length=1)
    address_line1: Optional[str] = Field(default=None, min_length=1)
    address_line2: Optional[str] = None
    city: Optional[str] = Field(default=None, min_length=1)
    state: Optional[str] = Field(default=None, min_length=1)
    postal_code: Optional[str] = Field(default=None, min_length=1)
    country: Optional[str] = None
    phone: Optional[str] = Field(default=None, pattern=PHONE_PATTERN)

    @field_validator("full_name", "address_line1", "city", "state", "postal_code", "country")
    @classmethod
    def not_null(cls, value):
        # Omit a field to keep it; these columns cannot be cleared
        if value is None:
            raise ValueError("may not be null")
        return value


class AddressResponse(CamelModel):
    id: int
    address_type: str
    is_default: bool
    full_name: str
    address_line1: str
    address_line2: Optional[str]
    city: str
    state: str
    postal_code: str
    country: str
    phone: Optional[str]
    created_at: datetime


class ProfileResponse(CamelModel):
    user: UserResponse
    addresses: List[AddressResponse]


class ProfileUpdateResponse(CamelModel):
    message: str
    user: UserResponse


class AddressListResponse(CamelModel):
    addresses: List[AddressResponse]


class AddressMutationResponse(CamelModel):
    message: str
    address: AddressResponse
