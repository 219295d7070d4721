from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field

from storefront.shared.schemas import CamelModel


class SignupRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=6)
    first_name: str = Field(min_length=2)
    last_name: str = Field(min_length=2)
    phone: Optional[str] = Field(default=None, pattern=r"^\+?[0-9]{10,15}$")


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1)


class SendOtpRequest(CamelModel):
    phone: str = Field(pattern=r"^\+?[0-9]{10,15}$")


class VerifyOtpRequest(CamelModel):
    phone: str = Field(pattern=r"^\+?[0-9]{10,15}$")
    otp: str = Field(pattern=r"^[0-9]{6}$")
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[EmailStr] = None


class GoogleAuthRequest(CamelModel):
    google_id: str = Field(min_length=1)
    email: EmailStr
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    avatar_url: Optional[str] = None


class UserResponse(CamelModel):
    id: int
    email: Optional[str]
    first_name: Optional[str]
    last_name: Optional[str]
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    is_verified: bool
    created_at: Optional[datetime] = None


class AuthResponse(CamelModel):
    message: str
    user: UserResponse
    token: str


class MeResponse(CamelModel):
    user: UserResponse
