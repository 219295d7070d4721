from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.shared.config.database import get_db
from storefront.shared.config.settings import RATE_LIMIT_LOGIN, RATE_LIMIT_OTP
from storefront.shared.schemas import MessageResponse
from storefront.shared.security import get_current_user, limiter

from .schemas import (
    AuthResponse,
    GoogleAuthRequest,
    LoginRequest,
    MeResponse,
    SendOtpRequest,
    SignupRequest,
    UserResponse,
    VerifyOtpRequest,
)
from .service import AuthService

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


@router.post(
    "/signup",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new email account",
)
async def signup(payload: SignupRequest, db: AsyncSession = Depends(get_db)):
    return await AuthService.signup(db, payload)


@router.post("/login", response_model=AuthResponse, summary="Authenticate with email and password")
@limiter.limit(RATE_LIMIT_LOGIN)
async def login(request: Request, payload: LoginRequest, db: AsyncSession = Depends(get_db)):
    return await AuthService.login(db, payload)


@router.post("/send-otp", response_model=MessageResponse, summary="Send a one-time passcode to a phone")
@limiter.limit(RATE_LIMIT_OTP)
async def send_otp(request: Request, payload: SendOtpRequest, db: AsyncSession = Depends(get_db)):
    await AuthService.send_otp(db, payload.phone)
    return MessageResponse(message="OTP sent successfully.")


@router.post("/verify-otp", response_model=AuthResponse, summary="Verify a passcode and sign in")
async def verify_otp(payload: VerifyOtpRequest, db: AsyncSession = Depends(get_db)):
    return await AuthService.verify_otp(db, payload)


@router.post("/google", response_model=AuthResponse, summary="Sign in with a Google identity")
async def google(payload: GoogleAuthRequest, db: AsyncSession = Depends(get_db)):
    return await AuthService.google(db, payload)


@router.get("/me", response_model=MeResponse, summary="Get the current authenticated user")
async def me(user=Depends(get_current_user)):
    return MeResponse(user=UserResponse.model_validate(user))


@router.post("/logout", response_model=MessageResponse, summary="Invalidate the presented token")
async def logout(
    request: Request,
    user=Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await AuthService.logout(db, request.state.token, user)
    return MessageResponse(message="Logged out successfully.")
