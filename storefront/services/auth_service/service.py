import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.shared.errors import (
    AccountDeactivated,
    InvalidCredentials,
    InvalidOrExpiredOTP,
    UserAlreadyExists,
    ValidationFailed,
)
from storefront.shared.security import create_access_token, generate_otp, hash_password, verify_password

from .models import User
from .repository import OtpRepository, TokenBlacklistRepository, UserRepository
from .schemas import AuthResponse, GoogleAuthRequest, LoginRequest, SignupRequest, UserResponse, VerifyOtpRequest

logger = structlog.get_logger(__name__)


def _issue(message: str, user: User) -> AuthResponse:
    return AuthResponse(
        message=message,
        user=UserResponse.model_validate(user),
        token=create_access_token(user.id),
    )


class AuthService:

    @staticmethod
    async def signup(db: AsyncSession, data: SignupRequest) -> AuthResponse:
        email = str(data.email).lower()
        existing = await UserRepository.get_by_email_or_phone(db, email, data.phone)
        if existing:
            raise UserAlreadyExists()

        user = User(
            email=email,
            password_hash=hash_password(data.password),
            first_name=data.first_name.strip(),
            last_name=data.last_name.strip(),
            phone=data.phone,
            auth_provider="email",
            is_verified=False,
        )
        user = await UserRepository.save(db, user)
        logger.info("user_signed_up", user_id=user.id)
        return _issue("User registered successfully", user)

    @staticmethod
    async def login(db: AsyncSession, data: LoginRequest) -> AuthResponse:
        user = await UserRepository.get_by_email(db, str(data.email).lower())
        if not user:
            raise InvalidCredentials()
        if not user.is_active:
            raise AccountDeactivated()
        if not verify_password(data.password, user.password_hash):
            raise InvalidCredentials()

        logger.info("user_logged_in", user_id=user.id, provider="email")
        return _issue("Login successful", user)

    @staticmethod
    async def send_otp(db: AsyncSession, phone: str) -> None:
        code = generate_otp()
        await OtpRepository.save(db, phone, code)
        # No SMS provider is wired in; the code is only surfaced in the log
        logger.info("otp_sent", phone=phone, otp=code)

    @staticmethod
    async def verify_otp(db: AsyncSession, data: VerifyOtpRequest) -> AuthResponse:
        user = await UserRepository.get_by_phone(db, data.phone)
        email = str(data.email).lower() if data.email else None
        # New-user details are checked before the code is spent
        if user is None:
            if not data.first_name or not data.last_name or not email:
                raise ValidationFailed("First name, last name, and email are required for new users.")
            if await UserRepository.get_by_email(db, email):
                raise UserAlreadyExists()

        if not await OtpRepository.consume(db, data.phone, data.otp):
            raise InvalidOrExpiredOTP()

        if user is None:
            user = User(
                email=email,
                phone=data.phone,
                first_name=data.first_name,
                last_name=data.last_name,
                auth_provider="phone",
                is_verified=True,
            )
            user = await UserRepository.save(db, user)
            logger.info("user_signed_up", user_id=user.id, provider="phone")

        if not user.is_active:
            raise AccountDeactivated()

        logger.info("user_logged_in", user_id=user.id, provider="phone")
        return _issue("OTP verified successfully", user)

    @staticmethod
    async def google(db: AsyncSession, data: GoogleAuthRequest) -> AuthResponse:
        email = str(data.email).lower()
        user = await UserRepository.get_by_google_id_or_email(db, data.google_id, email)

        if user is None:
            user = User(
                google_id=data.google_id,
                email=email,
                first_name=data.first_name,
                last_name=data.last_name,
                avatar_url=data.avatar_url,
                auth_provider="google",
                is_verified=True,
            )
            user = await UserRepository.save(db, user)
            logger.info("user_signed_up", user_id=user.id, provider="google")
        elif not user.google_id:
            # Link the Google identity to an existing email account
            user.google_id = data.google_id
            user.avatar_url = data.avatar_url
            user = await UserRepository.save(db, user)

        if not user.is_active:
            raise AccountDeactivated()

        logger.info("user_logged_in", user_id=user.id, provider="google")
        return _issue("Google authentication successful", user)

    @staticmethod
    async def logout(db: AsyncSession, token: str, user: User) -> None:
        await TokenBlacklistRepository.add(db, token, user.id)
        logger.info("user_logged_out", user_id=user.id)
