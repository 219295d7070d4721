from datetime import timedelta
from typing import Optional

from sqlalchemy import case, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.shared.config.settings import TOKEN_BLACKLIST_DAYS
from storefront.shared.security.jwt_handler import token_sha256
from storefront.shared.security.otp import otp_expiry
from storefront.shared.utils import utcnow

from .models import AdminUser, OtpCode, User, UserSession


class UserRepository:

    @staticmethod
    async def save(db: AsyncSession, user: User) -> User:
        db.add(user)
        await db.commit()
        await db.refresh(user)
        return user

    @staticmethod
    async def get_by_id(db: AsyncSession, user_id: int) -> Optional[User]:
        result = await db.execute(select(User).where(User.id == user_id))
        return result.scalars().first()

    @staticmethod
    async def get_by_email(db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == email))
        return result.scalars().first()

    @staticmethod
    async def get_by_phone(db: AsyncSession, phone: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.phone == phone))
        return result.scalars().first()

    @staticmethod
    async def get_by_email_or_phone(db: AsyncSession, email: str, phone: Optional[str]) -> Optional[User]:
        conditions = [User.email == email]
        if phone:
            conditions.append(User.phone == phone)
        result = await db.execute(select(User).where(or_(*conditions)))
        return result.scalars().first()

    @staticmethod
    async def get_by_google_id_or_email(db: AsyncSession, google_id: str, email: str) -> Optional[User]:
        result = await db.execute(
            select(User)
            .where(or_(User.google_id == google_id, User.email == email))
            .order_by(case((User.google_id == google_id, 0), else_=1))
        )
        return result.scalars().first()


class AdminRepository:

    @staticmethod
    async def get_by_user_id(db: AsyncSession, user_id: int) -> Optional[AdminUser]:
        result = await db.execute(select(AdminUser).where(AdminUser.user_id == user_id))
        return result.scalars().first()


class OtpRepository:

    @staticmethod
    async def save(db: AsyncSession, phone: str, code: str) -> OtpCode:
        otp = OtpCode(phone=phone, otp_code=code, expires_at=otp_expiry(), is_used=False)
        db.add(otp)
        await db.commit()
        return otp

    @staticmethod
    async def consume(db: AsyncSession, phone: str, code: str) -> bool:
        """Marks the newest matching, unexpired, unused code as used."""
        result = await db.execute(
            select(OtpCode)
            .where(
                OtpCode.phone == phone,
                OtpCode.otp_code == code,
                OtpCode.expires_at > utcnow(),
                OtpCode.is_used.is_(False),
            )
            .order_by(OtpCode.created_at.desc(), OtpCode.id.desc())
            .limit(1)
        )
        otp = result.scalars().first()
        if not otp:
            return False

        # Guarded on is_used so two concurrent verifies cannot both win
        marked = await db.execute(
            update(OtpCode)
            .where(OtpCode.id == otp.id, OtpCode.is_used.is_(False))
            .values(is_used=True)
        )
        await db.commit()
        return marked.rowcount == 1


class TokenBlacklistRepository:

    @staticmethod
    async def add(db: AsyncSession, token: str, user_id: int) -> UserSession:
        entry = UserSession(
            user_id=user_id,
            token_hash=token_sha256(token),
            expires_at=utcnow() + timedelta(days=TOKEN_BLACKLIST_DAYS),
        )
        db.add(entry)
        await db.commit()
        return entry

    @staticmethod
    async def is_revoked(db: AsyncSession, token: str) -> bool:
        result = await db.execute(
            select(UserSession.id).where(
                UserSession.token_hash == token_sha256(token),
                UserSession.expires_at > utcnow(),
            )
        )
        return result.first() is not None
