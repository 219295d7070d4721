from typing import Optional

import structlog
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.shared.config.database import get_db
from storefront.shared.errors import (
    AccountDeactivated,
    Forbidden,
    InvalidToken,
    StorefrontError,
    TokenRevoked,
    Unauthenticated,
)
from .jwt_handler import verify_access_token

logger = structlog.get_logger(__name__)

# Defines the expected header format (Bearer <token>)
bearer_scheme = HTTPBearer(auto_error=False)


async def _resolve_user(db: AsyncSession, token: str):
    # Imported here: the auth service models depend on this package
    from storefront.services.auth_service.repository import TokenBlacklistRepository, UserRepository

    payload = verify_access_token(token)

    if await TokenBlacklistRepository.is_revoked(db, token):
        raise TokenRevoked()

    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise InvalidToken()

    user = await UserRepository.get_by_id(db, user_id)
    if user is None:
        raise InvalidToken("User not found.")
    if not user.is_active:
        raise AccountDeactivated()
    return user


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
):
    """Dependency resolving the bearer token to an active user."""
    if credentials is None or not credentials.credentials:
        raise Unauthenticated()

    user = await _resolve_user(db, credentials.credentials)

    # Store in request state for downstream use (logout, rate limiting)
    request.state.user = user
    request.state.token = credentials.credentials
    return user


async def get_optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
):
    """Like ``get_current_user`` but continues unauthenticated on any failure."""
    if credentials is None or not credentials.credentials:
        return None
    try:
        user = await _resolve_user(db, credentials.credentials)
    except StorefrontError as exc:
        logger.info("optional_auth_ignored", reason=exc.detail)
        return None

    request.state.user = user
    request.state.token = credentials.credentials
    return user


async def get_current_admin(
    request: Request,
    user=Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Dependency requiring the caller to own an administrator record."""
    from storefront.services.auth_service.repository import AdminRepository

    admin = await AdminRepository.get_by_user_id(db, user.id)
    if admin is None:
        raise Forbidden()

    request.state.admin = admin
    return user
