import hashlib
import uuid
from datetime import timedelta

from jose import ExpiredSignatureError, JWTError, jwt

from storefront.shared.config.settings import JWT_ALGORITHM, JWT_EXPIRES_MINUTES, JWT_SECRET_KEY
from storefront.shared.errors import InvalidToken, TokenExpired
from storefront.shared.utils import utcnow


def create_access_token(user_id: int, expires_delta: timedelta = None) -> str:
    """Creates a signed bearer token for ``user_id`` with a UTC expiration."""
    now = utcnow()
    expire = now + (expires_delta or timedelta(minutes=JWT_EXPIRES_MINUTES))
    to_encode = {
        "sub": str(user_id),
        "iat": now,
        "exp": expire,
        # Unique per issuance, so a blacklisted value is never handed out again
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(to_encode, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def verify_access_token(token: str) -> dict:
    """Checks signature and expiry only. Returns the payload."""
    try:
        payload = jwt.decode(token, JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except ExpiredSignatureError:
        raise TokenExpired()
    except JWTError:
        raise InvalidToken()

    if not payload.get("sub"):
        raise InvalidToken()
    return payload


def token_sha256(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
