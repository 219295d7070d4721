from .jwt_handler import create_access_token, token_sha256, verify_access_token
from .passwords import hash_password, verify_password
from .otp import generate_otp
from .dependencies import get_current_admin, get_current_user, get_optional_user
from .rate_limiter import limiter, user_id_or_ip

__all__ = [
    "create_access_token",
    "verify_access_token",
    "token_sha256",
    "hash_password",
    "verify_password",
    "generate_otp",
    "get_current_user",
    "get_optional_user",
    "get_current_admin",
    "limiter",
    "user_id_or_ip"
]
