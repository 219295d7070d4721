from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from storefront.shared.errors import StorefrontError
from .jwt_handler import verify_access_token


def user_id_or_ip(request: Request) -> str:
    """
    Rate-limit key: the token subject for signed-in callers, else the client
    address. A token that fails verification counts against the address.
    """
    scheme, _, token = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() == "bearer" and token:
        try:
            return f"user:{verify_access_token(token)['sub']}"
        except StorefrontError:
            pass
    return f"ip:{get_remote_address(request)}"


limiter = Limiter(key_func=user_id_or_ip)
