import secrets
from datetime import datetime, timedelta

from storefront.shared.config.settings import OTP_EXPIRES_MINUTES
from storefront.shared.utils import utcnow


def generate_otp() -> str:
    """Six-digit numeric code, never zero-padded."""
    return str(100000 + secrets.randbelow(900000))


def otp_expiry() -> datetime:
    return utcnow() + timedelta(minutes=OTP_EXPIRES_MINUTES)
