import secrets
import uuid
from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_order_number() -> str:
    """FLEX-<date>-<random>; the orders table enforces uniqueness."""
    return f"FLEX-{utcnow():%Y%m%d}-{secrets.token_hex(5).upper()}"


def generate_tracking_number() -> str:
    return f"TRK-{uuid.uuid4().hex[:12].upper()}"


def to_minor_units(amount: float) -> int:
    return int(round(amount * 100))


def from_minor_units(amount: int) -> float:
    return round(amount / 100, 2)
