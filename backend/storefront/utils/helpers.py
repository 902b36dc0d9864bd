from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from bson import Decimal128, ObjectId

CENTS = Decimal("0.01")


def to_object_id(value):
    """Return an ObjectId for valid hex ids, the raw value otherwise."""
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return value


def to_money(value) -> Decimal:
    """Coerce a stored amount (float, str, Decimal128) to a 2-place Decimal."""
    if isinstance(value, Decimal128):
        value = value.to_decimal()
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def get_current_timestamp() -> datetime:
    """Get current UTC timestamp."""
    return datetime.now(timezone.utc)
