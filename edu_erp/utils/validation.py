"""Parsing helpers shared by the services for values that arrive as JSON or form input."""
from decimal import Decimal, InvalidOperation

from edu_erp.errors import ValidationError

# Numeric(12, 2) columns
MAX_AMOUNT = Decimal("9999999999.99")


def clean_text(value, label: str, required: bool = False, field: str = None) -> str:
    """Return the stripped string; None counts as empty."""
    if value is None:
        value = ""
    if not isinstance(value, str):
        raise ValidationError(f"{label} must be text", errors={field: f"{label} must be text"} if field else None)

    value = value.strip()
    if required and not value:
        raise ValidationError(f"{label} is required", errors={field: f"{label} is required"} if field else None)
    return value


def parse_id(value, label: str, field: str = None) -> int:
    # bool is an int subclass
    if isinstance(value, bool):
        value = None
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        raise ValidationError(f"{label} must be an id", errors={field: "Invalid selection"} if field else None)


def parse_amount(value, label: str) -> Decimal:
    if value in (None, ""):
        return Decimal("0")
    if isinstance(value, bool):
        raise ValidationError(f"{label} must be a number")

    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(f"{label} must be a number")

    if not amount.is_finite():
        raise ValidationError(f"{label} must be a finite number")
    if amount < 0:
        raise ValidationError(f"{label} cannot be negative")
    if amount > MAX_AMOUNT:
        raise ValidationError(f"{label} is too large")
    return amount


def payload_dict(data) -> dict:
    """Request bodies must be JSON objects; a missing body counts as empty."""
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data
