from __future__ import annotations

from decimal import Decimal, InvalidOperation

from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def require_decimal(value, field_name: str, *, minimum: Decimal | None = Decimal("0"), allow_zero: bool = True) -> Decimal:
    if value is None or str(value).strip() == "":
        raise ValidationError(f"{field_name} is required")
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(f"{field_name} must be a number")
    if not amount.is_finite():
        raise ValidationError(f"{field_name} must be a number")
    if minimum is not None and amount < minimum:
        raise ValidationError(f"{field_name} must not be below {minimum}")
    if not allow_zero and amount == 0:
        raise ValidationError(f"{field_name} must be greater than 0")
    return amount


def require_int(value, field_name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer")
