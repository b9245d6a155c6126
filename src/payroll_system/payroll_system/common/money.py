from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

CENT = Decimal("0.01")
ZERO = Decimal("0")


def to_money(value) -> Decimal:
    """Quantize to centavos (half-up), the precision stored in DECIMAL(12,2) columns."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def money_sum(values: Iterable[Decimal]) -> Decimal:
    return to_money(sum(values, ZERO))


def as_float(value) -> float:
    """JSON-friendly amount."""
    return float(to_money(value))
