"""Rounding and clamping helpers shared by the analytics modules."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Union

Number = Union[int, float, Decimal]

CENT = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")


def to_decimal(value: Number) -> Decimal:
    """Convert a number to Decimal, going through str for floats."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def round_money(value: Number) -> Decimal:
    """Round a monetary value to cents, half-up."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def round_to_unit(value: Number, unit: int) -> Decimal:
    """Round a value half-up to the nearest multiple of ``unit``."""
    step = Decimal(unit)
    return (to_decimal(value) / step).quantize(Decimal("1"), rounding=ROUND_HALF_UP) * step


def percentage(part: Number, whole: Number) -> Decimal:
    """Share of ``part`` in ``whole`` as a percentage in [0, 100]."""
    whole_dec = to_decimal(whole)
    if whole_dec <= 0:
        return ZERO.quantize(CENT)
    share = to_decimal(part) / whole_dec * HUNDRED
    return clamp_percentage(share)


def clamp_percentage(value: Number) -> Decimal:
    """Clamp a percentage to [0, 100] and round to two places."""
    clamped = min(max(to_decimal(value), ZERO), HUNDRED)
    return clamped.quantize(CENT, rounding=ROUND_HALF_UP)


def clamp(value: float, lower: float, upper: float) -> float:
    return min(max(value, lower), upper)


def as_floats(values: Iterable[Number]) -> list[float]:
    return [float(v) for v in values]
