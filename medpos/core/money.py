import math
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from medpos.core.constants import ZERO

_CENT = Decimal("0.01")


def to_decimal(value, field="value"):
    """Coerce API/Excel input to ``Decimal`` without passing through binary floats."""
    if value is None:
        return None
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise ValueError(f"{field} must be a number")
        return value
    if isinstance(value, bool):
        raise ValueError(f"{field} must be a number")
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError(f"{field} must be a number")
        return Decimal(str(value))
    if isinstance(value, str):
        value_text = value.strip().replace(",", "")
        if not value_text:
            return None
        try:
            result = Decimal(value_text)
        except InvalidOperation:
            raise ValueError(f"{field} must be a number") from None
        if not result.is_finite():
            raise ValueError(f"{field} must be a number")
        return result
    raise ValueError(f"{field} must be a number")


def non_negative(value: Decimal) -> Decimal:
    return value if value > ZERO else ZERO


def round_money(value) -> Decimal:
    if value is None:
        return ZERO.quantize(_CENT)
    return to_decimal(value).quantize(_CENT, rounding=ROUND_HALF_UP)


def format_money(value, symbol="") -> str:
    return f"{symbol}{round_money(value):.2f}"
