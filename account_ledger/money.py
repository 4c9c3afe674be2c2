"""
Fixed-Point Money Module

All monetary values are Decimal with a 2-digit scale, rounded half away
from zero (ROUND_HALF_UP). NEVER uses float arithmetic for money.
"""

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation, getcontext
from typing import Union

from .errors import ValidationError

# Set global decimal context for financial precision
getcontext().prec = 28

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
MONTHS_PER_YEAR = Decimal("12")

AmountLike = Union[Decimal, int, str, float]


def _to_decimal(value: AmountLike) -> Decimal:
    """Convert supported inputs to an unrounded Decimal"""
    if value is None or isinstance(value, bool):
        raise ValidationError("Amount is required")

    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float)):
        # str() keeps the shortest repr of a float instead of its binary expansion
        result = Decimal(str(value))
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation:
            raise ValidationError(f"Invalid amount: {value!r}")
    else:
        raise ValidationError(f"Unsupported amount type: {type(value).__name__}")

    if not result.is_finite():
        raise ValidationError("Invalid transaction amount")
    return result


def to_decimal(value: AmountLike) -> Decimal:
    """
    Parse an amount without rounding it.

    Raises:
        ValidationError: If the value is missing, non-numeric, NaN or infinite
    """
    return _to_decimal(value)


def to_money(value: AmountLike) -> Decimal:
    """
    Normalize any supported input to a 2-digit Decimal.

    Args:
        value: Decimal, int, numeric string or float

    Returns:
        Decimal quantized to cents with ROUND_HALF_UP

    Raises:
        ValidationError: If the value is missing, non-numeric, NaN or infinite
    """
    return quantize(_to_decimal(value))


def quantize(value: Decimal) -> Decimal:
    """Round a Decimal to cents, half away from zero"""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def is_finite_amount(value) -> bool:
    """Check whether value parses to a finite amount"""
    try:
        _to_decimal(value)
    except ValidationError:
        return False
    return True


def monthly_rate(annual_rate: AmountLike) -> Decimal:
    """Monthly rate as annual rate / 12, kept at full precision"""
    return _to_decimal(annual_rate) / MONTHS_PER_YEAR


def calculate_interest(balance: Decimal, annual_rate: AmountLike) -> Decimal:
    """
    One month of simple interest on a balance.

    Example:
        calculate_interest(Decimal("10000.00"), Decimal("0.045")) == Decimal("37.50")
    """
    return quantize(balance * monthly_rate(annual_rate))


def format_amount(value: Decimal) -> str:
    """Plain 2-digit string for logs and serialized records"""
    return f"{quantize(value):.2f}"
