"""
Decimal helpers for ledger-bound amounts.
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

from affiliate_system.config.constants import MAX_MONEY, MONEY_QUANTUM


def to_decimal(value: Any) -> Decimal:
    """
    Convert int/float/str/Decimal to Decimal without float drift.

    Raises:
        InvalidOperation: value is not numeric (bool is rejected too)
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool) or value is None:
        raise InvalidOperation(f"Not a number: {value!r}")
    try:
        return Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise InvalidOperation(f"Not a number: {value!r}")


def quantize_money(amount: Decimal) -> Decimal:
    """
    Round to currency precision, half-up.

    Raises:
        InvalidOperation: amount has more digits than the decimal context holds
    """
    return amount.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def percent_of(amount: Decimal, rate: Decimal) -> Decimal:
    """
    amount * rate / 100, rounded half-up to currency precision.

    Example:
        percent_of(Decimal("200"), Decimal("10")) -> Decimal("20.00")
        percent_of(Decimal("0.05"), Decimal("50")) -> Decimal("0.03")
    """
    return quantize_money(amount * rate / Decimal("100"))


def fits_money_column(amount: Decimal) -> bool:
    """True when amount is finite and storable in a DECIMAL(18, 2) column."""
    return amount.is_finite() and abs(amount) <= MAX_MONEY
