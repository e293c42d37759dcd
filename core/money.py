"""
Integer-cents money helpers.

All amounts are stored and summed in cents (integer) to avoid floating point
issues. $10.00 = 1000 cents. Dollars appear only at input and display edges.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

CURRENCY_SYMBOLS = {"USD": "$", "CAD": "$"}

_CENT = Decimal("0.01")


def to_cents(dollars: Any) -> int:
    """
    Convert a dollar amount to integer cents.

    Rounds half away from zero ($0.005 -> 1 cent, -$0.005 -> -1 cent).
    None, blanks and non-numeric input convert to 0.
    """
    if dollars is None or isinstance(dollars, bool):
        return 0
    try:
        # str() keeps 0.1 from turning into 0.1000000000000000055...
        amount = Decimal(str(dollars).strip())
    except (InvalidOperation, ValueError):
        return 0
    if not amount.is_finite():
        return 0
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_cents(cents: int | None) -> Decimal:
    """Cents to an exact Decimal dollar amount. None is 0."""
    return (Decimal(cents or 0) / 100).quantize(_CENT)


def cents_to_dollars_str(cents: int | None) -> str:
    """Plain two-decimal dollar string, e.g. 123456 -> "1234.56"."""
    return f"{from_cents(cents):.2f}"


def format_currency(cents: int | None, currency: str = "USD") -> str:
    """
    Display string for a cents amount, e.g. 123456 -> "$1,234.56".

    Display-only; never parse this back into a number.
    """
    amount = from_cents(cents)
    symbol = CURRENCY_SYMBOLS.get(currency, "")
    sign = "-" if amount < 0 else ""
    text = f"{sign}{symbol}{abs(amount):,.2f}"
    return text if symbol else f"{text} {currency}"


def round_half_away(numerator: int, denominator: int) -> int:
    """
    Integer division rounded half away from zero.

    Returns 0 when denominator is 0 instead of raising.
    """
    if denominator == 0:
        return 0
    quotient = Decimal(numerator) / Decimal(denominator)
    return int(quotient.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def sum_cents(values) -> int:
    """Sum cents values, counting None as 0."""
    return sum((v or 0) for v in values)
