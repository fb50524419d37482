"""
Money handling — integer cents in the store, Decimal at the API.

Why integer cents?
  Floating-point numbers introduce rounding errors in financial sums: with
  REAL columns, 0.10 + 0.20 is stored as 0.30000000000000004 and every SUM()
  aggregate drifts a little further. Every balance and amount column
  therefore holds an INTEGER number of cents (10.50 is stored as 1050), so
  that `current_balance = current_balance + amount` and SUM() run on exact
  integers inside SQLite.

  Callers never see cents: repositories convert inputs with to_cents() and
  convert rows back with from_cents(), so record models carry Decimal values
  with exactly two places.

Rounding:
  Inputs with more than two decimal places are rounded half-up to the cent.
  Floats are converted through their shortest repr, so 0.1 means 0.10, not
  the binary approximation.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Any

CENT = Decimal("0.01")


def to_decimal(value: Any) -> Decimal:
    """Coerce int / float / str / Decimal to a Decimal with two places."""
    if isinstance(value, bool):
        raise TypeError("A boolean is not an amount")
    if isinstance(value, float):
        value = repr(value)
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def to_cents(value: Any) -> int | None:
    """Amount in currency units -> integer cents for the store."""
    if value is None:
        return None
    return int(to_decimal(value) * 100)


def from_cents(cents: Any) -> Decimal | None:
    """Integer cents from the store -> Decimal amount with two places."""
    if cents is None:
        return None
    return Decimal(int(cents)).scaleb(-2)
