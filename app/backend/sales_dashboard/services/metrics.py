"""Money and percentage helpers shared by every aggregation."""

from __future__ import annotations

from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal

ZERO = Decimal("0.00")
Q1 = Decimal("0.1")
Q2 = Decimal("0.01")
HUNDRED = Decimal("100")

Number = Decimal | int | float | str


def to_decimal(value: Number | None) -> Decimal:
    """Coerce a raw amount (row value, payload field) into ``Decimal``.

    ``None`` is treated as zero so that absent aggregates need no special casing.
    Floats go through ``str`` to avoid binary noise such as ``0.1000000000000000055``.
    """

    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def q2(value: Decimal) -> Decimal:
    return value.quantize(Q2, rounding=ROUND_HALF_UP)


def sum_amounts(values: Iterable[Number | None]) -> Decimal:
    """Plain summation; no rounding is applied."""

    total = ZERO
    for value in values:
        total += to_decimal(value)
    return total


def safe_percent(numerator: Number | None, denominator: Number | None) -> str:
    """Return ``numerator / denominator * 100`` with exactly one decimal place.

    A non-positive denominator yields ``"0.0"`` regardless of the numerator, so
    ratios over empty periods never surface as errors.
    """

    den = to_decimal(denominator)
    if den <= 0:
        return "0.0"
    pct = (to_decimal(numerator) * HUNDRED / den).quantize(Q1, rounding=ROUND_HALF_UP)
    if pct == 0:
        # Decimal keeps the sign of tiny negative ratios ("-0.0").
        pct = abs(pct)
    return f"{pct:.1f}"


def format_money(value: Decimal) -> str:
    return str(q2(value))
