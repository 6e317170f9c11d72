"""Fixed-point conversion helpers — exact decimal arithmetic, no floats."""
from __future__ import annotations

import decimal
from decimal import Decimal

WAD_DECIMALS = 18

# Effectively infinite risk weight for reserves without a configured borrow weight.
MAX_BORROW_WEIGHT = Decimal(2**64 - 1)

DEFAULT_PRECISION = 60

ZERO = Decimal(0)
ONE = Decimal(1)


def decimal_amount(raw: int, scale: int) -> Decimal:
    """Convert a raw fixed-point integer into a decimal value.

    The conversion shifts the exponent, so ``raw / 10**scale`` is exact:

        decimal_amount(1_500_000, 6) → Decimal("1.500000")
    """
    return Decimal(raw).scaleb(-scale)


def wad_amount(raw_wads: int, decimals: int = 0) -> Decimal:
    """Convert a WAD-scaled integer (18 decimals on top of token decimals)."""
    return decimal_amount(raw_wads, WAD_DECIMALS + decimals)


def safe_divide(numerator: Decimal, denominator: Decimal) -> Decimal:
    """Divide, returning zero when the denominator is zero."""
    if denominator.is_zero():
        return ZERO
    return numerator / denominator


def calculation_context(precision: int = DEFAULT_PRECISION) -> decimal.Context:
    """Build the decimal context used for one health calculation.

    Overflow, invalid operations and division by zero are trapped so bad
    input surfaces as an exception instead of an Infinity or NaN result.
    """
    return decimal.Context(
        prec=precision,
        rounding=decimal.ROUND_HALF_EVEN,
        traps=[decimal.Overflow, decimal.InvalidOperation, decimal.DivisionByZero],
    )
