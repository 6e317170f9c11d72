"""Unit tests for fixed-point decimal helpers."""
from __future__ import annotations

import decimal
from decimal import Decimal

import pytest

from obligation_health.fixed_point import (
    MAX_BORROW_WEIGHT,
    calculation_context,
    decimal_amount,
    safe_divide,
    wad_amount,
)


class TestDecimalAmount:
    def test_token_decimals(self) -> None:
        assert decimal_amount(1_500_000, 6) == Decimal("1.5")

    def test_zero_scale(self) -> None:
        assert decimal_amount(42, 0) == Decimal("42")

    def test_exact_for_tiny_values(self) -> None:
        assert decimal_amount(1, 9) == Decimal("0.000000001")

    def test_no_float_drift(self) -> None:
        # 0.1 + 0.2 style error must not appear.
        total = decimal_amount(100_000, 6) + decimal_amount(200_000, 6)
        assert total == Decimal("0.3")


class TestWadAmount:
    def test_plain_wad(self) -> None:
        assert wad_amount(10**18) == Decimal("1")

    def test_with_token_decimals(self) -> None:
        assert wad_amount(25 * 10**24, 6) == Decimal("25")


class TestSafeDivide:
    def test_basic(self) -> None:
        assert safe_divide(Decimal("50"), Decimal("160")) == Decimal("0.3125")

    def test_zero_denominator(self) -> None:
        assert safe_divide(Decimal("50"), Decimal("0")) == Decimal("0")

    def test_zero_with_exponent(self) -> None:
        assert safe_divide(Decimal("1"), Decimal("0E-18")) == Decimal("0")


class TestCalculationContext:
    def test_precision(self) -> None:
        assert calculation_context(40).prec == 40

    def test_holds_sentinel_products_exactly(self) -> None:
        with decimal.localcontext(calculation_context()):
            product = MAX_BORROW_WEIGHT * Decimal("123456789.123456789")
            expected = Decimal(18446744073709551615 * 123456789123456789).scaleb(-9)
        assert product == expected

    def test_traps_division_by_zero(self) -> None:
        with decimal.localcontext(calculation_context()):
            with pytest.raises(decimal.DivisionByZero):
                Decimal(1) / Decimal(0)

    def test_max_weight_value(self) -> None:
        assert MAX_BORROW_WEIGHT == Decimal(18446744073709551615)
