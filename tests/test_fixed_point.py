from __future__ import annotations

from decimal import Decimal

import pytest

from dbc_curve.constants import MAX_EXPONENTIAL, ONE_Q64
from dbc_curve.fixed_point import (
    decimal_to_int,
    get_market_cap_from_sqrt_price,
    get_price_from_sqrt_price,
    get_sqrt_price_from_market_cap,
    get_sqrt_price_from_price,
    mul_div,
    pow_q64,
    to_decimal,
)
from dbc_curve.types import Rounding


# =============================================================================
# Decimal helpers
# =============================================================================

class TestDecimalHelpers:
    def test_float_goes_through_str(self):
        assert to_decimal(0.1) == Decimal("0.1")

    def test_decimal_to_int_floors(self):
        assert decimal_to_int(Decimal("2.9")) == 2
        assert decimal_to_int(Decimal("-1.5")) == -2

    def test_mul_div_rounding(self):
        assert mul_div(7, 3, 2, Rounding.UP) == 11
        assert mul_div(7, 3, 2, Rounding.DOWN) == 10

    def test_mul_div_zero_denominator(self):
        with pytest.raises(ZeroDivisionError):
            mul_div(1, 1, 0, Rounding.DOWN)


# =============================================================================
# Q64.64 power
# =============================================================================

class TestPowQ64:
    def test_zero_exponent_is_one(self):
        assert pow_q64(ONE_Q64 // 3, 0) == ONE_Q64

    def test_half_squared(self):
        assert pow_q64(ONE_Q64 // 2, 2) == ONE_Q64 >> 2

    def test_exponent_beyond_max_is_zero(self):
        assert pow_q64(ONE_Q64 // 2, MAX_EXPONENTIAL + 1) == 0


# =============================================================================
# Price conversions
# =============================================================================

class TestPriceConversion:
    def test_unit_price_same_decimals(self):
        assert get_sqrt_price_from_price(1, 6, 6) == ONE_Q64

    def test_square_price(self):
        assert get_sqrt_price_from_price(4, 9, 9) == 2 * ONE_Q64

    def test_round_trip_across_decimals(self):
        sqrt_price = get_sqrt_price_from_price(Decimal("0.000003"), 6, 9)
        price = get_price_from_sqrt_price(sqrt_price, 6, 9)
        assert float(price) == pytest.approx(0.000003, rel=1e-12)

    def test_non_positive_price_rejected(self):
        with pytest.raises(ValueError):
            get_sqrt_price_from_price(0, 6, 9)
        with pytest.raises(ValueError):
            get_sqrt_price_from_price("-1", 6, 9)

    def test_market_cap_round_trip(self):
        sqrt_price = get_sqrt_price_from_market_cap(1_000_000_000, 1_000_000_000, 9, 9)
        assert sqrt_price == ONE_Q64
        assert get_market_cap_from_sqrt_price(sqrt_price, 1_000_000_000, 9, 9) == Decimal(1_000_000_000)

    def test_higher_market_cap_gives_higher_sqrt_price(self):
        low = get_sqrt_price_from_market_cap(15, 1_000_000_000, 6, 9)
        high = get_sqrt_price_from_market_cap(255, 1_000_000_000, 6, 9)
        assert low < high
