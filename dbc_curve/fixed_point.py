"""
Conversions between human prices / market caps and Q64.64 sqrt prices,
plus the small set of fixed-point helpers the solvers share.
"""

from __future__ import annotations

from decimal import ROUND_FLOOR, Decimal

from .constants import (
    MAX_EXPONENTIAL,
    ONE_Q64,
    RESOLUTION,
    U128_MAX,
    decimal_context,
)
from .types import Rounding


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        # go through str so 0.1 stays 0.1
        return Decimal(str(value))
    return Decimal(value)


def decimal_to_int(value: Decimal) -> int:
    """Floor a Decimal into an int (quantisation point for every solver)."""
    return int(value.to_integral_value(rounding=ROUND_FLOOR))


def mul_shr(x: int, y: int, offset: int = RESOLUTION) -> int:
    return (x * y) >> offset


def mul_div(x: int, y: int, denominator: int, rounding: Rounding) -> int:
    if denominator == 0:
        raise ZeroDivisionError("mul_div denominator is zero")
    prod = x * y
    if rounding is Rounding.UP:
        return -(-prod // denominator)
    return prod // denominator


def pow_q64(base: int, exp: int) -> int:
    """base^exp for a Q64.64 base, by repeated squaring.

    Exponents beyond MAX_EXPONENTIAL return 0; a negative exponent returns
    the reciprocal.
    """
    invert = exp < 0
    if exp == 0:
        return ONE_Q64

    exp = abs(exp)
    if exp > MAX_EXPONENTIAL:
        return 0

    squared_base = base
    result = ONE_Q64

    # keep the running product below one so it never overflows u128
    if squared_base >= result:
        squared_base = U128_MAX // squared_base
        invert = not invert

    while exp:
        if exp & 1:
            result = mul_shr(result, squared_base)
        squared_base = mul_shr(squared_base, squared_base)
        exp >>= 1

    if result == 0:
        return 0
    if invert:
        result = U128_MAX // result
    return result


def get_sqrt_price_from_price(
    price: Decimal | int | float | str,
    token_base_decimal: int,
    token_quote_decimal: int,
) -> int:
    """Human quote-per-base price -> Q64.64 sqrt price (floored)."""
    with decimal_context():
        decimal_price = to_decimal(price)
        if decimal_price <= 0:
            raise ValueError("price must be > 0")
        adjusted = decimal_price.scaleb(token_quote_decimal - token_base_decimal)
        sqrt_value = adjusted.sqrt()
        return decimal_to_int(sqrt_value * ONE_Q64)


def get_sqrt_price_from_market_cap(
    market_cap: Decimal | int | float | str,
    total_supply: Decimal | int | str,
    token_base_decimal: int,
    token_quote_decimal: int,
) -> int:
    with decimal_context():
        price = to_decimal(market_cap) / to_decimal(total_supply)
        return get_sqrt_price_from_price(price, token_base_decimal, token_quote_decimal)


def get_price_from_sqrt_price(
    sqrt_price: int,
    token_base_decimal: int,
    token_quote_decimal: int,
) -> Decimal:
    with decimal_context():
        sqrt_value = Decimal(sqrt_price) / ONE_Q64
        return (sqrt_value * sqrt_value).scaleb(token_base_decimal - token_quote_decimal)


def get_market_cap_from_sqrt_price(
    sqrt_price: int,
    total_supply: Decimal | int | str,
    token_base_decimal: int,
    token_quote_decimal: int,
) -> Decimal:
    with decimal_context():
        price = get_price_from_sqrt_price(sqrt_price, token_base_decimal, token_quote_decimal)
        return price * to_decimal(total_supply)
