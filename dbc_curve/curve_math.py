"""
Constant-product segment math on Q64.64 sqrt prices.

    base  = L * (upper - lower) / (lower * upper)
    quote = L * (upper - lower) / 2^128
"""

from __future__ import annotations

from typing import Sequence

from .constants import RESOLUTION
from .fixed_point import mul_div
from .types import CurveSegment, Rounding


def _price_delta(lower: int, upper: int) -> int:
    if upper <= lower:
        raise ValueError("lower and upper sqrt price must differ (lower < upper)")
    return upper - lower


def get_delta_amount_base(
    lower_sqrt_price: int,
    upper_sqrt_price: int,
    liquidity: int,
    rounding: Rounding = Rounding.UP,
) -> int:
    if liquidity == 0 or lower_sqrt_price == upper_sqrt_price:
        return 0
    delta = _price_delta(lower_sqrt_price, upper_sqrt_price)
    return mul_div(liquidity, delta, lower_sqrt_price * upper_sqrt_price, rounding)


def get_delta_amount_quote(
    lower_sqrt_price: int,
    upper_sqrt_price: int,
    liquidity: int,
    rounding: Rounding = Rounding.UP,
) -> int:
    if liquidity == 0 or lower_sqrt_price == upper_sqrt_price:
        return 0
    delta = _price_delta(lower_sqrt_price, upper_sqrt_price)
    prod = liquidity * delta
    if rounding is Rounding.UP:
        return (prod + (1 << (RESOLUTION * 2)) - 1) >> (RESOLUTION * 2)
    return prod >> (RESOLUTION * 2)


def get_initial_liquidity_from_delta_base(
    base_amount: int,
    sqrt_max_price: int,
    sqrt_price: int,
) -> int:
    delta = _price_delta(sqrt_price, sqrt_max_price)
    return base_amount * sqrt_price * sqrt_max_price // delta


def get_initial_liquidity_from_delta_quote(
    quote_amount: int,
    sqrt_min_price: int,
    sqrt_price: int,
) -> int:
    delta = _price_delta(sqrt_min_price, sqrt_price)
    return (quote_amount << (RESOLUTION * 2)) // delta


def get_liquidity(
    base_amount: int,
    quote_amount: int,
    min_sqrt_price: int,
    max_sqrt_price: int,
) -> int:
    """Largest liquidity that neither amount is short of over [min, max]."""
    liquidity_from_base = get_initial_liquidity_from_delta_base(
        base_amount, max_sqrt_price, min_sqrt_price
    )
    liquidity_from_quote = get_initial_liquidity_from_delta_quote(
        quote_amount, min_sqrt_price, max_sqrt_price
    )
    return min(liquidity_from_base, liquidity_from_quote)


def get_next_sqrt_price_from_quote_input(sqrt_price: int, liquidity: int, amount_in: int) -> int:
    if liquidity <= 0:
        raise ValueError("liquidity must be > 0")
    return sqrt_price + (amount_in << (RESOLUTION * 2)) // liquidity


def get_next_sqrt_price_from_base_input(sqrt_price: int, liquidity: int, amount_in: int) -> int:
    if amount_in == 0:
        return sqrt_price
    if liquidity <= 0:
        raise ValueError("liquidity must be > 0")
    denominator = liquidity + amount_in * sqrt_price
    return mul_div(liquidity, sqrt_price, denominator, Rounding.UP)


def get_base_amount_out(
    sqrt_start_price: int,
    curve: Sequence[CurveSegment],
    quote_amount_in: int,
) -> tuple[int, int]:
    """Base tokens bought with `quote_amount_in` from a fresh curve.

    Returns (base amount out, sqrt price after the trade).
    """
    amount_left = quote_amount_in
    current = sqrt_start_price
    amount_out = 0

    for segment in curve:
        if segment.sqrt_price <= current:
            continue
        if amount_left == 0:
            break
        max_quote = get_delta_amount_quote(current, segment.sqrt_price, segment.liquidity, Rounding.UP)
        if amount_left < max_quote:
            next_price = get_next_sqrt_price_from_quote_input(current, segment.liquidity, amount_left)
            amount_out += get_delta_amount_base(current, next_price, segment.liquidity, Rounding.DOWN)
            current = next_price
            amount_left = 0
            break
        amount_out += get_delta_amount_base(current, segment.sqrt_price, segment.liquidity, Rounding.DOWN)
        amount_left -= max_quote
        current = segment.sqrt_price

    if amount_left:
        raise ValueError(f"not enough liquidity on the curve, {amount_left} quote left")

    return amount_out, current


def get_quote_amount_out(
    sqrt_price: int,
    sqrt_start_price: int,
    curve: Sequence[CurveSegment],
    base_amount_in: int,
) -> tuple[int, int]:
    """Quote tokens received for selling `base_amount_in` back into the curve at `sqrt_price`.

    Returns (quote amount out, sqrt price after the trade).
    """
    amount_left = base_amount_in
    current = sqrt_price
    amount_out = 0

    lower_prices = [sqrt_start_price] + [segment.sqrt_price for segment in curve[:-1]]
    for lower, segment in reversed(list(zip(lower_prices, curve))):
        if lower >= current:
            continue
        if amount_left == 0:
            break
        max_base = get_delta_amount_base(lower, current, segment.liquidity, Rounding.UP)
        if amount_left < max_base:
            next_price = get_next_sqrt_price_from_base_input(current, segment.liquidity, amount_left)
            amount_out += get_delta_amount_quote(next_price, current, segment.liquidity, Rounding.DOWN)
            current = next_price
            amount_left = 0
            break
        amount_out += get_delta_amount_quote(lower, current, segment.liquidity, Rounding.DOWN)
        amount_left -= max_base
        current = lower

    if amount_left:
        raise ValueError(f"not enough quote on the curve, {amount_left} base left")

    return amount_out, current
