"""
Segmented curve solvers.

Every mode produces ascending CurveSegments ending at the migration price:

  single        one segment, start price back-solved from the migration split
  two-segment   fixed start and migration prices, one split point in between
  weighted      16 segments on a geometric price grid, liquidity k_i * L1
  first-buy     one reserved segment sized for the creator's first buy,
                then 15 weighted segments

All intermediate arithmetic is Decimal; values are floored into ints only
when a segment is emitted.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Sequence

from .constants import (
    FEE_DENOMINATOR,
    FIRST_BUY_WEIGHTED_SEGMENT_COUNT,
    RESOLUTION,
    WEIGHTED_SEGMENT_COUNT,
    decimal_context,
)
from .curve_math import get_delta_amount_base, get_delta_amount_quote, get_liquidity
from .errors import CurveConstructionError, InconsistentFirstBuy
from .fixed_point import decimal_to_int, to_decimal
from .supply import CurveSolution, get_base_token_for_swap, get_swap_amount_with_buffer
from .types import CurveSegment, Rounding


log = logging.getLogger(__name__)


def geometric_liquidity_weights(
    ratio: Decimal | float | str,
    count: int = WEIGHTED_SEGMENT_COUNT,
) -> list[Decimal]:
    """[ratio^0, ratio^1, ...]; ratio > 1 pushes liquidity towards migration."""
    with decimal_context():
        base = to_decimal(ratio)
        return [base**i for i in range(count)]


def build_single_segment(
    migration_sqrt_price: int,
    migration_base_amount: int,
    swap_amount: int,
    migration_quote_threshold: int,
) -> CurveSolution:
    if swap_amount <= 0:
        raise ValueError("swap_amount must be > 0")

    # quote / base = start * migration  =>  start = migration * migration_base / swap
    sqrt_start_price = migration_sqrt_price * migration_base_amount // swap_amount
    if sqrt_start_price >= migration_sqrt_price:
        raise CurveConstructionError(
            "migration base amount must be smaller than the swap amount"
        )

    liquidity = get_liquidity(
        swap_amount, migration_quote_threshold, sqrt_start_price, migration_sqrt_price
    )
    log.debug("single segment: start %d, liquidity %d", sqrt_start_price, liquidity)

    return CurveSolution(
        sqrt_start_price=sqrt_start_price,
        curve=(CurveSegment(sqrt_price=migration_sqrt_price, liquidity=liquidity),),
        migration_sqrt_price=migration_sqrt_price,
        migration_base_amount=migration_base_amount,
        migration_quote_threshold=migration_quote_threshold,
    )


def _two_segment_split_candidates(initial_sqrt_price: int, migration_sqrt_price: int) -> list[int]:
    with decimal_context():
        p0 = Decimal(initial_sqrt_price)
        p2 = Decimal(migration_sqrt_price)
        return [
            decimal_to_int((p0 * p2).sqrt()),
            decimal_to_int((p0 * p2**3).sqrt().sqrt()),
            decimal_to_int((p0**3 * p2).sqrt().sqrt()),
        ]


def _solve_two_segment_liquidity(
    initial_sqrt_price: int,
    mid_sqrt_price: int,
    migration_sqrt_price: int,
    swap_amount: int,
    migration_quote_threshold: int,
) -> tuple[Decimal, Decimal]:
    """Solve l0, l1 from

        l0 (1/p0 - 1/p1) + l1 (1/p1 - 1/p2) = swap_amount
        l0 (p1 - p0)     + l1 (p2 - p1)     = threshold << 128
    """
    with decimal_context():
        p0 = Decimal(initial_sqrt_price)
        p1 = Decimal(mid_sqrt_price)
        p2 = Decimal(migration_sqrt_price)

        a1 = 1 / p0 - 1 / p1
        b1 = 1 / p1 - 1 / p2
        c1 = Decimal(swap_amount)

        a2 = p1 - p0
        b2 = p2 - p1
        c2 = Decimal(migration_quote_threshold << (RESOLUTION * 2))

        determinant = a1 * b2 - a2 * b1
        if determinant == 0:
            return Decimal(-1), Decimal(-1)
        l0 = (c1 * b2 - c2 * b1) / determinant
        l1 = (a1 * c2 - a2 * c1) / determinant
        return l0, l1


def build_two_segment(
    migration_sqrt_price: int,
    initial_sqrt_price: int,
    swap_amount: int,
    migration_quote_threshold: int,
) -> CurveSolution:
    if initial_sqrt_price >= migration_sqrt_price:
        raise ValueError("initial sqrt price must be below the migration sqrt price")
    if swap_amount <= 0:
        raise ValueError("swap_amount must be > 0")

    for mid_sqrt_price in _two_segment_split_candidates(initial_sqrt_price, migration_sqrt_price):
        if not initial_sqrt_price < mid_sqrt_price < migration_sqrt_price:
            continue
        l0, l1 = _solve_two_segment_liquidity(
            initial_sqrt_price,
            mid_sqrt_price,
            migration_sqrt_price,
            swap_amount,
            migration_quote_threshold,
        )
        liquidity_0 = decimal_to_int(l0)
        liquidity_1 = decimal_to_int(l1)
        if liquidity_0 <= 0 or liquidity_1 <= 0:
            log.debug("split %d rejected: l0=%s l1=%s", mid_sqrt_price, l0, l1)
            continue

        log.debug("two segments split at %d: l0=%d l1=%d", mid_sqrt_price, liquidity_0, liquidity_1)
        return CurveSolution(
            sqrt_start_price=initial_sqrt_price,
            curve=(
                CurveSegment(sqrt_price=mid_sqrt_price, liquidity=liquidity_0),
                CurveSegment(sqrt_price=migration_sqrt_price, liquidity=liquidity_1),
            ),
            migration_sqrt_price=migration_sqrt_price,
            migration_quote_threshold=migration_quote_threshold,
        )

    raise CurveConstructionError(
        "cannot build a two segment curve: no split point gives positive liquidity "
        "for both segments (initial market cap too close to or too far from migration)"
    )


def _geometric_price_grid(p_min: int, p_max: int, segment_count: int) -> list[int]:
    """segment_count + 1 boundaries, p_min * q^i with q = (p_max / p_min)^(1/segment_count)."""
    if p_max <= p_min:
        raise ValueError("migration sqrt price must be above the initial sqrt price")

    with decimal_context():
        q = (Decimal(p_max) / Decimal(p_min)) ** (Decimal(1) / segment_count)
        prices = [p_min]
        current = Decimal(p_min)
        for _ in range(segment_count - 1):
            current = Decimal(decimal_to_int(q * current))
            prices.append(int(current))
        prices.append(p_max)

    for lower, upper in zip(prices, prices[1:]):
        if upper <= lower:
            raise CurveConstructionError(
                "price range too narrow to split into strictly increasing segments"
            )
    return prices


def _checked_weights(liquidity_weights: Sequence[Decimal | float | str | int], count: int) -> list[Decimal]:
    if len(liquidity_weights) != count:
        raise ValueError(f"expected {count} liquidity weights, got {len(liquidity_weights)}")
    weights = [to_decimal(weight) for weight in liquidity_weights]
    if any(weight <= 0 for weight in weights):
        raise ValueError("liquidity weights must be > 0")
    return weights


def _solve_weighted_curve(
    sqrt_start_price: int,
    price_grid: list[int],
    weights: list[Decimal],
    total_swap_and_migration_amount: int,
    reserved: tuple[CurveSegment, ...] = (),
) -> CurveSolution:
    """Weighted segments over `price_grid`, then the exact swap / migration split.

    L1 solves  liquidity_amount = L1 * sum(k_i * (w1_i + w2_i))  with
      w1_i = (p_i - p_{i-1}) / (p_i * p_{i-1})   base sold through segment i
      w2_i = (p_i - p_{i-1}) / p_max^2           base kept for migration

    `reserved` segments run from `sqrt_start_price` to price_grid[0]. The base
    they sell and the migration base matching the quote they collect are taken
    out of the budget before solving L1.
    """
    p_max = price_grid[-1]

    liquidity_amount = total_swap_and_migration_amount
    lower_sqrt_price = sqrt_start_price
    for segment in reserved:
        reserved_base = get_delta_amount_base(
            lower_sqrt_price, segment.sqrt_price, segment.liquidity, Rounding.DOWN
        )
        reserved_quote = get_delta_amount_quote(
            lower_sqrt_price, segment.sqrt_price, segment.liquidity, Rounding.DOWN
        )
        liquidity_amount -= reserved_base + (reserved_quote << (RESOLUTION * 2)) // (p_max * p_max)
        lower_sqrt_price = segment.sqrt_price
    if liquidity_amount <= 0:
        raise CurveConstructionError(
            f"reserved segments use the whole supply of {total_swap_and_migration_amount} base"
        )

    with decimal_context():
        pmax_weight = Decimal(p_max)
        sum_factor = Decimal(0)
        for i in range(1, len(price_grid)):
            pi = Decimal(price_grid[i])
            pi_minus = Decimal(price_grid[i - 1])
            w1 = (pi - pi_minus) / (pi * pi_minus)
            w2 = (pi - pi_minus) / (pmax_weight * pmax_weight)
            sum_factor += weights[i - 1] * (w1 + w2)

        l1 = Decimal(liquidity_amount) / sum_factor
        weighted = tuple(
            CurveSegment(sqrt_price=price_grid[i + 1], liquidity=decimal_to_int(l1 * weights[i]))
            for i in range(len(weights))
        )
    log.debug("weighted curve: %d segments, L1=%s", len(weighted), l1)

    curve = reserved + weighted

    # recompute what the emitted segments really sell, the rest migrates
    swap_base_amount = get_base_token_for_swap(sqrt_start_price, p_max, curve)
    swap_base_amount_buffer = get_swap_amount_with_buffer(swap_base_amount, sqrt_start_price, curve)
    migration_amount = total_swap_and_migration_amount - swap_base_amount_buffer
    if migration_amount <= 0:
        raise CurveConstructionError(
            f"curve sells {swap_base_amount_buffer} base, nothing left for migration"
        )

    migration_quote_threshold = (migration_amount * p_max * p_max) >> (RESOLUTION * 2)

    return CurveSolution(
        sqrt_start_price=sqrt_start_price,
        curve=curve,
        migration_sqrt_price=p_max,
        migration_base_amount=migration_amount,
        migration_quote_threshold=migration_quote_threshold,
    )


def build_weighted_segments(
    p_min: int,
    p_max: int,
    liquidity_weights: Sequence[Decimal | float | str | int],
    total_swap_and_migration_amount: int,
) -> CurveSolution:
    weights = _checked_weights(liquidity_weights, WEIGHTED_SEGMENT_COUNT)
    price_grid = _geometric_price_grid(p_min, p_max, WEIGHTED_SEGMENT_COUNT)
    return _solve_weighted_curve(
        p_min,
        price_grid,
        weights,
        total_swap_and_migration_amount,
    )


def get_first_buy_start_price(
    p_min: int,
    first_buy_quote_amount: int,
    first_buy_base_amount: int,
    cliff_fee_numerator: int,
) -> tuple[int, int]:
    """(p0, l0) such that the first buy, after fee, ends exactly at p_min."""
    if first_buy_base_amount <= 0:
        raise ValueError("first buy base amount must be > 0")

    quote_amount_after_fee = (
        first_buy_quote_amount * (FEE_DENOMINATOR - cliff_fee_numerator) // FEE_DENOMINATOR
    )
    if quote_amount_after_fee <= 0:
        raise ValueError("first buy quote amount must be > 0 after fee")

    quote_shifted = quote_amount_after_fee << (RESOLUTION * 2)
    p0 = quote_shifted // first_buy_base_amount // p_min
    if p0 >= p_min:
        raise InconsistentFirstBuy(
            f"first buy starts at sqrt price {p0}, not below the initial market cap "
            f"sqrt price {p_min}; buy less base or pay less quote"
        )
    l0 = quote_shifted // (p_min - p0)
    return p0, l0


def build_weighted_segments_with_first_buy(
    p_min: int,
    p_max: int,
    liquidity_weights: Sequence[Decimal | float | str | int],
    total_swap_and_migration_amount: int,
    first_buy_quote_amount: int,
    first_buy_base_amount: int,
    cliff_fee_numerator: int,
) -> CurveSolution:
    weights = _checked_weights(liquidity_weights, FIRST_BUY_WEIGHTED_SEGMENT_COUNT)
    p0, l0 = get_first_buy_start_price(
        p_min, first_buy_quote_amount, first_buy_base_amount, cliff_fee_numerator
    )
    log.debug("first buy segment: p0=%d l0=%d", p0, l0)

    price_grid = _geometric_price_grid(p_min, p_max, FIRST_BUY_WEIGHTED_SEGMENT_COUNT)
    return _solve_weighted_curve(
        p0,
        price_grid,
        weights,
        total_swap_and_migration_amount,
        reserved=(CurveSegment(sqrt_price=p_min, liquidity=l0),),
    )
