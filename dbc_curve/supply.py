"""
Supply accounting for a built curve.

Recomputes what the curve actually consumes (swap side, migration side,
vesting, leftover), checks it against the declared supply, and appends the
drain segment that takes the curve to MAX_SQRT_PRICE.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from .constants import (
    MAX_SQRT_PRICE,
    MIN_SQRT_PRICE,
    RESOLUTION,
    SWAP_BUFFER_PERCENTAGE,
    U64_MAX,
)
from .curve_math import (
    get_delta_amount_base,
    get_delta_amount_quote,
    get_initial_liquidity_from_delta_base,
    get_initial_liquidity_from_delta_quote,
    get_next_sqrt_price_from_quote_input,
)
from .errors import CurveConstructionError, SupplyOverflow
from .types import CurveSegment, LockedVestingSchedule, MigrationOption, Rounding
from .vesting import get_total_vesting_amount


log = logging.getLogger(__name__)


@dataclass(frozen=True)
class CurveSolution:
    sqrt_start_price: int
    curve: tuple[CurveSegment, ...]
    migration_sqrt_price: int
    migration_base_amount: int | None = None
    migration_quote_threshold: int | None = None


@dataclass(frozen=True)
class ReconciledCurve:
    curve: tuple[CurveSegment, ...]
    migration_quote_threshold: int
    total_dynamic_supply: int
    drained_amount: int


def get_migration_base_token(
    migration_quote_threshold: int,
    sqrt_migration_price: int,
    migration_option: MigrationOption,
) -> int:
    """Base tokens deposited next to the quote threshold at migration."""
    if migration_option == MigrationOption.MET_DAMM:
        price = sqrt_migration_price * sqrt_migration_price
        quote = migration_quote_threshold << (RESOLUTION * 2)
        return -(-quote // price)

    if migration_option == MigrationOption.MET_DAMM_V2:
        liquidity = get_initial_liquidity_from_delta_quote(
            migration_quote_threshold, MIN_SQRT_PRICE, sqrt_migration_price
        )
        return get_delta_amount_base(sqrt_migration_price, MAX_SQRT_PRICE, liquidity, Rounding.UP)

    raise ValueError(f"unsupported migration option: {migration_option!r}")


def get_migration_threshold_price(
    migration_threshold: int,
    sqrt_start_price: int,
    curve: Sequence[CurveSegment],
) -> int:
    """Sqrt price reached once `migration_threshold` quote has been swapped in."""
    if not curve:
        raise CurveConstructionError("curve is empty")

    next_sqrt_price = sqrt_start_price
    amount_left = migration_threshold
    for segment in curve:
        max_amount = get_delta_amount_quote(
            next_sqrt_price, segment.sqrt_price, segment.liquidity, Rounding.UP
        )
        if max_amount > amount_left:
            return get_next_sqrt_price_from_quote_input(next_sqrt_price, segment.liquidity, amount_left)
        amount_left -= max_amount
        next_sqrt_price = segment.sqrt_price

    if amount_left:
        raise CurveConstructionError(
            f"not enough liquidity, migration threshold {migration_threshold}, "
            f"{amount_left} quote left after the last segment"
        )
    return next_sqrt_price


def get_base_token_for_swap(
    sqrt_start_price: int,
    sqrt_migration_price: int,
    curve: Sequence[CurveSegment],
) -> int:
    total_amount = 0
    for i, segment in enumerate(curve):
        lower_sqrt_price = sqrt_start_price if i == 0 else curve[i - 1].sqrt_price
        if segment.sqrt_price > sqrt_migration_price:
            if sqrt_migration_price > lower_sqrt_price:
                total_amount += get_delta_amount_base(
                    lower_sqrt_price, sqrt_migration_price, segment.liquidity, Rounding.UP
                )
            break
        total_amount += get_delta_amount_base(
            lower_sqrt_price, segment.sqrt_price, segment.liquidity, Rounding.UP
        )
    return total_amount


def get_swap_amount_with_buffer(
    swap_base_amount: int,
    sqrt_start_price: int,
    curve: Sequence[CurveSegment],
) -> int:
    swap_amount_buffer = swap_base_amount + swap_base_amount * SWAP_BUFFER_PERCENTAGE // 100
    max_base_amount_on_curve = get_base_token_for_swap(sqrt_start_price, MAX_SQRT_PRICE, curve)
    return min(swap_amount_buffer, max_base_amount_on_curve)


def get_total_token_supply(
    swap_base_amount: int,
    migration_base_threshold: int,
    locked_vesting: LockedVestingSchedule,
) -> int:
    total_amount = (
        swap_base_amount
        + migration_base_threshold
        + get_total_vesting_amount(locked_vesting)
    )
    if total_amount < 0 or total_amount > U64_MAX:
        raise SupplyOverflow(f"total token supply {total_amount} does not fit in u64")
    return total_amount


def get_total_supply_from_curve(
    migration_quote_threshold: int,
    sqrt_start_price: int,
    curve: Sequence[CurveSegment],
    locked_vesting: LockedVestingSchedule,
    migration_option: MigrationOption,
    leftover: int,
) -> int:
    """Tokens the configuration needs: swap (with buffer) + migration + vesting + leftover."""
    sqrt_migration_price = get_migration_threshold_price(
        migration_quote_threshold, sqrt_start_price, curve
    )
    swap_base_amount = get_base_token_for_swap(sqrt_start_price, sqrt_migration_price, curve)
    swap_base_amount_buffer = get_swap_amount_with_buffer(swap_base_amount, sqrt_start_price, curve)
    migration_base_amount = get_migration_base_token(
        migration_quote_threshold, sqrt_migration_price, migration_option
    )
    minimum_base_supply_with_buffer = get_total_token_supply(
        swap_base_amount_buffer, migration_base_amount, locked_vesting
    )
    return minimum_base_supply_with_buffer + leftover


def check_leftover_delta(total_dynamic_supply: int, total_supply: int, leftover: int) -> None:
    """Over-allocation is only tolerated as rounding noise smaller than the leftover."""
    if total_dynamic_supply <= total_supply:
        return
    leftover_delta = total_dynamic_supply - total_supply
    if leftover_delta >= leftover:
        raise SupplyOverflow(
            f"curve needs {total_dynamic_supply} tokens, {leftover_delta} more than the "
            f"total supply {total_supply}; the excess must be less than the leftover {leftover}"
        )


def get_drain_segment(
    curve: Sequence[CurveSegment],
    remaining_amount: int,
) -> CurveSegment:
    """Segment from the last boundary to MAX_SQRT_PRICE holding `remaining_amount` base."""
    lower_sqrt_price = curve[-1].sqrt_price
    liquidity = 0
    if remaining_amount > 0:
        liquidity = get_initial_liquidity_from_delta_base(
            remaining_amount, MAX_SQRT_PRICE, lower_sqrt_price
        )
    return CurveSegment(sqrt_price=MAX_SQRT_PRICE, liquidity=liquidity)


def reconcile_supply(
    solution: CurveSolution,
    migration_quote_threshold: int,
    locked_vesting: LockedVestingSchedule,
    migration_option: MigrationOption,
    leftover: int,
    total_supply: int,
) -> ReconciledCurve:
    """Recompute what the curve needs and drain the rest of the supply past migration."""
    total_dynamic_supply = get_total_supply_from_curve(
        migration_quote_threshold,
        solution.sqrt_start_price,
        solution.curve,
        locked_vesting,
        migration_option,
        leftover,
    )
    check_leftover_delta(total_dynamic_supply, total_supply, leftover)

    remaining_amount = max(0, total_supply - total_dynamic_supply)
    log.debug(
        "total dynamic supply %d of %d, draining %d past migration",
        total_dynamic_supply,
        total_supply,
        remaining_amount,
    )

    curve = solution.curve
    if curve[-1].sqrt_price < MAX_SQRT_PRICE:
        curve = curve + (get_drain_segment(curve, remaining_amount),)

    return ReconciledCurve(
        curve=curve,
        migration_quote_threshold=migration_quote_threshold,
        total_dynamic_supply=total_dynamic_supply,
        drained_amount=remaining_amount,
    )
