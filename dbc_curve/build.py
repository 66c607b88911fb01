"""
Top-level builders: business inputs in, a validated ConfigParameters out.

Each builder follows the same pipeline:

    fee schedule -> boundary sqrt prices -> segment solver
                 -> supply reconciliation (drain segment) -> sanity checks
"""

from __future__ import annotations

import logging
from dataclasses import replace
from decimal import Decimal

from .errors import InvalidParameterCombination, SupplyOverflow
from .fee_scheduler import (
    bps_to_fee_numerator,
    get_fee_scheduler_params,
    get_min_base_fee_bps,
)
from .dynamic_fee import get_dynamic_fee_params
from .fixed_point import (
    decimal_to_int,
    get_sqrt_price_from_market_cap,
    get_sqrt_price_from_price,
    to_decimal,
)
from .constants import decimal_context
from .segments import (
    build_single_segment,
    build_two_segment,
    build_weighted_segments,
    build_weighted_segments_with_first_buy,
)
from .supply import CurveSolution, get_migration_base_token, reconcile_supply
from .types import (
    BaseFeeSchedule,
    BuildCurveBaseParam,
    BuildCurveParam,
    BuildCurveWithCreatorFirstBuyParam,
    BuildCurveWithLiquidityWeightsParam,
    BuildCurveWithTwoSegmentsParam,
    ConfigParameters,
    FeeSchedulerMode,
    LockedVestingSchedule,
    PoolFees,
    TokenSupply,
)
from .validation import validate_config_parameters, validate_creator_first_buy
from .vesting import get_total_vesting_amount


log = logging.getLogger(__name__)


def _scale(amount: Decimal | int | float | str, decimals: int) -> int:
    with decimal_context():
        return decimal_to_int(to_decimal(amount).scaleb(decimals))


def calculate_percentage_supply_on_migration(
    initial_market_cap: Decimal | int | float | str,
    migration_market_cap: Decimal | int | float | str,
    locked_vesting: LockedVestingSchedule,
    total_leftover: int,
    total_token_supply: int,
) -> Decimal:
    """Share of supply (in %) deposited at migration for a single-segment curve.

    With r = sqrt(initial / migration) the start-to-migration sqrt price ratio,
    migration / swap = r, and swap + migration is what vesting and leftover
    leave of the supply:

        x = r * (100 - vesting% - leftover%) / (1 + r)

    `locked_vesting`, `total_leftover` and `total_token_supply` are raw units.
    """
    with decimal_context():
        sqrt_ratio = (to_decimal(initial_market_cap) / to_decimal(migration_market_cap)).sqrt()
        supply = Decimal(total_token_supply)
        vesting_percentage = Decimal(get_total_vesting_amount(locked_vesting)) * 100 / supply
        leftover_percentage = Decimal(total_leftover) * 100 / supply
        return sqrt_ratio * (100 - vesting_percentage - leftover_percentage) / (1 + sqrt_ratio)


def calculate_migration_quote_threshold(
    migration_market_cap: Decimal | int | float | str,
    percentage_supply_on_migration: Decimal | int | float | str,
) -> Decimal:
    with decimal_context():
        return to_decimal(migration_market_cap) * to_decimal(percentage_supply_on_migration) / 100


def _build_pool_fees(param: BuildCurveBaseParam) -> PoolFees:
    scheduler = param.fee_scheduler_param
    base_fee = get_fee_scheduler_params(
        scheduler.starting_fee_bps,
        scheduler.ending_fee_bps,
        scheduler.fee_scheduler_mode,
        scheduler.number_of_period,
        scheduler.total_duration,
    )

    # the dynamic fee is sized against the floor of the schedule
    min_base_fee_bps: Decimal | int = scheduler.starting_fee_bps
    if base_fee.period_frequency > 0:
        min_base_fee_bps = get_min_base_fee_bps(
            base_fee.cliff_fee_numerator,
            base_fee.number_of_period,
            base_fee.reduction_factor,
            base_fee.fee_scheduler_mode,
        )

    dynamic_fee = get_dynamic_fee_params(min_base_fee_bps) if param.dynamic_fee_enabled else None
    return PoolFees(base_fee=base_fee, dynamic_fee=dynamic_fee)


def _finish(
    param: BuildCurveBaseParam,
    solution: CurveSolution,
    migration_quote_threshold: int,
    pool_fees: PoolFees,
) -> ConfigParameters:
    total_supply = param.total_token_supply * 10**param.token_base_decimal
    total_leftover = param.leftover * 10**param.token_base_decimal

    reconciled = reconcile_supply(
        solution,
        migration_quote_threshold,
        param.locked_vesting,
        param.migration_option,
        total_leftover,
        total_supply,
    )

    config = ConfigParameters(
        pool_fees=pool_fees,
        activation_type=param.activation_type,
        collect_fee_mode=param.collect_fee_mode,
        migration_option=param.migration_option,
        token_type=param.token_type,
        token_decimal=param.token_base_decimal,
        migration_quote_threshold=reconciled.migration_quote_threshold,
        partner_lp_percentage=param.partner_lp_percentage,
        creator_lp_percentage=param.creator_lp_percentage,
        partner_locked_lp_percentage=param.partner_locked_lp_percentage,
        creator_locked_lp_percentage=param.creator_locked_lp_percentage,
        sqrt_start_price=solution.sqrt_start_price,
        locked_vesting=param.locked_vesting,
        migration_fee_option=param.migration_fee_option,
        token_supply=TokenSupply(
            pre_migration_token_supply=total_supply,
            post_migration_token_supply=total_supply,
        ),
        creator_trading_fee_percentage=param.creator_trading_fee_percentage,
        curve=reconciled.curve,
    )
    validate_config_parameters(config)
    return config


def _check_migration_inputs(param: BuildCurveParam) -> bool:
    """True for the market cap pair, False for percentage + threshold."""
    percentage_pair = (param.percentage_supply_on_migration, param.migration_quote_threshold)
    market_cap_pair = (param.initial_market_cap, param.migration_market_cap)
    has_percentage_and_threshold = all(value is not None for value in percentage_pair)
    has_market_caps = all(value is not None for value in market_cap_pair)

    if has_percentage_and_threshold and has_market_caps:
        raise InvalidParameterCombination(
            "Cannot specify both (migration_quote_threshold && percentage_supply_on_migration) "
            "and (initial_market_cap && migration_market_cap)"
        )
    if not has_percentage_and_threshold and not has_market_caps:
        raise InvalidParameterCombination(
            "Must specify either (migration_quote_threshold && percentage_supply_on_migration) "
            "or (initial_market_cap && migration_market_cap)"
        )
    stray = market_cap_pair if has_percentage_and_threshold else percentage_pair
    if any(value is not None for value in stray):
        raise InvalidParameterCombination(
            "Cannot mix (migration_quote_threshold, percentage_supply_on_migration) "
            "with (initial_market_cap, migration_market_cap)"
        )
    return has_market_caps


def _migration_point(
    param: BuildCurveBaseParam,
    percentage_supply_on_migration: Decimal | int | float | str,
    migration_quote_threshold: Decimal | int | float | str,
) -> tuple[int, int, int, int]:
    """(migration sqrt price, raw quote threshold, migration base amount, swap amount)."""
    with decimal_context():
        migration_base_supply = (
            Decimal(param.total_token_supply) * to_decimal(percentage_supply_on_migration) / 100
        )
        if migration_base_supply <= 0:
            raise ValueError("percentage_supply_on_migration must be > 0")
        migration_price = to_decimal(migration_quote_threshold) / migration_base_supply

    migration_quote_threshold_raw = _scale(migration_quote_threshold, param.token_quote_decimal)
    migrate_sqrt_price = get_sqrt_price_from_price(
        migration_price, param.token_base_decimal, param.token_quote_decimal
    )
    migration_base_amount = get_migration_base_token(
        migration_quote_threshold_raw, migrate_sqrt_price, param.migration_option
    )

    total_supply = param.total_token_supply * 10**param.token_base_decimal
    total_leftover = param.leftover * 10**param.token_base_decimal
    swap_amount = (
        total_supply
        - migration_base_amount
        - get_total_vesting_amount(param.locked_vesting)
        - total_leftover
    )
    if swap_amount <= 0:
        raise SupplyOverflow(
            f"migration ({migration_base_amount}), vesting and leftover use the whole "
            f"supply {total_supply}, nothing left to sell on the curve"
        )
    log.debug(
        "migration sqrt price %d, migration base %d, swap amount %d",
        migrate_sqrt_price,
        migration_base_amount,
        swap_amount,
    )
    return migrate_sqrt_price, migration_quote_threshold_raw, migration_base_amount, swap_amount


def build_curve(param: BuildCurveParam) -> ConfigParameters:
    """Single constant-product segment plus the drain segment."""
    use_market_caps = _check_migration_inputs(param)

    if use_market_caps:
        total_supply = param.total_token_supply * 10**param.token_base_decimal
        total_leftover = param.leftover * 10**param.token_base_decimal
        percentage_supply_on_migration = calculate_percentage_supply_on_migration(
            param.initial_market_cap,
            param.migration_market_cap,
            param.locked_vesting,
            total_leftover,
            total_supply,
        )
        migration_quote_threshold = calculate_migration_quote_threshold(
            param.migration_market_cap, percentage_supply_on_migration
        )
    else:
        percentage_supply_on_migration = param.percentage_supply_on_migration
        migration_quote_threshold = param.migration_quote_threshold

    migrate_sqrt_price, threshold_raw, migration_base_amount, swap_amount = _migration_point(
        param, percentage_supply_on_migration, migration_quote_threshold
    )
    solution = build_single_segment(
        migrate_sqrt_price, migration_base_amount, swap_amount, threshold_raw
    )
    return _finish(param, solution, threshold_raw, _build_pool_fees(param))


def build_curve_with_market_cap(param: BuildCurveParam) -> ConfigParameters:
    """Single segment curve sized from initial and migration market caps only."""
    if param.initial_market_cap is None or param.migration_market_cap is None:
        raise InvalidParameterCombination(
            "initial_market_cap and migration_market_cap are both required"
        )
    return build_curve(
        replace(param, percentage_supply_on_migration=None, migration_quote_threshold=None)
    )


def build_curve_with_two_segments(param: BuildCurveWithTwoSegmentsParam) -> ConfigParameters:
    migration_quote_threshold = calculate_migration_quote_threshold(
        param.migration_market_cap, param.percentage_supply_on_migration
    )
    migrate_sqrt_price, threshold_raw, _, swap_amount = _migration_point(
        param, param.percentage_supply_on_migration, migration_quote_threshold
    )
    initial_sqrt_price = get_sqrt_price_from_market_cap(
        param.initial_market_cap,
        param.total_token_supply,
        param.token_base_decimal,
        param.token_quote_decimal,
    )
    solution = build_two_segment(migrate_sqrt_price, initial_sqrt_price, swap_amount, threshold_raw)
    return _finish(param, solution, threshold_raw, _build_pool_fees(param))


def _market_cap_bounds(
    param: BuildCurveWithLiquidityWeightsParam | BuildCurveWithCreatorFirstBuyParam,
) -> tuple[int, int, int]:
    """(p_min, p_max, total swap + migration amount)."""
    p_min = get_sqrt_price_from_market_cap(
        param.initial_market_cap,
        param.total_token_supply,
        param.token_base_decimal,
        param.token_quote_decimal,
    )
    p_max = get_sqrt_price_from_market_cap(
        param.migration_market_cap,
        param.total_token_supply,
        param.token_base_decimal,
        param.token_quote_decimal,
    )
    total_supply = param.total_token_supply * 10**param.token_base_decimal
    total_leftover = param.leftover * 10**param.token_base_decimal
    total_swap_and_migration_amount = (
        total_supply - get_total_vesting_amount(param.locked_vesting) - total_leftover
    )
    if total_swap_and_migration_amount <= 0:
        raise SupplyOverflow("vesting and leftover use the whole supply")
    return p_min, p_max, total_swap_and_migration_amount


def build_curve_with_liquidity_weights(param: BuildCurveWithLiquidityWeightsParam) -> ConfigParameters:
    """16 weighted segments between the initial and migration market caps."""
    p_min, p_max, total_swap_and_migration_amount = _market_cap_bounds(param)
    solution = build_weighted_segments(
        p_min, p_max, param.liquidity_weights, total_swap_and_migration_amount
    )
    return _finish(param, solution, solution.migration_quote_threshold, _build_pool_fees(param))


def build_curve_with_creator_first_buy(param: BuildCurveWithCreatorFirstBuyParam) -> ConfigParameters:
    """Weighted curve whose first segment is taken exactly by the creator's first buy.

    The first buy is priced with the flat starting fee, so the base fee carries
    no decay schedule.
    """
    validate_creator_first_buy(param.collect_fee_mode)
    p_min, p_max, total_swap_and_migration_amount = _market_cap_bounds(param)

    starting_fee_bps = param.fee_scheduler_param.starting_fee_bps
    cliff_fee_numerator = bps_to_fee_numerator(starting_fee_bps)
    first_buy = param.creator_first_buy_option

    solution = build_weighted_segments_with_first_buy(
        p_min,
        p_max,
        param.liquidity_weights,
        total_swap_and_migration_amount,
        _scale(first_buy.quote_amount, param.token_quote_decimal),
        _scale(first_buy.base_amount, param.token_base_decimal),
        cliff_fee_numerator,
    )

    pool_fees = PoolFees(
        base_fee=BaseFeeSchedule(
            cliff_fee_numerator=cliff_fee_numerator,
            number_of_period=0,
            period_frequency=0,
            reduction_factor=0,
            fee_scheduler_mode=FeeSchedulerMode.LINEAR,
        ),
        dynamic_fee=get_dynamic_fee_params(starting_fee_bps) if param.dynamic_fee_enabled else None,
    )
    return _finish(param, solution, solution.migration_quote_threshold, pool_fees)
