"""
Base fee scheduler: a cliff fee that decays per period, linearly or
exponentially, down to a floor reached at `number_of_period`.
"""

from __future__ import annotations

from decimal import Decimal

from .constants import (
    BASIS_POINT_MAX,
    FEE_DENOMINATOR,
    MAX_FEE_NUMERATOR,
    ONE_Q64,
    RESOLUTION,
    decimal_context,
)
from .fixed_point import decimal_to_int, pow_q64, to_decimal
from .types import BaseFeeSchedule, FeeSchedulerMode


def bps_to_fee_numerator(bps: int) -> int:
    return bps * FEE_DENOMINATOR // BASIS_POINT_MAX


def fee_numerator_to_bps(fee_numerator: int) -> int:
    return fee_numerator * BASIS_POINT_MAX // FEE_DENOMINATOR


def get_fee_in_period(cliff_fee_numerator: int, reduction_factor: int, period: int) -> int:
    """cliff * (1 - reduction_factor / BASIS_POINT_MAX) ^ period in Q64.64."""
    if reduction_factor == 0:
        return cliff_fee_numerator

    bps = (reduction_factor << RESOLUTION) // BASIS_POINT_MAX
    base = ONE_Q64 - bps
    if base <= 0:
        return 0
    result = pow_q64(base, period)
    return (cliff_fee_numerator * result) >> RESOLUTION


def get_fee_at_period(base_fee: BaseFeeSchedule, period: int) -> int:
    if base_fee.fee_scheduler_mode == FeeSchedulerMode.LINEAR:
        fee = base_fee.cliff_fee_numerator - period * base_fee.reduction_factor
        return max(0, fee)
    return get_fee_in_period(base_fee.cliff_fee_numerator, base_fee.reduction_factor, period)


def get_current_base_fee_numerator(
    base_fee: BaseFeeSchedule,
    current_point: int,
    activation_point: int,
) -> int:
    if base_fee.period_frequency == 0:
        return base_fee.cliff_fee_numerator

    if current_point < activation_point:
        # not active yet: charge the floor fee
        period = base_fee.number_of_period
    else:
        period = (current_point - activation_point) // base_fee.period_frequency
        period = min(period, base_fee.number_of_period)

    return get_fee_at_period(base_fee, period)


def get_fee_scheduler_params(
    starting_fee_bps: int,
    ending_fee_bps: int,
    fee_scheduler_mode: FeeSchedulerMode,
    number_of_period: int | Decimal,
    total_duration: int,
) -> BaseFeeSchedule:
    """Solve the reduction factor that takes the starting fee to the ending fee."""
    if starting_fee_bps == ending_fee_bps:
        if number_of_period != 0 or total_duration != 0:
            raise ValueError(
                "number_of_period and total_duration must both be zero for a flat fee"
            )
        return BaseFeeSchedule(
            cliff_fee_numerator=bps_to_fee_numerator(starting_fee_bps),
            number_of_period=0,
            period_frequency=0,
            reduction_factor=0,
            fee_scheduler_mode=FeeSchedulerMode.LINEAR,
        )

    if number_of_period <= 0:
        raise ValueError("number_of_period must be > 0")
    if total_duration <= 0:
        raise ValueError("total_duration must be > 0")
    if starting_fee_bps > fee_numerator_to_bps(MAX_FEE_NUMERATOR):
        raise ValueError(
            f"starting_fee_bps must be <= {fee_numerator_to_bps(MAX_FEE_NUMERATOR)}"
        )
    if ending_fee_bps > starting_fee_bps:
        raise ValueError("ending_fee_bps must be <= starting_fee_bps")

    max_base_fee_numerator = bps_to_fee_numerator(starting_fee_bps)
    min_base_fee_numerator = bps_to_fee_numerator(ending_fee_bps)

    with decimal_context():
        periods = to_decimal(number_of_period)
        if fee_scheduler_mode == FeeSchedulerMode.LINEAR:
            total_reduction = Decimal(max_base_fee_numerator - min_base_fee_numerator)
            reduction_factor = decimal_to_int(total_reduction / periods)
        else:
            ratio = Decimal(min_base_fee_numerator) / Decimal(max_base_fee_numerator)
            decay_base = ratio ** (Decimal(1) / periods)
            reduction_factor = decimal_to_int(BASIS_POINT_MAX * (1 - decay_base))
        period_frequency = decimal_to_int(Decimal(total_duration) / periods)
        whole_periods = decimal_to_int(periods)

    return BaseFeeSchedule(
        cliff_fee_numerator=max_base_fee_numerator,
        number_of_period=whole_periods,
        period_frequency=period_frequency,
        reduction_factor=reduction_factor,
        fee_scheduler_mode=fee_scheduler_mode,
    )


def get_min_base_fee_bps(
    cliff_fee_numerator: int,
    number_of_period: int,
    reduction_factor: int,
    fee_scheduler_mode: FeeSchedulerMode,
) -> Decimal:
    """Fee after the last period, in bps, never below zero."""
    with decimal_context():
        if fee_scheduler_mode == FeeSchedulerMode.LINEAR:
            base_fee_numerator = Decimal(cliff_fee_numerator - number_of_period * reduction_factor)
        elif number_of_period == 0:
            base_fee_numerator = Decimal(cliff_fee_numerator)
        else:
            decay_rate = 1 - Decimal(reduction_factor) / BASIS_POINT_MAX
            base_fee_numerator = Decimal(cliff_fee_numerator) * decay_rate**number_of_period
        min_fee_bps = base_fee_numerator / FEE_DENOMINATOR * BASIS_POINT_MAX
        return max(Decimal(0), min_fee_bps)
