"""
Volatility-driven variable fee.

    f_v = A * (v_a * s)^2            variable fee
    v_a = v_r + |i_r - (i + k)|      volatility accumulator
    v_r = v_r | R * v_a | 0          reference, by time elapsed vs filter/decay

A is `variable_fee_control`, s the bin step, R the reduction factor.
"""

from __future__ import annotations

from dataclasses import replace
from decimal import Decimal

from .constants import (
    BASIS_POINT_MAX,
    BIN_STEP_BPS_DEFAULT,
    BIN_STEP_BPS_U128_DEFAULT,
    DYNAMIC_FEE_DECAY_PERIOD_DEFAULT,
    DYNAMIC_FEE_FILTER_PERIOD_DEFAULT,
    DYNAMIC_FEE_REDUCTION_FACTOR_DEFAULT,
    DYNAMIC_FEE_ROUNDING_OFFSET,
    DYNAMIC_FEE_SCALING_FACTOR,
    MAX_FEE_NUMERATOR,
    MAX_VOLATILITY_ACCUMULATOR_DEFAULT,
    ONE_Q64,
    RESOLUTION,
    decimal_context,
)
from .fee_scheduler import bps_to_fee_numerator
from .fixed_point import decimal_to_int, to_decimal
from .types import DynamicFeeParams, VolatilityState


def get_variable_fee(dynamic_fee: DynamicFeeParams | None, volatility_state: VolatilityState) -> int:
    """Variable fee numerator; zero when the dynamic fee is not initialised."""
    if dynamic_fee is None:
        return 0
    if volatility_state.volatility_accumulator == 0:
        return 0

    volatility_times_bin_step = volatility_state.volatility_accumulator * dynamic_fee.bin_step
    v_fee = volatility_times_bin_step * volatility_times_bin_step * dynamic_fee.variable_fee_control
    return (v_fee + DYNAMIC_FEE_ROUNDING_OFFSET) // DYNAMIC_FEE_SCALING_FACTOR


def get_total_fee_numerator(base_fee_numerator: int, variable_fee_numerator: int) -> int:
    return min(base_fee_numerator + variable_fee_numerator, MAX_FEE_NUMERATOR)


def calculate_volatility_reference(
    time_elapsed: int,
    filter_period: int,
    decay_period: int,
    reduction_factor: int,
    previous_volatility_accumulator: int,
) -> int:
    if time_elapsed < filter_period:
        return previous_volatility_accumulator
    if time_elapsed >= decay_period:
        return 0
    return previous_volatility_accumulator * reduction_factor // BASIS_POINT_MAX


def calculate_index_reference(
    time_elapsed: int,
    filter_period: int,
    active_id: int,
    previous_index_reference: int,
) -> int:
    return previous_index_reference if time_elapsed < filter_period else active_id


def calculate_volatility_accumulator(
    volatility_reference: int,
    index_reference: int,
    active_id: int,
    bin_offset: int,
    max_volatility_accumulator: int,
) -> int:
    accumulator = volatility_reference + abs(index_reference - (active_id + bin_offset))
    return min(accumulator, max_volatility_accumulator)


def get_dynamic_fee_params(
    base_fee_bps: Decimal | int,
    target_ratio: Decimal | float | str = Decimal("0.2"),
) -> DynamicFeeParams:
    """Size the variable fee control so that f_v = target_ratio * f_b at v_a = s = 1."""
    with decimal_context():
        base_fee = to_decimal(base_fee_bps) * bps_to_fee_numerator(1)
        variable_fee_control = decimal_to_int(base_fee * to_decimal(target_ratio))

    return DynamicFeeParams(
        bin_step=BIN_STEP_BPS_DEFAULT,
        bin_step_u128=BIN_STEP_BPS_U128_DEFAULT,
        filter_period=DYNAMIC_FEE_FILTER_PERIOD_DEFAULT,
        decay_period=DYNAMIC_FEE_DECAY_PERIOD_DEFAULT,
        reduction_factor=DYNAMIC_FEE_REDUCTION_FACTOR_DEFAULT,
        variable_fee_control=variable_fee_control,
        max_volatility_accumulator=MAX_VOLATILITY_ACCUMULATOR_DEFAULT,
    )


# ---------------------------------------------------------------------------
# sqrt-price driven state updates, as the pool applies them per swap
# ---------------------------------------------------------------------------

def get_delta_bin_id(bin_step_u128: int, sqrt_price_a: int, sqrt_price_b: int) -> int:
    upper, lower = (sqrt_price_a, sqrt_price_b) if sqrt_price_a > sqrt_price_b else (sqrt_price_b, sqrt_price_a)
    if lower == 0:
        raise ValueError("sqrt price must be > 0")
    price_ratio = (upper << RESOLUTION) // lower
    delta_bin_id = (price_ratio - ONE_Q64) // bin_step_u128
    return delta_bin_id * 2


def update_references(
    dynamic_fee: DynamicFeeParams,
    volatility_state: VolatilityState,
    sqrt_price_current: int,
    current_timestamp: int,
) -> VolatilityState:
    # last_update_timestamp is owned by the caller, it moves once per swap
    elapsed = current_timestamp - volatility_state.last_update_timestamp
    if elapsed < dynamic_fee.filter_period:
        return volatility_state

    return replace(
        volatility_state,
        sqrt_price_reference=sqrt_price_current,
        volatility_reference=calculate_volatility_reference(
            elapsed,
            dynamic_fee.filter_period,
            dynamic_fee.decay_period,
            dynamic_fee.reduction_factor,
            volatility_state.volatility_accumulator,
        ),
    )


def update_volatility_accumulator(
    dynamic_fee: DynamicFeeParams,
    volatility_state: VolatilityState,
    sqrt_price: int,
) -> VolatilityState:
    delta_price = get_delta_bin_id(
        dynamic_fee.bin_step_u128, sqrt_price, volatility_state.sqrt_price_reference
    )
    accumulator = volatility_state.volatility_reference + delta_price * BASIS_POINT_MAX
    return replace(
        volatility_state,
        volatility_accumulator=min(accumulator, dynamic_fee.max_volatility_accumulator),
    )
