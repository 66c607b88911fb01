from __future__ import annotations

from .constants import (
    BASIS_POINT_MAX,
    MAX_CURVE_POINT,
    MAX_FEE_NUMERATOR,
    MAX_SQRT_PRICE,
    MIN_FEE_NUMERATOR,
    MIN_SQRT_PRICE,
    U128_MAX,
    U64_MAX,
)
from .errors import InvalidConfigParameters
from .fee_scheduler import get_fee_at_period
from .types import (
    BaseFeeSchedule,
    CollectFeeMode,
    ConfigParameters,
    CurveSegment,
    DynamicFeeParams,
    LockedVestingSchedule,
    TokenDecimal,
)
from .vesting import get_total_vesting_amount, is_default_locked_vesting


def validate_base_fee(base_fee: BaseFeeSchedule) -> None:
    if not MIN_FEE_NUMERATOR <= base_fee.cliff_fee_numerator <= MAX_FEE_NUMERATOR:
        raise InvalidConfigParameters(
            f"cliff fee numerator {base_fee.cliff_fee_numerator} outside "
            f"[{MIN_FEE_NUMERATOR}, {MAX_FEE_NUMERATOR}]"
        )
    if base_fee.period_frequency == 0:
        return
    min_fee_numerator = get_fee_at_period(base_fee, base_fee.number_of_period)
    if min_fee_numerator < MIN_FEE_NUMERATOR:
        raise InvalidConfigParameters(
            f"fee decays to {min_fee_numerator}, below the minimum {MIN_FEE_NUMERATOR}"
        )


def validate_dynamic_fee(dynamic_fee: DynamicFeeParams | None) -> None:
    if dynamic_fee is None:
        return
    if dynamic_fee.bin_step <= 0 or dynamic_fee.bin_step_u128 <= 0:
        raise InvalidConfigParameters("dynamic fee bin step must be > 0")
    if dynamic_fee.filter_period >= dynamic_fee.decay_period:
        raise InvalidConfigParameters("dynamic fee filter period must be below the decay period")
    if dynamic_fee.reduction_factor > BASIS_POINT_MAX:
        raise InvalidConfigParameters(f"dynamic fee reduction factor must be <= {BASIS_POINT_MAX}")
    if dynamic_fee.variable_fee_control > U64_MAX or dynamic_fee.max_volatility_accumulator > U64_MAX:
        raise InvalidConfigParameters("dynamic fee parameters must fit in u64")


def validate_curve(sqrt_start_price: int, curve: tuple[CurveSegment, ...]) -> None:
    if not curve:
        raise InvalidConfigParameters("curve is empty")
    if len(curve) > MAX_CURVE_POINT:
        raise InvalidConfigParameters(f"curve has {len(curve)} segments, max is {MAX_CURVE_POINT}")
    if sqrt_start_price < MIN_SQRT_PRICE:
        raise InvalidConfigParameters(
            f"start sqrt price {sqrt_start_price} is below the minimum {MIN_SQRT_PRICE}"
        )

    previous = sqrt_start_price
    for i, segment in enumerate(curve):
        if segment.sqrt_price <= previous:
            raise InvalidConfigParameters(
                f"segment {i} upper sqrt price {segment.sqrt_price} is not above {previous}"
            )
        if segment.liquidity > U128_MAX:
            raise InvalidConfigParameters(f"segment {i} liquidity does not fit in u128")
        # the drain segment may be empty, every other one must trade
        if segment.liquidity <= 0 and i != len(curve) - 1:
            raise InvalidConfigParameters(f"segment {i} has no liquidity")
        previous = segment.sqrt_price

    if curve[-1].sqrt_price != MAX_SQRT_PRICE:
        raise InvalidConfigParameters("last segment must end at MAX_SQRT_PRICE")


def validate_locked_vesting(locked_vesting: LockedVestingSchedule) -> None:
    if is_default_locked_vesting(locked_vesting):
        return
    if locked_vesting.frequency <= 0:
        raise InvalidConfigParameters("locked vesting frequency must be > 0")
    if get_total_vesting_amount(locked_vesting) <= 0:
        raise InvalidConfigParameters("locked vesting schedule unlocks nothing")


def validate_creator_first_buy(collect_fee_mode: CollectFeeMode) -> None:
    if collect_fee_mode != CollectFeeMode.ONLY_QUOTE:
        raise InvalidConfigParameters("creator first buy requires collect fee mode ONLY_QUOTE")


def validate_config_parameters(config: ConfigParameters) -> None:
    lp_total = (
        config.partner_lp_percentage
        + config.creator_lp_percentage
        + config.partner_locked_lp_percentage
        + config.creator_locked_lp_percentage
    )
    if lp_total != 100:
        raise InvalidConfigParameters(f"LP percentages must sum to 100, got {lp_total}")
    if not 0 <= config.creator_trading_fee_percentage <= 100:
        raise InvalidConfigParameters("creator trading fee percentage must be within [0, 100]")
    if config.token_decimal not in set(TokenDecimal):
        raise InvalidConfigParameters(f"token decimal {config.token_decimal} not in 6..9")
    if config.migration_quote_threshold <= 0:
        raise InvalidConfigParameters("migration quote threshold must be > 0")
    if config.token_supply is not None:
        supply = config.token_supply
        if supply.post_migration_token_supply > supply.pre_migration_token_supply:
            raise InvalidConfigParameters("post migration supply exceeds pre migration supply")
        if supply.pre_migration_token_supply > U64_MAX:
            raise InvalidConfigParameters("token supply does not fit in u64")

    validate_locked_vesting(config.locked_vesting)
    validate_base_fee(config.pool_fees.base_fee)
    validate_dynamic_fee(config.pool_fees.dynamic_fee)
    validate_curve(config.sqrt_start_price, config.curve)
