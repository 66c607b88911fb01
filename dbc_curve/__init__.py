"""
Bonding curve configuration builder.

Turns business inputs (supply, market caps, fee schedule, vesting) into a
segmented constant-product curve on Q64.64 sqrt prices, with the fee and
supply parameters a launch pool is initialised with.

Usage:
    from dbc_curve import build_curve_with_liquidity_weights, geometric_liquidity_weights

    config = build_curve_with_liquidity_weights(param)
    config.curve[-1].sqrt_price == MAX_SQRT_PRICE
"""

from .constants import MAX_SQRT_PRICE, MIN_SQRT_PRICE, FEE_DENOMINATOR, BASIS_POINT_MAX
from .errors import (
    CurveConfigError,
    CurveConstructionError,
    InconsistentFirstBuy,
    InvalidConfigParameters,
    InvalidParameterCombination,
    SupplyOverflow,
)
from .types import (
    ActivationType,
    BaseFeeSchedule,
    BuildCurveBaseParam,
    BuildCurveParam,
    BuildCurveWithCreatorFirstBuyParam,
    BuildCurveWithLiquidityWeightsParam,
    BuildCurveWithTwoSegmentsParam,
    CollectFeeMode,
    ConfigParameters,
    CreatorFirstBuyOption,
    CurveSegment,
    DynamicFeeParams,
    FeeSchedulerMode,
    FeeSchedulerParam,
    LockedVestingSchedule,
    MigrationFeeOption,
    MigrationOption,
    PoolFees,
    TokenDecimal,
    TokenSupply,
    TokenType,
    VolatilityState,
)
from .fixed_point import (
    get_market_cap_from_sqrt_price,
    get_price_from_sqrt_price,
    get_sqrt_price_from_market_cap,
    get_sqrt_price_from_price,
)
from .vesting import get_locked_vesting, get_locked_vesting_params, get_total_vesting_amount
from .fee_scheduler import (
    get_current_base_fee_numerator,
    get_fee_in_period,
    get_fee_scheduler_params,
    get_min_base_fee_bps,
)
from .dynamic_fee import get_dynamic_fee_params, get_variable_fee
from .segments import geometric_liquidity_weights
from .build import (
    build_curve,
    build_curve_with_creator_first_buy,
    build_curve_with_liquidity_weights,
    build_curve_with_market_cap,
    build_curve_with_two_segments,
    calculate_migration_quote_threshold,
    calculate_percentage_supply_on_migration,
)

__version__ = "0.1.0"
__all__ = [
    # Constants
    "MAX_SQRT_PRICE", "MIN_SQRT_PRICE", "FEE_DENOMINATOR", "BASIS_POINT_MAX",
    # Errors
    "CurveConfigError", "CurveConstructionError", "InconsistentFirstBuy",
    "InvalidConfigParameters", "InvalidParameterCombination", "SupplyOverflow",
    # Types
    "ActivationType", "BaseFeeSchedule", "BuildCurveBaseParam", "BuildCurveParam",
    "BuildCurveWithCreatorFirstBuyParam", "BuildCurveWithLiquidityWeightsParam",
    "BuildCurveWithTwoSegmentsParam", "CollectFeeMode", "ConfigParameters",
    "CreatorFirstBuyOption", "CurveSegment", "DynamicFeeParams", "FeeSchedulerMode",
    "FeeSchedulerParam", "LockedVestingSchedule", "MigrationFeeOption", "MigrationOption",
    "PoolFees", "TokenDecimal", "TokenSupply", "TokenType", "VolatilityState",
    # Prices
    "get_market_cap_from_sqrt_price", "get_price_from_sqrt_price",
    "get_sqrt_price_from_market_cap", "get_sqrt_price_from_price",
    # Vesting and fees
    "get_locked_vesting", "get_locked_vesting_params", "get_total_vesting_amount",
    "get_current_base_fee_numerator", "get_fee_in_period", "get_fee_scheduler_params",
    "get_min_base_fee_bps", "get_dynamic_fee_params", "get_variable_fee",
    # Builders
    "build_curve", "build_curve_with_creator_first_buy", "build_curve_with_liquidity_weights",
    "build_curve_with_market_cap", "build_curve_with_two_segments",
    "calculate_migration_quote_threshold", "calculate_percentage_supply_on_migration",
    "geometric_liquidity_weights",
]
