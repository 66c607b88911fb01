"""
Data model for curve configurations.

Raw token amounts, sqrt prices and liquidities are plain ints; human-unit
business inputs (market caps, thresholds, fee bps) are Decimals.
"""

from __future__ import annotations

from dataclasses import dataclass, fields, is_dataclass
from decimal import Decimal
from enum import Enum, IntEnum
from typing import Any, Sequence


class ActivationType(IntEnum):
    SLOT = 0
    TIMESTAMP = 1


class CollectFeeMode(IntEnum):
    """Which side of the pool the trading fee is collected in"""
    ONLY_QUOTE = 0
    BOTH = 1


class MigrationOption(IntEnum):
    MET_DAMM = 0
    MET_DAMM_V2 = 1


class MigrationFeeOption(IntEnum):
    FIXED_BPS_25 = 0
    FIXED_BPS_30 = 1
    FIXED_BPS_100 = 2
    FIXED_BPS_200 = 3
    FIXED_BPS_400 = 4
    FIXED_BPS_600 = 5


class TokenType(IntEnum):
    SPL = 0
    TOKEN_2022 = 1


class TokenDecimal(IntEnum):
    SIX = 6
    SEVEN = 7
    EIGHT = 8
    NINE = 9


class FeeSchedulerMode(IntEnum):
    LINEAR = 0
    EXPONENTIAL = 1


class Rounding(Enum):
    UP = "up"
    DOWN = "down"


@dataclass(frozen=True)
class CurveSegment:
    """Constant liquidity from the previous boundary up to `sqrt_price`."""
    sqrt_price: int
    liquidity: int


@dataclass(frozen=True)
class BaseFeeSchedule:
    cliff_fee_numerator: int
    number_of_period: int
    period_frequency: int
    reduction_factor: int
    fee_scheduler_mode: FeeSchedulerMode


@dataclass(frozen=True)
class DynamicFeeParams:
    bin_step: int
    bin_step_u128: int
    filter_period: int
    decay_period: int
    reduction_factor: int
    variable_fee_control: int
    max_volatility_accumulator: int


@dataclass(frozen=True)
class VolatilityState:
    last_update_timestamp: int = 0
    sqrt_price_reference: int = 0
    volatility_accumulator: int = 0
    volatility_reference: int = 0


@dataclass(frozen=True)
class LockedVestingSchedule:
    amount_per_period: int = 0
    cliff_duration_from_migration_time: int = 0
    frequency: int = 0
    number_of_period: int = 0
    cliff_unlock_amount: int = 0


@dataclass(frozen=True)
class PoolFees:
    base_fee: BaseFeeSchedule
    dynamic_fee: DynamicFeeParams | None


@dataclass(frozen=True)
class TokenSupply:
    pre_migration_token_supply: int
    post_migration_token_supply: int


@dataclass(frozen=True)
class ConfigParameters:
    pool_fees: PoolFees
    activation_type: ActivationType
    collect_fee_mode: CollectFeeMode
    migration_option: MigrationOption
    token_type: TokenType
    token_decimal: int
    migration_quote_threshold: int
    partner_lp_percentage: int
    creator_lp_percentage: int
    partner_locked_lp_percentage: int
    creator_locked_lp_percentage: int
    sqrt_start_price: int
    locked_vesting: LockedVestingSchedule
    migration_fee_option: MigrationFeeOption
    token_supply: TokenSupply | None
    creator_trading_fee_percentage: int
    curve: tuple[CurveSegment, ...]

    def to_dict(self) -> dict[str, Any]:
        """Plain dict with ints as decimal strings, ready for any serialiser."""
        return _plain(self)


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, Decimal)):
        return str(value)
    if is_dataclass(value):
        return {f.name: _plain(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# builder inputs
# ---------------------------------------------------------------------------

@dataclass(frozen=True, kw_only=True)
class FeeSchedulerParam:
    starting_fee_bps: int
    ending_fee_bps: int
    number_of_period: int | Decimal = 0
    total_duration: int = 0
    fee_scheduler_mode: FeeSchedulerMode = FeeSchedulerMode.LINEAR


@dataclass(frozen=True, kw_only=True)
class CreatorFirstBuyOption:
    quote_amount: Decimal
    base_amount: Decimal


@dataclass(frozen=True, kw_only=True)
class BuildCurveBaseParam:
    total_token_supply: int
    migration_option: MigrationOption
    token_base_decimal: int
    token_quote_decimal: int
    locked_vesting: LockedVestingSchedule
    fee_scheduler_param: FeeSchedulerParam
    dynamic_fee_enabled: bool
    activation_type: ActivationType
    collect_fee_mode: CollectFeeMode
    migration_fee_option: MigrationFeeOption
    token_type: TokenType
    partner_lp_percentage: int
    creator_lp_percentage: int
    partner_locked_lp_percentage: int
    creator_locked_lp_percentage: int
    creator_trading_fee_percentage: int = 0
    leftover: int = 0


@dataclass(frozen=True, kw_only=True)
class BuildCurveParam(BuildCurveBaseParam):
    percentage_supply_on_migration: Decimal | None = None
    migration_quote_threshold: Decimal | None = None
    initial_market_cap: Decimal | None = None
    migration_market_cap: Decimal | None = None


@dataclass(frozen=True, kw_only=True)
class BuildCurveWithTwoSegmentsParam(BuildCurveBaseParam):
    initial_market_cap: Decimal
    migration_market_cap: Decimal
    percentage_supply_on_migration: Decimal


@dataclass(frozen=True, kw_only=True)
class BuildCurveWithLiquidityWeightsParam(BuildCurveBaseParam):
    initial_market_cap: Decimal
    migration_market_cap: Decimal
    liquidity_weights: Sequence[Decimal]


@dataclass(frozen=True, kw_only=True)
class BuildCurveWithCreatorFirstBuyParam(BuildCurveBaseParam):
    initial_market_cap: Decimal
    migration_market_cap: Decimal
    liquidity_weights: Sequence[Decimal]
    creator_first_buy_option: CreatorFirstBuyOption
