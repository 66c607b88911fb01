from __future__ import annotations

from dataclasses import replace
from decimal import Decimal

import pytest

from dbc_curve import BuildCurveParam, build_curve
from dbc_curve.constants import MAX_SQRT_PRICE, MIN_SQRT_PRICE, U128_MAX
from dbc_curve.errors import InvalidConfigParameters
from dbc_curve.types import (
    BaseFeeSchedule,
    CollectFeeMode,
    CurveSegment,
    DynamicFeeParams,
    FeeSchedulerMode,
    LockedVestingSchedule,
    PoolFees,
)
from dbc_curve.validation import (
    validate_base_fee,
    validate_config_parameters,
    validate_creator_first_buy,
    validate_curve,
    validate_dynamic_fee,
    validate_locked_vesting,
)
from dbc_curve.vesting import get_locked_vesting_params


@pytest.fixture
def config(base_kwargs):
    return build_curve(
        BuildCurveParam(
            **base_kwargs,
            percentage_supply_on_migration=Decimal(10),
            migration_quote_threshold=Decimal(300),
        )
    )


class TestConfigParameters:
    def test_built_config_passes(self, config):
        validate_config_parameters(config)

    @pytest.mark.parametrize(
        "changes",
        [
            {"partner_lp_percentage": 50},
            {"creator_trading_fee_percentage": 101},
            {"token_decimal": 5},
            {"migration_quote_threshold": 0},
        ],
    )
    def test_rejected_fields(self, config, changes):
        with pytest.raises(InvalidConfigParameters):
            validate_config_parameters(replace(config, **changes))

    def test_cliff_fee_below_minimum(self, config):
        pool_fees = PoolFees(
            base_fee=BaseFeeSchedule(1, 0, 0, 0, FeeSchedulerMode.LINEAR),
            dynamic_fee=None,
        )
        with pytest.raises(InvalidConfigParameters):
            validate_config_parameters(replace(config, pool_fees=pool_fees))


class TestCurve:
    def test_must_end_at_max_price(self):
        with pytest.raises(InvalidConfigParameters):
            validate_curve(MIN_SQRT_PRICE, (CurveSegment(MIN_SQRT_PRICE + 1, 1),))

    def test_strictly_increasing(self):
        curve = (CurveSegment(10**18, 1), CurveSegment(10**18, 1), CurveSegment(MAX_SQRT_PRICE, 0))
        with pytest.raises(InvalidConfigParameters):
            validate_curve(10**17, curve)

    def test_start_below_min_price(self):
        with pytest.raises(InvalidConfigParameters):
            validate_curve(MIN_SQRT_PRICE - 1, (CurveSegment(MAX_SQRT_PRICE, 1),))

    def test_empty_inner_segment(self):
        curve = (CurveSegment(10**18, 0), CurveSegment(MAX_SQRT_PRICE, 1))
        with pytest.raises(InvalidConfigParameters):
            validate_curve(10**17, curve)

    def test_empty_drain_allowed(self):
        validate_curve(10**17, (CurveSegment(10**18, 1), CurveSegment(MAX_SQRT_PRICE, 0)))

    def test_liquidity_beyond_u128(self):
        with pytest.raises(InvalidConfigParameters):
            validate_curve(10**17, (CurveSegment(MAX_SQRT_PRICE, U128_MAX + 1),))

    def test_too_many_segments(self):
        curve = tuple(CurveSegment(10**18 + i, 1) for i in range(20)) + (CurveSegment(MAX_SQRT_PRICE, 0),)
        with pytest.raises(InvalidConfigParameters):
            validate_curve(10**17, curve)


class TestFees:
    def test_linear_decay_below_minimum(self):
        schedule = BaseFeeSchedule(1_000_000, 10, 1, 100_000, FeeSchedulerMode.LINEAR)
        with pytest.raises(InvalidConfigParameters):
            validate_base_fee(schedule)

    def test_dynamic_fee_periods(self):
        params = DynamicFeeParams(1, 1, 120, 10, 5000, 1, 1)
        with pytest.raises(InvalidConfigParameters):
            validate_dynamic_fee(params)

    def test_no_dynamic_fee(self):
        validate_dynamic_fee(None)

    def test_first_buy_fee_mode(self):
        validate_creator_first_buy(CollectFeeMode.ONLY_QUOTE)
        with pytest.raises(InvalidConfigParameters):
            validate_creator_first_buy(CollectFeeMode.BOTH)


class TestLockedVesting:
    def test_default_schedule_skipped(self):
        validate_locked_vesting(LockedVestingSchedule())

    def test_derived_schedules_pass(self):
        validate_locked_vesting(get_locked_vesting_params(10_000_000, 10, 0, 36000, 0, 6))
        validate_locked_vesting(get_locked_vesting_params(5000, 0, 5000, 0, 60, 6))

    def test_frequency_required(self):
        with pytest.raises(InvalidConfigParameters):
            validate_locked_vesting(LockedVestingSchedule(amount_per_period=10, number_of_period=5))

    def test_schedule_without_amount(self):
        with pytest.raises(InvalidConfigParameters):
            validate_locked_vesting(LockedVestingSchedule(frequency=60, number_of_period=5))

    def test_checked_with_the_config(self, config):
        broken = LockedVestingSchedule(cliff_unlock_amount=10)
        with pytest.raises(InvalidConfigParameters):
            validate_config_parameters(replace(config, locked_vesting=broken))
