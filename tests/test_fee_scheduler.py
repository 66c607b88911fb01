from __future__ import annotations

from decimal import Decimal

import pytest

from dbc_curve.fee_scheduler import (
    bps_to_fee_numerator,
    fee_numerator_to_bps,
    get_current_base_fee_numerator,
    get_fee_at_period,
    get_fee_in_period,
    get_fee_scheduler_params,
    get_min_base_fee_bps,
)
from dbc_curve.types import BaseFeeSchedule, FeeSchedulerMode


# =============================================================================
# Schedule parameters
# =============================================================================

class TestFeeSchedulerParams:
    def test_linear_reduction_factor(self):
        schedule = get_fee_scheduler_params(5000, 1000, FeeSchedulerMode.LINEAR, 144, 60)
        assert schedule.reduction_factor == 2777777
        assert schedule.cliff_fee_numerator == 500_000_000

    def test_exponential_reduction_factor(self):
        schedule = get_fee_scheduler_params(
            5000, 1000, FeeSchedulerMode.EXPONENTIAL, Decimal("37.5"), 144 * 60 * 60 * 24
        )
        assert schedule.reduction_factor == 420
        assert schedule.number_of_period == 37
        assert schedule.period_frequency == 331776

    def test_flat_fee(self):
        schedule = get_fee_scheduler_params(100, 100, FeeSchedulerMode.EXPONENTIAL, 0, 0)
        assert schedule.period_frequency == 0
        assert schedule.reduction_factor == 0
        assert schedule.fee_scheduler_mode == FeeSchedulerMode.LINEAR

    def test_flat_fee_with_periods_rejected(self):
        with pytest.raises(ValueError):
            get_fee_scheduler_params(100, 100, FeeSchedulerMode.LINEAR, 10, 0)

    def test_rising_fee_rejected(self):
        with pytest.raises(ValueError):
            get_fee_scheduler_params(100, 200, FeeSchedulerMode.LINEAR, 10, 100)

    def test_starting_fee_above_max_rejected(self):
        with pytest.raises(ValueError):
            get_fee_scheduler_params(5001, 100, FeeSchedulerMode.LINEAR, 10, 100)

    def test_bps_conversion(self):
        assert bps_to_fee_numerator(25) == 2_500_000
        assert fee_numerator_to_bps(2_500_000) == 25


# =============================================================================
# Fee at a period
# =============================================================================

class TestFeeInPeriod:
    def test_no_reduction(self):
        assert get_fee_in_period(1000, 0, 0) == 1000

    def test_one_percent_reduction(self):
        fee = get_fee_in_period(1000, 100, 1)
        assert 989 < fee < 991

    def test_higher_periods_keep_decaying(self):
        assert 0 <= get_fee_in_period(1000, 100, 5) < get_fee_in_period(1000, 100, 1)

    def test_linear_clamps_at_zero(self):
        schedule = BaseFeeSchedule(1000, 10, 1, 300, FeeSchedulerMode.LINEAR)
        assert get_fee_at_period(schedule, 5) == 0

    @pytest.mark.parametrize("mode", [FeeSchedulerMode.LINEAR, FeeSchedulerMode.EXPONENTIAL])
    @pytest.mark.parametrize(
        "starting_bps, ending_bps, periods",
        [(5000, 1000, 144), (100, 10, 3), (2500, 2499, 1000)],
    )
    def test_decay_bounds(self, mode, starting_bps, ending_bps, periods):
        schedule = get_fee_scheduler_params(starting_bps, ending_bps, mode, periods, periods * 10)
        first = get_fee_at_period(schedule, 0)
        last = get_fee_at_period(schedule, schedule.number_of_period)
        assert 0 <= last <= first
        assert get_fee_at_period(schedule, schedule.number_of_period * 10) >= 0


# =============================================================================
# Current fee from activation
# =============================================================================

class TestCurrentBaseFee:
    linear = BaseFeeSchedule(
        cliff_fee_numerator=1000,
        number_of_period=10,
        period_frequency=100,
        reduction_factor=50,
        fee_scheduler_mode=FeeSchedulerMode.LINEAR,
    )

    def test_before_activation_charges_floor(self):
        assert get_current_base_fee_numerator(self.linear, 50, 100) == 500

    def test_linear_after_two_periods(self):
        assert get_current_base_fee_numerator(self.linear, 300, 100) == 900

    def test_period_capped_at_number_of_period(self):
        assert get_current_base_fee_numerator(self.linear, 10**9, 100) == 500

    def test_exponential_after_two_periods(self):
        schedule = BaseFeeSchedule(1000, 5, 100, 100, FeeSchedulerMode.EXPONENTIAL)
        fee = get_current_base_fee_numerator(schedule, 350, 100)
        assert 950 < fee < 1000

    def test_flat_fee_ignores_time(self):
        schedule = BaseFeeSchedule(1000, 0, 0, 0, FeeSchedulerMode.LINEAR)
        assert get_current_base_fee_numerator(schedule, 0, 100) == 1000


class TestMinBaseFeeBps:
    def test_linear(self):
        assert get_min_base_fee_bps(500_000_000, 144, 2777777, FeeSchedulerMode.LINEAR) == Decimal("1000.00112")

    def test_linear_clamps_at_zero(self):
        assert get_min_base_fee_bps(1000, 10, 1000, FeeSchedulerMode.LINEAR) == 0

    def test_exponential(self):
        min_bps = get_min_base_fee_bps(500_000_000, 37, 420, FeeSchedulerMode.EXPONENTIAL)
        assert 1000 < min_bps < 1050
