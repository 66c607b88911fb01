from __future__ import annotations

from decimal import Decimal

import pytest

from dbc_curve import (
    ActivationType,
    CollectFeeMode,
    FeeSchedulerParam,
    LockedVestingSchedule,
    MigrationFeeOption,
    MigrationOption,
    TokenType,
    geometric_liquidity_weights,
)


@pytest.fixture
def base_kwargs() -> dict:
    """Shared builder inputs: 1B supply, 6/9 decimals, flat 25 bps fee."""
    return dict(
        total_token_supply=1_000_000_000,
        migration_option=MigrationOption.MET_DAMM,
        token_base_decimal=6,
        token_quote_decimal=9,
        locked_vesting=LockedVestingSchedule(),
        fee_scheduler_param=FeeSchedulerParam(starting_fee_bps=25, ending_fee_bps=25),
        dynamic_fee_enabled=True,
        activation_type=ActivationType.SLOT,
        collect_fee_mode=CollectFeeMode.ONLY_QUOTE,
        migration_fee_option=MigrationFeeOption.FIXED_BPS_100,
        token_type=TokenType.SPL,
        partner_lp_percentage=0,
        creator_lp_percentage=0,
        partner_locked_lp_percentage=100,
        creator_locked_lp_percentage=0,
    )


@pytest.fixture
def weighted_kwargs(base_kwargs) -> dict:
    return dict(
        base_kwargs,
        migration_option=MigrationOption.MET_DAMM_V2,
        leftover=10_000,
        initial_market_cap=Decimal(15),
        migration_market_cap=Decimal(255),
        liquidity_weights=geometric_liquidity_weights("1.2"),
    )
