from __future__ import annotations

from .constants import U64_MAX
from .errors import SupplyOverflow
from .types import LockedVestingSchedule


def get_total_vesting_amount(locked_vesting: LockedVestingSchedule) -> int:
    total = (
        locked_vesting.cliff_unlock_amount
        + locked_vesting.amount_per_period * locked_vesting.number_of_period
    )
    if total > U64_MAX:
        raise SupplyOverflow(f"total vesting amount {total} does not fit in u64")
    return total


def is_default_locked_vesting(locked_vesting: LockedVestingSchedule) -> bool:
    return (
        locked_vesting.amount_per_period == 0
        and locked_vesting.cliff_duration_from_migration_time == 0
        and locked_vesting.frequency == 0
        and locked_vesting.number_of_period == 0
        and locked_vesting.cliff_unlock_amount == 0
    )


def get_locked_vesting(
    total_vesting_amount: int,
    number_of_period: int,
    amount_per_period: int,
    cliff_duration_from_migration_time: int,
    frequency: int,
    token_base_decimal: int,
) -> LockedVestingSchedule:
    """Schedule unlocking `amount_per_period` tokens per period, rest at the cliff.

    Amounts are in whole tokens and scaled by `token_base_decimal`.
    """
    total_periodic_amount = amount_per_period * number_of_period
    if total_periodic_amount > total_vesting_amount:
        raise ValueError(
            "amount_per_period * number_of_period must be <= total_vesting_amount"
        )
    scale = 10**token_base_decimal
    cliff_unlock_amount = total_vesting_amount - total_periodic_amount

    return LockedVestingSchedule(
        amount_per_period=amount_per_period * scale,
        cliff_duration_from_migration_time=cliff_duration_from_migration_time,
        frequency=frequency,
        number_of_period=number_of_period,
        cliff_unlock_amount=cliff_unlock_amount * scale,
    )


def get_locked_vesting_params(
    total_locked_vesting_amount: int,
    number_of_vesting_period: int,
    cliff_unlock_amount: int,
    total_vesting_duration: int,
    cliff_duration_from_migration_time: int,
    token_base_decimal: int,
) -> LockedVestingSchedule:
    """Duration-based schedule; the per-period remainder is folded into the cliff."""
    if total_locked_vesting_amount == 0:
        return LockedVestingSchedule()

    scale = 10**token_base_decimal

    if total_locked_vesting_amount == cliff_unlock_amount:
        return LockedVestingSchedule(
            amount_per_period=1 * scale,
            cliff_duration_from_migration_time=cliff_duration_from_migration_time,
            frequency=1,
            number_of_period=1,
            cliff_unlock_amount=(total_locked_vesting_amount - 1) * scale,
        )

    if number_of_vesting_period <= 0:
        raise ValueError("number_of_vesting_period must be > 0")
    if total_vesting_duration <= 0:
        raise ValueError("total_vesting_duration must be > 0")
    if cliff_unlock_amount > total_locked_vesting_amount:
        raise ValueError("cliff_unlock_amount must be <= total_locked_vesting_amount")

    amount_per_period = (total_locked_vesting_amount - cliff_unlock_amount) // number_of_vesting_period
    remainder = total_locked_vesting_amount - (
        cliff_unlock_amount + amount_per_period * number_of_vesting_period
    )

    return LockedVestingSchedule(
        amount_per_period=amount_per_period * scale,
        cliff_duration_from_migration_time=cliff_duration_from_migration_time,
        frequency=total_vesting_duration // number_of_vesting_period,
        number_of_period=number_of_vesting_period,
        cliff_unlock_amount=(cliff_unlock_amount + remainder) * scale,
    )
