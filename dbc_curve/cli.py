#!/usr/bin/env python3

from __future__ import annotations

import argparse
import json
import logging
from decimal import Decimal

from .build import (
    build_curve,
    build_curve_with_creator_first_buy,
    build_curve_with_liquidity_weights,
    build_curve_with_two_segments,
)
from .constants import FIRST_BUY_WEIGHTED_SEGMENT_COUNT, WEIGHTED_SEGMENT_COUNT
from .errors import CurveConfigError
from .fee_scheduler import fee_numerator_to_bps
from .fixed_point import get_market_cap_from_sqrt_price
from .segments import geometric_liquidity_weights
from .types import (
    ActivationType,
    BuildCurveParam,
    BuildCurveWithCreatorFirstBuyParam,
    BuildCurveWithLiquidityWeightsParam,
    BuildCurveWithTwoSegmentsParam,
    CollectFeeMode,
    ConfigParameters,
    CreatorFirstBuyOption,
    FeeSchedulerMode,
    FeeSchedulerParam,
    MigrationFeeOption,
    MigrationOption,
    TokenType,
)
from .vesting import get_locked_vesting_params


log = logging.getLogger(__name__)

MODES = ("single", "two-segment", "weighted", "first-buy")


def format_amount(value: int, decimals: int) -> str:
    return f"{Decimal(value).scaleb(-decimals):f}".rstrip("0").rstrip(".") or "0"


def _enum_choice(enum_type):
    def parse(value: str):
        try:
            return enum_type[value.upper().replace("-", "_")]
        except KeyError:
            raise argparse.ArgumentTypeError(
                f"choose from {', '.join(m.name.lower() for m in enum_type)}"
            ) from None
    return parse


def _weights(value: str) -> list[Decimal]:
    return [Decimal(item) for item in value.split(",") if item.strip()]


def base_param_kwargs(args: argparse.Namespace) -> dict:
    locked_vesting = get_locked_vesting_params(
        args.vesting_total,
        args.vesting_periods,
        args.vesting_cliff_unlock,
        args.vesting_duration,
        args.vesting_cliff_duration,
        args.base_decimal,
    )
    return dict(
        total_token_supply=args.total_token_supply,
        migration_option=args.migration_option,
        token_base_decimal=args.base_decimal,
        token_quote_decimal=args.quote_decimal,
        locked_vesting=locked_vesting,
        fee_scheduler_param=FeeSchedulerParam(
            starting_fee_bps=args.starting_fee_bps,
            ending_fee_bps=args.ending_fee_bps,
            number_of_period=args.number_of_period,
            total_duration=args.total_duration,
            fee_scheduler_mode=args.fee_scheduler_mode,
        ),
        dynamic_fee_enabled=args.dynamic_fee,
        activation_type=args.activation_type,
        collect_fee_mode=args.collect_fee_mode,
        migration_fee_option=args.migration_fee_option,
        token_type=args.token_type,
        partner_lp_percentage=args.partner_lp_percentage,
        creator_lp_percentage=args.creator_lp_percentage,
        partner_locked_lp_percentage=args.partner_locked_lp_percentage,
        creator_locked_lp_percentage=args.creator_locked_lp_percentage,
        creator_trading_fee_percentage=args.creator_trading_fee_percentage,
        leftover=args.leftover,
    )


def _required(args: argparse.Namespace, *names: str) -> None:
    missing = [f"--{name.replace('_', '-')}" for name in names if getattr(args, name) is None]
    if missing:
        raise CurveConfigError(f"--mode {args.mode} requires {', '.join(missing)}")


def liquidity_weights(args: argparse.Namespace, count: int) -> list[Decimal]:
    if args.weights is not None:
        return args.weights
    return geometric_liquidity_weights(args.weight_ratio, count)


def build_from_args(args: argparse.Namespace) -> ConfigParameters:
    kwargs = base_param_kwargs(args)

    if args.mode == "single":
        return build_curve(
            BuildCurveParam(
                **kwargs,
                percentage_supply_on_migration=args.percentage_supply_on_migration,
                migration_quote_threshold=args.migration_quote_threshold,
                initial_market_cap=args.initial_market_cap,
                migration_market_cap=args.migration_market_cap,
            )
        )

    if args.mode == "two-segment":
        _required(args, "initial_market_cap", "migration_market_cap", "percentage_supply_on_migration")
        return build_curve_with_two_segments(
            BuildCurveWithTwoSegmentsParam(
                **kwargs,
                initial_market_cap=args.initial_market_cap,
                migration_market_cap=args.migration_market_cap,
                percentage_supply_on_migration=args.percentage_supply_on_migration,
            )
        )

    if args.mode == "weighted":
        _required(args, "initial_market_cap", "migration_market_cap")
        return build_curve_with_liquidity_weights(
            BuildCurveWithLiquidityWeightsParam(
                **kwargs,
                initial_market_cap=args.initial_market_cap,
                migration_market_cap=args.migration_market_cap,
                liquidity_weights=liquidity_weights(args, WEIGHTED_SEGMENT_COUNT),
            )
        )

    _required(args, "initial_market_cap", "migration_market_cap", "first_buy_quote", "first_buy_base")
    return build_curve_with_creator_first_buy(
        BuildCurveWithCreatorFirstBuyParam(
            **kwargs,
            initial_market_cap=args.initial_market_cap,
            migration_market_cap=args.migration_market_cap,
            liquidity_weights=liquidity_weights(args, FIRST_BUY_WEIGHTED_SEGMENT_COUNT),
            creator_first_buy_option=CreatorFirstBuyOption(
                quote_amount=args.first_buy_quote,
                base_amount=args.first_buy_base,
            ),
        )
    )


def print_result(config: ConfigParameters, total_token_supply: int, token_quote_decimal: int) -> None:
    base_fee = config.pool_fees.base_fee

    print("Curve configuration")
    print("-------------------")
    print(f"sqrt start price          = {config.sqrt_start_price}")
    print(
        f"migration quote threshold = {config.migration_quote_threshold}"
        f"  ({format_amount(config.migration_quote_threshold, token_quote_decimal)} quote)"
    )
    print(f"migration option          = {config.migration_option.name}")
    print(
        f"base fee                  = {base_fee.cliff_fee_numerator}"
        f"  ({fee_numerator_to_bps(base_fee.cliff_fee_numerator)} bps, {base_fee.fee_scheduler_mode.name},"
        f" reduction {base_fee.reduction_factor} every {base_fee.period_frequency}"
        f" for {base_fee.number_of_period} periods)"
    )
    if config.pool_fees.dynamic_fee is not None:
        print(f"variable fee control      = {config.pool_fees.dynamic_fee.variable_fee_control}")
    print()
    print("Segments")
    print("--------")
    for i, segment in enumerate(config.curve):
        market_cap = get_market_cap_from_sqrt_price(
            segment.sqrt_price, total_token_supply, config.token_decimal, token_quote_decimal
        )
        print(
            f"{i:>2}: sqrt price = {segment.sqrt_price:<32} liquidity = {segment.liquidity:<40}"
            f" market cap = {market_cap:.6E}"
        )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=(
            "Builds a segmented constant-product bonding curve configuration "
            "from supply, market cap and fee inputs"
        )
    )
    parser.add_argument("--mode", choices=MODES, default="single", help="Curve construction mode (default: single)")
    parser.add_argument(
        "--total-token-supply",
        type=int,
        default=1_000_000_000,
        help="Total supply in whole base tokens (default: 1000000000)",
    )
    parser.add_argument("--base-decimal", type=int, default=6, help="Base token decimals (default: 6)")
    parser.add_argument("--quote-decimal", type=int, default=9, help="Quote token decimals (default: 9)")

    parser.add_argument(
        "--percentage-supply-on-migration",
        type=Decimal,
        help="Share of supply deposited at migration, in percent",
    )
    parser.add_argument(
        "--migration-quote-threshold",
        type=Decimal,
        help="Quote collected before migration, in whole quote tokens",
    )
    parser.add_argument("--initial-market-cap", type=Decimal, help="Market cap at the start price, in quote")
    parser.add_argument("--migration-market-cap", type=Decimal, help="Market cap at migration, in quote")

    parser.add_argument("--starting-fee-bps", type=int, default=100, help="Cliff fee in bps (default: 100)")
    parser.add_argument("--ending-fee-bps", type=int, default=100, help="Floor fee in bps (default: 100)")
    parser.add_argument(
        "--number-of-period",
        type=Decimal,
        default=Decimal(0),
        help="Fee decay periods, may be fractional (default: 0)",
    )
    parser.add_argument("--total-duration", type=int, default=0, help="Fee decay duration in slots or seconds (default: 0)")
    parser.add_argument(
        "--fee-scheduler-mode",
        type=_enum_choice(FeeSchedulerMode),
        default=FeeSchedulerMode.LINEAR,
        help="linear or exponential (default: linear)",
    )
    parser.add_argument("--dynamic-fee", action="store_true", help="Enable the volatility fee")

    parser.add_argument(
        "--migration-option",
        type=_enum_choice(MigrationOption),
        default=MigrationOption.MET_DAMM_V2,
        help="met_damm or met_damm_v2 (default: met_damm_v2)",
    )
    parser.add_argument(
        "--migration-fee-option",
        type=_enum_choice(MigrationFeeOption),
        default=MigrationFeeOption.FIXED_BPS_100,
        help="fixed_bps_25 .. fixed_bps_600 (default: fixed_bps_100)",
    )
    parser.add_argument(
        "--activation-type",
        type=_enum_choice(ActivationType),
        default=ActivationType.SLOT,
        help="slot or timestamp (default: slot)",
    )
    parser.add_argument(
        "--collect-fee-mode",
        type=_enum_choice(CollectFeeMode),
        default=CollectFeeMode.ONLY_QUOTE,
        help="only_quote or both (default: only_quote)",
    )
    parser.add_argument(
        "--token-type",
        type=_enum_choice(TokenType),
        default=TokenType.SPL,
        help="spl or token_2022 (default: spl)",
    )
    parser.add_argument("--partner-lp-percentage", type=int, default=0)
    parser.add_argument("--creator-lp-percentage", type=int, default=0)
    parser.add_argument("--partner-locked-lp-percentage", type=int, default=100)
    parser.add_argument("--creator-locked-lp-percentage", type=int, default=0)
    parser.add_argument("--creator-trading-fee-percentage", type=int, default=0)
    parser.add_argument("--leftover", type=int, default=0, help="Reserved whole base tokens (default: 0)")

    parser.add_argument(
        "--weight-ratio",
        type=Decimal,
        default=Decimal("1.2"),
        help="Geometric liquidity weight ratio (default: 1.2)",
    )
    parser.add_argument("--weights", type=_weights, help="Comma separated liquidity weights, overrides --weight-ratio")
    parser.add_argument("--first-buy-quote", type=Decimal, help="Creator first buy, whole quote tokens paid")
    parser.add_argument("--first-buy-base", type=Decimal, help="Creator first buy, whole base tokens received")

    parser.add_argument("--vesting-total", type=int, default=0, help="Locked vesting, whole base tokens (default: 0)")
    parser.add_argument("--vesting-periods", type=int, default=0)
    parser.add_argument("--vesting-cliff-unlock", type=int, default=0)
    parser.add_argument("--vesting-duration", type=int, default=0)
    parser.add_argument("--vesting-cliff-duration", type=int, default=0)

    parser.add_argument("--json", action="store_true", help="Print the configuration as JSON")
    parser.add_argument("--plot", metavar="PATH", help="Save a quote-vs-base plot of the curve to PATH")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )

    try:
        config = build_from_args(args)
    except ValueError as exc:
        log.error("%s", exc)
        return 1

    if args.json:
        print(json.dumps(config.to_dict(), indent=2))
    else:
        print_result(config, args.total_token_supply, args.quote_decimal)

    if args.plot:
        from .plotting import plot_curve

        path = plot_curve(config, args.plot, args.quote_decimal)
        log.info("plot saved to %s", path)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
