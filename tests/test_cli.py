from __future__ import annotations

import json

from dbc_curve import MAX_SQRT_PRICE
from dbc_curve.cli import main, parse_args
from dbc_curve.types import FeeSchedulerMode, MigrationOption


SINGLE = ["--percentage-supply-on-migration", "10", "--migration-quote-threshold", "300"]
WEIGHTED = [
    "--mode", "weighted",
    "--initial-market-cap", "15",
    "--migration-market-cap", "255",
    "--leftover", "10000",
]


class TestParseArgs:
    def test_defaults(self):
        args = parse_args([])
        assert args.mode == "single"
        assert args.total_token_supply == 1_000_000_000
        assert args.migration_option == MigrationOption.MET_DAMM_V2

    def test_enum_flags(self):
        args = parse_args(["--fee-scheduler-mode", "exponential", "--migration-option", "met-damm"])
        assert args.fee_scheduler_mode == FeeSchedulerMode.EXPONENTIAL
        assert args.migration_option == MigrationOption.MET_DAMM

    def test_weights_list(self):
        args = parse_args(["--weights", "1,2,3"])
        assert [int(w) for w in args.weights] == [1, 2, 3]


class TestMain:
    def test_single_json(self, capsys):
        assert main(SINGLE + ["--json"]) == 0
        config = json.loads(capsys.readouterr().out)
        assert config["migration_quote_threshold"] == str(300 * 10**9)
        assert config["curve"][-1]["sqrt_price"] == str(MAX_SQRT_PRICE)

    def test_weighted_table(self, capsys):
        assert main(WEIGHTED + ["--dynamic-fee"]) == 0
        out = capsys.readouterr().out
        assert "Curve configuration" in out
        assert "variable fee control" in out
        assert out.count("sqrt price =") == 17

    def test_plot(self, tmp_path):
        path = tmp_path / "img" / "curve.png"
        assert main(WEIGHTED + ["--plot", str(path)]) == 0
        assert path.exists()

    def test_missing_market_caps(self):
        assert main(["--mode", "weighted"]) == 1

    def test_conflicting_inputs(self):
        assert main(SINGLE + ["--initial-market-cap", "1", "--migration-market-cap", "2"]) == 1

    def test_fee_decay_without_periods(self, caplog):
        assert main(SINGLE + ["--starting-fee-bps", "200"]) == 1
        assert "number_of_period must be > 0" in caplog.text
