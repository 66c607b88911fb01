from __future__ import annotations

import numpy as np
import pytest

from dbc_curve import BuildCurveWithLiquidityWeightsParam, build_curve_with_liquidity_weights
from dbc_curve.plotting import plot_curve, sample_curve


@pytest.fixture
def config(weighted_kwargs):
    return build_curve_with_liquidity_weights(BuildCurveWithLiquidityWeightsParam(**weighted_kwargs))


class TestSampleCurve:
    def test_monotonic(self, config):
        quote, base = sample_curve(config, 9)
        assert quote.shape == base.shape
        assert np.all(np.diff(quote) > 0)
        assert np.all(np.diff(base) > 0)

    def test_ends_at_migration_threshold(self, config):
        quote, _ = sample_curve(config, 9)
        assert quote[0] == 0
        assert quote[-1] == pytest.approx(config.migration_quote_threshold / 10**9, rel=1e-3)

    def test_drain_segment_excluded(self, config):
        _, base = sample_curve(config, 9, samples_per_segment=10)
        assert len(base) == 1 + 16 * 9
        assert base[-1] < 1_000_000_000


class TestPlotCurve:
    def test_writes_png(self, config, tmp_path):
        path = plot_curve(config, tmp_path / "curve.png", 9)
        assert path.exists()
        assert path.read_bytes()[:4] == b"\x89PNG"
