from __future__ import annotations

import logging
from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402

from .constants import MAX_SQRT_PRICE, ONE_Q64  # noqa: E402
from .types import ConfigParameters, CurveSegment  # noqa: E402


log = logging.getLogger(__name__)


def _trading_segments(config: ConfigParameters) -> tuple[CurveSegment, ...]:
    """Segments up to migration; the drain segment never trades before migration."""
    curve = config.curve
    if len(curve) > 1 and curve[-1].sqrt_price == MAX_SQRT_PRICE:
        return curve[:-1]
    return curve


def sample_curve(
    config: ConfigParameters,
    token_quote_decimal: int,
    samples_per_segment: int = 200,
) -> tuple[np.ndarray, np.ndarray]:
    """(quote collected, base sold) along the curve, in whole tokens.

    Floats are fine here: the samples are only drawn, never fed back.
    """
    base_scale = 10.0**config.token_decimal
    quote_scale = 10.0**token_quote_decimal
    q128 = float(ONE_Q64) * float(ONE_Q64)

    quote_collected = [np.zeros(1)]
    base_sold = [np.zeros(1)]
    quote_total = 0.0
    base_total = 0.0
    lower = float(config.sqrt_start_price)

    for segment in _trading_segments(config):
        upper = float(segment.sqrt_price)
        liquidity = float(segment.liquidity)
        p = np.linspace(lower, upper, samples_per_segment)[1:]

        quote = quote_total + liquidity * (p - lower) / q128
        base = base_total + liquidity * (p - lower) / (lower * p)
        quote_collected.append(quote)
        base_sold.append(base)

        quote_total = quote[-1]
        base_total = base[-1]
        lower = upper

    return np.concatenate(quote_collected) / quote_scale, np.concatenate(base_sold) / base_scale


def plot_curve(
    config: ConfigParameters,
    path: str | Path,
    token_quote_decimal: int,
    title: str = "Bonding Curve",
) -> Path:
    x, y = sample_curve(config, token_quote_decimal)
    migration_quote = config.migration_quote_threshold / 10.0**token_quote_decimal

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    plt.figure()
    plt.plot(x, y)
    plt.xlabel("x (quote collected)")
    plt.ylabel("y (base tokens sold)")
    if config.token_supply is not None:
        total_supply = config.token_supply.pre_migration_token_supply / 10.0**config.token_decimal
        plt.hlines(y=total_supply, xmin=0, xmax=x[-1], colors="gray", linestyles="dashed")
    plt.vlines(x=migration_quote, ymin=0, ymax=y[-1], colors="gray", linestyles="dashed")
    # migration point
    plt.plot(x[-1], y[-1], "o", color="red")
    plt.title(title)
    plt.savefig(path)
    plt.close()

    log.debug("curve plot written to %s", path)
    return path
