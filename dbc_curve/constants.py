from __future__ import annotations

from decimal import Context, localcontext


DECIMAL_PRECISION = 80

RESOLUTION = 64
ONE_Q64 = 1 << RESOLUTION
MAX_EXPONENTIAL = 0x80000

U64_MAX = (1 << 64) - 1
U128_MAX = (1 << 128) - 1

BASIS_POINT_MAX = 10_000
FEE_DENOMINATOR = 1_000_000_000
MIN_FEE_NUMERATOR = 100_000
MAX_FEE_NUMERATOR = 500_000_000

MIN_SQRT_PRICE = 4_295_048_016
MAX_SQRT_PRICE = 79_226_673_521_066_979_257_578_248_091

MAX_CURVE_POINT = 20
WEIGHTED_SEGMENT_COUNT = 16
FIRST_BUY_WEIGHTED_SEGMENT_COUNT = 15

SWAP_BUFFER_PERCENTAGE = 25

# dynamic fee policy defaults
BIN_STEP_BPS_DEFAULT = 1
BIN_STEP_BPS_U128_DEFAULT = 1_844_674_407_370_955
DYNAMIC_FEE_FILTER_PERIOD_DEFAULT = 10
DYNAMIC_FEE_DECAY_PERIOD_DEFAULT = 120
DYNAMIC_FEE_REDUCTION_FACTOR_DEFAULT = 5_000
MAX_VOLATILITY_ACCUMULATOR_DEFAULT = 100_000
DYNAMIC_FEE_SCALING_FACTOR = 100_000_000_000
DYNAMIC_FEE_ROUNDING_OFFSET = 99_999_999_999


def decimal_context():
    """Fresh Decimal context at the working precision for one computation."""
    return localcontext(Context(prec=DECIMAL_PRECISION))
