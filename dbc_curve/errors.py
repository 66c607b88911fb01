from __future__ import annotations


class CurveConfigError(ValueError):
    """Base class for every failure raised while building a curve configuration."""


class InvalidParameterCombination(CurveConfigError):
    """Neither, or both, of the mutually exclusive migration input pairs were given."""


class InconsistentFirstBuy(CurveConfigError):
    """The requested first buy cannot land on the initial market cap price."""


class SupplyOverflow(CurveConfigError):
    """A token amount left the u64 range or the curve over-allocates supply."""


class CurveConstructionError(CurveConfigError):
    """The solver could not produce segments satisfying the targets."""


class InvalidConfigParameters(CurveConfigError):
    """A built configuration failed its sanity checks."""
