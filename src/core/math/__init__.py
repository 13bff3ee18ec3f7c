"""
Core math modules FX пула

64.64 fixed point numeraire и целочисленная арифметика с явным округлением.
"""

# Fixed point numeraire
from src.core.math.fixed_point import (
    FRACTION_BITS,
    HALF,
    MAX_64X64,
    MAX_INT64,
    MAX_UINT256,
    MIN_64X64,
    MIN_INT64,
    ONE,
    ONE_WEI,
    ZERO,
    Fixed64x64,
    min_fixed,
)

# Integer math
from src.core.math.integer_math import (
    BPS_DENOMINATOR,
    RATE_SCALE,
    WAD,
    bps_down,
    bps_of,
    bps_up,
    ceil_div,
    floor_div,
    mul_div,
    validate_bps,
    validate_non_negative,
    validate_positive,
)

__all__ = [
    # Fixed point: Constants
    "FRACTION_BITS",
    "HALF",
    "MAX_64X64",
    "MAX_INT64",
    "MAX_UINT256",
    "MIN_64X64",
    "MIN_INT64",
    "ONE",
    "ONE_WEI",
    "ZERO",
    # Fixed point: Types
    "Fixed64x64",
    "min_fixed",
    # Integer math: Constants
    "BPS_DENOMINATOR",
    "RATE_SCALE",
    "WAD",
    # Integer math: Functions
    "bps_down",
    "bps_of",
    "bps_up",
    "ceil_div",
    "floor_div",
    "mul_div",
    # Integer math: Validation
    "validate_bps",
    "validate_non_negative",
    "validate_positive",
]
