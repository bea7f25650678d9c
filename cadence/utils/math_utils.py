# File: utils/math_utils.py
"""Math and calculation utilities for Cadence.

Functions:
    - round_value: Consistent rounding to configured precision
    - clamp: Bound a value to a range
"""

from __future__ import annotations

# Default float precision for percentages
DATA_FLOAT_PRECISION = 2


def round_value(value: float, precision: int = DATA_FLOAT_PRECISION) -> float:
    """Round a float to the configured precision.

    Examples:
        round_value(66.666) → 66.67
        round_value(10.0) → 10.0
    """
    return round(value, precision)


def clamp(value: float, min_val: float, max_val: float) -> float:
    """Clamp a value between minimum and maximum bounds.

    Examples:
        clamp(150, 0, 100) → 100
        clamp(-10, 0, 100) → 0
        clamp(50, 0, 100) → 50
    """
    return max(min_val, min(value, max_val))
