# File: utils/__init__.py
"""Pure Python utilities for Cadence.

Submodules:
    - dt_utils: Timezone handling, calendar-day helpers, parsing
    - math_utils: Rounding and clamping

Usage:
    from . import dt_utils
    from .math_utils import clamp, round_value
"""

from . import dt_utils, math_utils

__all__ = ["dt_utils", "math_utils"]
