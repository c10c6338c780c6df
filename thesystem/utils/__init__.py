# File: utils/__init__.py
"""Pure Python utilities for THE SYSTEM.

These modules import nothing from the rest of the package, so they can be
tested without building a state document.

Submodules:
    - dt_utils: Date/time parsing, calendar-day arithmetic, timezone handling
    - math_utils: Half-up rounding, multiplier arithmetic, progress percentages

Usage:
    from .utils import dt_utils
    from .utils.math_utils import apply_multiplier
"""

from . import dt_utils, math_utils

__all__ = ["dt_utils", "math_utils"]
