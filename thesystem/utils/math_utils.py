# File: utils/math_utils.py
"""Math and calculation utilities for THE SYSTEM.

Pure Python math functions with no dependency on the state document.

Functions:
    - round_half_up: Rounding with halves always rounded up
    - apply_multiplier: Multiplier arithmetic returning whole points
    - calculate_percentage: Progress percentage calculations
    - clamp: Bound a value to a range
    - floored_subtract: Subtract without going below a floor
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
import logging

# Module-level logger
_LOGGER = logging.getLogger(__name__)


# ==============================================================================
# Point Arithmetic Functions
# ==============================================================================


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves rounded up.

    Python's built-in round() uses banker's rounding (round(12.5) == 12), which
    would make a C-rank quest worth 12 XP instead of 13.

    Examples:
        round_half_up(37.5) → 38
        round_half_up(18.75) → 19
        round_half_up(12.5) → 13
    """
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def apply_multiplier(base: float, multiplier: float) -> int:
    """Apply a multiplier to a base value and round to whole points.

    Args:
        base: Base point value
        multiplier: Multiplier to apply (e.g., 1.5 for an A-rank quest)

    Returns:
        Whole-point result, rounded half-up

    Examples:
        apply_multiplier(50, 2.0) → 100
        apply_multiplier(50, 0.75) → 38
        apply_multiplier(25, 0.75) → 19
    """
    return round_half_up(base * multiplier)


def calculate_percentage(
    current: float,
    target: float,
    precision: int | None = None,
) -> float:
    """Calculate progress percentage.

    Args:
        current: Current progress value
        target: Target/total value
        precision: Number of decimal places, or None to keep full precision

    Returns:
        Percentage, or 0.0 if target is 0

    Examples:
        calculate_percentage(999, 1000) → 99.9
        calculate_percentage(1, 3, 2) → 33.33
        calculate_percentage(5, 0) → 0.0  # Division by zero protection
    """
    if target <= 0:
        return 0.0
    percent = current * 100 / target
    if precision is None:
        return percent
    return round(percent, precision)


def clamp(value: float, min_val: float, max_val: float) -> float:
    """Clamp a value between minimum and maximum bounds.

    Examples:
        clamp(150, 0, 100) → 100
        clamp(-10, 0, 100) → 0
        clamp(50, 0, 100) → 50
    """
    return max(min_val, min(value, max_val))


def floored_subtract(value: int, amount: int, floor: int = 0) -> tuple[int, int]:
    """Subtract amount from value without dropping below floor.

    Returns:
        Tuple of (new_value, amount_actually_subtracted)

    Examples:
        floored_subtract(10, 40) → (0, 10)
        floored_subtract(100, 40) → (60, 40)
    """
    if amount < 0:
        _LOGGER.warning("Negative amount %s passed to floored_subtract", amount)
        amount = 0
    new_value = max(floor, value - amount)
    return new_value, max(0, value - new_value)
