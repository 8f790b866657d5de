"""Small numeric helpers shared by the analytics and planning modules."""

import math


def clamp(value: float, lower: float = 0.0, upper: float = 1.0) -> float:
    """Clamp value into [lower, upper]."""
    return max(lower, min(upper, value))


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero.

    Python's round() uses banker's rounding (round(2.5) == 2), which would
    make budgets like 50 min / 20 min sessions produce 2 quests instead of 3.
    """
    if value < 0:
        return -math.floor(-value + 0.5)
    return math.floor(value + 0.5)
