"""Rounding shared by score and progress arithmetic."""

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves towards +infinity (2.5 -> 3, -2.5 -> -2).

    Python's round() rounds halves to even, which would move stored
    percentages by one point at exact .5 boundaries.
    """
    return int(math.floor(value + 0.5))


def ratio_percent(part: float, whole: float) -> float:
    """part / whole * 100, or 0 when whole is 0."""
    if whole <= 0:
        return 0.0
    return (part / whole) * 100
