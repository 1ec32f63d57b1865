"""Rounding with halves going up, as in published scores and percentages.

Python's ``round`` sends halves to the even neighbour (12.5 -> 12); reported
figures here round 12.5 to 13 and -2.5 to -2.
"""

from __future__ import annotations

import math


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def round_tenth(value: float) -> float:
    """Round to one decimal place, halves up."""
    return math.floor(value * 10 + 0.5) / 10
