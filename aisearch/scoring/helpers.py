"""
Scoring Helper Functions

Rounding and clamping shared by the scorer, the enhancement merge and the
field-data score helper.
"""

import math
from typing import Union

Number = Union[int, float]


def round_half_up(value: Number) -> int:
    """
    Round to the nearest integer, halves away from zero.

    Python's round() uses banker's rounding (round(17.5) == 18 but
    round(16.5) == 16); point rescaling needs 16.5 -> 17.
    """
    if value >= 0:
        return int(math.floor(value + 0.5))
    return -int(math.floor(-value + 0.5))


def clamp(value: Number, low: Number, high: Number) -> Number:
    """Clamp value into [low, high]."""
    return max(low, min(high, value))


def rescale(earned: Number, module_max: Number, dynamic_max: Number) -> int:
    """
    Rescale points earned against module_max onto dynamic_max.

    Args:
        earned: Raw points (0 - module_max)
        module_max: Pillar max before weighting
        dynamic_max: Pillar max under the page-type weights

    Returns:
        Rounded points (0 - dynamic_max)
    """
    if module_max <= 0:
        return 0
    return int(clamp(round_half_up(earned / module_max * dynamic_max), 0, dynamic_max))
