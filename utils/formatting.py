"""Percentage and rounding helpers applied at the reporting boundary."""

import math
from fractions import Fraction
from typing import Union

Number = Union[int, float]


def round_half_up(value: Number) -> int:
    """Round to the nearest integer, ties away from zero for positives.

    ``round()`` uses banker's rounding (``round(0.5) == 0``), which is not what
    dashboards expect, so the value is rounded exactly via ``Fraction``.
    """
    return math.floor(Fraction(value) + Fraction(1, 2))


def percentage(numerator: Number, denominator: Number) -> int:
    """Return ``round(numerator / denominator * 100)`` or 0 for an empty denominator."""
    if not denominator or denominator <= 0:
        return 0
    return round_half_up(Fraction(numerator) * 100 / Fraction(denominator))


def clamp_percent(value: float) -> float:
    """Clamp a raw percentage into ``[0, 100]``."""
    return max(0.0, min(float(value), 100.0))
