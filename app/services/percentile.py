"""
Percentile helpers.

estimate_percentile    — a user's position against three stored cohort
                         anchors (p25/p50/p75). Deliberately simple: linear
                         between anchors, proportional extrapolation above p75.
interpolated_percentile — the anchors themselves, computed by the aggregator
                         from the full per-member frequency distribution.
round_half_up          — shared rounding (Python's round() is banker's).
"""
from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from typing import Sequence


def round_half_up(value: float, places: int = 0) -> float:
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def estimate_percentile(value: float, p25: float, p50: float, p75: float) -> int:
    """Return an integer percentile estimate in [0, 99]."""
    if value <= 0:
        return 0

    if value <= p25:
        if p25 == 0:
            return 25
        return int(round_half_up(value / p25 * 25))
    if value <= p50:
        if p50 == p25:
            return 50
        return int(round_half_up(25 + (value - p25) / (p50 - p25) * 25))
    if value <= p75:
        if p75 == p50:
            return 75
        return int(round_half_up(50 + (value - p50) / (p75 - p50) * 25))

    if p75 == 0:
        return 99
    extra = (value - p75) / p75 * 25
    return int(min(99, round_half_up(75 + extra)))


def interpolated_percentile(sorted_values: Sequence[float], p: float) -> float:
    """Linear interpolation between closest ranks of an ascending sequence."""
    if not sorted_values:
        return 0.0
    index = (p / 100) * (len(sorted_values) - 1)
    lower = int(index)
    upper = min(lower + 1, len(sorted_values) - 1)
    if index == lower:
        return float(sorted_values[lower])
    return sorted_values[lower] + (sorted_values[upper] - sorted_values[lower]) * (index - lower)
