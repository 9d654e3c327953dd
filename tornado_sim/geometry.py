"""Small numeric helpers and circle-circle overlap."""
from __future__ import annotations

import math
from typing import Sequence


def constrain(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def map_range(value: float, start1: float, stop1: float, start2: float, stop2: float) -> float:
    """Linear re-map of ``value`` from one range onto another; not clamped."""
    return start2 + (value - start1) * (stop2 - start2) / (stop1 - start1)


def distance(a: Sequence[float], b: Sequence[float]) -> float:
    return math.hypot(a[0] - b[0], a[1] - b[1])


def circle_overlap_area(r1: float, r2: float, d: float) -> float:
    """Area shared by two circles of radii ``r1`` and ``r2`` whose centers are ``d`` apart."""
    if d + r2 <= r1:
        return math.pi * r2 * r2
    if d + r1 <= r2:
        return math.pi * r1 * r1
    if d >= r1 + r2:
        return 0.0

    # Two circular segments; acos arguments clamped against rounding drift.
    phi = 2.0 * math.acos(constrain((d * d + r1 * r1 - r2 * r2) / (2.0 * d * r1), -1.0, 1.0))
    theta = 2.0 * math.acos(constrain((d * d + r2 * r2 - r1 * r1) / (2.0 * d * r2), -1.0, 1.0))
    segment1 = 0.5 * r1 * r1 * (phi - math.sin(phi))
    segment2 = 0.5 * r2 * r2 * (theta - math.sin(theta))
    return segment1 + segment2
