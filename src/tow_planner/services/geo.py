from __future__ import annotations

import math
from collections.abc import Sequence

from tow_planner.services.types import Coordinate


def sample_polyline(points: Sequence[Coordinate], max_points: int) -> list[Coordinate]:
    """Evenly thin a polyline to at most ``max_points``, keeping both endpoints."""
    max_points = max(max_points, 2)
    if len(points) <= max_points:
        return list(points)

    step = max(1, math.ceil(len(points) / max_points))
    sampled = list(points[::step])
    if sampled[-1] != points[-1]:
        if len(sampled) >= max_points:
            sampled[-1] = points[-1]
        else:
            sampled.append(points[-1])
    return sampled


def climb_totals(elevations: Sequence[float]) -> tuple[float, float]:
    """Total ascent and descent (same unit as the input) along a profile."""
    ascent = 0.0
    descent = 0.0
    for previous, current in zip(elevations, elevations[1:]):
        delta = current - previous
        if delta > 0:
            ascent += delta
        else:
            descent -= delta
    return ascent, descent
