"""Zoom level to nearby-query search radius."""

from __future__ import annotations

from typing import Tuple

# (minimum zoom, radius in metres), strictly descending by zoom.
RADIUS_STEPS: Tuple[Tuple[float, int], ...] = (
    (16.0, 200),
    (15.0, 500),
    (14.0, 1000),
    (13.0, 2000),
    (12.0, 5000),
)
FALLBACK_RADIUS_M = 10000


def _check_steps(steps: Tuple[Tuple[float, int], ...], fallback: int) -> None:
    radii = [radius for _, radius in steps] + [fallback]
    for (zoom_hi, _), (zoom_lo, _) in zip(steps, steps[1:]):
        if zoom_hi <= zoom_lo:
            raise ValueError("radius steps must be strictly descending by zoom")
    for closer, wider in zip(radii, radii[1:]):
        if closer > wider:
            raise ValueError("radius must not grow as zoom increases")


_check_steps(RADIUS_STEPS, FALLBACK_RADIUS_M)


def radius_metres(zoom: float) -> int:
    for min_zoom, radius in RADIUS_STEPS:
        if zoom >= min_zoom:
            return radius
    return FALLBACK_RADIUS_M


def radius_for_zoom(zoom: float) -> str:
    """Return the backend's distance string for a viewport zoom, e.g. ``"500m"``."""
    return f"{radius_metres(zoom)}m"
