"""Air-quality severity classification."""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass
from enum import Enum
from typing import Tuple


class AQILabel(str, Enum):
    excellent = "Excellent"
    good = "Good"
    moderate = "Moderate"
    poor = "Poor"
    unhealthy = "Unhealthy"
    hazardous = "Hazardous"


@dataclass(frozen=True)
class AQIStatus:
    label: AQILabel
    severity_rank: int


# Lower bound of every band after the first; band i covers [_BOUNDS[i-1], _BOUNDS[i]).
_BOUNDS: Tuple[float, ...] = (100.0, 200.0, 300.0, 400.0, 500.0)
_LABELS: Tuple[AQILabel, ...] = tuple(AQILabel)


def _check_bands(bounds: Tuple[float, ...], labels: Tuple[AQILabel, ...]) -> None:
    if len(labels) != len(bounds) + 1:
        raise ValueError("every band needs exactly one label")
    for lower, upper in zip(bounds, bounds[1:]):
        if lower >= upper:
            raise ValueError("band bounds must be strictly ascending")


_check_bands(_BOUNDS, _LABELS)


def classify(raw_value: float) -> AQIStatus:
    """Map a raw air-quality reading onto the six-step severity scale.

    Boundaries belong to the upper band (``100`` is Good, ``500`` is Hazardous)
    and there is no hysteresis, so a value hovering on a boundary flips label on
    every call.
    """
    rank = bisect_right(_BOUNDS, raw_value)
    return AQIStatus(label=_LABELS[rank], severity_rank=rank)
