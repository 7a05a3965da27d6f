"""Descriptive statistics over nearby samples."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, List, Sequence

from models.records import Metric, NearbySample


@dataclass(frozen=True)
class Statistics:
    """Summary of a batch of samples. Every field is 0.0 for an empty batch."""

    min: float = 0.0
    max: float = 0.0
    mean: float = 0.0
    median: float = 0.0
    std_dev: float = 0.0


@dataclass(frozen=True)
class HistogramBin:
    lower: float
    upper: float
    count: int


def stats_of(values: Iterable[float]) -> Statistics:
    ordered = sorted(values)
    count = len(ordered)
    if not count:
        return Statistics()

    mean = sum(ordered) / count
    middle = count // 2
    if count % 2:
        median = ordered[middle]
    else:
        median = (ordered[middle - 1] + ordered[middle]) / 2

    # Population variance: divide by n, not n - 1.
    variance = sum((value - mean) ** 2 for value in ordered) / count

    return Statistics(
        min=ordered[0],
        max=ordered[-1],
        # Float rounding can push the mean of identical values a hair outside [min, max].
        mean=min(max(mean, ordered[0]), ordered[-1]),
        median=median,
        std_dev=math.sqrt(variance),
    )


def metric_values(samples: Iterable[NearbySample], metric: Metric) -> List[float]:
    return [sample.value_of(metric) for sample in samples]


def stats_for(samples: Iterable[NearbySample], metric: Metric) -> Statistics:
    return stats_of(metric_values(samples, metric))


def histogram(values: Sequence[float], bins: int = 10) -> List[HistogramBin]:
    """Split ``values`` into equal-width bins between their min and max.

    Bins are half-open except the last, which also holds the maximum. Returns an
    empty list when there is nothing to spread (no values or a zero range).
    """
    if bins <= 0:
        raise ValueError("bins must be positive")
    if not values:
        return []

    low = min(values)
    high = max(values)
    span = high - low
    if span == 0:
        return []

    width = span / bins
    counts = [0] * bins
    for value in values:
        index = min(int((value - low) / width), bins - 1)
        counts[index] += 1

    return [
        HistogramBin(lower=low + index * width, upper=low + (index + 1) * width, count=count)
        for index, count in enumerate(counts)
    ]
