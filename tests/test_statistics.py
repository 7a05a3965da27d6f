"""Unit tests for the statistics engine."""

from __future__ import annotations

import math
from datetime import datetime, timezone

import pytest

from models.records import GeoPoint, Metric, NearbySample
from services.statistics import Statistics, histogram, metric_values, stats_for, stats_of


def _sample(sample_id: str, temperature: float, humidity: float, air_quality: float) -> NearbySample:
    return NearbySample(
        id=sample_id,
        temperature=temperature,
        humidity=humidity,
        air_quality=air_quality,
        position=GeoPoint(12.97, 77.59),
        captured_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        distance_km=0.1,
    )


def test_empty_input_is_all_zeros() -> None:
    assert stats_of([]) == Statistics(min=0.0, max=0.0, mean=0.0, median=0.0, std_dev=0.0)


def test_single_value() -> None:
    assert stats_of([42.5]) == Statistics(min=42.5, max=42.5, mean=42.5, median=42.5, std_dev=0.0)


def test_odd_length_median_is_central_element() -> None:
    stats = stats_of([9.0, 1.0, 5.0])

    assert stats.median == 5.0
    assert stats.min == 1.0
    assert stats.max == 9.0
    assert stats.mean == 5.0


def test_even_length_median_averages_central_pair() -> None:
    assert stats_of([4.0, 1.0, 3.0, 2.0]).median == 2.5


def test_standard_deviation_is_population_form() -> None:
    stats = stats_of([2.0, 4.0, 4.0, 4.0, 5.0, 5.0, 7.0, 9.0])

    assert stats.mean == 5.0
    assert stats.std_dev == pytest.approx(2.0)


@pytest.mark.parametrize(
    "values",
    [
        [1.0, 2.0, 3.0],
        [-5.5, 0.0, 100.0, 3.25],
        [0.1] * 7,
        [1e9, -1e9, 3.0, 3.0],
        [25.0, 26.5, 24.75, 30.0, 18.0, 22.2],
    ],
)
def test_min_mean_median_max_ordering(values) -> None:
    stats = stats_of(values)

    assert stats.min <= stats.mean <= stats.max
    assert stats.min <= stats.median <= stats.max
    assert stats.std_dev >= 0.0


def test_accepts_generators() -> None:
    assert stats_of(float(value) for value in range(5)).median == 2.0


def test_stats_for_selects_metric() -> None:
    samples = [
        _sample("a", 20.0, 40.0, 100.0),
        _sample("b", 30.0, 60.0, 300.0),
    ]

    assert metric_values(samples, Metric.humidity) == [40.0, 60.0]
    assert stats_for(samples, Metric.temperature).mean == 25.0
    assert stats_for(samples, Metric.air_quality).max == 300.0
    assert stats_for([], Metric.air_quality) == Statistics()


def test_histogram_splits_range_into_equal_bins() -> None:
    bins = histogram([0.0, 1.0, 2.0, 3.0, 4.0], bins=4)

    assert [item.count for item in bins] == [1, 1, 1, 2]
    assert bins[0].lower == 0.0
    assert bins[-1].upper == pytest.approx(4.0)
    assert sum(item.count for item in bins) == 5


def test_histogram_is_empty_without_spread() -> None:
    assert histogram([], bins=10) == []
    assert histogram([7.0, 7.0, 7.0], bins=10) == []


def test_histogram_rejects_non_positive_bins() -> None:
    with pytest.raises(ValueError):
        histogram([1.0, 2.0], bins=0)


def test_std_dev_of_two_points() -> None:
    assert math.isclose(stats_of([1.0, 3.0]).std_dev, 1.0)
