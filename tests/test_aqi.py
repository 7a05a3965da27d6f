"""Tests for the AQI severity classifier."""

from __future__ import annotations

import pytest

from services.aqi import _BOUNDS, _LABELS, AQILabel, _check_bands, classify


@pytest.mark.parametrize(
    ("raw_value", "label", "rank"),
    [
        (0.0, AQILabel.excellent, 0),
        (99.999, AQILabel.excellent, 0),
        (100.0, AQILabel.good, 1),
        (150.0, AQILabel.good, 1),
        (199.9, AQILabel.good, 1),
        (200.0, AQILabel.moderate, 2),
        (300.0, AQILabel.poor, 3),
        (400.0, AQILabel.unhealthy, 4),
        (499.999, AQILabel.unhealthy, 4),
        (500.0, AQILabel.hazardous, 5),
        (10_000.0, AQILabel.hazardous, 5),
    ],
)
def test_bands_are_half_open(raw_value: float, label: AQILabel, rank: int) -> None:
    status = classify(raw_value)

    assert status.label is label
    assert status.severity_rank == rank


def test_negative_values_are_excellent() -> None:
    assert classify(-20.0).label is AQILabel.excellent


def test_severity_is_monotonic() -> None:
    values = [step * 7.5 for step in range(0, 100)]
    ranks = [classify(value).severity_rank for value in values]

    assert ranks == sorted(ranks)
    assert ranks[0] == 0
    assert ranks[-1] == 5


def test_no_hysteresis_across_boundary() -> None:
    labels = [classify(value).label for value in (99.5, 100.5, 99.5, 100.5)]

    assert labels == [AQILabel.excellent, AQILabel.good, AQILabel.excellent, AQILabel.good]


def test_labels_are_display_strings() -> None:
    assert classify(250).label.value == "Moderate"


def test_band_table_is_validated() -> None:
    _check_bands(_BOUNDS, _LABELS)

    with pytest.raises(ValueError):
        _check_bands((100.0, 200.0), _LABELS)
    with pytest.raises(ValueError):
        _check_bands((100.0, 300.0, 200.0, 400.0, 500.0), _LABELS)
