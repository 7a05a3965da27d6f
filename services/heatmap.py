"""Synthesis of weighted point clouds for heat-map renderers.

A renderer expects density input, so a single reading is spread into a blob:
the anchor at full intensity surrounded by concentric rings whose weight decays
with a Gaussian-like falloff. Distances are in degrees; at the ~50 m scale used
here a local equirectangular approximation is good enough.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Tuple

from models.records import GeoPoint, Metric, NearbySample, Reading, WeightedPoint

TEMPERATURE_SPAN_C = 50.0
HUMIDITY_SPAN_PCT = 100.0
AIR_QUALITY_SPAN = 1000.0

TEMPERATURE_SHARE = 0.2
HUMIDITY_SHARE = 0.2
AIR_QUALITY_SHARE = 0.6

COMPOSITE_FLOOR = 0.3
RING_WEIGHT_FLOOR = 0.2

# ~50 m expressed in degrees of latitude.
BASE_RADIUS_DEG = 0.00045
RING_FACTORS: Tuple[float, ...] = (0.3, 0.5, 0.7, 0.9, 1.0)
POINTS_PER_UNIT_FACTOR = 20
MIN_RING_POINTS = 8
MAX_RING_POINTS = 25
FALLOFF_K = 2.0

SELF_LAYER_ID = "my_sensor"


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


@dataclass(frozen=True)
class ChannelLevels:
    """The three channels of a reading, each normalized into [0, 1]."""

    temperature: float
    humidity: float
    air_quality: float

    @classmethod
    def from_values(cls, temperature: float, humidity: float, air_quality: float) -> "ChannelLevels":
        return cls(
            temperature=_clamp(temperature / TEMPERATURE_SPAN_C, 0.0, 1.0),
            humidity=_clamp(humidity / HUMIDITY_SPAN_PCT, 0.0, 1.0),
            air_quality=_clamp(air_quality / AIR_QUALITY_SPAN, 0.0, 1.0),
        )

    @property
    def composite(self) -> float:
        raw = (
            self.temperature * TEMPERATURE_SHARE
            + self.humidity * HUMIDITY_SHARE
            + self.air_quality * AIR_QUALITY_SHARE
        )
        return _clamp(raw, COMPOSITE_FLOOR, 1.0)

    @property
    def dominant(self) -> Metric:
        """Channel that drives the palette. Ties fall through to humidity."""
        if self.air_quality > self.temperature and self.air_quality > self.humidity:
            return Metric.air_quality
        if self.temperature > self.humidity:
            return Metric.temperature
        return Metric.humidity


@dataclass(frozen=True)
class HeatmapLayer:
    layer_id: str
    anchor: GeoPoint
    composite: float
    dominant: Metric
    points: List[WeightedPoint]


def ring_point_count(factor: float) -> int:
    return int(_clamp(int(factor * POINTS_PER_UNIT_FACTOR), MIN_RING_POINTS, MAX_RING_POINTS))


def synthesize(anchor: GeoPoint, composite: float) -> List[WeightedPoint]:
    """Return the anchor followed by every ring point around it."""
    composite = _clamp(composite, 0.0, 1.0)
    points = [WeightedPoint(position=anchor, weight=composite)]
    for factor in RING_FACTORS:
        radius = BASE_RADIUS_DEG * factor
        count = ring_point_count(factor)
        weight = _clamp(composite * math.exp(-FALLOFF_K * factor * factor), RING_WEIGHT_FLOOR, 1.0)
        for index in range(count):
            angle = 2 * math.pi * index / count
            position = GeoPoint(
                latitude=anchor.latitude + radius * math.cos(angle),
                longitude=anchor.longitude + radius * math.sin(angle),
            )
            points.append(WeightedPoint(position=position, weight=weight))
    return points


def layer_for_reading(reading: Reading, position: GeoPoint) -> HeatmapLayer:
    levels = ChannelLevels.from_values(reading.temperature, reading.humidity, reading.air_quality_raw)
    return _build_layer(SELF_LAYER_ID, position, levels)


def layer_for_sample(sample: NearbySample) -> HeatmapLayer:
    levels = ChannelLevels.from_values(sample.temperature, sample.humidity, sample.air_quality)
    return _build_layer(f"sensor_{sample.id}", sample.position, levels)


def _build_layer(layer_id: str, anchor: GeoPoint, levels: ChannelLevels) -> HeatmapLayer:
    composite = levels.composite
    return HeatmapLayer(
        layer_id=layer_id,
        anchor=anchor,
        composite=composite,
        dominant=levels.dominant,
        points=synthesize(anchor, composite),
    )
