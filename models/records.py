"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Metric(str, Enum):
    """Channels carried by every reading."""

    temperature = "temperature"
    humidity = "humidity"
    air_quality = "air_quality"


@dataclass(frozen=True, slots=True)
class GeoPoint:
    latitude: float
    longitude: float


@dataclass(frozen=True, slots=True)
class Reading:
    """A single sample from the local sensor.

    Two readings compare equal when their three channels match; ``captured_at``
    is bookkeeping only.
    """

    temperature: float
    humidity: float
    air_quality_raw: float
    captured_at: datetime = field(default_factory=_utcnow, compare=False)


@dataclass(frozen=True, slots=True)
class NearbySample:
    """A reading recorded by another client, as returned by the proximity query."""

    id: str
    temperature: float
    humidity: float
    air_quality: float
    position: GeoPoint
    captured_at: datetime
    distance_km: float

    def value_of(self, metric: Metric) -> float:
        if metric is Metric.temperature:
            return self.temperature
        if metric is Metric.humidity:
            return self.humidity
        return self.air_quality


@dataclass(frozen=True, slots=True)
class WeightedPoint:
    position: GeoPoint
    weight: float
