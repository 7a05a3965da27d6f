"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from models.records import GeoPoint, Metric, NearbySample, Reading
from services.aqi import AQILabel, AQIStatus, classify
from services.heatmap import HeatmapLayer
from services.state import SyncState
from services.statistics import HistogramBin, Statistics


class Coordinates(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)

    @classmethod
    def from_point(cls, point: GeoPoint) -> "Coordinates":
        return cls(latitude=point.latitude, longitude=point.longitude)

    def to_point(self) -> GeoPoint:
        return GeoPoint(latitude=self.latitude, longitude=self.longitude)


class ViewportUpdate(BaseModel):
    """Map camera movement reported by the renderer."""

    center: Coordinates
    zoom: float = Field(..., ge=0, le=30)


class ReadingView(BaseModel):
    temperature: float
    humidity: float
    air_quality_raw: float
    captured_at: datetime

    @classmethod
    def from_reading(cls, reading: Reading) -> "ReadingView":
        return cls(
            temperature=reading.temperature,
            humidity=reading.humidity,
            air_quality_raw=reading.air_quality_raw,
            captured_at=reading.captured_at,
        )


class AQIView(BaseModel):
    label: AQILabel
    severity_rank: int = Field(..., ge=0, le=5)

    @classmethod
    def from_status(cls, status: AQIStatus) -> "AQIView":
        return cls(label=status.label, severity_rank=status.severity_rank)


class NearbySampleView(BaseModel):
    id: str
    temperature: float
    humidity: float
    air_quality: float
    position: Coordinates
    captured_at: datetime
    distance_km: float
    aqi: AQIView

    @classmethod
    def from_sample(cls, sample: NearbySample, aqi: AQIStatus) -> "NearbySampleView":
        return cls(
            id=sample.id,
            temperature=sample.temperature,
            humidity=sample.humidity,
            air_quality=sample.air_quality,
            position=Coordinates.from_point(sample.position),
            captured_at=sample.captured_at,
            distance_km=sample.distance_km,
            aqi=AQIView.from_status(aqi),
        )


class StateView(BaseModel):
    """Snapshot of the engine state for renderers."""

    running: bool
    last_reading: Optional[ReadingView] = None
    last_posted_reading: Optional[ReadingView] = None
    last_post_time: Optional[datetime] = None
    aqi: Optional[AQIView] = None
    position: Optional[Coordinates] = None
    viewport_center: Optional[Coordinates] = None
    zoom: float
    radius: str
    nearby: List[NearbySampleView] = Field(default_factory=list)


class WeightedPointView(BaseModel):
    latitude: float
    longitude: float
    weight: float = Field(..., ge=0, le=1)


class HeatmapLayerView(BaseModel):
    layer_id: str
    dominant: Metric
    composite: float = Field(..., ge=0, le=1)
    points: List[WeightedPointView]

    @classmethod
    def from_layer(cls, layer: HeatmapLayer) -> "HeatmapLayerView":
        return cls(
            layer_id=layer.layer_id,
            dominant=layer.dominant,
            composite=layer.composite,
            points=[
                WeightedPointView(
                    latitude=point.position.latitude,
                    longitude=point.position.longitude,
                    weight=point.weight,
                )
                for point in layer.points
            ],
        )


class HistogramBinView(BaseModel):
    lower: float
    upper: float
    count: int = Field(..., ge=0)

    @classmethod
    def from_bin(cls, item: HistogramBin) -> "HistogramBinView":
        return cls(lower=item.lower, upper=item.upper, count=item.count)


class StatisticsView(BaseModel):
    metric: Metric
    sample_count: int = Field(..., ge=0)
    min: float
    max: float
    mean: float
    median: float
    std_dev: float
    histogram: List[HistogramBinView] = Field(default_factory=list)

    @classmethod
    def build(
        cls, metric: Metric, sample_count: int, stats: Statistics, bins: List[HistogramBin]
    ) -> "StatisticsView":
        return cls(
            metric=metric,
            sample_count=sample_count,
            min=stats.min,
            max=stats.max,
            mean=stats.mean,
            median=stats.median,
            std_dev=stats.std_dev,
            histogram=[HistogramBinView.from_bin(item) for item in bins],
        )


def _optional_point(point: Optional[GeoPoint]) -> Optional[Coordinates]:
    return Coordinates.from_point(point) if point is not None else None


def _optional_reading(reading: Optional[Reading]) -> Optional[ReadingView]:
    return ReadingView.from_reading(reading) if reading is not None else None


def state_view(state: SyncState, running: bool, radius: str) -> StateView:
    return StateView(
        running=running,
        last_reading=_optional_reading(state.last_local_reading),
        last_posted_reading=_optional_reading(state.last_posted_reading),
        last_post_time=state.last_post_time,
        aqi=AQIView.from_status(state.aqi_status) if state.aqi_status is not None else None,
        position=_optional_point(state.current_position),
        viewport_center=_optional_point(state.viewport_center),
        zoom=state.zoom,
        radius=radius,
        nearby=[
            NearbySampleView.from_sample(sample, classify(sample.air_quality))
            for sample in state.nearby_samples
        ],
    )
