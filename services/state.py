"""Engine state and the pure transitions that produce new versions of it."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Iterable, Optional, Tuple

from models.records import GeoPoint, NearbySample, Reading
from services.aqi import AQIStatus, classify
from services.heatmap import HeatmapLayer, layer_for_reading, layer_for_sample


@dataclass(frozen=True)
class SyncState:
    last_local_reading: Optional[Reading] = None
    last_posted_reading: Optional[Reading] = None
    last_post_time: Optional[datetime] = None
    current_position: Optional[GeoPoint] = None
    viewport_center: Optional[GeoPoint] = None
    zoom: float = 15.0
    nearby_samples: Tuple[NearbySample, ...] = ()
    aqi_status: Optional[AQIStatus] = None
    self_layer: Optional[HeatmapLayer] = None
    nearby_layers: Tuple[HeatmapLayer, ...] = ()

    @property
    def heatmap_layers(self) -> Tuple[HeatmapLayer, ...]:
        if self.self_layer is None:
            return self.nearby_layers
        return (self.self_layer,) + self.nearby_layers


def _self_layer(reading: Optional[Reading], position: Optional[GeoPoint]) -> Optional[HeatmapLayer]:
    if reading is None or position is None:
        return None
    return layer_for_reading(reading, position)


def initial_state(zoom: float = 15.0) -> SyncState:
    return SyncState(zoom=zoom)


def reading_received(state: SyncState, reading: Reading) -> SyncState:
    return replace(
        state,
        last_local_reading=reading,
        aqi_status=classify(reading.air_quality_raw),
        self_layer=_self_layer(reading, state.current_position),
    )


def reading_posted(state: SyncState, reading: Reading, posted_at: datetime) -> SyncState:
    return replace(state, last_posted_reading=reading, last_post_time=posted_at)


def position_changed(state: SyncState, position: GeoPoint) -> SyncState:
    return replace(
        state,
        current_position=position,
        viewport_center=state.viewport_center or position,
        self_layer=_self_layer(state.last_local_reading, position),
    )


def viewport_moved(state: SyncState, center: GeoPoint, zoom: float) -> SyncState:
    return replace(state, viewport_center=center, zoom=zoom)


def nearby_loaded(state: SyncState, samples: Iterable[NearbySample]) -> SyncState:
    """Replace the nearby result set wholesale; no merge with the previous one."""
    batch = tuple(samples)
    return replace(
        state,
        nearby_samples=batch,
        nearby_layers=tuple(layer_for_sample(sample) for sample in batch),
    )
