"""HTTP route definitions for the service."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from app.schemas import (
    Coordinates,
    HeatmapLayerView,
    StateView,
    StatisticsView,
    ViewportUpdate,
    state_view,
)
from models.records import Metric
from services.coordinator import SyncCoordinator, build_default_coordinator
from services.radius import radius_for_zoom
from services.statistics import histogram, metric_values, stats_of

router = APIRouter()


def get_coordinator() -> SyncCoordinator:
    return build_default_coordinator()


def _snapshot(coordinator: SyncCoordinator) -> StateView:
    state = coordinator.state
    return state_view(state, running=coordinator.running, radius=radius_for_zoom(state.zoom))


# Handlers that touch the coordinator stay ``async`` so they run on the engine's event loop.


@router.get(
    "/state",
    response_model=StateView,
    summary="Current engine state: last reading, AQI, viewport and nearby samples.",
)
async def get_state(coordinator: SyncCoordinator = Depends(get_coordinator)) -> StateView:
    return _snapshot(coordinator)


@router.get(
    "/heatmap",
    response_model=List[HeatmapLayerView],
    summary="Weighted point layers, own sensor first, then one per nearby sample.",
)
async def get_heatmap(
    coordinator: SyncCoordinator = Depends(get_coordinator),
) -> List[HeatmapLayerView]:
    return [HeatmapLayerView.from_layer(layer) for layer in coordinator.heatmap_layers()]


@router.get(
    "/statistics/{metric}",
    response_model=StatisticsView,
    summary="Descriptive statistics of one channel across the nearby samples.",
)
async def get_statistics(
    metric: str,
    bins: int = 10,
    coordinator: SyncCoordinator = Depends(get_coordinator),
) -> StatisticsView:
    try:
        selected = Metric(metric)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown metric {metric!r}.",
        ) from exc
    if bins <= 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="bins must be positive.",
        )
    values = metric_values(coordinator.state.nearby_samples, selected)
    return StatisticsView.build(selected, len(values), stats_of(values), histogram(values, bins))


@router.post(
    "/position",
    response_model=StateView,
    summary="Report the client's own position.",
)
async def post_position(
    position: Coordinates,
    coordinator: SyncCoordinator = Depends(get_coordinator),
) -> StateView:
    coordinator.update_position(position.to_point())
    return _snapshot(coordinator)


@router.post(
    "/viewport",
    response_model=StateView,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Report a map camera move; the nearby query follows after the quiet period.",
)
async def post_viewport(
    update: ViewportUpdate,
    coordinator: SyncCoordinator = Depends(get_coordinator),
) -> StateView:
    coordinator.on_viewport_moved(update.center.to_point(), update.zoom)
    return _snapshot(coordinator)


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}
