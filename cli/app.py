from __future__ import annotations

import asyncio
from dataclasses import dataclass, replace
from typing import Optional

import typer

from cli.render import echo_error, render_aqi, render_reading, render_samples, render_statistics
from logging_config import configure_logging
from models.errors import SensorSyncError
from models.records import GeoPoint
from services.aqi import classify
from services.backend import BackendClient
from services.poller import PollOutcome, SensorPoller
from services.radius import radius_for_zoom
from services.scheduler import AsyncioScheduler
from services.sensor import LocalSensorClient
from settings import Settings, get_settings


@dataclass
class CLIState:
    settings: Settings


app = typer.Typer(
    help="Utilities for the sensor sync engine: classify readings and query the backend.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1)
    return state


def _build_backend(settings: Settings) -> BackendClient:
    return BackendClient(
        settings.backend_url,
        post_timeout=settings.post_timeout,
        nearby_timeout=settings.nearby_timeout,
    )


def _build_sensor(settings: Settings) -> LocalSensorClient:
    return LocalSensorClient(settings.local_sensor_url, timeout=settings.read_timeout)


@app.callback()
def main(
    ctx: typer.Context,
    backend_url: Optional[str] = typer.Option(
        None,
        "--backend-url",
        "-b",
        help="Backend base URL (defaults to SENSOR_BACKEND_URL env).",
    ),
    sensor_url: Optional[str] = typer.Option(
        None,
        "--sensor-url",
        "-s",
        help="Local sensor endpoint (defaults to LOCAL_SENSOR_URL env).",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log engine activity to stderr."),
) -> None:
    """Entry point for the CLI."""
    settings = get_settings()
    if backend_url:
        settings = replace(settings, backend_url=backend_url.rstrip("/"))
    if sensor_url:
        settings = replace(settings, local_sensor_url=sensor_url.rstrip("/"))
    if verbose:
        configure_logging("DEBUG")
    ctx.obj = CLIState(settings=settings)


@app.command("classify")
def classify_command(
    value: float = typer.Argument(..., help="Raw air-quality value."),
) -> None:
    """Print the AQI severity band for a raw air-quality value."""
    render_aqi(value, classify(value))


@app.command("radius")
def radius_command(
    zoom: float = typer.Argument(..., help="Map zoom level."),
) -> None:
    """Print the nearby search radius used at a zoom level."""
    typer.echo(radius_for_zoom(zoom))


@app.command("nearby")
def nearby_command(
    ctx: typer.Context,
    lat: float = typer.Argument(..., min=-90, max=90, help="Latitude of the query center."),
    lng: float = typer.Argument(..., min=-180, max=180, help="Longitude of the query center."),
    zoom: float = typer.Option(15.0, "--zoom", "-z", help="Zoom level used to pick the radius."),
    bins: int = typer.Option(4, "--bins", min=1, help="Histogram bins per metric."),
) -> None:
    """Query the backend for readings around a point and summarize them."""
    state = _get_state(ctx)
    radius = radius_for_zoom(zoom)
    backend = _build_backend(state.settings)

    async def run():
        try:
            return await backend.fetch_nearby(GeoPoint(latitude=lat, longitude=lng), radius)
        finally:
            await backend.aclose()

    try:
        samples = asyncio.run(run())
    except SensorSyncError as exc:
        echo_error(f"Nearby query failed: {exc}")
        raise typer.Exit(code=1) from exc

    render_samples(samples, radius)
    if samples:
        render_statistics(samples, bins)


@app.command("poll")
def poll_command(
    ctx: typer.Context,
    lat: Optional[float] = typer.Option(None, "--lat", min=-90, max=90, help="Current latitude."),
    lng: Optional[float] = typer.Option(None, "--lng", min=-180, max=180, help="Current longitude."),
) -> None:
    """Run a single poll tick: read the local sensor and post it when a position is given."""
    if (lat is None) != (lng is None):
        raise typer.BadParameter("--lat and --lng must be given together.")
    state = _get_state(ctx)
    position = GeoPoint(latitude=lat, longitude=lng) if lat is not None and lng is not None else None
    sensor = _build_sensor(state.settings)
    backend = _build_backend(state.settings)

    async def run() -> Optional[PollOutcome]:
        poller = SensorPoller(
            sensor=sensor,
            backend=backend,
            scheduler=AsyncioScheduler(),
            position_provider=lambda: position,
            on_outcome=lambda _outcome: None,
        )
        try:
            return await poller.poll_once()
        finally:
            await sensor.aclose()
            await backend.aclose()

    outcome = asyncio.run(run())
    if outcome is None:
        echo_error(f"Could not read the local sensor at {state.settings.local_sensor_url}.")
        raise typer.Exit(code=1)

    render_reading(outcome.reading)
    if position is None:
        typer.echo("Not posted: no position given.")
    elif outcome.receipt is None:
        echo_error("Posting to the backend failed.")
        raise typer.Exit(code=1)
    else:
        typer.secho(
            f"Posted. queue_size={outcome.receipt.queue_size} id={outcome.receipt.id}",
            fg=typer.colors.GREEN,
        )
