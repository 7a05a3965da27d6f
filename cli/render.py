from __future__ import annotations

from typing import Any, Iterable, Sequence

import typer

from models.records import Metric, NearbySample, Reading
from services.aqi import AQIStatus, classify
from services.heatmap import ChannelLevels
from services.statistics import histogram, metric_values, stats_of

_SEVERITY_COLORS = (
    typer.colors.GREEN,
    typer.colors.BRIGHT_GREEN,
    typer.colors.YELLOW,
    typer.colors.BRIGHT_YELLOW,
    typer.colors.RED,
    typer.colors.MAGENTA,
)


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def echo_error(message: str) -> None:
    typer.secho(message, fg=typer.colors.RED, err=True)


def render_aqi(raw_value: float, status: AQIStatus) -> None:
    typer.secho(
        f"{raw_value:.0f} -> {status.label.value} (severity {status.severity_rank})",
        fg=_SEVERITY_COLORS[status.severity_rank],
    )


def render_reading(reading: Reading) -> None:
    echo_heading("Reading")
    levels = ChannelLevels.from_values(reading.temperature, reading.humidity, reading.air_quality_raw)
    echo_key_values(
        [
            ("temperature", f"{reading.temperature:.1f}C"),
            ("humidity", f"{reading.humidity:.0f}%"),
            ("air_quality_raw", f"{reading.air_quality_raw:.0f}"),
            ("composite_weight", f"{levels.composite:.2f}"),
            ("dominant_channel", levels.dominant.value),
        ]
    )
    render_aqi(reading.air_quality_raw, classify(reading.air_quality_raw))


def render_samples(samples: Sequence[NearbySample], radius: str) -> None:
    echo_heading(f"Nearby samples ({len(samples)} within {radius})")
    if not samples:
        typer.echo("No samples found.")
        return
    for sample in samples:
        status = classify(sample.air_quality)
        typer.echo(
            f"  - {sample.id}: {sample.temperature:.1f}C {sample.humidity:.0f}% "
            f"AQI {sample.air_quality:.0f} ({status.label.value}) "
            f"| {sample.distance_km:.2f}km"
        )


def render_statistics(samples: Sequence[NearbySample], bins: int = 4) -> None:
    for metric in Metric:
        values = metric_values(samples, metric)
        stats = stats_of(values)
        typer.echo()
        echo_heading(f"Statistics: {metric.value}")
        echo_key_values(
            [
                ("min", f"{stats.min:.2f}"),
                ("max", f"{stats.max:.2f}"),
                ("mean", f"{stats.mean:.2f}"),
                ("median", f"{stats.median:.2f}"),
                ("std_dev", f"{stats.std_dev:.2f}"),
            ]
        )
        for item in histogram(values, bins):
            typer.echo(f"  [{item.lower:.1f}, {item.upper:.1f}): {item.count}")
