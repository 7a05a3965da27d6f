"""Wire schemas for the local sensor and the backend, with total parse functions.

Each ``parse_*`` function either returns fully built domain objects or raises a
``Malformed*Error``; callers never see half-populated records.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from models.errors import MalformedReadingError, MalformedSampleError
from models.records import GeoPoint, NearbySample, Reading

logger = logging.getLogger(__name__)


class LocalSensorPayload(BaseModel):
    """Body of ``GET {local_sensor_url}``. Channels must be JSON numbers."""

    model_config = ConfigDict(extra="ignore")

    temperature: float = Field(..., strict=True, allow_inf_nan=False)
    humidity: float = Field(..., strict=True, allow_inf_nan=False)
    air_quality_raw: float = Field(..., strict=True, allow_inf_nan=False)


class NearbySamplePayload(BaseModel):
    """One element of the ``data`` array returned by ``POST {base_url}/nearby``."""

    model_config = ConfigDict(extra="ignore")

    id: Union[str, int]
    temp: float = Field(..., allow_inf_nan=False)
    humidity: float = Field(..., allow_inf_nan=False)
    air_quality: float = Field(..., allow_inf_nan=False)
    lat: float = Field(..., ge=-90, le=90)
    lang: float = Field(..., ge=-180, le=180)
    timestamp: datetime
    distance_km: float = Field(..., ge=0, allow_inf_nan=False)

    @field_validator("timestamp")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class NearbyResponsePayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    data: Optional[List[Any]] = None


class PostReceipt(BaseModel):
    """Success body of ``POST {base_url}``. Both fields are optional."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    queue_size: Optional[int] = Field(default=None, alias="queueSize")
    id: Optional[Union[str, int]] = None


def _describe(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error["loc"]) or "body"
        parts.append(f"{location}: {error['msg']}")
    return "; ".join(parts)


def parse_reading(payload: Any) -> Reading:
    try:
        parsed = LocalSensorPayload.model_validate(payload)
    except ValidationError as exc:
        raise MalformedReadingError(_describe(exc)) from exc
    return Reading(
        temperature=parsed.temperature,
        humidity=parsed.humidity,
        air_quality_raw=parsed.air_quality_raw,
    )


def parse_sample(payload: Any) -> NearbySample:
    try:
        parsed = NearbySamplePayload.model_validate(payload)
    except ValidationError as exc:
        raise MalformedSampleError(_describe(exc)) from exc
    return NearbySample(
        id=str(parsed.id),
        temperature=parsed.temp,
        humidity=parsed.humidity,
        air_quality=parsed.air_quality,
        position=GeoPoint(latitude=parsed.lat, longitude=parsed.lang),
        captured_at=parsed.timestamp,
        distance_km=parsed.distance_km,
    )


def parse_nearby_response(payload: Any) -> List[NearbySample]:
    """Parse the proximity query body.

    A body without ``data`` is an empty result. Elements that fail validation
    are dropped individually and logged; the rest of the batch is kept.
    """
    try:
        envelope = NearbyResponsePayload.model_validate(payload)
    except ValidationError as exc:
        raise MalformedSampleError(_describe(exc)) from exc

    samples: List[NearbySample] = []
    for index, item in enumerate(envelope.data or []):
        try:
            samples.append(parse_sample(item))
        except MalformedSampleError as exc:
            logger.warning(
                "Dropping malformed nearby sample at index %d",
                index,
                extra={"reason": str(exc)},
            )
    return samples


def parse_post_receipt(payload: Any) -> PostReceipt:
    """Best-effort read of the post diagnostics; an odd body never fails the post."""
    if payload is None:
        return PostReceipt()
    try:
        return PostReceipt.model_validate(payload)
    except ValidationError as exc:
        logger.warning("Ignoring unreadable post receipt", extra={"reason": _describe(exc)})
        return PostReceipt()


def encode_reading(reading: Reading, position: GeoPoint) -> dict[str, str]:
    return {
        "temp": str(reading.temperature),
        "humidity": str(reading.humidity),
        "air_quality": f"{reading.air_quality_raw:.0f}",
        "lat": f"{position.latitude:.6f}",
        "lang": f"{position.longitude:.6f}",
    }


def encode_nearby_query(center: GeoPoint, radius: str) -> dict[str, str]:
    return {
        "lat": f"{center.latitude:.6f}",
        "lang": f"{center.longitude:.6f}",
        "distance": radius,
    }
