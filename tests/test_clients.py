"""HTTP clients for the local sensor and the backend, driven through httpx.MockTransport."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Callable, List

import httpx
import pytest

from models.errors import (
    MalformedReadingError,
    MalformedSampleError,
    TransportError,
    TransportTimeoutError,
    UpstreamStatusError,
)
from models.records import GeoPoint, Reading
from services.backend import BackendClient
from services.sensor import LocalSensorClient

BASE_URL = "http://backend.test/api/sensor"
SENSOR_URL = "http://sensor.test/sensor"
CENTER = GeoPoint(12.9716, 77.5946)

Handler = Callable[[httpx.Request], httpx.Response]


def _backend(handler: Handler) -> BackendClient:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return BackendClient(BASE_URL, client=client)


def _sensor(handler: Handler) -> LocalSensorClient:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return LocalSensorClient(SENSOR_URL, client=client)


def _raise(exc: Exception) -> Handler:
    def handler(request: httpx.Request) -> httpx.Response:
        raise exc

    return handler


def test_sensor_read_parses_reading() -> None:
    requests: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"temperature": 26.4, "humidity": 58, "air_quality_raw": 212})

    reading = asyncio.run(_sensor(handler).read())

    assert reading == Reading(26.4, 58.0, 212.0)
    assert requests[0].method == "GET"
    assert str(requests[0].url) == SENSOR_URL


def test_sensor_read_applies_timeout() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(request.extensions["timeout"])
        return httpx.Response(200, json={"temperature": 1, "humidity": 2, "air_quality_raw": 3})

    asyncio.run(_sensor(handler).read())

    assert seen["read"] == 8.0
    assert seen["connect"] == 8.0


@pytest.mark.parametrize(
    ("handler", "error"),
    [
        (lambda request: httpx.Response(503), UpstreamStatusError),
        (lambda request: httpx.Response(200, json={"temperature": 1, "humidity": 2}), MalformedReadingError),
        (lambda request: httpx.Response(200, text="<html>"), MalformedReadingError),
        (_raise(httpx.ReadTimeout("slow")), TransportTimeoutError),
        (_raise(httpx.ConnectError("refused")), TransportError),
    ],
)
def test_sensor_read_failures(handler: Handler, error: type) -> None:
    with pytest.raises(error):
        asyncio.run(_sensor(handler).read())


def test_post_reading_sends_decimal_strings() -> None:
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["body"] = json.loads(request.content)
        return httpx.Response(201, json={"queueSize": 4, "id": "rec-9"})

    receipt = asyncio.run(
        _backend(handler).post_reading(Reading(25.0, 60.0, 150.4), GeoPoint(12.9716, 77.5946))
    )

    assert captured["url"] == BASE_URL
    assert captured["body"] == {
        "temp": "25.0",
        "humidity": "60.0",
        "air_quality": "150",
        "lat": "12.971600",
        "lang": "77.594600",
    }
    assert receipt.queue_size == 4
    assert receipt.id == "rec-9"


def test_post_reading_accepts_empty_success_body() -> None:
    receipt = asyncio.run(
        _backend(lambda request: httpx.Response(200)).post_reading(Reading(1, 2, 3), CENTER)
    )

    assert receipt.queue_size is None


def test_post_reading_succeeds_with_unreadable_receipt() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(201, json={"queueSize": "n/a", "id": "x"})

    receipt = asyncio.run(_backend(handler).post_reading(Reading(1, 2, 3), CENTER))

    assert receipt.queue_size is None
    assert receipt.id is None


@pytest.mark.parametrize(
    ("handler", "error"),
    [
        (lambda request: httpx.Response(202, json={}), UpstreamStatusError),
        (lambda request: httpx.Response(500, json={"error": "db down"}), UpstreamStatusError),
        (_raise(httpx.WriteTimeout("slow")), TransportTimeoutError),
    ],
)
def test_post_reading_failures(handler: Handler, error: type) -> None:
    with pytest.raises(error):
        asyncio.run(_backend(handler).post_reading(Reading(1, 2, 3), CENTER))


def test_fetch_nearby_posts_query_and_parses_samples() -> None:
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["body"] = json.loads(request.content)
        captured["timeout"] = request.extensions["timeout"]["read"]
        return httpx.Response(
            200,
            json={
                "data": [
                    {
                        "id": "n1",
                        "temp": 22.0,
                        "humidity": 70.0,
                        "air_quality": 320.0,
                        "lat": 12.972,
                        "lang": 77.595,
                        "timestamp": "2024-05-01T10:00:00Z",
                        "distance_km": 0.08,
                    }
                ]
            },
        )

    samples = asyncio.run(_backend(handler).fetch_nearby(CENTER, "500m"))

    assert captured["url"] == f"{BASE_URL}/nearby"
    assert captured["body"] == {"lat": "12.971600", "lang": "77.594600", "distance": "500m"}
    assert captured["timeout"] == 5.0
    assert [sample.id for sample in samples] == ["n1"]
    assert samples[0].air_quality == 320.0


def test_fetch_nearby_raises_on_failure() -> None:
    with pytest.raises(UpstreamStatusError) as info:
        asyncio.run(_backend(lambda request: httpx.Response(404)).fetch_nearby(CENTER, "200m"))
    assert info.value.status_code == 404

    with pytest.raises(MalformedSampleError):
        asyncio.run(_backend(lambda request: httpx.Response(200, text="oops")).fetch_nearby(CENTER, "200m"))


@pytest.mark.parametrize(
    "handler",
    [
        lambda request: httpx.Response(500),
        lambda request: httpx.Response(200, json={"status": "ok"}),
        _raise(httpx.ReadTimeout("slow")),
    ],
)
def test_query_nearby_returns_empty_on_failure(handler: Handler, caplog) -> None:
    with caplog.at_level(logging.WARNING):
        assert asyncio.run(_backend(handler).query_nearby(CENTER, "200m")) == []
