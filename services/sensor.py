"""Client for the local sensor's HTTP endpoint."""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from models.payloads import parse_reading
from models.records import Reading
from services.transport import decode_json, send

logger = logging.getLogger(__name__)


class LocalSensorClient:
    """Reads one sample per call from ``GET {url}``."""

    def __init__(
        self,
        url: str,
        timeout: float = 8.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self._client = client or httpx.AsyncClient()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def read(self) -> Reading:
        """Fetch and parse a reading.

        Raises ``TransportTimeoutError``/``TransportError`` when the sensor is
        unreachable, ``UpstreamStatusError`` on a non-200 answer and
        ``MalformedReadingError`` when a channel is missing or not a number.
        """
        response = await send(self._client, "GET", self.url, timeout=self.timeout)
        reading = parse_reading(decode_json(response))
        logger.debug("Local sensor read", extra={"reading": _format(reading)})
        return reading


def _format(reading: Reading) -> str:
    return f"{reading.temperature}C/{reading.humidity}%/{reading.air_quality_raw:.0f}"
