"""HTTP client for the telemetry backend: posting readings and proximity queries."""

from __future__ import annotations

import logging
import time
from typing import List, Optional

import httpx

from models.errors import SensorSyncError
from models.payloads import (
    PostReceipt,
    encode_nearby_query,
    encode_reading,
    parse_nearby_response,
    parse_post_receipt,
)
from models.records import GeoPoint, NearbySample, Reading
from services.transport import decode_json, send

logger = logging.getLogger(__name__)

_POST_ACCEPTED = (200, 201)


class BackendClient:
    """Talks to ``POST {base_url}`` and ``POST {base_url}/nearby``.

    Nothing here retries; the poll loop and viewport events are the retry policy.
    """

    def __init__(
        self,
        base_url: str,
        post_timeout: float = 8.0,
        nearby_timeout: float = 5.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.post_timeout = post_timeout
        self.nearby_timeout = nearby_timeout
        self._client = client or httpx.AsyncClient()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def post_reading(self, reading: Reading, position: GeoPoint) -> PostReceipt:
        response = await send(
            self._client,
            "POST",
            self.base_url,
            timeout=self.post_timeout,
            accept=_POST_ACCEPTED,
            json=encode_reading(reading, position),
        )
        receipt = parse_post_receipt(decode_json(response))
        logger.info(
            "Reading posted",
            extra={
                "status": response.status_code,
                "lat": f"{position.latitude:.6f}",
                "lng": f"{position.longitude:.6f}",
                "queue_size": receipt.queue_size,
                "record_id": receipt.id,
            },
        )
        return receipt

    async def fetch_nearby(self, center: GeoPoint, radius: str) -> List[NearbySample]:
        """Run one proximity query. Raises ``SensorSyncError`` subclasses on failure."""
        started = time.perf_counter()
        response = await send(
            self._client,
            "POST",
            f"{self.base_url}/nearby",
            timeout=self.nearby_timeout,
            json=encode_nearby_query(center, radius),
        )
        samples = parse_nearby_response(decode_json(response))
        logger.debug(
            "Nearby query answered",
            extra={
                "radius": radius,
                "sample_count": len(samples),
                "elapsed_ms": int((time.perf_counter() - started) * 1000),
            },
        )
        return samples

    async def query_nearby(self, center: GeoPoint, radius: str) -> List[NearbySample]:
        """Like :meth:`fetch_nearby` but a failed call yields an empty list."""
        try:
            return await self.fetch_nearby(center, radius)
        except SensorSyncError as exc:
            logger.warning("Nearby query failed", extra={"radius": radius, "reason": str(exc)})
            return []
