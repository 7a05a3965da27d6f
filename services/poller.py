"""Fixed-interval local sensor polling with upstream relay."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from models.errors import SensorSyncError
from models.payloads import PostReceipt
from models.records import GeoPoint, Reading
from services.backend import BackendClient
from services.scheduler import IntervalTimer, Scheduler, TaskTracker
from services.sensor import LocalSensorClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PollOutcome:
    """Result of one successful sensor read. ``receipt`` is None when nothing was posted."""

    reading: Reading
    position: Optional[GeoPoint] = None
    receipt: Optional[PostReceipt] = None
    posted_at: Optional[datetime] = None

    @property
    def posted(self) -> bool:
        return self.receipt is not None


class SensorPoller:
    """Reads the local sensor every tick and relays each reading to the backend.

    Every tick posts, even when the reading has not changed since the last one;
    the backend treats the stream as a liveness signal. Failures skip the tick
    without backing off.
    """

    def __init__(
        self,
        sensor: LocalSensorClient,
        backend: BackendClient,
        scheduler: Scheduler,
        position_provider: Callable[[], Optional[GeoPoint]],
        on_outcome: Callable[[PollOutcome], None],
    ) -> None:
        self._sensor = sensor
        self._backend = backend
        self._scheduler = scheduler
        self._position_provider = position_provider
        self._on_outcome = on_outcome
        self._timer: Optional[IntervalTimer] = None
        self._tasks = TaskTracker()
        # Timer whose tick is currently reading or posting; cleared on stop.
        self._in_flight: Optional[IntervalTimer] = None

    @property
    def polling(self) -> bool:
        return self._timer is not None and self._timer.running

    def start_polling(self, interval_seconds: float) -> None:
        self.stop_polling()
        self._timer = IntervalTimer(self._scheduler, interval_seconds, self._tick)
        self._timer.start(immediate=True)

    def stop_polling(self) -> None:
        if self._timer is not None:
            self._timer.stop()
            self._timer = None
        self._in_flight = None

    async def drain(self) -> None:
        await self._tasks.drain()

    def _tick(self) -> None:
        if self._in_flight is not None:
            logger.warning("Skipping poll tick", extra={"reason": "previous tick still in flight"})
            return
        owner = self._timer
        self._in_flight = owner
        self._tasks.spawn(self._run_tick(owner))

    async def _run_tick(self, owner: Optional[IntervalTimer]) -> None:
        try:
            await self.poll_once()
        finally:
            if self._in_flight is owner:
                self._in_flight = None

    async def poll_once(self) -> Optional[PollOutcome]:
        """Read, post when a position is known, and report the outcome. None if the read failed."""
        try:
            reading = await self._sensor.read()
        except SensorSyncError as exc:
            logger.warning("Poll tick failed", extra={"reason": str(exc)})
            return None

        position = self._position_provider()
        receipt: Optional[PostReceipt] = None
        posted_at: Optional[datetime] = None
        if position is None:
            logger.info("Reading not posted", extra={"reason": "position unknown"})
        else:
            try:
                receipt = await self._backend.post_reading(reading, position)
                posted_at = datetime.now(timezone.utc)
            except SensorSyncError as exc:
                logger.warning("Posting reading failed", extra={"reason": str(exc)})

        outcome = PollOutcome(reading=reading, position=position, receipt=receipt, posted_at=posted_at)
        self._on_outcome(outcome)
        return outcome
