"""Engine coordinator: owns the sync state, the timers and the subscribers."""

from __future__ import annotations

import itertools
import logging
from functools import lru_cache
from typing import Callable, List, Optional

from models.errors import SensorSyncError
from models.records import GeoPoint, Metric
from services.backend import BackendClient
from services.heatmap import HeatmapLayer
from services.poller import PollOutcome, SensorPoller
from services.radius import radius_for_zoom
from services.scheduler import AsyncioScheduler, Debouncer, Scheduler, TaskTracker
from services.sensor import LocalSensorClient
from services.state import (
    SyncState,
    initial_state,
    nearby_loaded,
    position_changed,
    reading_posted,
    reading_received,
    viewport_moved,
)
from services.statistics import Statistics, stats_for
from settings import get_settings

logger = logging.getLogger(__name__)

Subscriber = Callable[[SyncState], None]


class SyncCoordinator:
    """Single owner of :class:`SyncState`.

    Everything runs on one event loop: the poll timer, the debounced viewport
    query and the network completions interleave but never run in parallel,
    so state transitions need no locking.
    """

    def __init__(
        self,
        sensor: LocalSensorClient,
        backend: BackendClient,
        scheduler: Optional[Scheduler] = None,
        poll_interval: float = 3.0,
        debounce_seconds: float = 0.8,
        initial_zoom: float = 15.0,
    ) -> None:
        self.sensor = sensor
        self.backend = backend
        self.scheduler: Scheduler = scheduler or AsyncioScheduler()
        self.poll_interval = poll_interval
        self._state = initial_state(initial_zoom)
        self._subscribers: List[Subscriber] = []
        self._tasks = TaskTracker()
        self._query_ids = itertools.count(1)
        self._latest_query = 0
        self._running = False
        self._debouncer = Debouncer(self.scheduler, debounce_seconds, self._on_quiet_period)
        self.poller = SensorPoller(
            sensor=sensor,
            backend=backend,
            scheduler=self.scheduler,
            position_provider=lambda: self._state.current_position,
            on_outcome=self._on_poll_outcome,
        )

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def running(self) -> bool:
        return self._running

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def start(self) -> None:
        if self._running:
            return
        self._running = True
        self.poller.start_polling(self.poll_interval)
        logger.info("Sync engine started")
        position = self._state.current_position
        if position is not None:
            self._tasks.spawn(self.refresh_nearby(position, self._state.zoom))

    def stop(self) -> None:
        """Cancel every timer. In-flight requests finish but their results are ignored."""
        self._running = False
        self.poller.stop_polling()
        self._debouncer.cancel()
        logger.info("Sync engine stopped")

    async def aclose(self) -> None:
        self.stop()
        await self.drain()
        await self.sensor.aclose()
        await self.backend.aclose()

    async def drain(self) -> None:
        """Wait for every outstanding poll tick and nearby query to complete."""
        await self.poller.drain()
        await self._tasks.drain()

    def update_position(self, position: GeoPoint) -> None:
        first_fix = self._state.current_position is None
        self._apply(position_changed(self._state, position))
        if first_fix and self._running:
            logger.info(
                "Position acquired",
                extra={"lat": position.latitude, "lng": position.longitude},
            )
            self._tasks.spawn(self.refresh_nearby(position, self._state.zoom))

    def on_viewport_moved(self, center: GeoPoint, zoom: float) -> None:
        """Record the viewport now; query it once the map has been still for the quiet period."""
        self._apply(viewport_moved(self._state, center, zoom))
        if self._running:
            self._debouncer.trigger()

    async def refresh_nearby(self, center: GeoPoint, zoom: float) -> bool:
        """Query around ``center`` and install the result if it is still the newest query.

        Returns True when the state was updated. Failed or superseded queries
        leave the previous nearby samples in place.
        """
        query_id = next(self._query_ids)
        self._latest_query = query_id
        radius = radius_for_zoom(zoom)
        try:
            samples = await self.backend.fetch_nearby(center, radius)
        except SensorSyncError as exc:
            logger.warning(
                "Nearby query failed; keeping previous samples",
                extra={"query_id": query_id, "radius": radius, "reason": str(exc)},
            )
            return False

        if not self._running:
            return False
        if query_id != self._latest_query:
            logger.debug(
                "Discarding superseded nearby result",
                extra={"query_id": query_id, "reason": f"newer query {self._latest_query}"},
            )
            return False

        self._apply(nearby_loaded(self._state, samples))
        logger.info(
            "Nearby samples updated",
            extra={"query_id": query_id, "radius": radius, "sample_count": len(samples)},
        )
        return True

    def heatmap_layers(self) -> List[HeatmapLayer]:
        return list(self._state.heatmap_layers)

    def statistics(self, metric: Metric) -> Statistics:
        return stats_for(self._state.nearby_samples, metric)

    def _on_quiet_period(self) -> None:
        center = self._state.viewport_center
        if center is None or not self._running:
            return
        self._tasks.spawn(self.refresh_nearby(center, self._state.zoom))

    def _on_poll_outcome(self, outcome: PollOutcome) -> None:
        if not self._running:
            return
        state = self._state
        if outcome.posted and outcome.posted_at is not None:
            state = reading_posted(state, outcome.reading, outcome.posted_at)
        self._apply(reading_received(state, outcome.reading))

    def _apply(self, state: SyncState) -> None:
        self._state = state
        for subscriber in list(self._subscribers):
            subscriber(state)


@lru_cache
def build_default_coordinator() -> SyncCoordinator:
    """Factory that wires the coordinator from environment settings."""
    settings = get_settings()
    sensor = LocalSensorClient(settings.local_sensor_url, timeout=settings.read_timeout)
    backend = BackendClient(
        settings.backend_url,
        post_timeout=settings.post_timeout,
        nearby_timeout=settings.nearby_timeout,
    )
    return SyncCoordinator(
        sensor=sensor,
        backend=backend,
        poll_interval=settings.poll_interval,
        debounce_seconds=settings.debounce_ms / 1000,
        initial_zoom=settings.initial_zoom,
    )
