"""Shared stubs for engine tests: in-memory sensor and backend doubles."""

from __future__ import annotations

import asyncio
from collections import deque
from typing import Deque, Dict, List, Optional, Tuple, Union

import pytest

from models.payloads import PostReceipt
from models.records import GeoPoint, NearbySample, Reading
from services.coordinator import SyncCoordinator
from services.scheduler import VirtualScheduler


class StubSensor:
    def __init__(self) -> None:
        self.results: Deque[Union[Reading, Exception]] = deque()
        self.default = Reading(temperature=25.0, humidity=60.0, air_quality_raw=150.0)
        self.calls = 0
        self.gate: Optional[asyncio.Event] = None
        self.closed = False

    async def read(self) -> Reading:
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.results:
            result = self.results.popleft()
        else:
            result = self.default
        if isinstance(result, Exception):
            raise result
        return result

    async def aclose(self) -> None:
        self.closed = True


class StubBackend:
    def __init__(self) -> None:
        self.posts: List[Tuple[Reading, GeoPoint]] = []
        self.post_error: Optional[Exception] = None
        self.queries: List[Tuple[GeoPoint, str]] = []
        self.nearby_results: Deque[Union[List[NearbySample], Exception]] = deque()
        self.gates: Dict[int, asyncio.Event] = {}
        self.closed = False

    async def post_reading(self, reading: Reading, position: GeoPoint) -> PostReceipt:
        self.posts.append((reading, position))
        if self.post_error is not None:
            raise self.post_error
        return PostReceipt(queueSize=len(self.posts), id=f"rec-{len(self.posts)}")

    async def fetch_nearby(self, center: GeoPoint, radius: str) -> List[NearbySample]:
        self.queries.append((center, radius))
        index = len(self.queries)
        result = self.nearby_results.popleft() if self.nearby_results else []
        gate = self.gates.get(index)
        if gate is not None:
            await gate.wait()
        if isinstance(result, Exception):
            raise result
        return result

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture()
def sensor() -> StubSensor:
    return StubSensor()


@pytest.fixture()
def backend() -> StubBackend:
    return StubBackend()


@pytest.fixture()
def scheduler() -> VirtualScheduler:
    return VirtualScheduler()


@pytest.fixture()
def coordinator(sensor: StubSensor, backend: StubBackend, scheduler: VirtualScheduler) -> SyncCoordinator:
    return SyncCoordinator(
        sensor=sensor,  # type: ignore[arg-type]
        backend=backend,  # type: ignore[arg-type]
        scheduler=scheduler,
        poll_interval=3.0,
        debounce_seconds=0.8,
        initial_zoom=15.0,
    )
