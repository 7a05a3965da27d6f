"""Cancellable timers for the sync engine.

All engine timing goes through a :class:`Scheduler` so the debounce and poll
cadence can be driven by :class:`VirtualScheduler` in tests instead of wall
clock time.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
from typing import Awaitable, Callable, List, Optional, Protocol, Set, Tuple

logger = logging.getLogger(__name__)

Callback = Callable[[], None]


class TimerHandle(Protocol):
    def cancel(self) -> None: ...

    def cancelled(self) -> bool: ...


class Scheduler(Protocol):
    def now(self) -> float: ...

    def call_later(self, delay: float, callback: Callback) -> TimerHandle: ...


class AsyncioScheduler:
    """Scheduler backed by the running event loop's monotonic clock."""

    def now(self) -> float:
        return asyncio.get_running_loop().time()

    def call_later(self, delay: float, callback: Callback) -> TimerHandle:
        return asyncio.get_running_loop().call_later(max(delay, 0.0), callback)


class _VirtualHandle:
    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    def cancelled(self) -> bool:
        return self._cancelled


class VirtualScheduler:
    """Manually advanced clock. Callbacks run synchronously inside :meth:`advance`."""

    def __init__(self, start: float = 0.0) -> None:
        self._now = start
        self._queue: List[Tuple[float, int, _VirtualHandle, Callback]] = []
        self._sequence = itertools.count()

    def now(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callback) -> TimerHandle:
        handle = _VirtualHandle()
        due = self._now + max(delay, 0.0)
        heapq.heappush(self._queue, (due, next(self._sequence), handle, callback))
        return handle

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing every callback that falls due. Returns how many ran."""
        target = self._now + seconds
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, handle, callback = heapq.heappop(self._queue)
            self._now = due
            if handle.cancelled():
                continue
            callback()
            fired += 1
        self._now = target
        return fired

    @property
    def pending(self) -> int:
        return sum(1 for _, _, handle, _ in self._queue if not handle.cancelled())


class Debouncer:
    """Trailing-edge debounce: ``callback`` runs once ``delay`` passes without a new trigger."""

    def __init__(self, scheduler: Scheduler, delay: float, callback: Callback) -> None:
        self._scheduler = scheduler
        self._delay = delay
        self._callback = callback
        self._handle: Optional[TimerHandle] = None

    @property
    def pending(self) -> bool:
        return self._handle is not None and not self._handle.cancelled()

    def trigger(self) -> None:
        self.cancel()
        self._handle = self._scheduler.call_later(self._delay, self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        self._callback()


class IntervalTimer:
    """Fixed-rate timer. Ticks are anchored to the start time so they do not drift."""

    def __init__(self, scheduler: Scheduler, interval: float, callback: Callback) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._scheduler = scheduler
        self._interval = interval
        self._callback = callback
        self._handle: Optional[TimerHandle] = None
        self._next_due = 0.0

    @property
    def running(self) -> bool:
        return self._handle is not None

    def start(self, immediate: bool = True) -> None:
        self.stop()
        self._next_due = self._scheduler.now() + (0.0 if immediate else self._interval)
        self._arm()

    def stop(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _arm(self) -> None:
        delay = self._next_due - self._scheduler.now()
        self._handle = self._scheduler.call_later(delay, self._tick)

    def _tick(self) -> None:
        self._next_due += self._interval
        self._arm()
        self._callback()


class TaskTracker:
    """Keeps strong references to fire-and-forget tasks and logs their crashes."""

    def __init__(self) -> None:
        self._tasks: Set["asyncio.Task[object]"] = set()

    def __len__(self) -> int:
        return len(self._tasks)

    def spawn(self, awaitable: Awaitable[object]) -> "asyncio.Task[object]":
        task = asyncio.ensure_future(awaitable)
        self._tasks.add(task)
        task.add_done_callback(self._finished)
        return task

    async def drain(self) -> None:
        """Wait until every tracked task, including ones spawned while waiting, is done."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _finished(self, task: "asyncio.Task[object]") -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Background task crashed", exc_info=exc)
