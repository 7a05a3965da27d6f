"""Failure taxonomy for the sync engine.

None of these are fatal: each is raised to the immediate caller, which keeps
its last known good state and waits for the next natural trigger.
"""

from __future__ import annotations


class SensorSyncError(Exception):
    """Base class for every recoverable engine failure."""


class MalformedReadingError(SensorSyncError):
    """The local sensor payload is missing a channel or carries a non-numeric one."""


class MalformedSampleError(SensorSyncError):
    """A backend payload could not be parsed into nearby samples or a post receipt."""


class TransportError(SensorSyncError):
    """The request never produced a response (connection refused, reset, DNS)."""


class TransportTimeoutError(TransportError):
    """The request exceeded its deadline and was abandoned."""


class UpstreamStatusError(SensorSyncError):
    """The peer answered with a status outside the accepted set."""

    def __init__(self, status_code: int, url: str) -> None:
        super().__init__(f"{url} responded with status {status_code}")
        self.status_code = status_code
        self.url = url
