from __future__ import annotations

import logging

from logging_config import ContextualFormatter


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("services.poller", logging.WARNING, __file__, 1, "Poll tick failed", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_appends_known_context() -> None:
    formatter = ContextualFormatter(fmt="%(levelname)s %(message)s")

    line = formatter.format(_record(reason="timed out", radius="500m", unrelated="x"))

    assert line == "WARNING Poll tick failed | radius=500m reason=timed out"


def test_formatter_skips_missing_and_none_values() -> None:
    formatter = ContextualFormatter(fmt="%(message)s")

    assert formatter.format(_record(queue_size=None)) == "Poll tick failed"


def test_custom_context_keys() -> None:
    formatter = ContextualFormatter(fmt="%(message)s", context_keys=["status"])

    assert formatter.format(_record(status=201, reason="ignored")) == "Poll tick failed | status=201"
