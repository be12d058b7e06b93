# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Logging setup for orbital.

Roster polling is the only long-running activity, so log lines are keyed
by poll cycle rather than by request: everything logged inside
``poll_cycle()`` carries the cycle number and the roster URL it read.
Structured values passed as ``extra={"extra_data": {...}}`` end up under
``data`` in JSON output.

Two renderings:
- ``JSONFormatter`` for services and log files
- ``TextFormatter`` for a terminal, optionally coloured by level
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

# Loggers that are chatty at INFO and add nothing to a roster trace
QUIET_LOGGERS = ("aiohttp", "asyncio", "httpx", "uvicorn.access")


@dataclass(frozen=True)
class PollCycle:
    """Identifies one fetch + ingest pass of the roster poller."""

    number: int
    source: str


_current_cycle: ContextVar[PollCycle | None] = ContextVar("orbital_poll_cycle", default=None)


def current_cycle() -> PollCycle | None:
    """The poll cycle active in this task, if any."""
    return _current_cycle.get()


@contextmanager
def poll_cycle(number: int, source: str) -> Iterator[PollCycle]:
    """Scope log lines to one poll cycle.

    Example:
        with poll_cycle(7, "http://dash/api/pnodes"):
            logger.warning("Roster fetch failed")  # tagged cycle=7
    """
    cycle = PollCycle(number=number, source=source)
    token = _current_cycle.set(cycle)
    try:
        yield cycle
    finally:
        _current_cycle.reset(token)


class JSONFormatter(logging.Formatter):
    """One JSON object per line, tagged with the active poll cycle."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        cycle = current_cycle()
        if cycle is not None:
            entry["cycle"] = cycle.number
            entry["source"] = cycle.source

        data = getattr(record, "extra_data", None)
        if data:
            entry["data"] = data

        if record.levelno >= logging.WARNING:
            entry["location"] = f"{record.module}:{record.lineno}"
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Single-line text for terminals: ``time LEVEL logger: [cycle N] message``."""

    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True):
        super().__init__(fmt="%(asctime)s %(levelname)s %(name)s: %(message)s", datefmt="%H:%M:%S")
        self.use_colors = use_colors and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        # Work on a copy; other handlers share the record
        record = logging.makeLogRecord(record.__dict__)

        cycle = current_cycle()
        if cycle is not None:
            record.msg = f"[cycle {cycle.number}] {record.msg}"

        if self.use_colors:
            color = self.LEVEL_COLORS.get(record.levelno, "")
            record.levelname = f"{color}{record.levelname}{self.RESET}"

        return super().format(record)


def _wants_json(log_format: str) -> bool:
    log_format = log_format.lower()
    if log_format in ("json", "text"):
        return log_format == "json"
    return not sys.stderr.isatty()


def configure_logging(
    level: str | int | None = None,
    json_format: bool | None = None,
    log_file: str | None = None,
) -> None:
    """Install orbital's handlers on the root logger.

    Unset arguments fall back to ORBITAL_LOG_LEVEL, ORBITAL_LOG_FORMAT
    (``json``/``text``; anything else picks JSON when stderr is not a
    terminal) and ORBITAL_LOG_FILE. The log file is always JSON.
    """
    from .config import get_config

    config = get_config()
    level = level or config.log_level
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    if json_format is None:
        json_format = _wants_json(config.log_format)
    log_file = log_file or config.log_file

    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    root.setLevel(level)

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(JSONFormatter() if json_format else TextFormatter())
    root.addHandler(console)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(JSONFormatter())
        root.addHandler(file_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
