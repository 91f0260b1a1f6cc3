"""
Numeric verbosity levels.

The relay is configured with a single integer 1-4 rather than Python's
named levels:

    1 = MINIMAL  - Startup, shutdown, failures
    2 = NORMAL   - One line per request and per upstream outcome (default)
    3 = VERBOSE  - Per-call timing, engine selection
    4 = DEBUG    - Provider URLs, limiter state
"""
from __future__ import annotations

import logging
from enum import IntEnum
from typing import Any


class LogLevel(IntEnum):
    """Numeric log levels, increasing verbosity."""
    MINIMAL = 1
    NORMAL = 2
    VERBOSE = 3
    DEBUG = 4

    @property
    def handler_level(self) -> int:
        """Python level the console handler filters at."""
        return {
            LogLevel.MINIMAL: logging.WARNING,
            LogLevel.NORMAL: logging.INFO,
            LogLevel.VERBOSE: logging.DEBUG,
        }.get(self, logging.DEBUG - 5)


# Python level names fold onto the nearest relay level
_ALIASES = {
    "TRACE": LogLevel.DEBUG,
    "CRITICAL": LogLevel.MINIMAL,
    "ERROR": LogLevel.MINIMAL,
    "WARNING": LogLevel.MINIMAL,
    "WARN": LogLevel.MINIMAL,
    "INFO": LogLevel.NORMAL,
}


def coerce_level(value: Any) -> LogLevel:
    """
    Convert settings or environment input to a LogLevel.

    Accepts 1-4, a Python logging level int, a relay or Python level name
    (any case) or a numeric string. Anything else gives NORMAL.

    Examples:
        >>> coerce_level("3")
        <LogLevel.VERBOSE: 3>
        >>> coerce_level(logging.WARNING)
        <LogLevel.MINIMAL: 1>
    """
    if isinstance(value, LogLevel):
        return value

    if isinstance(value, str):
        name = value.strip().upper()
        if name.isdigit():
            value = int(name)
        elif name in LogLevel.__members__:
            return LogLevel[name]
        else:
            return _ALIASES.get(name, LogLevel.NORMAL)

    if isinstance(value, bool) or not isinstance(value, int):
        return LogLevel.NORMAL

    if 1 <= value <= 4:
        return LogLevel(value)
    if value >= logging.WARNING:
        return LogLevel.MINIMAL
    if value >= logging.INFO:
        return LogLevel.NORMAL
    return LogLevel.DEBUG
