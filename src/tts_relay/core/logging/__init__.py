"""
tts-relay Structured Logging.

A thin layer over the standard logging module that gives every log line a
tag, a request id and structured key=value fields:

    - Numeric log levels (1-4) for simple configuration
    - Colored console output for humans
    - Optional JSONL file output (rotating) for machines
    - Request id correlation through contextvars

Log Levels:
    1 = MINIMAL  - Startup, shutdown, failures
    2 = NORMAL   - Request lifecycle, upstream outcome (default)
    3 = VERBOSE  - Per-call timing, engine selection
    4 = DEBUG    - Internal state, full payloads

Configuration:
    export TTS_RELAY_LOG_LEVEL=3     # VERBOSE
    export TTS_RELAY_LOG_DIR=logs    # also write logs/tts-relay.jsonl
    export TTS_RELAY_NO_COLOR=1      # plain console output

Usage:
    from tts_relay.core.logging import get_logger, info, warn, fail

    log = get_logger("tts-relay.mymodule")

    info(log, "request", engine="google", chars=11)
    warn(log, "rate_limited", client="10.0.0.7")
    fail(log, "upstream_failed", status=503, error="Service Unavailable")
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

from .context import get_level, get_level_name, get_request_id, read_logging_config, set_request_id, state
from .formatters import ConsoleFormatter, JsonlFormatter, color_enabled
from .levels import LogLevel, coerce_level


def _jsonl_handler(log_config: Dict[str, Any]) -> Optional[logging.Handler]:
    """Rotating JSONL handler, or None when no log_dir is configured."""
    log_dir = log_config.get("log_dir")
    if not log_dir:
        return None

    path = Path(log_dir)
    path.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        path / str(log_config.get("jsonl_file", "tts-relay.jsonl")),
        maxBytes=int(log_config.get("rotate_max_bytes", 10 * 1024 * 1024)),
        backupCount=int(log_config.get("rotate_backup_count", 5)),
        encoding="utf-8",
        delay=True,
    )
    handler.setFormatter(JsonlFormatter())
    return handler


def configure_logging(level: Optional[int | str | LogLevel] = None, force: bool = False) -> None:
    """
    Install the relay's handlers on the root logger.

    The console handler filters at the chosen level; the JSONL file
    handler, when enabled, keeps everything _log() lets through.

    Args:
        level: Log level (1-4, level name, or LogLevel). Defaults to the
            settings/environment value.
        force: Reconfigure even if already configured.
    """
    if state.configured and not force:
        return

    log_config = read_logging_config()
    state.level = coerce_level(level or log_config.get("level", LogLevel.NORMAL))

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(state.level.handler_level)
    console.setFormatter(ConsoleFormatter(use_color=color_enabled()))

    root = logging.getLogger()
    root.setLevel(1)
    root.handlers = [console]

    jsonl = _jsonl_handler(log_config)
    if jsonl is not None:
        root.addHandler(jsonl)

    state.configured = True


def _log(
    logger: logging.Logger,
    level: int,
    tag: str,
    msg: str,
    numeric_level: int = LogLevel.NORMAL,
    **fields: Any
) -> None:
    """
    Emit one structured record.

    "event" and "seconds" become first-class record attributes; every
    other keyword lands in extra_data and is rendered as key=value.
    """
    if numeric_level > get_level():
        return

    event = fields.pop("event", None)
    seconds = fields.pop("seconds", None)
    logger.log(
        level,
        msg,
        extra={
            "tag": tag,
            "request_id": get_request_id(),
            "event": event,
            "seconds": seconds,
            "extra_data": fields or None,
            "numeric_level": int(numeric_level),
        },
    )


def get_logger(name: str = "tts-relay") -> logging.Logger:
    """Logger under the tts-relay namespace; configures logging on first use."""
    configure_logging()
    return logging.getLogger(name)


# Failures print even at MINIMAL; per-call detail waits for VERBOSE/DEBUG.
def error(logger: logging.Logger, msg: str, **fields: Any) -> None:
    """Relay-side fault, e.g. an unhandled exception in a route."""
    _log(logger, logging.ERROR, "ERROR", msg, numeric_level=LogLevel.MINIMAL, **fields)


def fail(logger: logging.Logger, msg: str, **fields: Any) -> None:
    """Provider failure (upstream status, timeout, missing pointer)."""
    _log(logger, logging.ERROR, "FAIL", msg, numeric_level=LogLevel.MINIMAL, **fields)


def warn(logger: logging.Logger, msg: str, **fields: Any) -> None:
    """Client-side rejection: validation error, 413, 429."""
    _log(logger, logging.WARNING, "WARN", msg, numeric_level=LogLevel.NORMAL, **fields)


def info(logger: logging.Logger, msg: str, **fields: Any) -> None:
    _log(logger, logging.INFO, "INFO", msg, numeric_level=LogLevel.NORMAL, **fields)


def success(logger: logging.Logger, msg: str, **fields: Any) -> None:
    """Audio relayed to the caller."""
    _log(logger, logging.INFO, "SUCCESS", msg, numeric_level=LogLevel.NORMAL, **fields)


def verbose(logger: logging.Logger, msg: str, **fields: Any) -> None:
    """Engine selection and per-call upstream timing."""
    _log(logger, logging.DEBUG, "INFO", msg, numeric_level=LogLevel.VERBOSE, **fields)


def debug(logger: logging.Logger, msg: str, **fields: Any) -> None:
    _log(logger, logging.DEBUG, "DEBUG", msg, numeric_level=LogLevel.DEBUG, **fields)


__all__ = [
    "LogLevel",
    "coerce_level",
    "configure_logging",
    "get_logger",
    "get_level",
    "get_level_name",
    "get_request_id",
    "set_request_id",
    "error",
    "fail",
    "warn",
    "info",
    "success",
    "verbose",
    "debug",
]
