"""
Log formatters, one per destination.

    JsonlFormatter: one JSON object per line, for the rotating file handler
        {"ts":"2026-10-18T14:30:05+00:00","level":2,"tag":"INFO",
         "message":"upstream_ok","request_id":"a1b2c3d4e5f6",
         "seconds":0.412,"extra":{"engine":"google","bytes":5821}}

    ConsoleFormatter: compact line for stdout
        14:30:05 [ INFO  ] (a1b2c3d4e5f6) upstream_ok 0.412s engine=google bytes=5821

Console colors are off when stdout is not a TTY, NO_COLOR is set, or
TTS_RELAY_NO_COLOR=1.
"""
from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime
from typing import Any, Dict

RESET = "\033[0m"
DIM = "\033[2m"
RED = "\033[91m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
CYAN = "\033[96m"
GRAY = "\033[90m"

_TAG_COLORS = {
    "SUCCESS": GREEN,
    "FAIL": RED,
    "ERROR": RED,
    "WARN": YELLOW,
    "INFO": CYAN,
    "DEBUG": GRAY,
}


def color_enabled() -> bool:
    if os.getenv("TTS_RELAY_NO_COLOR", "0") == "1" or os.getenv("NO_COLOR"):
        return False
    isatty = getattr(sys.stdout, "isatty", None)
    return bool(isatty and isatty())


def _record_fields(record: logging.LogRecord) -> Dict[str, Any]:
    """The structured attributes _log() attaches, with fallbacks."""
    return {
        "tag": getattr(record, "tag", record.levelname),
        "request_id": getattr(record, "request_id", "-"),
        "event": getattr(record, "event", None),
        "seconds": getattr(record, "seconds", None),
        "extra": getattr(record, "extra_data", None) or {},
    }


class JsonlFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        fields = _record_fields(record)
        payload: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created).astimezone().isoformat(),
            "level": getattr(record, "numeric_level", 2),
            "tag": fields["tag"],
            "message": record.getMessage(),
            "request_id": fields["request_id"],
        }
        if fields["event"]:
            payload["event"] = fields["event"]
        if fields["seconds"] is not None:
            payload["seconds"] = fields["seconds"]
        if fields["extra"]:
            payload["extra"] = fields["extra"]
        return json.dumps(payload, ensure_ascii=False, default=str)


class ConsoleFormatter(logging.Formatter):
    """
    HH:MM:SS [ TAG ] (rid) message event=... 0.123s key=value

    Durations are green under 0.5s and red past 5s; "status" fields are
    yellow for 4xx and red for 5xx.
    """

    def __init__(self, use_color: bool = False):
        super().__init__()
        self.use_color = use_color

    def _paint(self, text: str, color: str) -> str:
        return f"{color}{text}{RESET}" if self.use_color else text

    def format(self, record: logging.LogRecord) -> str:
        fields = _record_fields(record)
        tag = fields["tag"]

        parts = [
            self._paint(datetime.fromtimestamp(record.created).strftime("%H:%M:%S"), DIM),
            self._paint(f"[{tag:^7}]", _TAG_COLORS.get(tag, "")),
        ]
        if fields["request_id"] != "-":
            parts.append(self._paint(f"({fields['request_id']})", DIM))
        parts.append(record.getMessage())

        if fields["event"]:
            parts.append(f"event={fields['event']}")

        seconds = fields["seconds"]
        if seconds is not None:
            color = GREEN if seconds < 0.5 else YELLOW if seconds < 5.0 else RED
            parts.append(self._paint(f"{seconds:.3f}s", color))

        for key, value in fields["extra"].items():
            color = DIM
            if key == "status" and isinstance(value, int) and value >= 400:
                color = RED if value >= 500 else YELLOW
            parts.append(self._paint(f"{key}={value}", color))

        return " ".join(parts)
