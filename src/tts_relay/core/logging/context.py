"""
Per-request and process-wide logging state.

The request id lives in a ContextVar so every line logged while a request
is in flight (route, relay service, provider adapters) carries the same
id, even with many requests interleaved on one event loop.

Environment Variables:
    - TTS_RELAY_LOG_LEVEL: Override log level (1-4 or a level name)
    - TTS_RELAY_LOG_DIR: Enable JSONL file logging into this directory
    - TTS_RELAY_JSONL_FILE: JSONL filename (default tts-relay.jsonl)
    - TTS_RELAY_LOG_ROTATE_BYTES: Max log file size before rotation
    - TTS_RELAY_LOG_ROTATE_BACKUP: Number of rotated files to keep
"""
from __future__ import annotations

import os
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any, Dict

from .levels import LogLevel

# "-" marks log lines emitted outside any request
_request_id: ContextVar[str] = ContextVar("request_id", default="-")


@dataclass
class LoggingState:
    configured: bool = False
    level: LogLevel = LogLevel.NORMAL


state = LoggingState()


def get_request_id() -> str:
    return _request_id.get()


def set_request_id(rid: str) -> None:
    """Tag every following log line in this context with rid."""
    _request_id.set(rid)


def get_level() -> LogLevel:
    return state.level


def get_level_name() -> str:
    """Current level as a name, e.g. "VERBOSE"."""
    return state.level.name


_ENV_KEYS = {
    "TTS_RELAY_LOG_LEVEL": ("level", str),
    "TTS_RELAY_LOG_DIR": ("log_dir", str),
    "TTS_RELAY_JSONL_FILE": ("jsonl_file", str),
    "TTS_RELAY_LOG_ROTATE_BYTES": ("rotate_max_bytes", int),
    "TTS_RELAY_LOG_ROTATE_BACKUP": ("rotate_backup_count", int),
}


def read_logging_config() -> Dict[str, Any]:
    """
    Resolve the logging section.

    Environment variables win over the "logging" section of the settings
    file. An unreadable settings file is reported when the relay loads its
    settings; here it only means file values are skipped.
    """
    import yaml

    from tts_relay.core.config import load_settings_or_defaults

    cfg: Dict[str, Any] = {}
    try:
        cfg.update(load_settings_or_defaults().raw.get("logging", {}) or {})
    except (OSError, ValueError, yaml.YAMLError):
        pass

    for env_name, (key, cast) in _ENV_KEYS.items():
        value = os.getenv(env_name)
        if not value:
            continue
        try:
            cfg[key] = cast(value)
        except ValueError:
            continue

    return cfg
