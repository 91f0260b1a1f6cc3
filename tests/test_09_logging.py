"""Tests for the logging level system and JSONL persistence."""
from __future__ import annotations

import json
import logging

import pytest

from tts_relay.core.logging import (
    LogLevel,
    coerce_level,
    configure_logging,
    error,
    get_level,
    get_level_name,
    get_logger,
    info,
    set_request_id,
    verbose,
)
from tts_relay.core.logging.formatters import ConsoleFormatter, color_enabled


class _ListHandler(logging.Handler):
    def __init__(self):
        super().__init__(level=0)
        self.records = []

    def emit(self, record):
        self.records.append(record)


@pytest.fixture
def restore_logging(monkeypatch):
    """Reconfigure from a clean environment after the test."""
    yield
    for name in ("TTS_RELAY_LOG_LEVEL", "TTS_RELAY_LOG_DIR", "TTS_RELAY_JSONL_FILE"):
        monkeypatch.delenv(name, raising=False)
    configure_logging(force=True)


class TestLogLevelEnum:
    def test_level_enum_values(self):
        assert LogLevel.MINIMAL == 1
        assert LogLevel.NORMAL == 2
        assert LogLevel.VERBOSE == 3
        assert LogLevel.DEBUG == 4

    def test_level_enum_ordering(self):
        assert LogLevel.MINIMAL < LogLevel.NORMAL < LogLevel.VERBOSE < LogLevel.DEBUG


class TestLevelCoercion:
    def test_from_int(self):
        assert coerce_level(1) == LogLevel.MINIMAL
        assert coerce_level(4) == LogLevel.DEBUG

    def test_from_names(self):
        assert coerce_level("verbose") == LogLevel.VERBOSE
        assert coerce_level("INFO") == LogLevel.NORMAL
        assert coerce_level("WARNING") == LogLevel.MINIMAL
        assert coerce_level("3") == LogLevel.VERBOSE

    def test_from_python_levels(self):
        assert coerce_level(logging.WARNING) == LogLevel.MINIMAL
        assert coerce_level(logging.INFO) == LogLevel.NORMAL

    def test_unknown_defaults_to_normal(self):
        assert coerce_level("chatty") == LogLevel.NORMAL
        assert coerce_level(None) == LogLevel.NORMAL


class TestLevelFiltering:
    def test_env_level(self, monkeypatch, restore_logging):
        monkeypatch.setenv("TTS_RELAY_LOG_LEVEL", "VERBOSE")
        configure_logging(force=True)

        assert get_level() == LogLevel.VERBOSE
        assert get_level_name() == "VERBOSE"

    def test_minimal_drops_verbose(self, restore_logging):
        configure_logging(level=LogLevel.MINIMAL, force=True)
        handler = _ListHandler()
        logging.getLogger().addHandler(handler)
        try:
            log = get_logger("tts-relay.test")
            verbose(log, "hidden")
            info(log, "also_hidden")
            error(log, "shown")
        finally:
            logging.getLogger().removeHandler(handler)

        assert [r.getMessage() for r in handler.records] == ["shown"]

    def test_fields_attached(self, restore_logging):
        configure_logging(level=LogLevel.NORMAL, force=True)
        handler = _ListHandler()
        logging.getLogger().addHandler(handler)
        try:
            set_request_id("rid-42")
            info(get_logger("tts-relay.test"), "done", seconds=0.5, engine="google")
        finally:
            logging.getLogger().removeHandler(handler)

        record = handler.records[-1]
        assert record.request_id == "rid-42"
        assert record.seconds == 0.5
        assert record.extra_data == {"engine": "google"}


class TestJsonlPersistence:
    def test_logging_jsonl_persistence(self, tmp_path, monkeypatch, restore_logging):
        monkeypatch.setenv("TTS_RELAY_LOG_DIR", str(tmp_path))
        monkeypatch.setenv("TTS_RELAY_JSONL_FILE", "test.jsonl")

        configure_logging(force=True)
        log = get_logger("test")
        set_request_id("rid-1")
        info(log, "hello", event="logging_test", foo="bar")

        for handler in logging.getLogger().handlers:
            handler.flush()

        log_path = tmp_path / "test.jsonl"
        assert log_path.exists()

        payload = json.loads(log_path.read_text(encoding="utf-8").strip().splitlines()[-1])
        assert payload["message"] == "hello"
        assert payload["request_id"] == "rid-1"
        assert payload["event"] == "logging_test"
        assert payload["extra"]["foo"] == "bar"


class TestConsoleFormatter:
    def _record(self, **attrs):
        record = logging.LogRecord("tts-relay.test", logging.INFO, __file__, 1, "upstream_ok", None, None)
        for key, value in attrs.items():
            setattr(record, key, value)
        return record

    def test_plain_line(self):
        line = ConsoleFormatter().format(
            self._record(tag="INFO", request_id="rid-7", seconds=0.25, extra_data={"engine": "google"})
        )

        assert "[ INFO  ]" in line
        assert "(rid-7)" in line
        assert "upstream_ok 0.250s engine=google" in line
        assert "\033[" not in line

    def test_colored_status(self):
        line = ConsoleFormatter(use_color=True).format(self._record(tag="WARN", extra_data={"status": 503}))
        assert "\033[91mstatus=503" in line

    def test_no_color_env(self, monkeypatch):
        monkeypatch.setenv("TTS_RELAY_NO_COLOR", "1")
        assert color_enabled() is False
