"""Tests for engine identifiers and selection."""
from __future__ import annotations

import httpx
import pytest

from tts_relay.core.config import RelayConfig
from tts_relay.core.errors import UnsupportedEngineError
from tts_relay.tts.engine import Engine, create_engines, parse_engine, select_engine
from tts_relay.tts.engines import GoogleEngine, VoicevoxEngine


class TestSelectEngine:
    """Explicit engine wins; otherwise Japanese goes to VOICEVOX."""

    def test_default_is_google(self):
        assert select_engine(None, "en") is Engine.GOOGLE

    def test_japanese_selects_voicevox(self):
        assert select_engine(None, "ja") is Engine.VOICEVOX

    def test_language_match_ignores_case(self):
        assert select_engine(None, "JA") is Engine.VOICEVOX

    def test_other_languages_use_google(self):
        for lang in ("hi", "fr", "ja-JP", "zh"):
            assert select_engine(None, lang) is Engine.GOOGLE

    def test_explicit_overrides_language(self):
        assert select_engine("google", "ja") is Engine.GOOGLE
        assert select_engine("voicevox", "en") is Engine.VOICEVOX

    def test_explicit_is_case_insensitive(self):
        assert select_engine("VoiceVox", "en") is Engine.VOICEVOX

    def test_unknown_engine_rejected(self):
        with pytest.raises(UnsupportedEngineError) as exc:
            select_engine("azure", "en")
        assert exc.value.http_status == 400


class TestParseEngine:
    def test_values(self):
        assert parse_engine("google") is Engine.GOOGLE
        assert parse_engine(" voicevox ") is Engine.VOICEVOX

    def test_engine_is_str(self):
        """Engine values serialize as plain strings in headers and JSON."""
        assert Engine.GOOGLE == "google"
        assert Engine.VOICEVOX.value == "voicevox"


class TestEngineFactory:
    def test_create_engines(self):
        client = httpx.AsyncClient()
        engines = create_engines(client, RelayConfig())

        assert set(engines) == {Engine.GOOGLE, Engine.VOICEVOX}
        assert isinstance(engines[Engine.GOOGLE], GoogleEngine)
        assert isinstance(engines[Engine.VOICEVOX], VoicevoxEngine)
        assert engines[Engine.GOOGLE].client is client
