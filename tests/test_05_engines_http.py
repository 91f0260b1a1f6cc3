"""
Tests for the provider adapters against a mocked provider.

httpx.MockTransport stands in for Google Translate and tts.quest, so
these tests check the outbound requests and the failure mapping without
network access.
"""
from __future__ import annotations

import asyncio

import httpx
import pytest

from conftest import GOOGLE_AUDIO, VOICEVOX_AUDIO, VOICEVOX_POINTER
from tts_relay.core.config import RelayConfig
from tts_relay.core.errors import UpstreamError
from tts_relay.tts.engines import GoogleEngine, VoicevoxEngine
from tts_relay.tts.engines.helpers import fetch_bytes, fetch_json


def _run(engine_cls, provider, text, language, speaker_id=None, config=None):
    """Synthesize once with a fresh client bound to the stub provider."""
    async def go():
        async with httpx.AsyncClient(transport=provider.transport) as client:
            engine = engine_cls(client, config or RelayConfig())
            return await engine.synthesize(text, language=language, speaker_id=speaker_id)
    return asyncio.run(go())


class TestGoogleEngine:
    """Direct provider: one GET, raw audio."""

    def test_returns_audio(self, provider):
        assert _run(GoogleEngine, provider, "hello", "en") == GOOGLE_AUDIO
        assert len(provider.requests) == 1

    def test_query_parameters(self, provider):
        _run(GoogleEngine, provider, "hello world", "hi")

        params = provider.requests[0].url.params
        assert params["ie"] == "UTF-8"
        assert params["tl"] == "hi"
        assert params["client"] == "tw-ob"
        assert params["q"] == "hello world"

    def test_build_params(self):
        engine = GoogleEngine(httpx.AsyncClient(), RelayConfig())
        assert engine.build_params("hi", "en") == {"ie": "UTF-8", "tl": "en", "client": "tw-ob", "q": "hi"}

    def test_provider_status_propagates(self, provider):
        provider.google_status = 503

        with pytest.raises(UpstreamError) as exc:
            _run(GoogleEngine, provider, "hello", "en")

        assert exc.value.status == 503
        assert exc.value.http_status == 503
        assert "503" in str(exc.value)

    def test_timeout_has_no_status(self, provider):
        provider.timeout = True

        with pytest.raises(UpstreamError) as exc:
            _run(GoogleEngine, provider, "hello", "en")

        assert exc.value.status is None
        assert exc.value.http_status == 500
        assert "timed out" in str(exc.value)


class TestVoicevoxEngine:
    """Indirect provider: synthesis pointer, then audio."""

    def test_two_calls_in_order(self, provider):
        audio = _run(VoicevoxEngine, provider, "こんにちは", "ja")

        assert audio == VOICEVOX_AUDIO
        assert [r.url.host for r in provider.requests] == ["api.tts.quest", "audio.tts.quest"]
        assert str(provider.requests[1].url) == VOICEVOX_POINTER

    def test_default_speaker_is_3(self, provider):
        _run(VoicevoxEngine, provider, "こんにちは", "ja")

        params = provider.requests[0].url.params
        assert params["text"] == "こんにちは"
        assert params["speaker"] == "3"

    def test_explicit_speaker(self, provider):
        _run(VoicevoxEngine, provider, "こんにちは", "ja", speaker_id=1)
        assert provider.requests[0].url.params["speaker"] == "1"

    def test_configured_default_speaker(self, provider):
        config = RelayConfig()
        config.voicevox.default_speaker = 8
        _run(VoicevoxEngine, provider, "こんにちは", "ja", config=config)
        assert provider.requests[0].url.params["speaker"] == "8"

    def test_missing_pointer(self, provider):
        """No second call is made when mp3StreamingUrl is absent."""
        provider.synthesis_payload = {"success": False, "errorMessage": "quota exceeded"}

        with pytest.raises(UpstreamError) as exc:
            _run(VoicevoxEngine, provider, "こんにちは", "ja")

        assert str(exc.value) == "voicevox: mp3StreamingUrl not found"
        assert exc.value.http_status == 500
        assert len(provider.requests) == 1

    def test_empty_pointer(self, provider):
        provider.synthesis_payload = {"success": True, "mp3StreamingUrl": ""}

        with pytest.raises(UpstreamError, match="mp3StreamingUrl not found"):
            _run(VoicevoxEngine, provider, "こんにちは", "ja")
        assert len(provider.requests) == 1

    def test_audio_download_status_propagates(self, provider):
        provider.audio_status = 404

        with pytest.raises(UpstreamError) as exc:
            _run(VoicevoxEngine, provider, "こんにちは", "ja")

        assert exc.value.http_status == 404
        assert len(provider.requests) == 2


class TestHelpers:
    """Failure mapping shared by both adapters."""

    def test_empty_audio_is_error(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, content=b""))

        async def go():
            async with httpx.AsyncClient(transport=transport) as client:
                return await fetch_bytes(client, "https://example.test/a.mp3", "google")

        with pytest.raises(UpstreamError, match="empty audio"):
            asyncio.run(go())

    def test_invalid_json_is_error(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, content=b"<html>"))

        async def go():
            async with httpx.AsyncClient(transport=transport) as client:
                return await fetch_json(client, "https://api.tts.quest/v3/voicevox/synthesis", "voicevox")

        with pytest.raises(UpstreamError) as exc:
            asyncio.run(go())
        assert "invalid JSON" in str(exc.value)
        assert exc.value.status is None

    def test_connection_error(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        async def go():
            async with httpx.AsyncClient(transport=httpx.MockTransport(refuse)) as client:
                return await fetch_bytes(client, "https://translate.google.com/translate_tts", "google")

        with pytest.raises(UpstreamError) as exc:
            asyncio.run(go())
        assert exc.value.status is None
        assert "translate.google.com" in str(exc.value)
