"""Shared fixtures: fake engines, mock provider transport, app builder."""
from __future__ import annotations

from typing import List, Optional, Tuple

import httpx
import pytest

from tts_relay.core.config import Settings
from tts_relay.tts.engine import BaseTTSEngine, Engine

GOOGLE_AUDIO = b"\x01\x02"
VOICEVOX_AUDIO = b"\x03\x04\x05"
VOICEVOX_POINTER = "https://audio.tts.quest/v1/data/abc123.mp3"


class FakeEngine(BaseTTSEngine):
    """Engine that records calls instead of contacting a provider."""

    def __init__(self, name: Engine, audio: bytes = GOOGLE_AUDIO, exc: Optional[Exception] = None):
        self.name = name
        self.audio = audio
        self.exc = exc
        self.calls: List[Tuple[str, str, Optional[int]]] = []

    async def synthesize(self, text: str, language: str, speaker_id: Optional[int] = None) -> bytes:
        self.calls.append((text, language, speaker_id))
        if self.exc is not None:
            raise self.exc
        return self.audio


class ProviderStub:
    """
    httpx.MockTransport handler imitating Google Translate and tts.quest.

    Attributes:
        requests: Every request the relay sent, in order.
        google_status: Status for the Google call.
        synthesis_payload: JSON returned by the VOICEVOX synthesis call.
        audio_status: Status for the VOICEVOX audio download.
        timeout: Raise a read timeout for every call.
    """

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.google_status = 200
        self.synthesis_payload = {"success": True, "mp3StreamingUrl": VOICEVOX_POINTER}
        self.audio_status = 200
        self.timeout = False

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.timeout:
            raise httpx.ReadTimeout("timed out", request=request)

        if request.url.host == "translate.google.com":
            if self.google_status != 200:
                return httpx.Response(self.google_status, content=b"unavailable")
            return httpx.Response(200, content=GOOGLE_AUDIO, headers={"Content-Type": "audio/mpeg"})

        if request.url.host == "api.tts.quest":
            return httpx.Response(200, json=self.synthesis_payload)

        if request.url.host == "audio.tts.quest":
            if self.audio_status != 200:
                return httpx.Response(self.audio_status, content=b"gone")
            return httpx.Response(200, content=VOICEVOX_AUDIO, headers={"Content-Type": "audio/mpeg"})

        return httpx.Response(404)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def settings():
    """Built-in defaults, independent of config/settings.yaml."""
    return Settings(raw={})


@pytest.fixture
def fake_engines():
    return {
        Engine.GOOGLE: FakeEngine(Engine.GOOGLE, GOOGLE_AUDIO),
        Engine.VOICEVOX: FakeEngine(Engine.VOICEVOX, VOICEVOX_AUDIO),
    }


@pytest.fixture
def provider():
    return ProviderStub()


