"""
TTS Engine Base Class, Selection and Factory.

This module provides:
    - Engine: The known engine identifiers
    - select_engine(): Pick an engine from an explicit choice or the language
    - BaseTTSEngine: Base class for provider adapters
    - create_engines(): Build one adapter per engine around a shared client

Engine Selection:
    An explicit engine always wins, but must be "google" or "voicevox".
    Without one, Japanese ("ja") goes to VOICEVOX, which specializes in
    Japanese voices, and every other language goes to Google.

Implementing a New Engine:
    1. Create engines/<name>_engine.py
    2. Inherit from BaseTTSEngine and implement synthesize()
    3. Add the identifier to Engine and register it in create_engines()
"""
from __future__ import annotations

from enum import Enum
from typing import Dict, Optional

import httpx

from tts_relay.core.config import RelayConfig
from tts_relay.core.errors import UnsupportedEngineError
from tts_relay.core.logging import get_logger


class Engine(str, Enum):
    """Known TTS engines."""
    GOOGLE = "google"       # direct: one request, raw audio
    VOICEVOX = "voicevox"   # indirect: synthesis pointer, then audio


def parse_engine(value: str) -> Engine:
    """
    Resolve an engine identifier.

    Raises:
        UnsupportedEngineError: If value is not a known engine.
    """
    try:
        return Engine(value.strip().lower())
    except ValueError:
        raise UnsupportedEngineError(value)


def select_engine(explicit: Optional[str], language: str) -> Engine:
    """
    Choose the engine for a request.

    Args:
        explicit: Engine requested by the client, or None.
        language: Language code of the request.

    Returns:
        The engine to use.

    Raises:
        UnsupportedEngineError: If an explicit engine is not known.
    """
    if explicit:
        return parse_engine(explicit)
    if (language or "").lower() == "ja":
        return Engine.VOICEVOX
    return Engine.GOOGLE


class BaseTTSEngine:
    """
    Base class for provider adapters.

    Adapters are stateless apart from their configuration and the shared
    httpx.AsyncClient; one instance serves every request concurrently.

    Attributes:
        name: Engine identifier.
        client: Shared async HTTP client (owns pooling and timeout).
        config: Relay configuration.
    """
    name: Engine

    def __init__(self, client: httpx.AsyncClient, config: RelayConfig):
        self.client = client
        self.config = config
        self.logger = get_logger(f"tts-relay.engine.{self.name.value}")

    async def synthesize(self, text: str, language: str, speaker_id: Optional[int] = None) -> bytes:
        """
        Turn text into MPEG audio bytes.

        Raises:
            UpstreamError: If the provider call fails.
        """
        raise NotImplementedError


def create_engines(client: httpx.AsyncClient, config: RelayConfig) -> Dict[Engine, BaseTTSEngine]:
    """Build one adapter per known engine."""
    from tts_relay.tts.engines.google_engine import GoogleEngine
    from tts_relay.tts.engines.voicevox_engine import VoicevoxEngine

    return {
        Engine.GOOGLE: GoogleEngine(client, config),
        Engine.VOICEVOX: VoicevoxEngine(client, config),
    }
