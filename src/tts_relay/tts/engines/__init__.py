"""
TTS Provider Adapters.

Each adapter is a BaseTTSEngine subclass that turns text into MPEG audio
bytes by calling an external HTTP service.

Available Engines:
    - GoogleEngine: Google Translate speech, one request (direct)
    - VoicevoxEngine: tts.quest VOICEVOX, pointer then audio (indirect)

Usage:
    from tts_relay.tts.engine import Engine, create_engines

    engines = create_engines(client, config)
    audio = await engines[Engine.GOOGLE].synthesize("Hello", "en")
"""
from __future__ import annotations

from tts_relay.tts.engines.google_engine import GoogleEngine
from tts_relay.tts.engines.voicevox_engine import VoicevoxEngine

__all__ = [
    "GoogleEngine",
    "VoicevoxEngine",
]
