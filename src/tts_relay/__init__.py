"""
tts-relay: HTTP relay for third-party Text-to-Speech providers.

A small FastAPI service that accepts text and returns MPEG speech audio by
delegating to one of two upstream providers:

    - google: Google Translate's speech endpoint (single request, raw audio)
    - voicevox: tts.quest VOICEVOX API (synthesis request returns a pointer
      URL, a second request fetches the audio)

Key Features:
    - Single endpoint with automatic engine choice (/tts)
    - Japanese text routed to VOICEVOX, everything else to Google
    - Engine-specific shortcuts (/tts/google, /tts/voicevox)
    - Per-client fixed-window rate limiting
    - Structured logging and optional Prometheus metrics

Example Usage:
    >>> import asyncio
    >>> from tts_relay.core.config import Settings
    >>> from tts_relay.services import RelayService
    >>> from tts_relay.services.validators import validate_request
    >>>
    >>> service = RelayService(Settings(raw={}))
    >>> request = validate_request({"text": "hello", "lang": "en"})
    >>> result = asyncio.run(service.dispatch(request))
    >>> with open(result.filename, "wb") as f:
    ...     f.write(result.audio_bytes)
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
