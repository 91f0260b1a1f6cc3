"""
Google Translate TTS Engine (direct provider).

Google Translate exposes an unauthenticated speech endpoint that returns
MPEG audio for a short text in a single GET:

    GET https://translate.google.com/translate_tts
        ?ie=UTF-8&tl=<language>&client=tw-ob&q=<text>

Features:
    - One round trip, raw audio in the response body
    - Any language Google Translate can speak (tl parameter)
    - No speaker selection

settings.yaml:
    google:
      url: https://translate.google.com/translate_tts
      client: tw-ob
      charset: UTF-8
"""
from __future__ import annotations

from typing import Optional

from tts_relay.core.logging import debug
from tts_relay.tts.engine import BaseTTSEngine, Engine
from tts_relay.tts.engines.helpers import fetch_bytes


class GoogleEngine(BaseTTSEngine):
    """Single-request adapter for Google Translate speech."""

    name = Engine.GOOGLE

    def build_params(self, text: str, language: str) -> dict:
        """Query parameters for the speech endpoint."""
        cfg = self.config.google
        return {
            "ie": cfg.charset,
            "tl": language,
            "client": cfg.client,
            "q": text,
        }

    async def synthesize(self, text: str, language: str, speaker_id: Optional[int] = None) -> bytes:
        """
        Synthesize text with Google Translate.

        Args:
            text: Text to speak (already trimmed).
            language: Target language code (e.g., "en", "hi").
            speaker_id: Ignored; Google has one voice per language.

        Returns:
            MPEG audio bytes.

        Raises:
            UpstreamError: On timeout, transport error or non-2xx status.
        """
        params = self.build_params(text, language)
        debug(self.logger, "google_request", language=language, chars=len(text))
        return await fetch_bytes(self.client, self.config.google.url, self.name.value, params=params)
