"""
VOICEVOX Engine via tts.quest (indirect provider).

The tts.quest VOICEVOX API does not return audio directly. A synthesis
request answers with JSON that points at the generated audio:

    GET https://api.tts.quest/v3/voicevox/synthesis?text=<text>&speaker=<id>
    -> {"success": true, "mp3StreamingUrl": "https://.../audio.mp3", ...}

    GET <mp3StreamingUrl>
    -> MPEG audio bytes

The second request depends on the first response, so the two calls are
always made in sequence. The API documents mp3StreamingUrl as always
present, but it is sometimes missing (quota, queue errors); that case is
reported as its own UpstreamError and no second call is made.

Speakers:
    VOICEVOX speaker ids select character and style (3 = Zundamon, normal).
    Ids are passed through without range checks; the provider rejects
    unknown ids itself.

settings.yaml:
    voicevox:
      url: https://api.tts.quest/v3/voicevox/synthesis
      default_speaker: 3
"""
from __future__ import annotations

from typing import Optional

from tts_relay.core.errors import UpstreamError
from tts_relay.core.logging import debug
from tts_relay.tts.engine import BaseTTSEngine, Engine
from tts_relay.tts.engines.helpers import fetch_bytes, fetch_json

POINTER_FIELD = "mp3StreamingUrl"


class VoicevoxEngine(BaseTTSEngine):
    """Two-step adapter: synthesis call for a pointer, then the audio."""

    name = Engine.VOICEVOX

    async def synthesize(self, text: str, language: str = "ja", speaker_id: Optional[int] = None) -> bytes:
        """
        Synthesize text with VOICEVOX.

        Args:
            text: Text to speak (already trimmed).
            language: Ignored; VOICEVOX voices are Japanese.
            speaker_id: VOICEVOX speaker id, default from settings (3).

        Returns:
            MPEG audio bytes.

        Raises:
            UpstreamError: If either call fails, or the synthesis response
                has no mp3StreamingUrl.
        """
        speaker = self.config.voicevox.default_speaker if speaker_id is None else speaker_id
        engine = self.name.value

        payload = await fetch_json(
            self.client,
            self.config.voicevox.url,
            engine,
            params={"text": text, "speaker": speaker},
        )

        audio_url = payload.get(POINTER_FIELD) if isinstance(payload, dict) else None
        if not audio_url or not isinstance(audio_url, str):
            raise UpstreamError(f"{engine}: {POINTER_FIELD} not found")

        debug(self.logger, "voicevox_pointer", speaker=speaker, url=audio_url)
        return await fetch_bytes(self.client, audio_url, engine)
