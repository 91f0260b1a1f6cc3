"""
RelayService - Request Dispatch.

This module provides the RelayService class, which turns a validated
SynthesisRequest into audio by choosing an engine and calling its
provider adapter. All HTTP endpoints (/tts, /tts/google, /tts/voicevox)
and the CLI go through it.

Architecture:
    SynthesisRequest → select_engine → adapter.synthesize → AudioResult

Dispatch States:
    Validated ──(unsupported engine)──────────────▶ Rejected (400)
        │
        ▼
    EngineChosen ─▶ Synthesizing ──(UpstreamError)─▶ Rejected (status or 500)
                         │
                         ▼
                     Responded (audio/mpeg)

Error Handling:
    - UnsupportedEngineError: raised before any outbound call
    - UpstreamError: raised by adapters, re-raised unchanged
    - Anything else from an adapter: wrapped in UpstreamError

Example:
    >>> service = RelayService(Settings(raw={}))
    >>> result = await service.dispatch(SynthesisRequest(text="hello"))
    >>> result.media_type
    'audio/mpeg'
"""
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

import httpx

from tts_relay.core.config import RelayConfig, Settings
from tts_relay.core.errors import RelayError, UpstreamError
from tts_relay.core.logging import fail, get_logger, info, success, verbose
from tts_relay.core.metrics import metrics
from tts_relay.services.validators import SynthesisRequest
from tts_relay.tts.engine import BaseTTSEngine, Engine, create_engines, select_engine

_LOG = get_logger("tts-relay.service")

AUDIO_MEDIA_TYPE = "audio/mpeg"


def audio_filename(now: Optional[float] = None) -> str:
    """Filename for a response: tts_<epoch-ms>.mp3."""
    ms = int((time.time() if now is None else now) * 1000)
    return f"tts_{ms}.mp3"


@dataclass
class AudioResult:
    """
    Result of a relayed synthesis.

    Attributes:
        audio_bytes: MPEG audio from the provider, unmodified.
        filename: Suggested filename (tts_<epoch-ms>.mp3).
        engine: Engine that produced the audio.
        media_type: Content type of audio_bytes.
        seconds: Time spent in the provider adapter.
    """
    audio_bytes: bytes
    filename: str
    engine: Engine
    media_type: str = AUDIO_MEDIA_TYPE
    seconds: float = 0.0


class RelayService:
    """
    Dispatches synthesis requests to provider adapters.

    The service owns one httpx.AsyncClient shared by all adapters, so
    connections to the providers are pooled across requests. Call
    aclose() on shutdown.

    Usage:
        service = RelayService(settings)
        result = await service.dispatch(request)
        await service.aclose()

    Args:
        settings: Application settings.
        engines: Adapter per engine; built from settings when omitted.
        transport: httpx transport for the shared client (tests pass
            httpx.MockTransport here).
    """

    def __init__(
        self,
        settings: Settings,
        engines: Optional[Mapping[Engine, BaseTTSEngine]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._settings = settings
        self._config = RelayConfig.from_settings(settings)
        self._text_preview_chars = self._config.logging.text_preview_chars

        upstream = self._config.upstream
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(upstream.timeout_s),
            follow_redirects=True,
            headers={"User-Agent": upstream.user_agent},
            transport=transport,
        )
        self._engines: Dict[Engine, BaseTTSEngine] = dict(
            engines if engines is not None else create_engines(self._client, self._config)
        )

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def config(self) -> RelayConfig:
        return self._config

    @property
    def engines(self) -> Dict[Engine, BaseTTSEngine]:
        return self._engines

    def choose_engine(self, request: SynthesisRequest) -> Engine:
        """
        Pick the engine for a request.

        Raises:
            UnsupportedEngineError: If the explicit engine is unknown.
        """
        engine = select_engine(request.engine, request.language)
        verbose(_LOG, "engine_selected", engine=engine.value,
                explicit=request.engine is not None, language=request.language)
        return engine

    async def dispatch(self, request: SynthesisRequest) -> AudioResult:
        """
        Synthesize a request on the engine chosen for it.

        Raises:
            UnsupportedEngineError: If the explicit engine is unknown.
            UpstreamError: If the provider call fails.
        """
        engine = self.choose_engine(request)
        return await self.synthesize_with(engine, request)

    async def synthesize_with(self, engine: Engine, request: SynthesisRequest) -> AudioResult:
        """
        Synthesize a request on a fixed engine (no selection).

        Args:
            engine: Engine to use.
            request: Validated request.

        Returns:
            AudioResult with the provider's audio.

        Raises:
            UpstreamError: If the provider call fails.
        """
        adapter = self._engines[engine]
        preview = request.text[:self._text_preview_chars] if self._text_preview_chars > 0 else ""
        info(_LOG, "request", engine=engine.value, chars=len(request.text), text_preview=preview)

        start = time.perf_counter()
        try:
            audio = await adapter.synthesize(
                request.text,
                language=request.language,
                speaker_id=request.speaker_id,
            )
        except UpstreamError as e:
            seconds = round(time.perf_counter() - start, 3)
            fail(_LOG, "upstream_failed", seconds=seconds, engine=engine.value,
                 status=e.status, error=str(e))
            metrics.record_upstream_error(engine.value, e.status)
            metrics.record_request(engine.value, "error", seconds)
            raise
        except RelayError:
            raise
        except Exception as e:
            fail(_LOG, "upstream_failed", engine=engine.value,
                 error=str(e), error_type=type(e).__name__)
            metrics.record_upstream_error(engine.value)
            metrics.record_request(engine.value, "error", -1)
            raise UpstreamError(f"{engine.value}: {e}")

        seconds = round(time.perf_counter() - start, 3)
        success(_LOG, "done", seconds=seconds, engine=engine.value, bytes=len(audio))
        metrics.record_request(engine.value, "success", seconds, audio_bytes=len(audio))

        return AudioResult(
            audio_bytes=audio,
            filename=audio_filename(),
            engine=engine,
            seconds=seconds,
        )

    def get_health_info(self) -> Dict[str, Any]:
        """Engines and upstream settings, for diagnostics."""
        return {
            "engines": sorted(e.value for e in self._engines),
            "upstream_timeout_s": self._config.upstream.timeout_s,
        }

    async def aclose(self) -> None:
        """Close the shared HTTP client."""
        await self._client.aclose()
