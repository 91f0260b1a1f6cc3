"""
Relay API Routes.

Endpoints:
    GET  /health         - Liveness probe: {"ok": true, "time": <ISO UTC>}
    POST /tts            - Synthesize with the engine chosen from the body
    POST /tts/google     - Synthesize with Google Translate only
    POST /tts/voicevox   - Synthesize with VOICEVOX (tts.quest) only
    GET  /metrics        - Prometheus metrics (requires prometheus_client)

Request Flow:
    1. Read the raw body (413 past server.max_body_bytes)
    2. Decode JSON (400 "Invalid JSON body" when malformed)
    3. validate_request() → SynthesisRequest
    4. RelayService.dispatch() or synthesize_with() a fixed engine
    5. Return the provider's MPEG audio unmodified

Error Handling:
    Every failure is answered with JSON:
        {"error": "<message>", "detail": "<optional cause>"}

    Status codes come from the RelayError subclass:
        - ValidationError, UnsupportedEngineError -> 400
        - PayloadTooLargeError -> 413
        - UpstreamError -> provider status, or 500 without one
        - anything else -> 500 "Internal server error"

Example Usage:
    >>> import httpx
    >>> response = httpx.post(
    ...     "http://localhost:3000/tts",
    ...     json={"text": "こんにちは", "lang": "ja"}
    ... )
    >>> response.headers["X-Engine"]
    'voicevox'
"""
from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from tts_relay.api.dependencies import get_relay_service
from tts_relay.api.schemas import (
    ErrorResponse,
    GoogleTTSRequest,
    HealthResponse,
    TTSRequest,
    VoicevoxTTSRequest,
)
from tts_relay.core.errors import PayloadTooLargeError, RelayError, ValidationError
from tts_relay.core.logging import error, get_logger, warn
from tts_relay.core.metrics import metrics
from tts_relay.services.relay_service import AudioResult, RelayService
from tts_relay.services.validators import validate_request
from tts_relay.tts.engine import Engine

router = APIRouter()

_LOG = get_logger("tts-relay.api")

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid body or unsupported engine"},
    413: {"model": ErrorResponse, "description": "Request body too large"},
    429: {"model": ErrorResponse, "description": "Rate limit exceeded"},
    500: {"model": ErrorResponse, "description": "Provider or internal failure"},
}

_AUDIO_RESPONSE = {200: {"content": {"audio/mpeg": {}}, "description": "MPEG audio"}}


def _body_doc(model) -> dict:
    """OpenAPI requestBody entry for a body parsed by hand."""
    return {
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": model.model_json_schema()}},
        }
    }


def utc_timestamp(now: Optional[datetime] = None) -> str:
    """ISO 8601 UTC time with milliseconds and a Z suffix."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


async def read_json_body(request: Request, max_bytes: int) -> Any:
    """
    Read and decode the request body.

    Bodies that are empty or not declared as JSON decode to {}, which the
    validator reports as missing text.

    Raises:
        PayloadTooLargeError: If the body exceeds max_bytes.
        ValidationError: If a JSON body cannot be decoded.
    """
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > max_bytes:
        raise PayloadTooLargeError(int(declared), max_bytes)

    raw = await request.body()
    if len(raw) > max_bytes:
        raise PayloadTooLargeError(len(raw), max_bytes)

    content_type = request.headers.get("content-type", "")
    if not raw.strip() or "json" not in content_type.lower():
        return {}

    try:
        return json.loads(raw)
    except (UnicodeDecodeError, ValueError):
        raise ValidationError("Invalid JSON body")


def _audio_response(result: AudioResult) -> Response:
    headers = {
        "Content-Disposition": f"inline; filename={result.filename}",
        "X-Engine": result.engine.value,
    }
    return Response(content=result.audio_bytes, media_type=result.media_type, headers=headers)


def _error_response(err: RelayError) -> JSONResponse:
    return JSONResponse(status_code=err.http_status, content=err.to_dict())


async def _relay(request: Request, service: RelayService, engine: Optional[Engine] = None) -> Response:
    """
    Shared handler for the synthesis endpoints.

    Args:
        request: Incoming request.
        service: RelayService of the app.
        engine: Fixed engine for the shortcut endpoints; None selects one
            from the body.
    """
    config = service.config
    try:
        body = await read_json_body(request, config.server.max_body_bytes)
        synth_request = validate_request(body, default_language=config.limits.default_language)
        if engine is None:
            result = await service.dispatch(synth_request)
        else:
            result = await service.synthesize_with(engine, synth_request)
        return _audio_response(result)

    except RelayError as e:
        if e.http_status < 500:
            warn(_LOG, "rejected", path=request.url.path, status=e.http_status, error=e.message)
        return _error_response(e)

    except Exception as e:
        error(_LOG, "unhandled", path=request.url.path, error=str(e), error_type=type(e).__name__)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})


@router.get("/health", response_model=HealthResponse)
def health():
    """
    Liveness probe.

    Touches no provider, so it reports on this process only.
    """
    return {"ok": True, "time": utc_timestamp()}


@router.post(
    "/tts",
    response_class=Response,
    responses={**_AUDIO_RESPONSE, **_ERROR_RESPONSES},
    openapi_extra=_body_doc(TTSRequest),
)
async def tts(request: Request, service: RelayService = Depends(get_relay_service)):
    """
    Synthesize speech with the engine chosen from the body.

    An explicit "engine" wins; otherwise lang "ja" selects VOICEVOX and
    every other language selects Google.

    Example:
        curl -X POST http://localhost:3000/tts \\
            -H "Content-Type: application/json" \\
            -d '{"text": "Hello", "lang": "en"}' \\
            --output speech.mp3
    """
    return await _relay(request, service)


@router.post(
    "/tts/google",
    response_class=Response,
    responses={**_AUDIO_RESPONSE, **_ERROR_RESPONSES},
    openapi_extra=_body_doc(GoogleTTSRequest),
)
async def tts_google(request: Request, service: RelayService = Depends(get_relay_service)):
    """Synthesize with Google Translate regardless of language."""
    return await _relay(request, service, Engine.GOOGLE)


@router.post(
    "/tts/voicevox",
    response_class=Response,
    responses={**_AUDIO_RESPONSE, **_ERROR_RESPONSES},
    openapi_extra=_body_doc(VoicevoxTTSRequest),
)
async def tts_voicevox(request: Request, service: RelayService = Depends(get_relay_service)):
    """Synthesize with VOICEVOX; "speaker" defaults to 3."""
    return await _relay(request, service, Engine.VOICEVOX)


@router.get("/metrics")
def prometheus_metrics():
    """
    Prometheus metrics endpoint.

    Exposes:
        - relay_requests_total{engine,status}
        - relay_upstream_duration_seconds{engine}
        - relay_audio_bytes_total
        - relay_upstream_errors_total{engine,status}
        - relay_rate_limited_total

    Returns placeholder text when prometheus_client is not installed.
    """
    content, content_type = metrics.get_metrics_response()
    return Response(content=content, media_type=content_type)
