"""
API Request/Response Schemas.

Request bodies are validated by services/validators.py rather than by
pydantic, because the relay answers malformed bodies with its own 400
error shape ({"error": "Missing 'text'"}) instead of FastAPI's 422. The
request models below only document the bodies in the OpenAPI schema.

Models:
    TTSRequest: Body of POST /tts
    GoogleTTSRequest: Body of POST /tts/google
    VoicevoxTTSRequest: Body of POST /tts/voicevox
    HealthResponse: GET /health
    ErrorResponse: Every JSON error

Example Request:
    {
        "text": "こんにちは",
        "lang": "ja",
        "engine": "voicevox",
        "speaker": 3
    }
"""
from __future__ import annotations

from typing import Literal, Optional, Union

from pydantic import BaseModel, Field


class TTSRequest(BaseModel):
    """
    Body of POST /tts.

    Attributes:
        text: Text to speak; trimmed, must not be blank.
        lang: Language code. "ja" selects VOICEVOX when engine is omitted.
        engine: "google" or "voicevox"; overrides the language rule.
        speaker: VOICEVOX speaker id (default 3); ignored by Google.
    """
    text: str = Field(..., description="Text to synthesize")
    lang: Optional[str] = Field(default="en", description="Language code (e.g., 'en', 'hi', 'ja')")
    engine: Optional[Literal["google", "voicevox"]] = Field(
        default=None,
        description="Explicit engine; chosen from lang when omitted",
    )
    speaker: Optional[Union[int, str]] = Field(
        default=None,
        description="VOICEVOX speaker id (non-numeric values fall back to 3)",
    )


class GoogleTTSRequest(BaseModel):
    """Body of POST /tts/google."""
    text: str = Field(..., description="Text to synthesize")
    lang: Optional[str] = Field(default="en", description="Language code")


class VoicevoxTTSRequest(BaseModel):
    """Body of POST /tts/voicevox."""
    text: str = Field(..., description="Text to synthesize")
    speaker: Optional[Union[int, str]] = Field(default=None, description="VOICEVOX speaker id")


class HealthResponse(BaseModel):
    """
    Liveness response.

    Example Response:
        {"ok": true, "time": "2026-10-18T09:15:02.381Z"}
    """
    ok: bool = Field(..., description="Always true while the process serves requests")
    time: str = Field(..., description="Server time, ISO 8601 UTC")


class ErrorResponse(BaseModel):
    """
    JSON error body.

    Example Response:
        {"error": "TTS failed", "detail": "google: translate.google.com returned 503 Service Unavailable"}
    """
    error: str = Field(..., description="Error message")
    detail: Optional[str] = Field(default=None, description="Underlying cause, when available")
