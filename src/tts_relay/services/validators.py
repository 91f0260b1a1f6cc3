"""
Request Validation for the Relay.

Turns an untyped JSON request body into a SynthesisRequest, or raises
ValidationError. Nothing downstream reads raw body fields.

Body Fields:
    text     required, string, non-empty after trimming (trimmed on output)
    lang     optional, default "en"; non-string values are used as text
    engine   optional, passed through for the engine selector; falsy
             values mean "choose for me"
    speaker  optional, integral number or numeric string; anything else
             is dropped so the VOICEVOX default speaker applies

Error Messages:
    Missing 'text'    text absent, not a string, or blank

Usage:
    from tts_relay.services.validators import validate_request, ValidationError

    try:
        request = validate_request(body)
    except ValidationError as e:
        return JSONResponse(status_code=400, content=e.to_dict())
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Optional

from tts_relay.core.config import Defaults
from tts_relay.core.errors import ValidationError

MISSING_TEXT = "Missing 'text'"


@dataclass
class SynthesisRequest:
    """
    A validated synthesis request.

    Attributes:
        text: Trimmed, non-empty text.
        language: Language code ("en" when not given).
        engine: Explicit engine as sent by the client, or None.
        speaker_id: VOICEVOX speaker id, or None for the default.
    """
    text: str
    language: str = Defaults.LIMITS_DEFAULT_LANGUAGE
    engine: Optional[str] = None
    speaker_id: Optional[int] = None


def validate_text(text: Any) -> str:
    """
    Validate and trim the text field.

    Raises:
        ValidationError: If text is missing, not a string or blank.
    """
    if not isinstance(text, str) or not text.strip():
        raise ValidationError(MISSING_TEXT)

    return text.strip()


def validate_language(language: Any, default: str = Defaults.LIMITS_DEFAULT_LANGUAGE) -> str:
    """Return the language code, or default when absent or empty."""
    if language is None:
        return default
    if not isinstance(language, str):
        return str(language)
    language = language.strip()
    return language or default


def coerce_engine(engine: Any) -> Optional[str]:
    """
    Normalize the explicit engine field.

    Falsy values (None, false, 0, "") mean "choose for me". Any other
    value is kept (as text) so the engine selector can reject it as
    unsupported.
    """
    if not engine:
        return None
    if isinstance(engine, str):
        return engine.strip() or None
    return str(engine)


def coerce_speaker(speaker: Any) -> Optional[int]:
    """
    Parse a speaker id leniently.

    Integers and integral floats pass through; numeric strings are
    parsed. Booleans, fractional or non-finite numbers and other values
    give None, meaning the provider default.

    Examples:
        >>> coerce_speaker(8)
        8
        >>> coerce_speaker("2")
        2
        >>> coerce_speaker("zundamon") is None
        True
    """
    if speaker is None or isinstance(speaker, bool):
        return None

    if isinstance(speaker, str):
        speaker = speaker.strip()
        if not speaker:
            return None
        try:
            speaker = float(speaker)
        except ValueError:
            return None

    if isinstance(speaker, int):
        return speaker

    if isinstance(speaker, float) and math.isfinite(speaker) and speaker.is_integer():
        return int(speaker)

    return None


def validate_request(
    body: Any,
    default_language: str = Defaults.LIMITS_DEFAULT_LANGUAGE,
) -> SynthesisRequest:
    """
    Validate a decoded JSON body.

    Args:
        body: Decoded JSON (anything; non-objects count as missing text).
        default_language: Language used when "lang" is absent.

    Returns:
        SynthesisRequest with normalized fields.

    Raises:
        ValidationError: If the body is invalid.
    """
    if not isinstance(body, dict):
        raise ValidationError(MISSING_TEXT)

    return SynthesisRequest(
        text=validate_text(body.get("text")),
        language=validate_language(body.get("lang"), default=default_language),
        engine=coerce_engine(body.get("engine")),
        speaker_id=coerce_speaker(body.get("speaker")),
    )
