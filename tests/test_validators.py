"""Tests for request body validation."""
from __future__ import annotations

import pytest

from tts_relay.core.errors import ValidationError
from tts_relay.services.validators import (
    MISSING_TEXT,
    SynthesisRequest,
    coerce_engine,
    coerce_speaker,
    validate_language,
    validate_request,
    validate_text,
)


class TestValidateText:
    """Tests for validate_text."""

    def test_trims(self):
        assert validate_text("  hello  ") == "hello"

    @pytest.mark.parametrize("value", [None, "", "   \n\t", 42, ["hi"], {"t": 1}])
    def test_missing_or_blank(self, value):
        with pytest.raises(ValidationError) as exc:
            validate_text(value)
        assert exc.value.message == MISSING_TEXT

    def test_no_length_cap(self):
        text = "x" * 10_000
        assert validate_text("  " + text + "  ") == text


class TestValidateLanguage:
    """Tests for validate_language."""

    def test_default_when_absent(self):
        assert validate_language(None) == "en"

    def test_default_when_empty(self):
        assert validate_language("  ") == "en"

    def test_passes_through(self):
        assert validate_language("ja") == "ja"

    def test_non_string_used_as_text(self):
        assert validate_language(5) == "5"
        assert validate_language(0) == "0"


class TestCoerceEngine:
    """Tests for coerce_engine."""

    def test_absent(self):
        assert coerce_engine(None) is None
        assert coerce_engine("") is None
        assert coerce_engine(False) is None
        assert coerce_engine(0) is None

    def test_kept_for_selector(self):
        assert coerce_engine(" voicevox ") == "voicevox"
        assert coerce_engine("azure") == "azure"

    def test_non_string_stringified(self):
        assert coerce_engine(7) == "7"


class TestCoerceSpeaker:
    """Tests for coerce_speaker."""

    def test_int(self):
        assert coerce_speaker(8) == 8

    def test_numeric_string(self):
        assert coerce_speaker("2") == 2
        assert coerce_speaker(" 14 ") == 14

    def test_integral_float(self):
        assert coerce_speaker(3.0) == 3

    @pytest.mark.parametrize("value", [None, True, "", "zundamon", 2.5, float("nan"), [1]])
    def test_unusable_values_fall_back(self, value):
        assert coerce_speaker(value) is None


class TestValidateRequest:
    """Tests for validate_request."""

    def test_minimal_body(self):
        req = validate_request({"text": "hello"})
        assert req == SynthesisRequest(text="hello", language="en", engine=None, speaker_id=None)

    def test_full_body(self):
        req = validate_request({"text": " こんにちは ", "lang": "ja", "engine": "voicevox", "speaker": "1"})
        assert req.text == "こんにちは"
        assert req.language == "ja"
        assert req.engine == "voicevox"
        assert req.speaker_id == 1

    def test_empty_object(self):
        with pytest.raises(ValidationError, match=MISSING_TEXT):
            validate_request({})

    @pytest.mark.parametrize("body", [None, [], "hello", 3])
    def test_non_object_body(self, body):
        with pytest.raises(ValidationError, match=MISSING_TEXT):
            validate_request(body)

    def test_configured_default_language(self):
        assert validate_request({"text": "hi"}, default_language="hi").language == "hi"
