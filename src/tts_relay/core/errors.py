"""
Error Taxonomy for tts-relay.

Every failure the relay can report to a caller is a RelayError subclass.
Each carries the HTTP status it maps to, so the API layer converts errors
to responses without a separate lookup table.

Hierarchy:
    RelayError                 -> 500 INTERNAL_ERROR
    ├── ValidationError        -> 400 INVALID_INPUT
    ├── UnsupportedEngineError -> 400 UNSUPPORTED_ENGINE
    ├── PayloadTooLargeError   -> 413 PAYLOAD_TOO_LARGE
    ├── RateLimitExceeded      -> 429 RATE_LIMITED
    └── UpstreamError          -> upstream status, else 500 (UPSTREAM_FAILED)

Response Body:
    Errors serialize to the relay's JSON error shape:
        {"error": "<message>"}
    or, for upstream failures:
        {"error": "TTS failed", "detail": "<upstream message>"}
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class ErrorCode:
    """Machine-readable error codes used in logs and metrics."""
    INVALID_INPUT = "INVALID_INPUT"             # Missing or malformed field
    UNSUPPORTED_ENGINE = "UNSUPPORTED_ENGINE"   # Unknown explicit engine
    PAYLOAD_TOO_LARGE = "PAYLOAD_TOO_LARGE"     # Body above size limit
    RATE_LIMITED = "RATE_LIMITED"               # Per-client limit hit
    UPSTREAM_FAILED = "UPSTREAM_FAILED"         # Provider call failed
    INTERNAL_ERROR = "INTERNAL_ERROR"           # Unexpected error


class RelayError(Exception):
    """
    Base exception for relay errors.

    Attributes:
        message: Human-readable error message (sent as "error").
        code: Error code from ErrorCode.
        detail: Optional detail string (sent as "detail" when set).
    """
    status_code: int = 500

    def __init__(self, message: str, code: str = ErrorCode.INTERNAL_ERROR, detail: Optional[str] = None):
        self.message = message
        self.code = code
        self.detail = detail
        super().__init__(message)

    @property
    def http_status(self) -> int:
        """HTTP status code to answer with."""
        return self.status_code

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON error body."""
        result: Dict[str, Any] = {"error": self.message}
        if self.detail is not None:
            result["detail"] = self.detail
        return result


class ValidationError(RelayError):
    """Raised when the request body fails validation."""
    status_code = 400

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message, ErrorCode.INVALID_INPUT, detail)


class UnsupportedEngineError(RelayError):
    """Raised when an explicit engine is not one of the known engines."""
    status_code = 400

    def __init__(self, engine: str):
        self.engine = engine
        super().__init__(
            "Unsupported engine. Use 'google' or 'voicevox'.",
            ErrorCode.UNSUPPORTED_ENGINE,
        )


class PayloadTooLargeError(RelayError):
    """Raised when the request body exceeds the configured size."""
    status_code = 413

    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__("Request body too large", ErrorCode.PAYLOAD_TOO_LARGE)


class RateLimitExceeded(RelayError):
    """Raised when a client exceeds its request budget for the window."""
    status_code = 429

    def __init__(self, identity: str, retry_after_s: int):
        self.identity = identity
        self.retry_after_s = retry_after_s
        super().__init__("Too many requests, please try again later.", ErrorCode.RATE_LIMITED)


class UpstreamError(RelayError):
    """
    Raised when a TTS provider call fails.

    Attributes:
        status: HTTP status returned by the provider, or None when the
            failure had no response (timeout, connection error, bad payload).
    """

    def __init__(self, message: str, status: Optional[int] = None):
        self.status = status
        super().__init__("TTS failed", ErrorCode.UPSTREAM_FAILED, detail=message)

    @property
    def http_status(self) -> int:
        return self.status if self.status else 500

    def __str__(self) -> str:
        return self.detail or self.message
