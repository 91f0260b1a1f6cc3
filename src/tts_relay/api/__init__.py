"""
FastAPI REST API Layer for tts-relay.

This package defines all HTTP endpoints:
    - routes.py: /health, /tts, /tts/google, /tts/voicevox, /metrics
    - middleware.py: Access log and per-client rate limiting
    - schemas.py: Request/response Pydantic models (documentation)
    - dependencies.py: FastAPI dependency injection
"""
