"""
FastAPI Dependency Injection Providers.

Shared resources for route handlers, resolved with Depends():

    get_settings()       - Settings loaded once per process (lru_cache)
    get_relay_service()  - RelayService owned by the running app
    get_rate_limiter()   - FixedWindowRateLimiter owned by the running app

The relay service and rate limiter live on app.state, set by
main.create_app(). Tests build an app with their own instances instead
of patching module globals.
"""
from __future__ import annotations

from functools import lru_cache

from fastapi import Request

from tts_relay.core.config import Settings, load_settings_or_defaults
from tts_relay.services.relay_service import RelayService
from tts_relay.tts.ratelimit import FixedWindowRateLimiter


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Load and cache application settings.

    Reads $TTS_RELAY_SETTINGS (default config/settings.yaml); built-in
    defaults apply when the file does not exist. Restart to reload.
    """
    return load_settings_or_defaults()


def get_relay_service(request: Request) -> RelayService:
    """RelayService of the app handling this request."""
    return request.app.state.relay_service


def get_rate_limiter(request: Request) -> FixedWindowRateLimiter | None:
    """Rate limiter of the app handling this request (None when disabled)."""
    return getattr(request.app.state, "rate_limiter", None)
