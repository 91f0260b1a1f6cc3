"""
FastAPI Application Entry Point.

This module creates and configures the FastAPI application for the
tts-relay service: logging, CORS, rate limiting, routes and the shared
upstream HTTP client.

Endpoints:
    GET  /health, GET /metrics
    POST /tts, /tts/google, /tts/voicevox

Usage:
    # Console script (reads server.host / server.port, PORT, HOST)
    tts-relay-server

    # Or with uvicorn directly
    uvicorn tts_relay.main:app --host 0.0.0.0 --port 3000
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tts_relay import __version__
from tts_relay.api.dependencies import get_settings
from tts_relay.api.middleware import install_middleware
from tts_relay.api.routes import router
from tts_relay.core.config import Settings
from tts_relay.core.logging import configure_logging, get_logger, info
from tts_relay.services.relay_service import RelayService
from tts_relay.tts.ratelimit import FixedWindowRateLimiter

_LOG = get_logger("tts-relay.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log startup; close the upstream client on shutdown."""
    service: RelayService = app.state.relay_service
    config = service.config
    info(_LOG, "startup", version=__version__, engines=",".join(service.get_health_info()["engines"]),
         rate_limit=f"{config.rate_limit.max_requests}/{config.rate_limit.window_s}s"
         if config.rate_limit.enabled else "off")
    try:
        yield
    finally:
        await service.aclose()
        info(_LOG, "shutdown")


def create_app(
    settings: Optional[Settings] = None,
    service: Optional[RelayService] = None,
    rate_limiter: Optional[FixedWindowRateLimiter] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    This factory function:
        1. Configures structured logging (TTS_RELAY_LOG_LEVEL etc.)
        2. Builds the RelayService and rate limiter from settings
        3. Installs CORS, access-log and rate-limit middleware
        4. Registers the relay routes

    Args:
        settings: Settings to use; loaded from config/settings.yaml
            (or $TTS_RELAY_SETTINGS) when omitted.
        service: Prebuilt RelayService (tests inject one with a mock
            transport or fake engines).
        rate_limiter: Prebuilt limiter; built from rate_limit settings
            when omitted, and disabled when rate_limit.enabled is false.

    Returns:
        FastAPI: Configured application instance.
    """
    configure_logging()

    if service is None:
        service = RelayService(settings or get_settings())
    config = service.config

    if rate_limiter is None and config.rate_limit.enabled:
        rate_limiter = FixedWindowRateLimiter.from_config(config.rate_limit)

    app = FastAPI(title="tts-relay", version=__version__, lifespan=lifespan)
    app.state.relay_service = service
    app.state.rate_limiter = rate_limiter

    install_middleware(app)
    if config.cors.enabled:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.cors.allow_origins,
            allow_methods=["*"],
            allow_headers=["*"],
            expose_headers=["Content-Disposition", "X-Request-Id", "X-Engine", "Retry-After"],
        )

    app.include_router(router)
    return app


def run() -> None:
    """Serve the app with uvicorn on the configured host and port."""
    settings = get_settings()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


# Global application instance for ASGI servers (uvicorn, gunicorn, etc.)
app = create_app()
