"""
Configuration Management for tts-relay.

This module provides centralized configuration handling with:
    - Default values (Defaults class)
    - Dataclass-based configuration objects
    - YAML file loading with environment variable overrides
    - Validation with meaningful error messages

Configuration Hierarchy (highest priority first):
    1. Environment variables (PORT, HOST, TTS_RELAY_UPSTREAM_TIMEOUT_S)
    2. YAML config file (config/settings.yaml, or $TTS_RELAY_SETTINGS)
    3. Defaults class values

Example settings.yaml:
    server:
      port: 3000
      max_body_bytes: 1048576

    rate_limit:
      window_s: 60
      max_requests: 30

    upstream:
      timeout_s: 25

    voicevox:
      default_speaker: 3
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List
import os
import yaml


class ConfigValidationError(Exception):
    """
    Raised when configuration validation fails.

    This exception is thrown when a configuration value is outside
    acceptable bounds or of the wrong type.
    """
    pass


class Defaults:
    """
    Centralized default configuration values.

    Sections:
        - Server: Listen address and body limits
        - Rate limiting: Fixed window per client address
        - Upstream: Shared HTTP client settings
        - Google / VOICEVOX: Provider endpoints and parameters
        - Limits: Request defaults (language)
        - CORS: Allowed origins
        - Logging: Log level and formatting
    """

    # ─────────────────────────────────────────────────────────────────────────
    # Server
    # ─────────────────────────────────────────────────────────────────────────
    SERVER_HOST = "0.0.0.0"
    SERVER_PORT = 3000
    SERVER_MAX_BODY_BYTES = 1024 * 1024  # 1 MiB JSON body limit

    # ─────────────────────────────────────────────────────────────────────────
    # Rate Limiting
    # ─────────────────────────────────────────────────────────────────────────
    RATE_LIMIT_ENABLED = True
    RATE_LIMIT_WINDOW_S = 60           # Fixed window length
    RATE_LIMIT_MAX_REQUESTS = 30       # Requests per client per window

    # ─────────────────────────────────────────────────────────────────────────
    # Upstream HTTP
    # ─────────────────────────────────────────────────────────────────────────
    UPSTREAM_TIMEOUT_S = 25.0          # Per outbound call
    UPSTREAM_USER_AGENT = "tts-relay/0.1"

    # ─────────────────────────────────────────────────────────────────────────
    # Providers
    # ─────────────────────────────────────────────────────────────────────────
    GOOGLE_URL = "https://translate.google.com/translate_tts"
    GOOGLE_CLIENT = "tw-ob"
    GOOGLE_CHARSET = "UTF-8"
    VOICEVOX_URL = "https://api.tts.quest/v3/voicevox/synthesis"
    VOICEVOX_DEFAULT_SPEAKER = 3

    # ─────────────────────────────────────────────────────────────────────────
    # Request Defaults
    # ─────────────────────────────────────────────────────────────────────────
    LIMITS_DEFAULT_LANGUAGE = "en"

    # ─────────────────────────────────────────────────────────────────────────
    # CORS
    # ─────────────────────────────────────────────────────────────────────────
    CORS_ENABLED = True
    CORS_ALLOW_ORIGINS = ("*",)

    # ─────────────────────────────────────────────────────────────────────────
    # Logging
    # ─────────────────────────────────────────────────────────────────────────
    LOGGING_TEXT_PREVIEW_CHARS = 40     # Characters to show in text preview
    LOGGING_LEVEL = 2                   # 1=MINIMAL, 2=NORMAL, 3=VERBOSE, 4=DEBUG


@dataclass
class ServerConfig:
    """Listen address and request body limit."""
    host: str = Defaults.SERVER_HOST
    port: int = Defaults.SERVER_PORT
    max_body_bytes: int = Defaults.SERVER_MAX_BODY_BYTES


@dataclass
class RateLimitConfig:
    """
    Per-client rate limiting.

    Each client address may make max_requests requests per fixed window
    of window_s seconds. Counters live in memory only.
    """
    enabled: bool = Defaults.RATE_LIMIT_ENABLED
    window_s: int = Defaults.RATE_LIMIT_WINDOW_S
    max_requests: int = Defaults.RATE_LIMIT_MAX_REQUESTS


@dataclass
class UpstreamConfig:
    """Settings shared by every outbound provider call."""
    timeout_s: float = Defaults.UPSTREAM_TIMEOUT_S
    user_agent: str = Defaults.UPSTREAM_USER_AGENT


@dataclass
class GoogleConfig:
    """Google Translate speech endpoint."""
    url: str = Defaults.GOOGLE_URL
    client: str = Defaults.GOOGLE_CLIENT
    charset: str = Defaults.GOOGLE_CHARSET


@dataclass
class VoicevoxConfig:
    """tts.quest VOICEVOX synthesis endpoint."""
    url: str = Defaults.VOICEVOX_URL
    default_speaker: int = Defaults.VOICEVOX_DEFAULT_SPEAKER


@dataclass
class LimitsConfig:
    """Request defaults applied by the validator."""
    default_language: str = Defaults.LIMITS_DEFAULT_LANGUAGE


@dataclass
class CorsConfig:
    """Cross-origin access for browser clients."""
    enabled: bool = Defaults.CORS_ENABLED
    allow_origins: List[str] = field(default_factory=lambda: list(Defaults.CORS_ALLOW_ORIGINS))


@dataclass
class LoggingConfig:
    """
    Logging configuration.

    Log levels:
        1 = MINIMAL: Startup, shutdown, critical errors only
        2 = NORMAL: Request lifecycle, upstream status (default)
        3 = VERBOSE: Per-call timing, detailed flow
        4 = DEBUG: Internal state, full tracing
    """
    text_preview_chars: int = Defaults.LOGGING_TEXT_PREVIEW_CHARS
    level: int = Defaults.LOGGING_LEVEL


@dataclass
class RelayConfig:
    """
    Validated configuration for the relay.

    This is the main configuration object created from Settings.

    Usage:
        settings = load_settings("config/settings.yaml")
        config = RelayConfig.from_settings(settings)
        print(config.rate_limit.max_requests)
    """
    server: ServerConfig = field(default_factory=ServerConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    upstream: UpstreamConfig = field(default_factory=UpstreamConfig)
    google: GoogleConfig = field(default_factory=GoogleConfig)
    voicevox: VoicevoxConfig = field(default_factory=VoicevoxConfig)
    limits: LimitsConfig = field(default_factory=LimitsConfig)
    cors: CorsConfig = field(default_factory=CorsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_settings(cls, settings: "Settings") -> "RelayConfig":
        """
        Create RelayConfig from Settings with validation.

        Args:
            settings: Raw Settings object loaded from YAML.

        Returns:
            Validated RelayConfig instance.

        Raises:
            ConfigValidationError: If any value fails validation.
        """
        raw = settings.raw

        # ─────────────────────────────────────────────────────────────────────
        # Server
        # ─────────────────────────────────────────────────────────────────────
        server_raw = raw.get("server", {}) or {}
        server = ServerConfig(
            host=str(server_raw.get("host", Defaults.SERVER_HOST)),
            port=cls._as_int("server.port", server_raw.get("port", Defaults.SERVER_PORT)),
            max_body_bytes=cls._as_int(
                "server.max_body_bytes", server_raw.get("max_body_bytes", Defaults.SERVER_MAX_BODY_BYTES)
            ),
        )
        cls._validate_range("server.port", server.port, 1, 65535)
        cls._validate_positive("server.max_body_bytes", server.max_body_bytes)

        # ─────────────────────────────────────────────────────────────────────
        # Rate limiting
        # ─────────────────────────────────────────────────────────────────────
        rl_raw = raw.get("rate_limit", {}) or {}
        rate_limit = RateLimitConfig(
            enabled=bool(rl_raw.get("enabled", Defaults.RATE_LIMIT_ENABLED)),
            window_s=cls._as_int("rate_limit.window_s", rl_raw.get("window_s", Defaults.RATE_LIMIT_WINDOW_S)),
            max_requests=cls._as_int(
                "rate_limit.max_requests", rl_raw.get("max_requests", Defaults.RATE_LIMIT_MAX_REQUESTS)
            ),
        )
        cls._validate_positive("rate_limit.window_s", rate_limit.window_s)
        cls._validate_positive("rate_limit.max_requests", rate_limit.max_requests)

        # ─────────────────────────────────────────────────────────────────────
        # Upstream
        # ─────────────────────────────────────────────────────────────────────
        up_raw = raw.get("upstream", {}) or {}
        upstream = UpstreamConfig(
            timeout_s=cls._as_float("upstream.timeout_s", up_raw.get("timeout_s", Defaults.UPSTREAM_TIMEOUT_S)),
            user_agent=str(up_raw.get("user_agent", Defaults.UPSTREAM_USER_AGENT)),
        )
        cls._validate_positive("upstream.timeout_s", upstream.timeout_s)

        # ─────────────────────────────────────────────────────────────────────
        # Providers
        # ─────────────────────────────────────────────────────────────────────
        g_raw = raw.get("google", {}) or {}
        google = GoogleConfig(
            url=str(g_raw.get("url", Defaults.GOOGLE_URL)),
            client=str(g_raw.get("client", Defaults.GOOGLE_CLIENT)),
            charset=str(g_raw.get("charset", Defaults.GOOGLE_CHARSET)),
        )

        v_raw = raw.get("voicevox", {}) or {}
        voicevox = VoicevoxConfig(
            url=str(v_raw.get("url", Defaults.VOICEVOX_URL)),
            default_speaker=cls._as_int(
                "voicevox.default_speaker", v_raw.get("default_speaker", Defaults.VOICEVOX_DEFAULT_SPEAKER)
            ),
        )
        cls._validate_non_negative("voicevox.default_speaker", voicevox.default_speaker)

        # ─────────────────────────────────────────────────────────────────────
        # Limits
        # ─────────────────────────────────────────────────────────────────────
        lim_raw = raw.get("limits", {}) or {}
        limits = LimitsConfig(
            default_language=str(lim_raw.get("default_language", Defaults.LIMITS_DEFAULT_LANGUAGE)),
        )

        # ─────────────────────────────────────────────────────────────────────
        # CORS
        # ─────────────────────────────────────────────────────────────────────
        cors_raw = raw.get("cors", {}) or {}
        origins = cors_raw.get("allow_origins", list(Defaults.CORS_ALLOW_ORIGINS))
        if isinstance(origins, str):
            origins = [o.strip() for o in origins.split(",") if o.strip()]
        cors = CorsConfig(
            enabled=bool(cors_raw.get("enabled", Defaults.CORS_ENABLED)),
            allow_origins=[str(o) for o in origins],
        )

        # ─────────────────────────────────────────────────────────────────────
        # Logging
        # ─────────────────────────────────────────────────────────────────────
        logging_raw = raw.get("logging", {}) or {}
        log_level_raw = logging_raw.get("level", Defaults.LOGGING_LEVEL)

        # Handle string log levels (e.g., "INFO", "DEBUG")
        if isinstance(log_level_raw, str):
            level_map = {
                "MINIMAL": 1, "1": 1,
                "NORMAL": 2, "INFO": 2, "2": 2,
                "VERBOSE": 3, "3": 3,
                "DEBUG": 4, "TRACE": 4, "4": 4,
            }
            log_level = level_map.get(log_level_raw.upper(), Defaults.LOGGING_LEVEL)
        else:
            log_level = int(log_level_raw)

        logging_cfg = LoggingConfig(
            text_preview_chars=int(logging_raw.get("text_preview_chars", Defaults.LOGGING_TEXT_PREVIEW_CHARS)),
            level=log_level,
        )
        cls._validate_non_negative("logging.text_preview_chars", logging_cfg.text_preview_chars)
        cls._validate_range("logging.level", logging_cfg.level, 1, 4)

        return cls(
            server=server,
            rate_limit=rate_limit,
            upstream=upstream,
            google=google,
            voicevox=voicevox,
            limits=limits,
            cors=cors,
            logging=logging_cfg,
        )

    @staticmethod
    def _as_int(name: str, value: Any) -> int:
        """Coerce a value to int, raising ConfigValidationError on failure."""
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ConfigValidationError(f"{name} must be an integer, got {value!r}")

    @staticmethod
    def _as_float(name: str, value: Any) -> float:
        """Coerce a value to float, raising ConfigValidationError on failure."""
        try:
            return float(value)
        except (TypeError, ValueError):
            raise ConfigValidationError(f"{name} must be a number, got {value!r}")

    @staticmethod
    def _validate_positive(name: str, value: int | float) -> None:
        """Validate that a value is positive (> 0)."""
        if value <= 0:
            raise ConfigValidationError(f"{name} must be positive, got {value}")

    @staticmethod
    def _validate_non_negative(name: str, value: int | float) -> None:
        """Validate that a value is non-negative (>= 0)."""
        if value < 0:
            raise ConfigValidationError(f"{name} must be non-negative, got {value}")

    @staticmethod
    def _validate_range(name: str, value: int | float, min_val: int | float, max_val: int | float) -> None:
        """Validate that a value is within a range [min_val, max_val]."""
        if not (min_val <= value <= max_val):
            raise ConfigValidationError(f"{name} must be between {min_val} and {max_val}, got {value}")


@dataclass(frozen=True)
class Settings:
    """
    Immutable settings container loaded from YAML.

    This is the raw settings object before validation. Use
    get_relay_config() to get a validated RelayConfig.

    Attributes:
        raw: Dictionary of raw configuration values.
    """
    raw: Dict[str, Any]

    @property
    def port(self) -> int:
        """Get the listen port."""
        return int(self.raw.get("server", {}).get("port", Defaults.SERVER_PORT))

    @property
    def host(self) -> str:
        """Get the listen host."""
        return str(self.raw.get("server", {}).get("host", Defaults.SERVER_HOST))

    def get_relay_config(self) -> RelayConfig:
        """
        Get validated RelayConfig from these settings.

        Raises:
            ConfigValidationError: If validation fails.
        """
        return RelayConfig.from_settings(self)


def apply_env_overrides(raw: Dict[str, Any]) -> Dict[str, Any]:
    """
    Apply environment variable overrides to a raw settings dict.

    Environment variable overrides:
        - PORT: server.port
        - HOST: server.host
        - TTS_RELAY_UPSTREAM_TIMEOUT_S: upstream.timeout_s

    Args:
        raw: Raw settings dictionary (modified in place).

    Returns:
        The same dictionary, for chaining.
    """
    port = os.getenv("PORT")
    if port:
        raw.setdefault("server", {})["port"] = port

    host = os.getenv("HOST")
    if host:
        raw.setdefault("server", {})["host"] = host

    timeout = os.getenv("TTS_RELAY_UPSTREAM_TIMEOUT_S")
    if timeout:
        raw.setdefault("upstream", {})["timeout_s"] = timeout

    return raw


def load_settings(path: str = "config/settings.yaml") -> Settings:
    """
    Load settings from a YAML configuration file.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        Settings object with loaded configuration and env overrides.

    Raises:
        FileNotFoundError: If the settings file doesn't exist.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"settings file not found: {p.resolve()}")

    with p.open("r", encoding="utf-8") as f:
        raw: Dict[str, Any] = yaml.safe_load(f) or {}

    return Settings(raw=apply_env_overrides(raw))


def settings_path() -> str:
    """Resolve the settings file path ($TTS_RELAY_SETTINGS or the default)."""
    return os.getenv("TTS_RELAY_SETTINGS", "config/settings.yaml")


def load_settings_or_defaults(path: str | None = None) -> Settings:
    """
    Load settings, falling back to built-in defaults when no file exists.

    Environment overrides apply in both cases, so a bare deployment can
    still be configured with PORT alone.
    """
    p = Path(path or settings_path())
    if p.exists():
        return load_settings(str(p))
    return Settings(raw=apply_env_overrides({}))
