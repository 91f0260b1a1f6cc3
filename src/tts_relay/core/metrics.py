"""
Prometheus Metrics for the Relay.

Metrics collection is optional: when prometheus_client is not installed
every operation is a no-op and /metrics returns a placeholder.

Metrics Exposed:
    relay_requests_total               - Synthesis requests by engine and outcome
    relay_upstream_duration_seconds    - Provider round-trip latency by engine
    relay_audio_bytes_total            - Audio bytes relayed to clients
    relay_upstream_errors_total        - Provider failures by engine and status
    relay_rate_limited_total           - Requests rejected by the rate limiter

Usage:
    from tts_relay.core.metrics import metrics

    metrics.record_request(engine="google", status="success",
                           duration=0.41, audio_bytes=5821)
    metrics.record_upstream_error(engine="voicevox", status=503)
    content, content_type = metrics.get_metrics_response()
"""
from __future__ import annotations

from typing import Optional

try:
    from prometheus_client import (
        CONTENT_TYPE_LATEST,
        CollectorRegistry,
        Counter,
        Histogram,
        generate_latest,
    )
    PROMETHEUS_AVAILABLE = True
except ImportError:
    PROMETHEUS_AVAILABLE = False
    Counter = None
    Histogram = None
    CollectorRegistry = None


class RelayMetrics:
    """
    Relay metrics collected with prometheus_client.

    Uses a private CollectorRegistry so several instances (tests, multiple
    apps in one process) never collide on metric names.

    Attributes:
        enabled: Whether metrics collection is active.
    """

    def __init__(self):
        self._enabled = PROMETHEUS_AVAILABLE
        self._registry: Optional["CollectorRegistry"] = None

        if self._enabled:
            self._setup_metrics()

    def _setup_metrics(self) -> None:
        self._registry = CollectorRegistry()

        self._requests_total = Counter(
            "relay_requests_total",
            "Total synthesis requests",
            ["engine", "status"],
            registry=self._registry,
        )

        # Buckets stop at the 25s upstream timeout
        self._upstream_duration = Histogram(
            "relay_upstream_duration_seconds",
            "Provider round-trip duration in seconds",
            ["engine"],
            buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 25.0),
            registry=self._registry,
        )

        self._audio_bytes_total = Counter(
            "relay_audio_bytes_total",
            "Total audio bytes relayed",
            registry=self._registry,
        )

        self._upstream_errors = Counter(
            "relay_upstream_errors_total",
            "Total provider failures",
            ["engine", "status"],
            registry=self._registry,
        )

        self._rate_limited = Counter(
            "relay_rate_limited_total",
            "Total requests rejected by the rate limiter",
            registry=self._registry,
        )

    @property
    def enabled(self) -> bool:
        """Whether metrics collection is enabled."""
        return self._enabled

    def record_request(
        self,
        engine: str,
        status: str,
        duration: float,
        audio_bytes: int = 0,
    ) -> None:
        """
        Record a finished synthesis request.

        Args:
            engine: Engine name ("google", "voicevox")
            status: Outcome ("success", "error")
            duration: Upstream time in seconds (negative to skip the histogram)
            audio_bytes: Size of the relayed audio
        """
        if not self._enabled:
            return

        self._requests_total.labels(engine=engine, status=status).inc()
        if duration >= 0:
            self._upstream_duration.labels(engine=engine).observe(duration)
        if audio_bytes > 0:
            self._audio_bytes_total.inc(audio_bytes)

    def record_upstream_error(self, engine: str, status: Optional[int] = None) -> None:
        """Record a provider failure; status is None for timeouts and transport errors."""
        if not self._enabled:
            return
        self._upstream_errors.labels(engine=engine, status=str(status) if status else "none").inc()

    def record_rate_limited(self) -> None:
        """Record a request rejected with 429."""
        if not self._enabled:
            return
        self._rate_limited.inc()

    def get_metrics_response(self) -> tuple[bytes, str]:
        """
        Get metrics in Prometheus text format.

        Returns:
            Tuple of (content_bytes, content_type)
        """
        if not self._enabled:
            return (
                b"# Metrics not available (prometheus_client not installed)\n",
                "text/plain; charset=utf-8",
            )

        content = generate_latest(self._registry)
        return (content, CONTENT_TYPE_LATEST)


# Global metrics instance
metrics = RelayMetrics()
