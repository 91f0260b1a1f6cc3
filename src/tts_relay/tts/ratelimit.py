"""
Per-Client Rate Limiting.

Every inbound request is counted against its client identity (the remote
network address) before any validation or provider call. Counting uses a
fixed window: the first request from a client opens a window of
window_s seconds, each request in that window increments the counter,
and the window is replaced once it has elapsed.

Defaults:
    window_s = 60, max_requests = 30

    Requests 1-30 in a window are allowed; request 31 and later are
    rejected with 429 until the window elapses.

Response Headers:
    Every decision can be rendered as the standard rate-limit headers:
        RateLimit-Policy: 30;w=60
        RateLimit-Limit: 30
        RateLimit-Remaining: 12
        RateLimit-Reset: 41        (seconds until the window resets)
    and, on rejection:
        Retry-After: 41

State:
    In-memory dict guarded by a threading.Lock; nothing is persisted, so
    a restart forgets every window. Expired windows are pruned
    opportunistically once the table grows past prune_threshold entries.

Usage:
    limiter = FixedWindowRateLimiter(window_s=60, max_requests=30)

    decision = limiter.hit("203.0.113.9")
    if not decision.allowed:
        return 429 with decision.headers()
"""
from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict

from tts_relay.core.config import RateLimitConfig
from tts_relay.core.logging import debug, get_logger

_LOG = get_logger("tts-relay.ratelimit")


@dataclass
class RateLimitWindow:
    """Counter for one client identity."""
    count: int
    window_start: float


@dataclass(frozen=True)
class RateLimitDecision:
    """
    Outcome of counting one request.

    Attributes:
        allowed: False when the request exceeds the limit.
        limit: Requests allowed per window.
        remaining: Requests left in the current window (never negative).
        reset_after_s: Seconds until the current window resets.
        window_s: Window length in seconds.
    """
    allowed: bool
    limit: int
    remaining: int
    reset_after_s: float
    window_s: int

    @property
    def retry_after_s(self) -> int:
        """Whole seconds a rejected client should wait."""
        return max(1, math.ceil(self.reset_after_s))

    def headers(self) -> Dict[str, str]:
        """Standard rate-limit headers for this decision."""
        headers = {
            "RateLimit-Policy": f"{self.limit};w={self.window_s}",
            "RateLimit-Limit": str(self.limit),
            "RateLimit-Remaining": str(self.remaining),
            "RateLimit-Reset": str(max(0, math.ceil(self.reset_after_s))),
        }
        if not self.allowed:
            headers["Retry-After"] = str(self.retry_after_s)
        return headers


@dataclass
class RateLimitStats:
    """Statistics for the rate limiter."""
    window_s: int
    max_requests: int
    tracked_clients: int
    total_allowed: int
    total_rejected: int


class FixedWindowRateLimiter:
    """
    Fixed-window request counter keyed by client identity.

    Thread-safe: hit() runs entirely under one lock, so concurrent
    requests from the same client never lose an increment.

    Args:
        window_s: Window length in seconds.
        max_requests: Requests allowed per client per window.
        clock: Monotonic time source (injectable for tests).
        prune_threshold: Table size above which expired windows are dropped.
    """

    def __init__(
        self,
        window_s: int = 60,
        max_requests: int = 30,
        clock: Callable[[], float] = time.monotonic,
        prune_threshold: int = 1024,
    ):
        self.window_s = window_s
        self.max_requests = max_requests
        self._clock = clock
        self._prune_threshold = prune_threshold

        self._lock = threading.Lock()
        self._windows: Dict[str, RateLimitWindow] = {}
        self._total_allowed = 0
        self._total_rejected = 0

    @classmethod
    def from_config(cls, config: RateLimitConfig) -> "FixedWindowRateLimiter":
        return cls(window_s=config.window_s, max_requests=config.max_requests)

    def hit(self, identity: str) -> RateLimitDecision:
        """
        Count one request for identity and decide whether it may proceed.

        Args:
            identity: Client identity (remote address).

        Returns:
            RateLimitDecision for this request.
        """
        now = self._clock()
        with self._lock:
            window = self._windows.get(identity)
            if window is None or now - window.window_start >= self.window_s:
                if len(self._windows) >= self._prune_threshold:
                    self._prune_expired_locked(now)
                window = RateLimitWindow(count=0, window_start=now)
                self._windows[identity] = window

            window.count += 1
            allowed = window.count <= self.max_requests
            if allowed:
                self._total_allowed += 1
            else:
                self._total_rejected += 1

            reset_after = max(0.0, window.window_start + self.window_s - now)
            remaining = max(0, self.max_requests - window.count)

        if not allowed:
            debug(_LOG, "rate_limit_exceeded", client=identity, count=window.count)

        return RateLimitDecision(
            allowed=allowed,
            limit=self.max_requests,
            remaining=remaining,
            reset_after_s=reset_after,
            window_s=self.window_s,
        )

    def reset(self, identity: str | None = None) -> None:
        """Forget one client's window, or every window when identity is None."""
        with self._lock:
            if identity is None:
                self._windows.clear()
            else:
                self._windows.pop(identity, None)

    def _prune_expired_locked(self, now: float) -> int:
        """Drop windows that have elapsed (caller holds the lock)."""
        expired = [k for k, w in self._windows.items() if now - w.window_start >= self.window_s]
        for k in expired:
            del self._windows[k]
        return len(expired)

    def stats(self) -> RateLimitStats:
        """Get current statistics."""
        with self._lock:
            return RateLimitStats(
                window_s=self.window_s,
                max_requests=self.max_requests,
                tracked_clients=len(self._windows),
                total_allowed=self._total_allowed,
                total_rejected=self._total_rejected,
            )
