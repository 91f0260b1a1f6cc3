"""Tests for the fixed-window rate limiter."""
from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor

from tts_relay.core.config import RateLimitConfig
from tts_relay.tts.ratelimit import FixedWindowRateLimiter


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class TestFixedWindow:
    """Basic window behavior."""

    def test_thirty_allowed_then_rejected(self):
        """With defaults, requests 1-30 pass and the 31st is rejected."""
        limiter = FixedWindowRateLimiter(clock=FakeClock())

        decisions = [limiter.hit("198.51.100.7") for _ in range(31)]

        assert all(d.allowed for d in decisions[:30])
        assert decisions[30].allowed is False

    def test_remaining_counts_down(self):
        limiter = FixedWindowRateLimiter(window_s=60, max_requests=3, clock=FakeClock())

        assert [limiter.hit("a").remaining for _ in range(4)] == [2, 1, 0, 0]

    def test_window_resets_after_elapsed(self):
        clock = FakeClock()
        limiter = FixedWindowRateLimiter(window_s=60, max_requests=2, clock=clock)

        limiter.hit("a")
        limiter.hit("a")
        assert limiter.hit("a").allowed is False

        clock.advance(59.9)
        assert limiter.hit("a").allowed is False

        clock.advance(0.1)
        decision = limiter.hit("a")
        assert decision.allowed is True
        assert decision.remaining == 1

    def test_rejected_requests_still_count(self):
        """Hammering during a full window does not extend or reset it."""
        clock = FakeClock()
        limiter = FixedWindowRateLimiter(window_s=60, max_requests=1, clock=clock)

        limiter.hit("a")
        for _ in range(5):
            clock.advance(10)
            assert limiter.hit("a").allowed is False

        clock.advance(10)
        assert limiter.hit("a").allowed is True

    def test_clients_are_independent(self):
        limiter = FixedWindowRateLimiter(window_s=60, max_requests=1, clock=FakeClock())

        assert limiter.hit("a").allowed is True
        assert limiter.hit("a").allowed is False
        assert limiter.hit("b").allowed is True

    def test_reset(self):
        limiter = FixedWindowRateLimiter(window_s=60, max_requests=1, clock=FakeClock())
        limiter.hit("a")
        limiter.hit("b")

        limiter.reset("a")
        assert limiter.hit("a").allowed is True
        assert limiter.hit("b").allowed is False

        limiter.reset()
        assert limiter.hit("b").allowed is True

    def test_from_config(self):
        limiter = FixedWindowRateLimiter.from_config(RateLimitConfig(window_s=10, max_requests=4))
        assert limiter.window_s == 10
        assert limiter.max_requests == 4


class TestDecisionHeaders:
    """Standard rate-limit headers."""

    def test_allowed_headers(self):
        clock = FakeClock()
        limiter = FixedWindowRateLimiter(window_s=60, max_requests=30, clock=clock)
        limiter.hit("a")
        clock.advance(19.5)

        headers = limiter.hit("a").headers()

        assert headers["RateLimit-Policy"] == "30;w=60"
        assert headers["RateLimit-Limit"] == "30"
        assert headers["RateLimit-Remaining"] == "28"
        assert headers["RateLimit-Reset"] == "41"
        assert "Retry-After" not in headers

    def test_rejected_headers(self):
        clock = FakeClock()
        limiter = FixedWindowRateLimiter(window_s=60, max_requests=1, clock=clock)
        limiter.hit("a")
        clock.advance(15)

        decision = limiter.hit("a")

        assert decision.retry_after_s == 45
        assert decision.headers()["Retry-After"] == "45"
        assert decision.headers()["RateLimit-Remaining"] == "0"


class TestPruning:
    def test_expired_windows_pruned(self):
        clock = FakeClock()
        limiter = FixedWindowRateLimiter(window_s=60, max_requests=5, clock=clock, prune_threshold=3)
        for ip in ("a", "b", "c"):
            limiter.hit(ip)

        clock.advance(61)
        limiter.hit("d")

        assert limiter.stats().tracked_clients == 1


class TestStats:
    def test_counts(self):
        limiter = FixedWindowRateLimiter(window_s=60, max_requests=2, clock=FakeClock())
        for _ in range(3):
            limiter.hit("a")

        stats = limiter.stats()
        assert stats.total_allowed == 2
        assert stats.total_rejected == 1
        assert stats.tracked_clients == 1


class TestThreadSafety:
    def test_concurrent_hits_never_over_admit(self):
        """Exactly max_requests hits are admitted across threads."""
        limiter = FixedWindowRateLimiter(window_s=60, max_requests=30, clock=FakeClock())
        barrier = threading.Barrier(8)

        def worker():
            barrier.wait()
            return sum(1 for _ in range(10) if limiter.hit("shared").allowed)

        with ThreadPoolExecutor(max_workers=8) as pool:
            admitted = sum(pool.map(lambda _: worker(), range(8)))

        assert admitted == 30
        assert limiter.stats().total_rejected == 50
