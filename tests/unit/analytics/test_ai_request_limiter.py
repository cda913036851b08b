"""Unit tests for the daily AI request budget."""

import threading
from datetime import timedelta

from src.analytics_bc.ai.infrastructure.services.ai_request_limiter import (
    DEFAULT_DAILY_LIMIT,
    DailyRequestLimiter,
)


class TestDailyRequestLimiter:
    """Tests for the process-wide daily AI budget."""

    def test_default_limit(self):
        """The default budget is 45 calls."""
        assert DailyRequestLimiter().daily_limit == DEFAULT_DAILY_LIMIT == 45

    def test_blocks_after_limit(self, fake_clock):
        """The call after DAILY_LIMIT successful acquires is refused."""
        limiter = DailyRequestLimiter(daily_limit=45, clock=fake_clock)
        assert all(limiter.try_acquire() for _ in range(45))
        assert limiter.try_acquire() is False
        assert limiter.status["used"] == 45

    def test_refused_call_does_not_count(self, fake_clock):
        """A refused call does not advance the counter."""
        limiter = DailyRequestLimiter(daily_limit=2, clock=fake_clock)
        limiter.try_acquire()
        limiter.try_acquire()
        for _ in range(5):
            assert limiter.try_acquire() is False
        assert limiter.status["used"] == 2

    def test_resets_after_window(self, fake_clock):
        """After 24h the counter restarts and the first call counts as 1."""
        limiter = DailyRequestLimiter(daily_limit=3, clock=fake_clock)
        for _ in range(3):
            limiter.try_acquire()
        assert limiter.try_acquire() is False

        fake_clock.advance(hours=24)
        assert limiter.try_acquire() is True
        assert limiter.status["used"] == 1

    def test_window_starts_at_first_request(self, fake_clock):
        """The 24h window is measured from the first request."""
        limiter = DailyRequestLimiter(daily_limit=1, clock=fake_clock)
        fake_clock.advance(hours=5)
        limiter.try_acquire()

        fake_clock.advance(hours=23, minutes=59)
        assert limiter.try_acquire() is False

        fake_clock.advance(minutes=1)
        assert limiter.try_acquire() is True

    def test_custom_window(self, fake_clock):
        """The window length is configurable."""
        limiter = DailyRequestLimiter(daily_limit=1, window=timedelta(hours=1), clock=fake_clock)
        limiter.try_acquire()
        fake_clock.advance(hours=1)
        assert limiter.try_acquire() is True

    def test_status_before_first_request(self, fake_clock):
        """Before any request nothing is used and no reset is due."""
        status = DailyRequestLimiter(daily_limit=10, clock=fake_clock).status
        assert status["used"] == 0
        assert status["remaining"] == 10
        assert status["resets_at"] is None

    def test_status_reports_reset_time(self, fake_clock):
        """Status reports when the window resets."""
        limiter = DailyRequestLimiter(daily_limit=10, clock=fake_clock)
        limiter.try_acquire()
        status = limiter.status
        assert status["remaining"] == 9
        assert status["resets_at"] == (fake_clock.now + timedelta(hours=24)).isoformat()

    def test_zero_limit_always_refuses(self, fake_clock):
        """A zero budget refuses every call."""
        assert DailyRequestLimiter(daily_limit=0, clock=fake_clock).try_acquire() is False

    def test_concurrent_acquire_never_exceeds_limit(self, fake_clock):
        """Threads racing on try_acquire get exactly daily_limit grants."""
        limiter = DailyRequestLimiter(daily_limit=45, clock=fake_clock)
        granted = []
        barrier = threading.Barrier(20)

        def worker():
            barrier.wait()
            for _ in range(10):
                if limiter.try_acquire():
                    granted.append(1)

        threads = [threading.Thread(target=worker) for _ in range(20)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(granted) == 45
