"""Process-wide daily budget for outbound AI calls.

One limiter instance is shared by every task kind (predictions,
optimizations, insights, chat). The window starts with the first request
after a reset and lasts AI_WINDOW_HOURS; once it has elapsed the counter
starts again from zero.
"""
import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

logger = logging.getLogger(__name__)

DEFAULT_DAILY_LIMIT = 45


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class DailyRequestLimiter:
    """Fixed-window counter guarding the AI provider quota."""

    def __init__(
        self,
        daily_limit: int = DEFAULT_DAILY_LIMIT,
        window: timedelta = timedelta(hours=24),
        clock: Callable[[], datetime] = utc_now,
    ):
        self._daily_limit = daily_limit
        self._window = window
        self._clock = clock
        self._request_count = 0
        self._window_start: Optional[datetime] = None
        # Guards check-then-increment across threads and event loops
        self._lock = threading.Lock()

    @property
    def daily_limit(self) -> int:
        return self._daily_limit

    def try_acquire(self) -> bool:
        """Reserve one AI call. Returns False once the window budget is spent."""
        with self._lock:
            now = self._clock()
            if self._window_start is None or now - self._window_start >= self._window:
                if self._window_start is not None:
                    logger.info(
                        f"[AIRateLimiter] Window expired after {self._request_count} requests, resetting"
                    )
                self._request_count = 0
                self._window_start = now

            if self._request_count < self._daily_limit:
                self._request_count += 1
                return True

            logger.warning(
                f"[AIRateLimiter] Daily limit reached ({self._daily_limit} requests), "
                f"next reset at {(self._window_start + self._window).isoformat()}"
            )
            return False

    @property
    def status(self) -> dict:
        """Snapshot of the current window for diagnostics."""
        with self._lock:
            now = self._clock()
            expired = self._window_start is None or now - self._window_start >= self._window
            used = 0 if expired else self._request_count
            resets_at = None if expired else self._window_start + self._window
            return {
                "daily_limit": self._daily_limit,
                "used": used,
                "remaining": max(0, self._daily_limit - used),
                "window_start": None if expired else self._window_start.isoformat(),
                "resets_at": resets_at.isoformat() if resets_at else None,
            }
