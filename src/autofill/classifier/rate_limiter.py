"""Per-minute spacing and daily quota for remote inference calls.

Admission is split in two: ``try_acquire`` only inspects the state, and
``commit`` records a call once the provider has answered. Callers sharing one
limiter must hold a lock across the pair (see state.PipelineState).
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

logger = logging.getLogger("autofill.classifier.rate_limiter")

__all__ = ["DAILY_WINDOW_SECONDS", "RateLimiter", "RateLimiterState"]

DAILY_WINDOW_SECONDS = 24 * 60 * 60


@dataclass
class RateLimiterState:
    """Mutable admission state, shared by everything using one limiter.

    Attributes:
        last_request_timestamp: When the last committed call happened (seconds)
        daily_count: Calls committed in the current daily window
        daily_window_start: Start of the current daily window (seconds)
    """

    last_request_timestamp: float = 0.0
    daily_count: int = 0
    daily_window_start: float = 0.0


class RateLimiter:
    """Evenly spaced per-minute limit plus a rolling daily quota.

    Example:
        >>> limiter = RateLimiter(requests_per_minute=60, requests_per_day=1500)
        >>> if limiter.try_acquire():
        ...     response = await provider.generate(prompt)
        ...     limiter.commit()
    """

    def __init__(
        self,
        requests_per_minute: int = 60,
        requests_per_day: int = 1500,
        clock: Callable[[], float] = time.time,
        state: Optional[RateLimiterState] = None,
    ):
        """Initialize rate limiter.

        Args:
            requests_per_minute: Calls per minute, enforced as a minimum interval
            requests_per_day: Calls per daily window
            clock: Time source in seconds (injectable for tests)
            state: Existing state to share, or None for a fresh one
        """
        self.requests_per_minute = requests_per_minute
        self.requests_per_day = requests_per_day
        self.min_interval = 60.0 / requests_per_minute
        self.state = state if state is not None else RateLimiterState()
        self._clock = clock

        logger.info(
            "rate_limiter_initialized",
            extra={
                "requests_per_minute": requests_per_minute,
                "requests_per_day": requests_per_day,
                "min_interval_seconds": self.min_interval,
            },
        )

    def _roll_daily_window(self, now: float) -> None:
        if now - self.state.daily_window_start > DAILY_WINDOW_SECONDS:
            self.state.daily_count = 0
            self.state.daily_window_start = now

    def try_acquire(self) -> bool:
        """Check whether a remote call may be issued now.

        Does not consume quota; call ``commit`` after the call is made.

        Returns:
            True if allowed, False if the daily quota is spent or the last
            call was too recent.
        """
        now = self._clock()
        self._roll_daily_window(now)

        if self.state.daily_count >= self.requests_per_day:
            logger.warning(
                "rate_limit_daily_exceeded",
                extra={
                    "daily_count": self.state.daily_count,
                    "requests_per_day": self.requests_per_day,
                },
            )
            return False

        elapsed = now - self.state.last_request_timestamp
        if elapsed < self.min_interval:
            logger.warning(
                "rate_limit_exceeded",
                extra={
                    "elapsed_seconds": elapsed,
                    "wait_seconds": self.min_interval - elapsed,
                },
            )
            return False

        return True

    def commit(self) -> None:
        """Record a remote call made now."""
        now = self._clock()
        self.state.last_request_timestamp = now
        self.state.daily_count += 1
        logger.debug(
            "rate_limit_committed",
            extra={"daily_count": self.state.daily_count},
        )

    def usage_stats(self) -> dict:
        """Get current quota usage.

        Returns:
            Dict with daily usage, limit, remaining calls and last call time.
        """
        used = self.state.daily_count
        if self._clock() - self.state.daily_window_start > DAILY_WINDOW_SECONDS:
            used = 0
        return {
            "daily_usage": used,
            "daily_limit": self.requests_per_day,
            "remaining": max(0, self.requests_per_day - used),
            "requests_per_minute": self.requests_per_minute,
            "last_request_timestamp": self.state.last_request_timestamp,
        }

    def reset(self) -> None:
        self.state.last_request_timestamp = 0.0
        self.state.daily_count = 0
        self.state.daily_window_start = 0.0
        logger.info("rate_limiter_reset")
