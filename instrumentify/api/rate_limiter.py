"""
Provides an adaptive rate limiter to avoid 429 "Too Many Requests" errors from the API.
"""

import asyncio
import logging
import time
from typing import Optional

log = logging.getLogger(__name__)


class AdaptiveRateLimiter:
    """
    Spaces out calls and backs off when the API answers with 429.
    """

    def __init__(
        self, initial_calls_per_second: float = 5.0, max_calls_per_second: float = 10.0
    ):
        """
        Initializes the rate limiter.

        Args:
            initial_calls_per_second: The starting rate of calls per second.
            max_calls_per_second: The maximum rate to recover to.
        """
        self._rate = initial_calls_per_second
        self._max_rate = max_calls_per_second
        self._min_interval = 1.0 / self._rate
        self._last_call_time = 0.0
        self._last_429_time = 0.0
        self._lock = asyncio.Lock()

    @property
    def rate(self) -> float:
        return self._rate

    async def on_429(self, retry_after: Optional[float] = None) -> None:
        """
        Halves the current request rate. When the server sends ``Retry-After``,
        the next call is also held back until that many seconds have passed.
        """
        async with self._lock:
            self._rate = max(0.5, self._rate * 0.5)
            self._min_interval = 1.0 / self._rate
            self._last_429_time = time.monotonic()
            if retry_after:
                self._last_call_time = time.monotonic() + retry_after - self._min_interval
            log.warning(
                f"[yellow]Rate limit hit. New rate: {self._rate:.1f} calls/s[/yellow]"
            )

    async def acquire(self) -> None:
        """
        Waits if necessary to respect the current rate limit before allowing a call to proceed.
        """
        async with self._lock:
            now = time.monotonic()
            if now - self._last_429_time > 120:
                self._rate = min(self._max_rate, self._rate * 1.01)
                self._min_interval = 1.0 / self._rate

            wait = self._min_interval - (now - self._last_call_time)
            if wait > 0:
                await asyncio.sleep(wait)

            self._last_call_time = time.monotonic()
