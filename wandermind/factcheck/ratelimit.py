"""Client-side rate limiting for outbound fact-check requests."""

import asyncio
import time
from collections.abc import Awaitable, Callable


class MinIntervalRateLimiter:
    """Enforces a minimum spacing between outbound calls.

    All callers share one lock and one last-call timestamp, so calls from
    every origin are serialized through a single queue. Waiters suspend on
    the lock or on the sleep; nothing busy-waits.
    """

    def __init__(
        self,
        min_interval_seconds: float = 1.0,
        clock: Callable[[], float] | None = None,
        sleep_fn: Callable[[float], Awaitable[None]] | None = None,
    ) -> None:
        """Initialize rate limiter.

        Args:
            min_interval_seconds: Minimum time between two calls
            clock: Monotonic clock (default: time.monotonic)
            sleep_fn: Injectable sleep function (default: asyncio.sleep)
        """
        self._min_interval = min_interval_seconds
        self._clock = clock or time.monotonic
        self._sleep = sleep_fn or asyncio.sleep
        self._lock = asyncio.Lock()
        self._last_call: float | None = None

    async def wait(self) -> None:
        """Suspend until the next call is allowed, then claim the slot."""
        async with self._lock:
            if self._last_call is not None:
                elapsed = self._clock() - self._last_call
                if elapsed < self._min_interval:
                    await self._sleep(self._min_interval - elapsed)
            self._last_call = self._clock()
