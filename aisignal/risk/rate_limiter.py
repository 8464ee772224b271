"""Minimum-spacing rate limiter shared by all requests."""

import threading
import time
from typing import Callable, Optional


class RateLimiter:
    """Accept at most one request per interval.

    The check and the timestamp update happen under one lock, so two
    near-simultaneous requests can never both pass.
    """

    def __init__(
        self,
        min_interval: float = 12.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize rate limiter.

        Args:
            min_interval: Minimum seconds between accepted requests
            clock: Time source in seconds
        """
        self.min_interval = min_interval
        self._clock = clock
        self._lock = threading.Lock()
        self._last_accepted: Optional[float] = None

    def try_accept(self, now: Optional[float] = None) -> bool:
        """Accept the request if the cooldown has elapsed.

        Args:
            now: Current time (defaults to the clock)

        Returns:
            True if accepted (and the window restarted)
        """
        if now is None:
            now = self._clock()

        with self._lock:
            if (
                self._last_accepted is not None
                and now - self._last_accepted < self.min_interval
            ):
                return False
            self._last_accepted = now
            return True

    def retry_after(self, now: Optional[float] = None) -> float:
        """Seconds until the next request would be accepted."""
        if now is None:
            now = self._clock()

        with self._lock:
            if self._last_accepted is None:
                return 0.0
            return max(0.0, self.min_interval - (now - self._last_accepted))
