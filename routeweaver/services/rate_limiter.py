"""Fixed-window request counter."""
import time
from typing import Callable, Dict, Tuple


class FixedWindowRateLimiter:
    """
    Allow at most ``max_requests`` per ``window_seconds`` for each key.

    A window starts at the first request after the previous one expired.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        # key -> (window start, requests counted in the window)
        self._windows: Dict[str, Tuple[float, int]] = {}

    def allow(self, key: str = "global") -> bool:
        now = self._clock()
        start, count = self._windows.get(key, (now, 0))
        if now - start >= self.window_seconds:
            start, count = now, 0

        if count >= self.max_requests:
            self._windows[key] = (start, count)
            return False

        self._windows[key] = (start, count + 1)
        return True
