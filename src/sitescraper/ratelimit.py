from __future__ import annotations

import time
from typing import Callable, Optional


class RateLimiter:
    """Courtesy delay between successive fetches.

    Calling wait_if_needed() blocks until at least ``delay_ms`` milliseconds
    have passed since the previous call returned. The first call never waits.
    Not thread-safe: the crawl engine is strictly sequential."""

    def __init__(
        self,
        delay_ms: int,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if delay_ms < 0:
            raise ValueError("delay_ms must be >= 0")
        self._delay = delay_ms / 1000.0
        self._clock = clock
        self._sleep = sleep
        self._last_call: Optional[float] = None

    @property
    def delay_ms(self) -> int:
        return int(self._delay * 1000)

    def wait_if_needed(self) -> float:
        """Block until the next fetch is permitted. Returns the seconds slept."""
        slept = 0.0
        if self._last_call is not None and self._delay > 0:
            remaining = self._delay - (self._clock() - self._last_call)
            if remaining > 0:
                self._sleep(remaining)
                slept = remaining
        self._last_call = self._clock()
        return slept

    def reset(self) -> None:
        """Forget the previous call so the next one does not wait."""
        self._last_call = None
