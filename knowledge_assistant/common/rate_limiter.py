"""Token-bucket rate limiter for completion provider calls."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable


class RateLimiter:
    """Token-bucket rate limiter with minute-based capacity.

    Blocking and conservative so the assistant stays within the provider's
    free-tier quota. A ``requests_per_minute`` of ``None`` or ``<= 0``
    disables limiting.
    """

    def __init__(
        self,
        requests_per_minute: int | None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.capacity = requests_per_minute if requests_per_minute and requests_per_minute > 0 else None
        self.refill_interval = 60.0 / self.capacity if self.capacity else None
        self.tokens = float(self.capacity) if self.capacity else 0.0
        self._clock = clock
        self._sleep = sleep
        self.last_refill = clock()
        self._lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return self.capacity is not None

    def _refill(self) -> None:
        elapsed = self._clock() - self.last_refill
        tokens_to_add = int(elapsed // self.refill_interval)
        if tokens_to_add > 0:
            self.tokens = min(float(self.capacity), self.tokens + tokens_to_add)
            self.last_refill += tokens_to_add * self.refill_interval

    def acquire(self) -> None:
        """Block until a token is available or limiting is disabled."""
        if not self.enabled:
            return

        while True:
            with self._lock:
                self._refill()
                if self.tokens >= 1:
                    self.tokens -= 1
                    return
                wait_time = self.refill_interval - (self._clock() - self.last_refill)

            # Sleep outside the lock so other threads can refill
            self._sleep(wait_time if wait_time > 0 else self.refill_interval)
