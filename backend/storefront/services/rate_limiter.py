"""In-memory request throttling for the credential endpoints."""

from __future__ import annotations

import threading
import time
from collections import deque
from typing import Callable, Deque, Dict, Iterable, Tuple

from storefront.core.exceptions import RateLimitExceededError

# (limit, window seconds)
Limit = Tuple[int, int]


class SlidingWindowLimiter:
    """Per-key sliding window; state lives in the process, so limits are per worker."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._hits: Dict[str, Deque[float]] = {}

    def allow(self, key: str, limit: int, window_seconds: int) -> bool:
        now = self._clock()
        with self._lock:
            hits = self._hits.setdefault(key, deque())
            while hits and hits[0] <= now - window_seconds:
                hits.popleft()
            if len(hits) >= limit:
                return False
            hits.append(now)
            return True

    def check(self, scope: str, subject: str, limits: Iterable[Limit]) -> None:
        """
        Record one hit of ``subject`` against every window of ``scope``.

        Raises:
            RateLimitExceededError: Any window is full
        """
        for limit, window in limits:
            if not self.allow(f"{scope}:{window}:{subject}", limit, window):
                raise RateLimitExceededError(
                    f"Too many {scope} attempts. Please try again in {window} seconds."
                )

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()


rate_limiter = SlidingWindowLimiter()
