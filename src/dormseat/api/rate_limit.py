"""Fixed-window request throttle keyed by client address.

Traffic shaping for the user-facing reservation endpoints only; the
unique indexes, not this limiter, keep reservations consistent.
"""

from __future__ import annotations

import threading
import time
from typing import Callable

from fastapi import Request

from dormseat.domain.errors import RateLimitedError


class FixedWindowRateLimiter:
    def __init__(
        self,
        max_requests: int,
        window_seconds: int,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._max_requests = max_requests
        self._window_seconds = window_seconds
        self._clock = clock
        self._counters: dict[str, tuple[float, int]] = {}
        self._lock = threading.Lock()

    def hit(self, key: str) -> None:
        """Count one request for key.

        Raises:
            RateLimitedError: If key is over its allowance for this window.
        """
        if self._max_requests <= 0:
            return

        with self._lock:
            now = self._clock()
            self._evict(now)
            started, count = self._counters.get(key, (now, 0))
            if count >= self._max_requests:
                retry_after = max(1, int(started + self._window_seconds - now + 0.999))
                raise RateLimitedError(retry_after)
            self._counters[key] = (started, count + 1)

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()

    def _evict(self, now: float) -> None:
        expired = [k for k, (started, _) in self._counters.items() if now - started >= self._window_seconds]
        for key in expired:
            del self._counters[key]


def client_key(request: Request) -> str:
    if request.client is None:
        return "unknown"
    return request.client.host


def rate_limited(request: Request) -> None:
    """FastAPI dependency: throttle by client address."""
    limiter: FixedWindowRateLimiter = request.app.state.rate_limiter
    limiter.hit(client_key(request))
