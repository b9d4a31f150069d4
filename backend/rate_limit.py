"""In-process sliding-window rate limiter keyed by client address."""

import math
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable

# Forget idle clients once this many are tracked
MAX_TRACKED_CLIENTS = 10_000


@dataclass
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_seconds: int


class SlidingWindowLimiter:
    """
    Allow at most ``limit`` requests per client in any ``window_seconds`` span.

    Rejected requests are not recorded, so a client that backs off regains
    capacity as its earlier requests age out of the window.
    """

    def __init__(
        self,
        limit: int,
        window_seconds: int,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._hits: dict[str, deque[float]] = {}

    def hit(self, key: str) -> RateLimitResult:
        now = self._clock()
        if key not in self._hits and len(self._hits) >= MAX_TRACKED_CLIENTS:
            self._forget_idle(now)

        hits = self._hits.setdefault(key, deque())
        cutoff = now - self.window_seconds
        while hits and hits[0] <= cutoff:
            hits.popleft()

        allowed = len(hits) < self.limit
        if allowed:
            hits.append(now)
        reset = math.ceil(hits[0] + self.window_seconds - now) if hits else self.window_seconds
        return RateLimitResult(
            allowed=allowed,
            remaining=max(0, self.limit - len(hits)),
            reset_seconds=max(1, reset),
        )

    def _forget_idle(self, now: float) -> None:
        cutoff = now - self.window_seconds
        for key in [k for k, hits in self._hits.items() if not hits or hits[-1] <= cutoff]:
            del self._hits[key]
