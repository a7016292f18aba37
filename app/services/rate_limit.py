"""In-process sliding-window limiter keyed by (caller, method, path)."""

from __future__ import annotations

import logging
import time
from collections import deque
from typing import Callable, Deque, Dict, Hashable

from app.core.errors import RateLimited

logger = logging.getLogger(__name__)


class SlidingWindowRateLimiter:
    def __init__(
        self,
        window_seconds: float = 10.0,
        max_requests: int = 6,
        prune_threshold: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.window_seconds = window_seconds
        self.max_requests = max_requests
        self.prune_threshold = prune_threshold
        self._clock = clock
        self._hits: Dict[Hashable, Deque[float]] = {}

    def __len__(self) -> int:
        return len(self._hits)

    def hit(self, key: Hashable) -> int:
        """Record one request for `key`; returns the remaining allowance."""
        now = self._clock()
        if len(self._hits) > self.prune_threshold:
            self._prune(now)

        window = self._hits.setdefault(key, deque())
        start = now - self.window_seconds
        while window and window[0] <= start:
            window.popleft()

        if len(window) >= self.max_requests:
            retry_after = max(1, int(self.window_seconds - (now - window[0])) + 1)
            logger.warning("Rate limit exceeded for %s", key)
            raise RateLimited(retry_after=retry_after)

        window.append(now)
        return self.max_requests - len(window)

    def _prune(self, now: float) -> None:
        start = now - self.window_seconds
        stale = [k for k, dq in self._hits.items() if not dq or dq[-1] <= start]
        for k in stale:
            del self._hits[k]
        if stale:
            logger.debug("Rate limiter pruned %d keys", len(stale))
