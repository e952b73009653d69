"""
Fixed-window request rate limiter keyed by client identifier.
"""
import logging
import math
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from core.config import RATE_LIMIT_MAX_REQUESTS, RATE_LIMIT_WINDOW_SECONDS

logger = logging.getLogger(__name__)


@dataclass
class RateLimitDecision:
    """Outcome of a rate limit check."""
    allowed: bool
    retry_after: Optional[int] = None  # seconds, only set when rejected


@dataclass
class _Window:
    count: int
    reset_at: float


class RateLimiter:
    """
    Allows max_requests per key inside a window that opens on the first request.

    Closed windows are swept at most once per window_seconds during check().
    """

    def __init__(
        self,
        max_requests: int = RATE_LIMIT_MAX_REQUESTS,
        window_seconds: float = RATE_LIMIT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.clock = clock
        self._windows: Dict[str, _Window] = {}
        self._next_sweep = clock() + window_seconds

    def check(self, key: str) -> RateLimitDecision:
        """Record a request for key and decide whether it may proceed."""
        now = self.clock()
        if now >= self._next_sweep:
            self.evict_expired()
            self._next_sweep = now + self.window_seconds

        window = self._windows.get(key)

        if window is None or now >= window.reset_at:
            self._windows[key] = _Window(count=1, reset_at=now + self.window_seconds)
            return RateLimitDecision(allowed=True)

        if window.count >= self.max_requests:
            retry_after = max(1, math.ceil(window.reset_at - now))
            logger.warning(f"Rate limit exceeded for {key}; retry after {retry_after}s")
            return RateLimitDecision(allowed=False, retry_after=retry_after)

        window.count += 1
        return RateLimitDecision(allowed=True)

    def evict_expired(self) -> int:
        """Drop windows that have already closed. Returns the number removed."""
        now = self.clock()
        expired = [key for key, window in self._windows.items() if now >= window.reset_at]
        for key in expired:
            del self._windows[key]
        return len(expired)

    def reset(self, key: Optional[str] = None) -> None:
        if key is None:
            self._windows.clear()
        else:
            self._windows.pop(key, None)

    def __len__(self) -> int:
        return len(self._windows)
