"""
In-memory fixed-window rate limiter.

Single-process and best-effort: counters live in this process only, so
several workers each enforce their own limit. Good enough to stop a cron
secret from being hammered; not a distributed limiter.
"""
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from fastapi import Request

logger = logging.getLogger(__name__)

PRUNE_INTERVAL_SECONDS = 5 * 60


@dataclass(frozen=True)
class RateLimitConfig:
    limit: int  # max requests per window
    window_seconds: int


@dataclass(frozen=True)
class RateLimitResult:
    success: bool
    remaining: int
    reset_at: float  # epoch seconds

    def retry_after(self, now: Optional[float] = None) -> int:
        """Whole seconds until the window resets, at least 1."""
        now = time.time() if now is None else now
        return max(1, int(self.reset_at - now + 0.999))


API_RATE_LIMITS = {
    "api": RateLimitConfig(limit=60, window_seconds=60),
    "alert_create": RateLimitConfig(limit=10, window_seconds=60),
    "search": RateLimitConfig(limit=30, window_seconds=60),
    "cron": RateLimitConfig(limit=5, window_seconds=3600),
}


class RateLimiter:
    """
    Fixed-window counter per key.

    The first hit (or the first after ``reset_at``) opens a window with
    count 1. Further hits increment until ``limit``; past that they are
    rejected without counting. Check-and-increment happens under one lock.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, list] = {}  # key -> [count, reset_at]
        self._last_prune = clock()

    def check(self, key: str, limit: int, window_seconds: int) -> RateLimitResult:
        now = self._clock()
        with self._lock:
            self._maybe_prune(now)

            entry = self._entries.get(key)
            if entry is None or entry[1] < now:
                reset_at = now + window_seconds
                self._entries[key] = [1, reset_at]
                return RateLimitResult(success=True, remaining=limit - 1, reset_at=reset_at)

            count, reset_at = entry
            if count >= limit:
                return RateLimitResult(success=False, remaining=0, reset_at=reset_at)

            entry[0] = count + 1
            return RateLimitResult(success=True, remaining=limit - entry[0], reset_at=reset_at)

    def check_preset(self, key: str, preset: str) -> RateLimitResult:
        config = API_RATE_LIMITS[preset]
        return self.check(key, config.limit, config.window_seconds)

    def reset(self):
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def _maybe_prune(self, now: float):
        if now - self._last_prune < PRUNE_INTERVAL_SECONDS:
            return
        expired = [key for key, (_, reset_at) in self._entries.items() if reset_at < now]
        for key in expired:
            del self._entries[key]
        self._last_prune = now
        if expired:
            logger.debug(f"Pruned {len(expired)} expired rate limit entries")


def get_rate_limit_key(request: Request, prefix: str) -> str:
    """``prefix:client-ip``, preferring the first X-Forwarded-For hop."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        ip = forwarded.split(",")[0].strip() or "unknown"
    elif request.client:
        ip = request.client.host
    else:
        ip = "unknown"
    return f"{prefix}:{ip}"


# Process-wide limiter shared by the HTTP layer
rate_limiter = RateLimiter()
