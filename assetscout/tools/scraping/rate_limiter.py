"""Per-host request pacing for upstream fetches (token bucket)."""

import asyncio
import time
from typing import Optional
from urllib.parse import urlparse

import structlog

logger = structlog.get_logger()

# (tokens per second, burst) for hosts that block aggressive clients
HOST_LIMITS = {
    "duckduckgo.com": (1.0, 3),
    "html.duckduckgo.com": (1.0, 3),
    "www.unrealengine.com": (2.0, 4),
    "itch.io": (2.0, 4),
    "forums.unrealengine.com": (1.0, 3),
}


class TokenBucket:
    """Token bucket for a single host."""

    def __init__(self, rate: float = 4.0, capacity: int = 8):
        self.rate = rate
        self.capacity = capacity
        self.tokens = float(capacity)
        self.updated_at = time.monotonic()
        self._lock = asyncio.Lock()

    async def acquire(self) -> float:
        """Take one token, sleeping until one is available.

        Returns:
            Seconds spent waiting
        """
        async with self._lock:
            now = time.monotonic()
            self.tokens = min(self.capacity, self.tokens + (now - self.updated_at) * self.rate)
            self.updated_at = now

            if self.tokens >= 1:
                self.tokens -= 1
                return 0.0

            wait = (1 - self.tokens) / self.rate
            await asyncio.sleep(wait)
            self.tokens = 0.0
            self.updated_at = time.monotonic()
            return wait


class HostRateLimiter:
    """Keeps one token bucket per upstream host."""

    def __init__(self, default_rate: float = 4.0, default_capacity: int = 8):
        self.default_rate = default_rate
        self.default_capacity = default_capacity
        self._limits: dict[str, tuple[float, int]] = {}
        self._buckets: dict[str, TokenBucket] = {}

    def configure_host(self, host: str, rate: float, capacity: int) -> None:
        self._limits[host] = (rate, capacity)
        self._buckets.pop(host, None)

    def _bucket(self, host: str) -> TokenBucket:
        bucket = self._buckets.get(host)
        if bucket is None:
            rate, capacity = self._limits.get(host, (self.default_rate, self.default_capacity))
            bucket = TokenBucket(rate=rate, capacity=capacity)
            self._buckets[host] = bucket
        return bucket

    async def acquire(self, url: str) -> float:
        """Wait for permission to request ``url``; returns seconds waited."""
        host = urlparse(url).hostname or url
        waited = await self._bucket(host).acquire()
        if waited > 0:
            logger.debug("Rate limited", host=host, wait_time=waited)
        return waited


_rate_limiter: Optional[HostRateLimiter] = None


def get_rate_limiter() -> HostRateLimiter:
    """Get the global rate limiter, configured with known host limits."""
    global _rate_limiter
    if _rate_limiter is None:
        _rate_limiter = HostRateLimiter()
        for host, (rate, capacity) in HOST_LIMITS.items():
            _rate_limiter.configure_host(host, rate, capacity)
    return _rate_limiter


def reset_rate_limiter() -> None:
    global _rate_limiter
    _rate_limiter = None
