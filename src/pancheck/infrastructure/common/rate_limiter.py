"""Token-bucket pacer for outgoing provider requests.

A bucket with ``burst=1`` enforces a minimum spacing between the issuance
of successive requests, independent of how many concurrency slots are free.
"""

from __future__ import annotations

import asyncio
import time

import structlog

log = structlog.get_logger(__name__)


class TokenBucket:
    """Token-bucket rate limiter.

    Waiters queue on an internal lock, so tokens are handed out in arrival
    order and the lock is never held across a network call (only across
    the pacing sleep itself).

    Args:
        rate: Tokens replenished per second. ``<= 0`` disables pacing.
        burst: Maximum bucket size (allows short bursts).
    """

    def __init__(self, rate: float, burst: int = 1) -> None:
        self._rate = rate
        self._burst = burst
        self._tokens = float(burst)
        self._last_refill = time.monotonic()
        self._lock = asyncio.Lock()

    @classmethod
    def with_min_interval(cls, interval_seconds: float) -> TokenBucket:
        """Bucket that spaces requests at least *interval_seconds* apart."""
        if interval_seconds <= 0:
            return cls(rate=0.0)
        return cls(rate=1.0 / interval_seconds, burst=1)

    @property
    def rate(self) -> float:
        """Current tokens-per-second rate."""
        return self._rate

    @property
    def unlimited(self) -> bool:
        return self._rate <= 0

    async def acquire(self) -> float:
        """Wait until a token is available, then consume it.

        Returns the number of seconds spent waiting.
        """
        if self._rate <= 0:
            return 0.0  # unlimited

        waited = 0.0
        async with self._lock:
            self._refill()
            while self._tokens < 1.0:
                wait = (1.0 - self._tokens) / self._rate
                await asyncio.sleep(wait)
                waited += wait
                self._refill()
            self._tokens -= 1.0

        if waited:
            log.debug("request_paced", waited_s=round(waited, 3))
        return waited

    def _refill(self) -> None:
        now = time.monotonic()
        elapsed = now - self._last_refill
        self._tokens = min(self._burst, self._tokens + elapsed * self._rate)
        self._last_refill = now
