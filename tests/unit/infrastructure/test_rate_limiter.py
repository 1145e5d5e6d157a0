"""Tests for the TokenBucket request pacer."""

from __future__ import annotations

import asyncio
import time

import pytest

from pancheck.infrastructure.common.rate_limiter import TokenBucket


class TestTokenBucket:
    @pytest.mark.asyncio
    async def test_acquire_consumes_token(self) -> None:
        bucket = TokenBucket(rate=10.0, burst=5)
        waited = await bucket.acquire()
        assert waited == 0.0

    @pytest.mark.asyncio
    async def test_unlimited_rate_skips(self) -> None:
        bucket = TokenBucket(rate=0.0, burst=5)
        assert bucket.unlimited
        for _ in range(10):
            assert await bucket.acquire() == 0.0

    @pytest.mark.asyncio
    async def test_burst_allows_multiple_immediate(self) -> None:
        bucket = TokenBucket(rate=1.0, burst=3)
        start = time.monotonic()
        for _ in range(3):
            await bucket.acquire()
        assert time.monotonic() - start < 0.5


class TestMinInterval:
    def test_zero_interval_is_unlimited(self) -> None:
        assert TokenBucket.with_min_interval(0).unlimited

    def test_negative_interval_is_unlimited(self) -> None:
        assert TokenBucket.with_min_interval(-1.0).unlimited

    def test_rate_is_inverse_interval(self) -> None:
        assert TokenBucket.with_min_interval(0.5).rate == pytest.approx(2.0)

    @pytest.mark.asyncio
    async def test_first_acquire_is_immediate(self) -> None:
        bucket = TokenBucket.with_min_interval(10.0)
        start = time.monotonic()
        await bucket.acquire()
        assert time.monotonic() - start < 0.5

    @pytest.mark.asyncio
    async def test_successive_acquires_are_spaced(self) -> None:
        bucket = TokenBucket.with_min_interval(0.1)
        start = time.monotonic()
        for _ in range(4):
            await bucket.acquire()
        # First is free, the next three wait ~0.1s each.
        assert time.monotonic() - start >= 0.25

    @pytest.mark.asyncio
    async def test_concurrent_waiters_are_spaced(self) -> None:
        bucket = TokenBucket.with_min_interval(0.05)
        stamps: list[float] = []

        async def worker() -> None:
            await bucket.acquire()
            stamps.append(time.monotonic())

        await asyncio.gather(*(worker() for _ in range(5)))
        stamps.sort()
        gaps = [b - a for a, b in zip(stamps, stamps[1:])]
        assert all(gap >= 0.04 for gap in gaps)
