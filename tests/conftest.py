"""Shared test fixtures for pancheck test suite."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any

import httpx
import pytest

from pancheck.infrastructure.checkers.baidu import BaiduChecker

LIST_URL = "https://pan.baidu.com/share/list"
VERIFY_URL = "https://pan.baidu.com/share/verify"

# ---------------------------------------------------------------------------
# Checker fixtures
# ---------------------------------------------------------------------------


def make_baidu_checker(**overrides: Any) -> BaiduChecker:
    """BaiduChecker with test-friendly defaults (no pacing, short deadline)."""
    params: dict[str, Any] = {
        "concurrency_limit": 5,
        "timeout": 5.0,
        "min_interval": 0.0,
    }
    params.update(overrides)
    return BaiduChecker(**params)


@pytest.fixture()
async def baidu_checker() -> AsyncIterator[BaiduChecker]:
    """BaiduChecker owning its own client (intercepted by respx)."""
    checker = make_baidu_checker()
    async with checker:
        yield checker


@pytest.fixture()
async def http_client() -> AsyncIterator[httpx.AsyncClient]:
    """Real httpx.AsyncClient for use with respx mocking."""
    async with httpx.AsyncClient() as client:
        yield client
