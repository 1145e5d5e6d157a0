"""Shared fixtures for integration tests.

These tests use real infrastructure components (config loader, checkers,
registry, use case) with mocked HTTP via respx.
"""

from __future__ import annotations

import os

import pytest
import respx


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Drop PANCHECK_* variables inherited from the developer shell."""
    for name in list(os.environ):
        if name.upper().startswith("PANCHECK_"):
            monkeypatch.delenv(name)


@pytest.fixture()
def respx_mock() -> respx.MockRouter:
    """Explicit respx mock router for request interception."""
    with respx.mock(assert_all_called=False) as router:
        yield router
