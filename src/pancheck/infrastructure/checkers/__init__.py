"""Per-platform share-link checkers."""

from __future__ import annotations

from .baidu import BaiduChecker
from .base import BaseChecker
from .registry import CheckerRegistry

__all__ = ["BaiduChecker", "BaseChecker", "CheckerRegistry"]
