"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/140.0.0.0 Safari/537.36"
)
DEFAULT_ACCEPT_LANGUAGE = "zh,en-GB;q=0.9,en-US;q=0.8,en;q=0.7,zh-CN;q=0.6"

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "pancheck",
    "environment": "dev",
    "locale": "en",
    "http": {
        "user_agent": DEFAULT_USER_AGENT,
        "accept_language": DEFAULT_ACCEPT_LANGUAGE,
        "request_timeout_seconds": 10.0,
    },
    "logging": {
        "level": "INFO",
        "format": None,  # Derived from environment in schema.py
    },
    "baidu": {
        "enabled": True,
        "concurrency_limit": 5,
        "timeout_seconds": 30.0,
        "min_interval_seconds": 0.5,
    },
}
