"""Composition root: builds checkers from the validated configuration."""

from __future__ import annotations

import httpx
import structlog

from pancheck.domain.ports.link_checker import LinkCheckerPort
from pancheck.infrastructure.checkers.baidu import BaiduChecker
from pancheck.infrastructure.checkers.registry import CheckerRegistry
from pancheck.infrastructure.config.schema import AppConfig

log = structlog.get_logger(__name__)


def build_registry(
    config: AppConfig,
    http_client: httpx.AsyncClient | None = None,
) -> CheckerRegistry:
    """Create one checker per enabled platform.

    Each checker builds and owns its HTTP client unless *http_client* is
    given (tests inject a mocked one).
    """
    checkers: list[LinkCheckerPort] = []

    if config.baidu.enabled:
        checkers.append(
            BaiduChecker(
                concurrency_limit=config.baidu.concurrency_limit,
                timeout=config.baidu.timeout_seconds,
                min_interval=config.baidu.min_interval_seconds,
                http_client=http_client,
                request_timeout=config.http_request_timeout_seconds,
                user_agent=config.http_user_agent,
                accept_language=config.http_accept_language,
                locale=config.locale,
            )
        )
        log.info(
            "checker_initialized",
            platform="baidu",
            concurrency_limit=config.baidu.concurrency_limit,
            timeout=config.baidu.timeout_seconds,
            min_interval=config.baidu.min_interval_seconds,
        )

    return CheckerRegistry(checkers, locale=config.locale)
