"""Registry that dispatches raw link text to per-platform checkers."""

from __future__ import annotations

import structlog

from pancheck.domain.entities.check import CheckResult, FailureKind, Platform
from pancheck.domain.ports.link_checker import LinkCheckerPort
from pancheck.infrastructure.checkers.messages import DEFAULT_LOCALE, render

log = structlog.get_logger(__name__)


class CheckerRegistry:
    """Maps platforms to checkers and routes links by URL detection.

    Checkers are probed in registration order; the first whose
    ``matches()`` accepts the text handles it.
    """

    def __init__(
        self,
        checkers: list[LinkCheckerPort] | None = None,
        locale: str = DEFAULT_LOCALE,
    ) -> None:
        self._checkers: dict[Platform, LinkCheckerPort] = {}
        self._locale = locale
        for checker in checkers or []:
            self.register(checker)

    def register(self, checker: LinkCheckerPort) -> None:
        """Register *checker*, replacing any checker of the same platform."""
        self._checkers[checker.platform] = checker
        log.debug("checker_registered", platform=checker.platform.value)

    @property
    def platforms(self) -> list[Platform]:
        return list(self._checkers)

    def get(self, platform: Platform) -> LinkCheckerPort | None:
        return self._checkers.get(platform)

    def detect(self, text: str) -> Platform | None:
        """Return the platform whose checker recognizes *text*."""
        for platform, checker in self._checkers.items():
            if checker.matches(text):
                return platform
        return None

    async def check(self, link: str) -> tuple[Platform | None, CheckResult]:
        """Check *link* with the matching checker.

        Text no checker recognizes yields a ``MALFORMED_INPUT`` result
        without any network I/O.
        """
        platform = self.detect(link)
        if platform is None:
            log.info("checker_not_found", text_length=len(link))
            return None, CheckResult.failed(
                FailureKind.MALFORMED_INPUT,
                render(
                    "url_normalize_failed",
                    self._locale,
                    error=render("url_not_found", self._locale),
                ),
            )
        return platform, await self._checkers[platform].check(link)

    async def aclose(self) -> None:
        """Close every registered checker."""
        for checker in self._checkers.values():
            await checker.aclose()

    async def __aenter__(self) -> CheckerRegistry:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
