"""Port for per-platform share-link checkers."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from pancheck.domain.entities.check import CheckResult, Platform


@runtime_checkable
class LinkCheckerPort(Protocol):
    """Checks whether a share link of one platform still resolves.

    Implementations own their admission control, request pacing and
    per-check deadline. Every expected outcome (malformed input, provider
    rejection, timeout) is returned as a ``CheckResult``, never raised.
    """

    @property
    def platform(self) -> Platform:
        """Platform this checker handles."""
        ...

    def matches(self, text: str) -> bool:
        """Return True if *text* contains a share URL of this platform."""
        ...

    async def check(self, link: str) -> CheckResult:
        """Probe one raw link text and classify the outcome."""
        ...

    async def aclose(self) -> None:
        """Release network resources held by the checker."""
        ...
