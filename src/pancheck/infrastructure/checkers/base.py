"""Rate-limited dispatcher shared by every platform checker.

Each checker instance owns:
    - a counting semaphore capping simultaneously in-flight checks,
    - a token-bucket pacer spacing successive request issuance,
    - one long-lived ``httpx.AsyncClient`` (connection pooling),
    - the per-check deadline, enforced by cancellation.

Check lifecycle: Idle -> Admitted -> InFlight -> Completed. The slot is
released on every exit path, including deadline expiry and cancellation
by the caller.
"""

from __future__ import annotations

import asyncio
import dataclasses
import time
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import AsyncIterator, Generic, TypeVar

import httpx
import structlog

from pancheck.domain.entities.check import (
    CheckFailure,
    CheckResult,
    FailureKind,
    Platform,
)
from pancheck.infrastructure.checkers.messages import DEFAULT_LOCALE, render
from pancheck.infrastructure.common.rate_limiter import TokenBucket
from pancheck.infrastructure.config.defaults import (
    DEFAULT_ACCEPT_LANGUAGE,
    DEFAULT_USER_AGENT,
)

log = structlog.get_logger(__name__)

DEFAULT_ACCEPT = "application/json, text/plain, */*"

TargetT = TypeVar("TargetT")


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


class BaseChecker(ABC, Generic[TargetT]):
    """Admission control, pacing and deadline around a platform pipeline.

    Subclasses implement two stages:
        - :meth:`prepare`: pure parsing of raw text into a target; raises
          :class:`CheckFailure` for malformed or unrecognized input.
        - :meth:`probe`: the network interaction; returns a classified
          ``CheckResult`` or raises :class:`CheckFailure`.

    Args:
        platform: Platform handled by this checker.
        concurrency_limit: Max simultaneously in-flight checks.
        timeout: Deadline for one check's network interaction (seconds).
        min_interval: Minimum spacing between request issuance (seconds).
        http_client: Optional shared client; built and owned here if omitted.
        request_timeout: Per-request timeout beneath the check deadline.
        user_agent: Browser user agent presented to the provider.
        accept_language: ``Accept-Language`` header value.
        locale: Locale for rendered failure reasons.
    """

    def __init__(
        self,
        platform: Platform,
        *,
        concurrency_limit: int = 5,
        timeout: float = 30.0,
        min_interval: float = 0.0,
        http_client: httpx.AsyncClient | None = None,
        request_timeout: float = 10.0,
        user_agent: str = DEFAULT_USER_AGENT,
        accept_language: str = DEFAULT_ACCEPT_LANGUAGE,
        locale: str = DEFAULT_LOCALE,
    ) -> None:
        if concurrency_limit < 1:
            raise ValueError("concurrency_limit must be >= 1")
        if timeout <= 0:
            raise ValueError("timeout must be > 0")

        self._platform = platform
        self._concurrency_limit = concurrency_limit
        self._timeout = timeout
        self._locale = locale
        self._semaphore = asyncio.Semaphore(concurrency_limit)
        self._pacer = TokenBucket.with_min_interval(min_interval)
        self._in_flight = 0

        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(request_timeout),
            headers={
                "User-Agent": user_agent,
                "Accept": DEFAULT_ACCEPT,
                "Accept-Language": accept_language,
            },
            limits=httpx.Limits(max_connections=concurrency_limit),
            follow_redirects=True,
        )

    @property
    def platform(self) -> Platform:
        return self._platform

    @property
    def concurrency_limit(self) -> int:
        return self._concurrency_limit

    @property
    def timeout(self) -> float:
        return self._timeout

    @property
    def in_flight(self) -> int:
        """Number of checks currently holding a concurrency slot."""
        return self._in_flight

    def msg(self, message_id: str, **params: object) -> str:
        return render(message_id, self._locale, **params)

    @abstractmethod
    def matches(self, text: str) -> bool: ...

    @abstractmethod
    def prepare(self, link: str) -> TargetT: ...

    @abstractmethod
    async def probe(self, target: TargetT) -> CheckResult: ...

    @asynccontextmanager
    async def _admit(self) -> AsyncIterator[None]:
        await self._semaphore.acquire()
        self._in_flight += 1
        try:
            yield
        finally:
            self._in_flight -= 1
            self._semaphore.release()

    async def check(self, link: str) -> CheckResult:
        """Check one raw link text. Never raises for expected outcomes."""
        try:
            target = self.prepare(link)
        except CheckFailure as exc:
            log.info(
                "check_rejected_input",
                platform=self._platform.value,
                kind=exc.kind.value,
                reason=exc.reason,
            )
            return exc.to_result()

        async with self._admit():
            await self._pacer.acquire()
            start = time.monotonic()
            try:
                result = await asyncio.wait_for(self.probe(target), self._timeout)
            except CheckFailure as exc:
                result = exc.to_result(_elapsed_ms(start))
            except asyncio.TimeoutError:
                log.warning(
                    "check_timeout",
                    platform=self._platform.value,
                    timeout=self._timeout,
                )
                result = CheckResult.failed(
                    FailureKind.TIMEOUT,
                    self.msg("timeout", seconds=self._timeout),
                    duration_ms=_elapsed_ms(start),
                )
            except httpx.HTTPError as exc:
                log.warning(
                    "check_network_failure",
                    platform=self._platform.value,
                    error=str(exc),
                )
                result = CheckResult.failed(
                    FailureKind.NETWORK_FAILURE,
                    self.msg("network_failure", error=str(exc) or type(exc).__name__),
                    duration_ms=_elapsed_ms(start),
                )
            else:
                result = dataclasses.replace(result, duration_ms=_elapsed_ms(start))

        log.debug(
            "check_completed",
            platform=self._platform.value,
            valid=result.valid,
            kind=result.failure_kind.value if result.failure_kind else None,
            rate_limited=result.is_rate_limited,
            duration_ms=result.duration_ms,
        )
        return result

    async def aclose(self) -> None:
        """Close the HTTP client if this checker created it."""
        if self._owns_client:
            await self._http.aclose()

    async def __aenter__(self) -> BaseChecker[TargetT]:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
