"""Batch link-check use case."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

import structlog

from pancheck.domain.entities.check import CheckResult, Platform
from pancheck.infrastructure.checkers.registry import CheckerRegistry

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class LinkReport:
    """One input link paired with its platform and check outcome."""

    link: str
    platform: Platform | None
    result: CheckResult

    def to_dict(self) -> dict[str, object]:
        return {
            "link": self.link,
            "platform": self.platform.value if self.platform else None,
            **self.result.to_dict(),
        }


class CheckLinksUseCase:
    """Checks many raw links concurrently.

    Flow:
        1. Strip and deduplicate input links (order-preserving)
        2. Run one check per unique link through the registry
        3. Propagate results back to duplicates, in input order

    Admission and pacing are owned by the checkers; this layer performs no
    retries. ``is_rate_limited`` results are reported for the caller to act on.
    """

    def __init__(self, registry: CheckerRegistry) -> None:
        self._registry = registry

    async def execute(self, links: list[str]) -> list[LinkReport]:
        if not links:
            return []

        cleaned = [link.strip() for link in links]
        unique_links = list(dict.fromkeys(link for link in cleaned if link))

        log.info(
            "batch_check_started",
            total=len(links),
            unique=len(unique_links),
            duplicates_skipped=len(links) - len(unique_links),
        )

        outcomes = await asyncio.gather(
            *(self._registry.check(link) for link in unique_links)
        )
        by_link = dict(zip(unique_links, outcomes))

        # One entry per check actually run: unique links plus each blank input.
        checked = [result for _, result in outcomes]
        reports: list[LinkReport] = []
        for raw, link in zip(links, cleaned):
            if link in by_link:
                platform, result = by_link[link]
            else:
                platform, result = await self._registry.check(link)
                checked.append(result)
            reports.append(LinkReport(link=raw, platform=platform, result=result))

        valid = sum(1 for r in checked if r.valid)
        rate_limited = sum(1 for r in checked if r.is_rate_limited)
        log.info(
            "batch_check_completed",
            total=len(links),
            unique=len(unique_links),
            checked=len(checked),
            valid=valid,
            invalid=len(checked) - valid,
            rate_limited=rate_limited,
        )
        if rate_limited:
            log.warning("batch_rate_limited", count=rate_limited)

        return reports
