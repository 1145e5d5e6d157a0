from __future__ import annotations

import argparse
import asyncio
import json
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import Any, TextIO

import structlog
from pydantic import ValidationError

from pancheck.application.use_cases.check_links import CheckLinksUseCase, LinkReport
from pancheck.infrastructure.composition import build_registry
from pancheck.infrastructure.config import AppConfig, load_config
from pancheck.infrastructure.logging.setup import configure_logging, shutdown_logging

log = structlog.get_logger(__name__)

EXIT_OK = 0
EXIT_INVALID_LINKS = 1
EXIT_USAGE = 2


def _parse_args(argv: Iterable[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="pancheck",
        description="Check whether cloud-storage share links are still valid.",
    )

    parser.add_argument(
        "links",
        nargs="*",
        help="Share links (free text allowed, e.g. with trailing '提取码: xxxx').",
    )
    parser.add_argument(
        "--file",
        "-f",
        default=None,
        help="Read links from file, one per line ('-' for stdin).",
    )

    # Config wiring flags (no business logic)
    parser.add_argument(
        "--config",
        default=None,
        help="Path to YAML config file.",
    )
    parser.add_argument(
        "--dotenv",
        default=None,
        help="Path to .env file.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override log level.",
    )
    parser.add_argument(
        "--log-format",
        default=None,
        choices=["json", "console"],
        help="Override log format.",
    )
    parser.add_argument(
        "--locale",
        default=None,
        choices=["en", "zh"],
        help="Language of failure reasons.",
    )
    parser.add_argument(
        "--concurrency",
        default=None,
        type=int,
        help="Max in-flight checks per platform.",
    )
    parser.add_argument(
        "--timeout",
        default=None,
        type=float,
        help="Per-check deadline in seconds.",
    )
    parser.add_argument(
        "--interval",
        default=None,
        type=float,
        help="Minimum spacing between requests to one platform (seconds).",
    )

    return parser.parse_args(argv)


def read_links(lines: Iterable[str]) -> list[str]:
    """Keep non-blank lines that are not ``#`` comments."""
    links = []
    for line in lines:
        stripped = line.strip()
        if stripped and not stripped.startswith("#"):
            links.append(stripped)
    return links


def _collect_links(args: argparse.Namespace, stdin: TextIO) -> list[str]:
    links = list(args.links)
    if args.file == "-":
        links.extend(read_links(stdin))
    elif args.file:
        path = Path(args.file)
        links.extend(read_links(path.read_text(encoding="utf-8").splitlines()))
    return links


def _cli_overrides(args: argparse.Namespace) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    if args.log_level:
        overrides["log_level"] = args.log_level
    if args.log_format:
        overrides["log_format"] = args.log_format
    if args.locale:
        overrides["locale"] = args.locale
    if args.concurrency is not None:
        overrides["baidu_concurrency_limit"] = args.concurrency
    if args.timeout is not None:
        overrides["baidu_timeout_seconds"] = args.timeout
    if args.interval is not None:
        overrides["baidu_min_interval_seconds"] = args.interval
    return overrides


async def run_checks(config: AppConfig, links: list[str]) -> list[LinkReport]:
    """Build checkers from *config*, check *links*, close checkers."""
    async with build_registry(config) as registry:
        return await CheckLinksUseCase(registry).execute(links)


def start(
    argv: Iterable[str] | None = None,
    *,
    stdin: TextIO | None = None,
    stdout: TextIO | None = None,
) -> int:
    """
    Process entrypoint.

    Prints one JSON object per link to stdout; logs go to stderr.
    """
    if argv is None:
        argv = sys.argv[1:]
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout

    args = _parse_args(argv)

    try:
        config = load_config(
            config_path=Path(args.config) if args.config else None,
            dotenv_path=Path(args.dotenv) if args.dotenv else None,
            cli_overrides=_cli_overrides(args),
        )
        links = _collect_links(args, stdin)
    except (FileNotFoundError, ValueError) as exc:
        # pydantic.ValidationError is a ValueError
        detail = str(exc) if not isinstance(exc, ValidationError) else exc.errors()
        print(f"pancheck: error: {detail}", file=sys.stderr)
        return EXIT_USAGE

    if not links:
        print("pancheck: error: no links given", file=sys.stderr)
        return EXIT_USAGE

    configure_logging(config)
    log.debug("cli_started", links=len(links), locale=config.locale)
    try:
        reports = asyncio.run(run_checks(config, links))
    finally:
        shutdown_logging()

    for report in reports:
        stdout.write(json.dumps(report.to_dict(), ensure_ascii=False) + "\n")
    stdout.flush()

    return EXIT_OK if all(r.result.valid for r in reports) else EXIT_INVALID_LINKS


if __name__ == "__main__":
    raise SystemExit(start())
