"""structlog + stdlib logging wiring.

All records (structlog events and foreign stdlib records from httpx and
friends) are queued by a ``QueueHandler`` and written to stderr by a
``QueueListener`` thread. stdout is left to the command's result stream.
"""

from __future__ import annotations

import atexit
import copy
import logging
import queue
import sys
from datetime import datetime, timezone
from logging.handlers import QueueHandler, QueueListener
from typing import Any, Optional

import structlog

from pancheck.infrastructure.config.schema import AppConfig

log = structlog.get_logger(__name__)

# Loggers that emit one INFO line per HTTP request.
_NOISY_LOGGERS = ("httpx", "httpcore")

_listener: Optional[QueueListener] = None


def _stamp_foreign_record(
    _: Any, __: Any, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Timestamp foreign records with ``LogRecord.created``, not render time."""
    record = event_dict.get("_record")
    if isinstance(record, logging.LogRecord):
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        event_dict["timestamp"] = created.isoformat().replace("+00:00", "Z")
    return event_dict


def _shared_processors() -> list[structlog.typing.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
    ]


def build_processor_formatter(config: AppConfig) -> structlog.stdlib.ProcessorFormatter:
    """Formatter rendering both structlog events and foreign stdlib records."""
    renderer: structlog.typing.Processor
    if config.log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[_stamp_foreign_record, *_shared_processors()],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )


class _EventDictQueueHandler(QueueHandler):
    """Enqueue records untouched so ``record.msg`` stays a structlog event dict.

    The stock ``prepare()`` flattens ``msg`` via ``getMessage()``.
    """

    def prepare(self, record: logging.LogRecord) -> logging.LogRecord:
        return copy.copy(record)


def _route_stdlib_through_queue(config: AppConfig) -> QueueListener:
    sink = logging.StreamHandler(stream=sys.stderr)
    sink.setFormatter(build_processor_formatter(config))

    records: queue.Queue[logging.LogRecord] = queue.Queue()

    root = logging.getLogger()
    root.handlers[:] = [_EventDictQueueHandler(records)]
    root.setLevel(config.log_level)

    # Loggers created before this point may carry their own handlers.
    for name in list(logging.root.manager.loggerDict):
        logger = logging.getLogger(name)
        logger.handlers.clear()
        logger.propagate = True
        logger.setLevel(config.log_level)

    if config.log_level != "DEBUG":
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    return QueueListener(records, sink, respect_handler_level=True)


def configure_logging(config: AppConfig) -> None:
    """Configure structlog and start the background log writer.

    Safe to call repeatedly; a previous listener is stopped first.
    """
    global _listener

    structlog.configure(
        processors=[
            *_shared_processors(),
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    shutdown_logging()
    _listener = _route_stdlib_through_queue(config)
    _listener.start()
    atexit.register(shutdown_logging)

    log.debug(
        "logging_configured", log_format=config.log_format, log_level=config.log_level
    )


def shutdown_logging() -> None:
    """Drain the queue and stop the background writer, if running."""
    global _listener
    if _listener is not None:
        try:
            _listener.stop()
        finally:
            _listener = None
