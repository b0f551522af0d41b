"""
Structured logging for the depot.

Manifesto:
    Store and queue operations run unattended inside scheduler threads.
    Their logs are the only record of which worker claimed which event,
    which key a rejected write targeted and how long the substrate took,
    so every line is an event name plus keyword fields.

Architecture:
    ::

        configure_logging(level="INFO", json_format=True)
            └── stdlib root handler on ``stream``
                  filter_by_level -> timestamp -> contextvars -> level/logger
                  -> service field -> JSONRenderer | ConsoleRenderer

        logger = get_logger(__name__)
        with event_context(event_id=..., version_id=...):
            logger.info("notification_processed", status="SUCCESS")

Tags:
    logging, structlog, observability, depot-core

Doc-Types:
    api-reference
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, TextIO

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

SERVICE_FIELD = "service"


def _service_stamper(service: str) -> Processor:
    def stamp(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault(SERVICE_FIELD, service)
        return event_dict

    return stamp


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "depot",
    add_timestamp: bool = True,
    stream: TextIO | None = None,
) -> None:
    """Route depot loggers through structlog onto ``stream``.

    Args:
        level: Minimum stdlib level name (``DEBUG`` shows substrate tracing).
        json_format: JSON lines when True, coloured console output when
            False; ``None`` picks JSON whenever ``stream`` is not a terminal.
        service: Value of the ``service`` field on every line.
        add_timestamp: Prefix events with an ISO timestamp.
        stream: Destination, stdout unless given.
    """
    stream = stream or sys.stdout
    if json_format is None:
        json_format = not stream.isatty()

    processors: list[Processor] = [structlog.stdlib.filter_by_level]
    if add_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))
    processors += [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        _service_stamper(service),
    ]
    if json_format:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=stream.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", stream=stream, level=level.upper(), force=True)


def get_logger(name: str | None = None) -> Any:
    return structlog.get_logger(name)


@contextmanager
def event_context(**fields: Any) -> Iterator[None]:
    """Attach ``fields`` to every log line emitted inside the block.

    Example:
        with event_context(worker="queue-observer_1"):
            logger.info("poll_started")
    """
    with structlog.contextvars.bound_contextvars(**fields):
        yield


__all__ = ["configure_logging", "event_context", "get_logger"]
