"""Structured logging configuration.

The extractors log through module-level ``structlog.get_logger(__name__)``
loggers and never configure logging themselves. ``extract_all`` binds the
document's ``base_url`` and the running ``category`` as context variables,
so every event emitted during a run carries them once ``setup_logging`` has
been called.
"""

import logging
import sys
from typing import Any, TextIO

import structlog

from harvester.config import get_settings


def resolve_log_level(level: str | int | None = None) -> int:
    """Map a level name (or number) to a logging level, falling back to settings."""
    if isinstance(level, int):
        return level
    name = (level or get_settings().log_level).upper()
    return logging.getLevelNamesMapping().get(name, logging.INFO)


def setup_logging(
    level: str | int | None = None,
    *,
    json_output: bool | None = None,
    stream: TextIO | None = None,
) -> None:
    """
    Configure structured logging with structlog.

    Args:
        level: Minimum level; defaults to HARVESTER_LOG_LEVEL
        json_output: Render JSON lines; defaults to on in production
        stream: Destination; defaults to stderr so extraction output on
            stdout stays clean
    """
    settings = get_settings()
    log_level = resolve_log_level(level)
    if json_output is None:
        json_output = settings.is_production
    stream = stream or sys.stderr

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=settings.debug,
                exception_formatter=structlog.dev.plain_traceback,
            )
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=stream, level=log_level)

    # bs4 warns about markup that looks like a filename or URL
    logging.getLogger("bs4").setLevel(logging.ERROR)
