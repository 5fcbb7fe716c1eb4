"""Structlog configuration shared by the API server and the admin commands.

The server logs to stdout. Admin commands print rich tables to stdout, so
they pass ``stream=sys.stderr`` to keep log lines out of their output.
"""

import logging
import os
import sys
from typing import TextIO

import structlog


def configure_logging(level: str | None = None, stream: TextIO | None = None) -> None:
    """Configure structlog once per process.

    Renders coloured console lines when the stream is a TTY (or FORCE_COLOR
    is set, e.g. inside Docker) and JSON lines otherwise.

    Args:
        level: Minimum level name. Defaults to LOG_LEVEL, then INFO.
        stream: Where log lines go. Defaults to stdout.
    """
    stream = stream or sys.stdout
    force_color = os.environ.get("FORCE_COLOR", "").lower() in ("1", "true", "yes")
    use_colors = force_color or stream.isatty()

    level_name = (level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    min_level = logging.getLevelNamesMapping().get(level_name, logging.INFO)

    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if use_colors:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))
    else:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(min_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=True,
    )
