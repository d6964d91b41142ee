"""Structlog-based logging for BioCheck.

Library code never prints; events go through structlog on top of stdlib
logging so request-level ``logging.getLogger`` records and engine events
share one stream (stderr).
"""
from __future__ import annotations

import logging
import os
from typing import Literal

import structlog

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

DEFAULT_LEVEL: LogLevel = "WARNING"


def configure_logging(level: str | None = None, json_format: bool = False) -> None:
    """Configure stdlib logging and structlog.

    ``level`` defaults to ``BIOCHECK_LOG_LEVEL`` or WARNING.
    """
    name = (level or os.getenv("BIOCHECK_LOG_LEVEL") or DEFAULT_LEVEL).upper()
    numeric = getattr(logging, name, logging.WARNING)
    logging.basicConfig(format="%(message)s", level=numeric)
    logging.getLogger().setLevel(numeric)
    processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="ISO"),
    ]
    if json_format:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str = "biocheck"):
    return structlog.get_logger(name)


# Initialize default config
configure_logging()
