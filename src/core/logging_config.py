"""Structured logging configuration.

This module initializes structlog loggers with a stable JSON format.
Log lines go to stderr so the completion report on stdout stays clean.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog

_DEFAULT_LOG_LEVEL = "INFO"


def get_logger(name: str) -> Any:
    """Return a module logger instance.

    Args:
        name: Logger name, usually __name__.

    Returns:
        A structlog logger with structured output.
    """
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.JSONRenderer(sort_keys=True),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(_resolve_log_level()),
        logger_factory=_stderr_logger_factory,
        cache_logger_on_first_use=False,
    )
    return structlog.get_logger(name)


def _stderr_logger_factory(*args: Any) -> Any:
    """Build a print logger bound to the current stderr stream."""
    return structlog.PrintLogger(file=sys.stderr)


def _resolve_log_level() -> int:
    """Resolve the numeric log level from ``JTAB_LOG_LEVEL``.

    Unknown level names fall back to INFO.
    """
    level_name = os.getenv("JTAB_LOG_LEVEL", _DEFAULT_LOG_LEVEL).upper()
    level = logging.getLevelName(level_name)
    return level if isinstance(level, int) else logging.INFO
