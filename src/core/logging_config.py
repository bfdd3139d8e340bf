"""Structured logging configuration.

This module initializes structlog with a stable JSON event format.
The minimum level comes from ``SatchelConfig.log_level``; until a config
is applied, the default level is used. Events go to stderr so command
output on stdout stays machine readable.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from core.constants import DEFAULT_LOG_LEVEL, SUPPORTED_LOG_LEVELS
from core.errors import SatchelConfigError

_CONFIGURED = False


def get_logger(name: str) -> Any:
    """Return a module logger instance.

    Args:
        name: Logger name, usually __name__.

    Returns:
        A structlog logger with structured JSON output.
    """
    if not _CONFIGURED:
        configure_logging(DEFAULT_LOG_LEVEL)
    return structlog.get_logger(name)


def configure_logging(level_name: str) -> None:
    """Configure structlog processors and the minimum level.

    Loggers are not cached, so existing module loggers follow the new
    level immediately.

    Args:
        level_name: Standard logging level name, usually
            ``SatchelConfig.log_level``.

    Raises:
        SatchelConfigError: If the level name is unknown.
    """
    global _CONFIGURED
    normalized = level_name.strip().upper()
    if normalized not in SUPPORTED_LOG_LEVELS:
        raise SatchelConfigError(
            f"Unknown log level '{level_name}'. Use one of: {', '.join(SUPPORTED_LOG_LEVELS)}."
        )
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.JSONRenderer(sort_keys=True),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(normalized)
        ),
        logger_factory=_stderr_logger,
        cache_logger_on_first_use=False,
    )
    _CONFIGURED = True


def _stderr_logger(*args: Any) -> structlog.PrintLogger:
    # Looked up per call so a redirected sys.stderr is honored.
    return structlog.PrintLogger(sys.stderr)
