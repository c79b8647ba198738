"""Logging utilities for boxinit.

This module provides a standalone structlog logger factory. The logger
writes JSON-formatted or text-formatted records to the container's
standard output and does not modify global structlog configuration.
"""

import logging
import sys
from os import getenv
from typing import TYPE_CHECKING, Literal, TextIO, cast

import structlog

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

LogFormatType = Literal["json", "text", "console"]


def _get_log_level() -> int:
    """Get the log level from environment variables.

    Checks BOXINIT_DEBUG first (sets DEBUG if present), then
    BOXINIT_LOG_LEVEL. Defaults to INFO if neither is set.

    Returns:
        The logging level as an integer.
    """
    if getenv("BOXINIT_DEBUG", None):
        return logging.DEBUG

    log_levels = logging.getLevelNamesMapping()
    return log_levels.get(getenv("BOXINIT_LOG_LEVEL", "info").upper(), logging.INFO)


def _log_level_from_string(level: str, *, respect_env: bool = False) -> int:
    """Convert a log level string to a logging level integer.

    Args:
        level: Log level string (debug, info, warning, error).
        respect_env: If True, BOXINIT_DEBUG overrides to DEBUG level.

    Returns:
        The logging level as an integer.
    """
    if respect_env and getenv("BOXINIT_DEBUG", None):
        return logging.DEBUG

    log_levels = logging.getLevelNamesMapping()
    return log_levels.get(level.upper(), logging.INFO)


def create_logger(
    *,
    level: str | None = None,
    log_format: LogFormatType = "json",
    file: TextIO | None = None,
    **initial_values: object,
) -> "FilteringBoundLogger":  # noqa: UP037
    """Create a standalone structlog logger writing to standard output.

    The log level is determined by (in order of precedence):
    1. BOXINIT_DEBUG environment variable (if set, enables DEBUG level)
    2. The `level` parameter (if provided)
    3. BOXINIT_LOG_LEVEL environment variable
    4. Default: INFO

    Args:
        level: Optional log level string (debug, info, warning, error).
        log_format: "json" for one JSON object per line, "text" for plain
            key=value lines, "console" for colored key=value lines.
        file: Stream to write to. Defaults to the current sys.stdout.
        initial_values: Context bound to every record.

    Returns:
        A configured FilteringBoundLogger instance.
    """
    effective_level = (
        _log_level_from_string(level, respect_env=True)
        if level is not None
        else _get_log_level()
    )

    processors: list[structlog.typing.Processor] = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if log_format == "json":
        processors.append(structlog.processors.dict_tracebacks)
        processors.append(structlog.processors.JSONRenderer())
    else:
        # "timestamp [level] event key=value ..."
        processors.append(
            structlog.dev.ConsoleRenderer(colors=log_format == "console")
        )

    logger = structlog.wrap_logger(
        structlog.PrintLogger(file=file if file is not None else sys.stdout),
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(effective_level),
        context_class=dict,
    )
    if initial_values:
        logger = logger.bind(**initial_values)
    return cast("FilteringBoundLogger", logger)
