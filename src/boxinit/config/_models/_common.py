"""Common configuration types.

This module defines shared types used across configuration models,
including enums and source tracking.
"""

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pathlib import Path


class LogLevel(StrEnum):
    """Log level threshold values.

    Values are ordered from most verbose (debug) to least verbose (error).
    """

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LogFormat(StrEnum):
    """Log output format values.

    - JSON: One JSON object per line, for log collectors
    - TEXT: Plain key=value lines
    - CONSOLE: Colored lines with service output interleaved as text
    """

    JSON = "json"
    TEXT = "text"
    CONSOLE = "console"


class ConfigSourceName(StrEnum):
    """Configuration source names in precedence order.

    Values are ordered from highest precedence (ENV) to lowest (DEFAULT).
    """

    ENV = "env"
    FILE = "file"
    DEFAULT = "default"


@dataclass(frozen=True, slots=True)
class ConfigSource:
    """Represents a configuration source.

    Attributes:
        name: The source type identifier.
        path: Path to the config file, or None for non-file sources.
        exists: Whether the source exists (file exists, or values are present).
        values: Configuration values from this source.
    """

    name: ConfigSourceName
    path: "Path | None"
    exists: bool
    values: dict[str, Any]  # pyright: ignore[reportExplicitAny]
