"""Utilities used across boxinit."""

from ._logging import LogFormatType, create_logger
from ._timestamps import get_timestamp

__all__ = ["LogFormatType", "create_logger", "get_timestamp"]
