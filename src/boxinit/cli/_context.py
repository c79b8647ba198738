# pyright: reportUnusedCallResult=false
# ruff: noqa: TC003  # Path needed at runtime for dataclass field
"""CLI context for global state management.

The CLIContext is set once by the global option parser and made available
to all commands via contextvars.
"""

import contextvars
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from boxinit.config import Config, LogFormat, LogLevel

if TYPE_CHECKING:
    from rich.console import Console
    from structlog.typing import FilteringBoundLogger


# Thread-safe context variable for CLIContext
_current_cli_context: "contextvars.ContextVar[CLIContext | None]" = (
    contextvars.ContextVar("cli_context", default=None)
)


@dataclass(frozen=True, slots=True)
class CLIContext:
    """Global CLI context with configuration and options.

    Attributes:
        config: Loaded configuration object.
        config_path: Explicit configuration file, if one was given.
        log_level: Effective log level.
        log_format: Effective log format.
        logger: Structured logger for boxinit records.
        console: Console for command output.
        error_console: Console for error messages.
    """

    config: Config = field(repr=False)
    config_path: Path | None = None
    log_level: LogLevel = LogLevel.INFO
    log_format: LogFormat = LogFormat.JSON
    logger: "FilteringBoundLogger | None" = field(default=None, repr=False)
    console: "Console | None" = field(default=None, repr=False)
    error_console: "Console | None" = field(default=None, repr=False)

    @classmethod
    def get_current(cls) -> "CLIContext":
        """Get current active CLIContext, or create a default if not set.

        Returns:
            The currently active CLIContext, or a default instance if none is set.
        """
        ctx = _current_cli_context.get()
        if ctx is not None:
            return ctx

        # Create default context with no services
        default_config = Config.from_dict({})
        return cls(config=default_config)

    @classmethod
    def set_current(cls, ctx: "CLIContext") -> None:
        """Set the current active CLIContext.

        Args:
            ctx: The CLIContext to set as current.
        """
        _current_cli_context.set(ctx)

    @classmethod
    def reset(cls) -> None:
        """Reset to default context.

        This is primarily useful for testing to ensure a clean state between tests.
        """
        _current_cli_context.set(None)
