"""Shared helpers for CLI commands."""

from typing import TYPE_CHECKING, Never

from rich.console import Console

from boxinit.config import Config, LogFormat
from boxinit.exceptions import ConfigLoadError
from boxinit.exit_codes import ExitCode
from boxinit.supervisor import ConcatenatedOutputSink, StructuredOutputSink

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from structlog.typing import FilteringBoundLogger

    from boxinit.supervisor import OutputSink, ServiceSpec


def get_error_console() -> Console:
    """Get a Rich console configured for error output to stderr.

    Returns:
        Console instance writing to stderr.
    """
    return Console(stderr=True)


def exit_with_error(
    message: str,
    code: ExitCode = ExitCode.STARTUP_ERROR,
    *,
    console: Console | None = None,
) -> Never:
    """Print an error message and exit with the specified code.

    Args:
        message: The error message to display.
        code: The exit code to use (defaults to STARTUP_ERROR).
        console: Optional Rich console for output. If not provided,
            a new stderr console will be created.

    Raises:
        SystemExit: Always raised with the specified exit code.
    """
    if console is None:
        console = get_error_console()

    console.print(f"[red]Error:[/red] {message}", markup=True, highlight=False)
    raise SystemExit(code)


def create_output_sink(
    log_format: LogFormat,
    logger: "FilteringBoundLogger",
    console: Console | None = None,
) -> "OutputSink":
    """Pick the output sink matching the log format.

    The console format interleaves service output as plain prefixed
    lines; the structured formats emit one log record per line.
    """
    if log_format == LogFormat.CONSOLE:
        return ConcatenatedOutputSink(console)
    return StructuredOutputSink(logger)


def config_reloader(config_path: "Path | None") -> "Callable[[], tuple[ServiceSpec, ...]]":
    """Build the SIGHUP reload callable for the supervisor.

    Args:
        config_path: Explicit configuration file, if one was given.

    Returns:
        A callable re-reading the configuration and returning its services.
    """

    def reload() -> "tuple[ServiceSpec, ...]":
        try:
            return Config.load(config_path).service_specs()
        except OSError as e:
            msg = f"Failed to read configuration: {e}"
            raise ConfigLoadError(msg, path=config_path) from e

    return reload
