"""The command-line interface for boxinit."""
# ruff: noqa: TC003  # Path needed at runtime for cyclopts parameter parsing

from pathlib import Path
from typing import Annotated

from cyclopts import App, Parameter
from rich.console import Console

from boxinit.config import Config, LogFormat, LogLevel
from boxinit.exceptions import ConfigError
from boxinit.exit_codes import ExitCode
from boxinit.utils import create_logger

from ._commands import register_commands
from ._context import CLIContext
from ._shared import exit_with_error

APP_HELP = "Container init: bootstrap the filesystem, then supervise services."


def create_app(
    console: Console | None = None,
    error_console: Console | None = None,
    *,
    exit_on_error: bool = True,
) -> App:
    """Build the CLI.

    The returned app parses the global options, loads the configuration
    and then dispatches to the command (``run`` when none is given).

    Args:
        console: Console for command output.
        error_console: Console for error messages.
        exit_on_error: Exit on argument parsing errors.

    Returns:
        The launcher app to call with command-line tokens.
    """
    if console is None:
        console = Console()
    if error_console is None:
        error_console = Console(stderr=True)
    app = App(
        name="boxinit",
        help=APP_HELP,
        help_on_error=True,
        console=console,
        error_console=error_console,
        exit_on_error=exit_on_error,
    )
    register_commands(app)

    @app.meta.default
    def _launcher(  # pyright: ignore[reportUnusedFunction]
        *tokens: Annotated[str, Parameter(show=False, allow_leading_hyphen=True)],
        config: Annotated[
            Path | None, Parameter(name="--config", help="Path to config file")
        ] = None,
        log_level: Annotated[
            LogLevel | None,
            Parameter(name="--log-level", help="Override the configured log level"),
        ] = None,
        log_format: Annotated[
            LogFormat | None,
            Parameter(name="--log-format", help="Override the configured log format"),
        ] = None,
    ) -> None:
        """Launch boxinit with global options.

        Args:
            tokens: Command tokens to pass to subcommands.
            config: Explicit path to config file.
            log_level: Log level overriding the configuration.
            log_format: Log format overriding the configuration.
        """
        try:
            loaded_config = Config.load(config)
        except ConfigError as e:
            exit_with_error(str(e), ExitCode.STARTUP_ERROR, console=error_console)
        except OSError as e:
            exit_with_error(
                f"Failed to read configuration: {e}",
                ExitCode.STARTUP_ERROR,
                console=error_console,
            )

        effective_level = log_level or loaded_config.logging.level
        effective_format = log_format or loaded_config.logging.format
        logger = create_logger(
            level=effective_level.value,
            log_format=effective_format.value,
        )

        ctx = CLIContext(
            config=loaded_config,
            config_path=config,
            log_level=effective_level,
            log_format=effective_format,
            logger=logger,
            console=console,
            error_console=error_console,
        )
        CLIContext.set_current(ctx)

        try:
            app(tokens)
        finally:
            CLIContext.reset()

    return app.meta


def main() -> None:
    """Default entrypoint for the `boxinit` CLI."""
    app = create_app()
    app()


if __name__ == "__main__":
    main()
