"""Default command: bootstrap the container, then supervise its services."""

import anyio

from boxinit.bootstrap import Bootstrapper
from boxinit.cli._context import CLIContext
from boxinit.cli._shared import config_reloader, create_output_sink, exit_with_error
from boxinit.exceptions import BootstrapError
from boxinit.exit_codes import ExitCode
from boxinit.supervisor import Supervisor
from boxinit.utils import create_logger


def run() -> None:
    """Run the bootstrap steps, then supervise the configured services.

    Exits with 0 after a graceful shutdown, 1 when bootstrap fails, 2 when
    a service failed permanently and 3 when the grace period was exceeded.
    """
    ctx = CLIContext.get_current()
    logger = ctx.logger or create_logger(
        level=ctx.log_level.value, log_format=ctx.log_format.value
    )
    config = ctx.config

    try:
        Bootstrapper(logger=logger.bind(component="bootstrap")).run(
            config.bootstrap_steps()
        )
    except BootstrapError as e:
        exit_with_error(str(e), ExitCode.STARTUP_ERROR, console=ctx.error_console)

    supervisor_logger = logger.bind(component="supervisor")
    supervisor = Supervisor(
        config.service_specs(),
        create_output_sink(ctx.log_format, supervisor_logger, ctx.console),
        logger=supervisor_logger,
        grace_period=config.supervisor.grace_period,
        stop_on_fatal=config.supervisor.stop_on_fatal,
        reload_source=config_reloader(ctx.config_path),
    )
    code = anyio.run(supervisor.run)
    raise SystemExit(int(code))
