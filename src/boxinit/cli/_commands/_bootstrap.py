# pyright: reportUnusedCallResult=false
"""Bootstrap command: run the one-time setup steps only."""

from typing import Annotated

from cyclopts import App, Parameter
from rich.console import Console
from rich.table import Table

from boxinit.bootstrap import Bootstrapper
from boxinit.cli._context import CLIContext
from boxinit.cli._shared import exit_with_error
from boxinit.exceptions import BootstrapError
from boxinit.exit_codes import ExitCode
from boxinit.utils import create_logger

app = App(
    name="bootstrap",
    help="Run the bootstrap steps without starting services.",
    help_on_error=True,
)


@app.default
def bootstrap(
    *,
    dry_run: Annotated[
        bool,
        Parameter(
            name="--dry-run",
            help="Only report the steps that would run.",
        ),
    ] = False,
) -> None:
    """Run the configured bootstrap steps in order.

    Steps whose predicate is already satisfied are skipped. With
    ``--dry-run`` no action runs and the pending steps are listed.
    """
    ctx = CLIContext.get_current()
    logger = ctx.logger or create_logger(
        level=ctx.log_level.value, log_format=ctx.log_format.value
    )
    steps = ctx.config.bootstrap_steps()

    try:
        report = Bootstrapper(logger=logger.bind(component="bootstrap")).run(
            steps, dry_run=dry_run
        )
    except BootstrapError as e:
        exit_with_error(str(e), ExitCode.STARTUP_ERROR, console=ctx.error_console)

    if dry_run:
        console = ctx.console or Console()
        descriptions = {step.name: step.description for step in steps}
        table = Table(show_header=True, header_style="bold")
        table.add_column("Step")
        table.add_column("Action")
        for name in report.pending:
            table.add_row(name, descriptions.get(name, ""))
        if report.pending:
            console.print(table)
        else:
            console.print("Nothing to do.")

    raise SystemExit(ExitCode.SUCCESS)
