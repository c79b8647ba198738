# pyright: reportUnusedCallResult=false
"""Check command: validate configuration and print the plan."""

import shlex

from cyclopts import App
from rich.console import Console
from rich.table import Table

from boxinit.cli._context import CLIContext
from boxinit.exit_codes import ExitCode
from boxinit.supervisor import resolve_start_order

app = App(
    name="check",
    help="Validate the configuration and show the startup plan.",
    help_on_error=True,
)


@app.default
def check() -> None:
    """Print the bootstrap steps and services in start order.

    Configuration errors are reported before this command runs, so
    reaching it means the configuration is valid.
    """
    ctx = CLIContext.get_current()
    console = ctx.console or Console()
    config = ctx.config

    sources = ", ".join(
        str(source.path) if source.path is not None else source.name.value
        for source in config.sources
        if source.exists
    )
    console.print(f"[bold]Configuration:[/bold] {sources or 'default'}")

    steps = Table(title="Bootstrap", show_header=True, header_style="bold")
    steps.add_column("#", justify="right")
    steps.add_column("Step")
    steps.add_column("Action")
    for index, step in enumerate(config.bootstrap_steps(), start=1):
        steps.add_row(str(index), step.name, step.description)
    console.print(steps)

    specs = {spec.name: spec for spec in config.service_specs()}
    services = Table(title="Services", show_header=True, header_style="bold")
    services.add_column("Service")
    services.add_column("Command")
    services.add_column("Depends on")
    services.add_column("Restart")
    services.add_column("Ready pattern")
    for name in resolve_start_order(specs.values()):
        spec = specs[name]
        services.add_row(
            name,
            shlex.join(spec.command),
            ", ".join(sorted(spec.depends_on)) or "-",
            f"{spec.restart.mode.value} (max {spec.restart.max_restarts})",
            spec.ready_pattern or "-",
        )
    console.print(services)

    raise SystemExit(ExitCode.SUCCESS)
