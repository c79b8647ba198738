"""boxinit CLI commands."""
# pyright: reportUnusedCallResult=false

from typing import TYPE_CHECKING

from ._bootstrap import app as bootstrap_app
from ._check import app as check_app
from ._run import run

if TYPE_CHECKING:
    from cyclopts import App

__all__ = [
    "bootstrap_app",
    "check_app",
    "register_commands",
    "run",
]


def register_commands(app: "App") -> None:
    """Register the default action and subcommands on ``app``."""
    app.default(run)
    app.command(bootstrap_app)
    app.command(check_app)
