"""Bootstrap package for one-time container setup.

Runs idempotent filesystem setup (ownership and permission repair,
directory creation, default files, configuration checks) before the
supervisor starts any service.

Example:
    >>> from pathlib import Path
    >>> from boxinit.bootstrap import Bootstrapper, ensure_directory
    >>> steps = [ensure_directory("log-dir", Path("/var/log/nginx"), mode=0o755)]
    >>> report = Bootstrapper().run(steps)
"""

from ._bootstrapper import Bootstrapper
from ._models import BootstrapReport, BootstrapStep
from ._steps import (
    check_command,
    ensure_directory,
    ensure_file,
    ensure_mode,
    ensure_ownership,
    iter_tree,
    resolve_gid,
    resolve_uid,
)

__all__ = [
    "BootstrapReport",
    "BootstrapStep",
    "Bootstrapper",
    "check_command",
    "ensure_directory",
    "ensure_file",
    "ensure_mode",
    "ensure_ownership",
    "iter_tree",
    "resolve_gid",
    "resolve_uid",
]
