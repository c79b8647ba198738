"""Configuration file discovery.

The configuration file is located in this order:

1. An explicit path (``--config``)
2. The ``BOXINIT_CONFIG`` environment variable
3. ``/etc/boxinit/boxinit.toml``

When none of these exists the built-in defaults apply.
"""

import os
from pathlib import Path
from typing import TYPE_CHECKING

from boxinit.exceptions import ConfigLoadError

if TYPE_CHECKING:
    from collections.abc import Mapping

CONFIG_ENV_VAR = "BOXINIT_CONFIG"
DEFAULT_CONFIG_PATH = Path("/etc/boxinit/boxinit.toml")


def find_config_file(
    path: Path | None = None,
    *,
    environ: "Mapping[str, str] | None" = None,
    default_path: Path = DEFAULT_CONFIG_PATH,
) -> Path | None:
    """Locate the configuration file.

    Args:
        path: Explicit path requested by the user.
        environ: Environment to read. Defaults to os.environ.
        default_path: Well-known location checked last.

    Returns:
        Path to the configuration file, or None when the built-in
        defaults should be used.

    Raises:
        ConfigLoadError: If an explicitly requested file does not exist.
    """
    source = os.environ if environ is None else environ

    if path is None and source.get(CONFIG_ENV_VAR):
        path = Path(source[CONFIG_ENV_VAR])

    if path is not None:
        # Explicit path - must exist
        if not path.is_file():
            msg = f"Config file not found: {path}"
            raise ConfigLoadError(msg, path=path)
        return path

    if default_path.is_file():
        return default_path
    return None
