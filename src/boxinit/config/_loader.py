# pyright: reportAny=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""TOML configuration file loading and merging."""

import contextlib
import copy
import json
import os
import tomllib
from typing import TYPE_CHECKING, Any

from boxinit.exceptions import ConfigLoadError

if TYPE_CHECKING:
    from pathlib import Path

# Environment variables with this prefix that are not configuration keys
RESERVED_ENV_KEYS = frozenset({"CONFIG", "DEBUG", "LOG_LEVEL"})


def read_toml_file(path: "Path") -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Read and parse a TOML file.

    Args:
        path: Path to the TOML file.

    Returns:
        Parsed TOML content as dictionary.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigLoadError: If the file cannot be parsed.
    """
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Failed to parse TOML file {path}: {e}"
        raise ConfigLoadError(
            msg,
            path=path,
            line=getattr(e, "lineno", None),
            column=getattr(e, "colno", None),
        ) from e


def deep_merge(
    base: dict[str, Any],  # pyright: ignore[reportExplicitAny]
    override: dict[str, Any],  # pyright: ignore[reportExplicitAny]
) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Return a copy of ``base`` with ``override`` merged in.

    Tables merge key by key; arrays and scalars in ``override`` replace the
    base value. Keys keep their first-seen order, so service and step
    declaration order survives the merge. Neither input is modified.
    """
    merged = copy.deepcopy(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def parse_env_vars(
    prefix: str = "BOXINIT_",
    environ: dict[str, str] | None = None,
) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Collect ``BOXINIT_<SECTION>__<KEY>`` overrides into a nested dict.

    Args:
        prefix: Environment variable prefix.
        environ: Environment to read. Defaults to os.environ.

    Returns:
        Nested override values, e.g. ``BOXINIT_SUPERVISOR__GRACE_PERIOD=20``
        becomes ``{"supervisor": {"grace_period": 20}}``.
    """
    result: dict[str, Any] = {}  # pyright: ignore[reportExplicitAny]
    source = os.environ if environ is None else environ

    for key, value in source.items():
        if not key.startswith(prefix):
            continue

        config_key = key.removeprefix(prefix)
        if not config_key or config_key in RESERVED_ENV_KEYS:
            continue

        config_path = config_key.replace("__", ".").lower()
        set_nested_key(result, config_path, parse_string_value(value))

    return result


_BOOLEANS = {"true": True, "false": False}


def parse_string_value(value: str) -> Any:  # pyright: ignore[reportExplicitAny]
    """Infer the type of an environment override.

    Booleans win over numbers, numbers over JSON arrays and objects, and
    anything else stays a string. A value is only tried as a float when
    it contains a dot.

    Examples:
        >>> parse_string_value("true")
        True
        >>> parse_string_value("3.14")
        3.14
        >>> parse_string_value('["nginx", "-t"]')
        ['nginx', '-t']
    """
    if value.lower() in _BOOLEANS:
        return _BOOLEANS[value.lower()]

    number = float if "." in value else int
    with contextlib.suppress(ValueError):
        return number(value)

    if value[:1] + value[-1:] in ("[]", "{}"):
        with contextlib.suppress(json.JSONDecodeError):
            return json.loads(value)

    return value


def set_nested_key(
    d: dict[str, Any],  # pyright: ignore[reportExplicitAny]
    key_path: str,
    value: Any,  # pyright: ignore[reportExplicitAny]
) -> None:
    """Store ``value`` under a dotted path, replacing non-table parents."""
    *parents, leaf = key_path.split(".")
    node = d
    for part in parents:
        child = node.get(part)
        if not isinstance(child, dict):
            child = node[part] = {}
        node = child
    node[leaf] = value
