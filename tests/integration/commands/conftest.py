import json
import sys
from collections.abc import Callable, Generator
from pathlib import Path

import pytest
from rich.console import Console

from boxinit.cli import CLIContext, create_app


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch) -> Generator[None]:
    """Keep host BOXINIT_* variables out of the loaded configuration."""
    for name in ("BOXINIT_CONFIG", "BOXINIT_DEBUG", "BOXINIT_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)

    yield

    CLIContext.reset()


@pytest.fixture
def boxinit_cli_with_exit_code(console: Console) -> Callable[..., int]:
    """Create CLI app for testing that returns the exit code."""

    app = create_app(console=console, error_console=console)

    def _run(*args: str) -> int:
        try:
            app(args)
        except SystemExit as e:
            return e.code if isinstance(e.code, int) else 1
        else:
            return 0

    return _run


@pytest.fixture
def write_config(tmp_path: Path) -> Callable[[str], Path]:
    """Write a boxinit.toml into tmp_path and return its path."""

    def _write(contents: str) -> Path:
        path = tmp_path / "boxinit.toml"
        _ = path.write_text(contents)
        return path

    return _write


def toml_command(*args: str) -> str:
    """Render a command array running the current interpreter."""
    return json.dumps([sys.executable, *args])
