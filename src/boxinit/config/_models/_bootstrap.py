"""Bootstrap step configuration models.

Each ``[[bootstrap]]`` table selects a step kind with its ``kind`` key.
The models convert into BootstrapStep instances via ``to_step()``.
"""

from pathlib import Path  # noqa: TC003
from typing import Annotated, ClassVar, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from boxinit.bootstrap import (
    BootstrapStep,
    check_command,
    ensure_directory,
    ensure_file,
    ensure_mode,
    ensure_ownership,
)

# Largest permission value, including setuid/setgid/sticky bits
MAX_MODE: int = 0o7777


def parse_mode(value: object) -> int | None:
    """Parse a permission mode.

    Strings are read as octal ("755", "0o755"); integers are taken as-is,
    so TOML files should write ``0o755`` rather than ``755``.

    Raises:
        ValueError: If the value is not a valid permission mode.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        msg = "expected an octal string or integer"
        raise ValueError(msg)
    if isinstance(value, str):
        text = value.strip().lower().removeprefix("0o")
        try:
            mode = int(text, 8)
        except ValueError:
            msg = f"invalid octal mode {value!r}"
            raise ValueError(msg) from None
    elif isinstance(value, int):
        mode = value
    else:
        msg = "expected an octal string or integer"
        raise ValueError(msg)
    if not 0 <= mode <= MAX_MODE:
        msg = f"mode {mode:o} is out of range"
        raise ValueError(msg)
    return mode


class _StepConfiguration(BaseModel):
    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(..., min_length=1, description="Unique step name.")


class DirectoryStepConfiguration(_StepConfiguration):
    """Create a directory (``mkdir -p``) with optional owner and mode."""

    kind: Literal["directory"]
    path: Path
    mode: int | None = None
    owner: str | int | None = None
    group: str | int | None = None

    @field_validator("mode", mode="before")
    @classmethod
    def _parse_mode(cls, value: object) -> int | None:
        return parse_mode(value)

    def to_step(self) -> BootstrapStep:
        return ensure_directory(
            self.name,
            self.path,
            mode=self.mode,
            owner=self.owner,
            group=self.group,
        )


class OwnershipStepConfiguration(_StepConfiguration):
    """Change ownership of a tree (``chown -R``)."""

    kind: Literal["ownership"]
    path: Path
    owner: str | int | None = None
    group: str | int | None = None
    recursive: bool = True

    def to_step(self) -> BootstrapStep:
        return ensure_ownership(
            self.name,
            self.path,
            owner=self.owner,
            group=self.group,
            recursive=self.recursive,
        )


class ModeStepConfiguration(_StepConfiguration):
    """Change permissions of a tree (``chmod -R``)."""

    kind: Literal["mode"]
    path: Path
    mode: int
    recursive: bool = True

    @field_validator("mode", mode="before")
    @classmethod
    def _parse_mode(cls, value: object) -> int | None:
        return parse_mode(value)

    def to_step(self) -> BootstrapStep:
        return ensure_mode(self.name, self.path, mode=self.mode, recursive=self.recursive)


class FileStepConfiguration(_StepConfiguration):
    """Create a file with default content when it is missing."""

    kind: Literal["file"]
    path: Path
    content: str = ""
    mode: int | None = None
    owner: str | int | None = None
    group: str | int | None = None

    @field_validator("mode", mode="before")
    @classmethod
    def _parse_mode(cls, value: object) -> int | None:
        return parse_mode(value)

    def to_step(self) -> BootstrapStep:
        return ensure_file(
            self.name,
            self.path,
            content=self.content,
            mode=self.mode,
            owner=self.owner,
            group=self.group,
        )


class CheckStepConfiguration(_StepConfiguration):
    """Run a command that must succeed, e.g. ``nginx -t``."""

    kind: Literal["check"]
    command: list[str] = Field(..., min_length=1)
    timeout: float = Field(default=30.0, gt=0)

    def to_step(self) -> BootstrapStep:
        return check_command(self.name, self.command, timeout=self.timeout)


StepConfiguration = Annotated[
    DirectoryStepConfiguration
    | OwnershipStepConfiguration
    | ModeStepConfiguration
    | FileStepConfiguration
    | CheckStepConfiguration,
    Field(discriminator="kind"),
]
