"""Service configuration models.

This module provides the Pydantic models for ``[services.<name>]`` tables
and their conversion into supervisor service specs.
"""

import re
import signal
from pathlib import Path  # noqa: TC003
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from boxinit.supervisor import (
    BackoffKind,
    RestartMode,
    RestartPolicy,
    ServiceSpec,
)


def parse_signal(value: object) -> signal.Signals:
    """Parse a signal name ("SIGQUIT", "quit") or number into a Signals member.

    Raises:
        ValueError: If the value names no known signal.
    """
    if isinstance(value, signal.Signals):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        try:
            return signal.Signals(value)
        except ValueError:
            msg = f"unknown signal number {value}"
            raise ValueError(msg) from None
    if isinstance(value, str):
        name = value.strip().upper()
        if not name.startswith("SIG"):
            name = f"SIG{name}"
        try:
            return signal.Signals[name]
        except KeyError:
            msg = f"unknown signal name {value!r}"
            raise ValueError(msg) from None
    msg = f"expected a signal name or number, got {type(value).__name__}"
    raise ValueError(msg)


class RestartConfiguration(BaseModel):
    """Restart policy table of a service.

    Attributes:
        mode: When a terminated service is restarted.
        max_restarts: Consecutive restarts before the service is failed.
        backoff: Delay growth, linear or exponential.
        backoff_base: Base delay in seconds.
        backoff_max: Maximum delay in seconds.
        jitter: Fraction of the delay to randomize.
        reset_after: Seconds of stable running that reset the counter.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="forbid")

    mode: RestartMode = RestartMode.ON_FAILURE
    max_restarts: int = Field(default=5, ge=0)
    backoff: BackoffKind = BackoffKind.EXPONENTIAL
    backoff_base: float = Field(default=1.0, ge=0)
    backoff_max: float = Field(default=60.0, ge=0)
    jitter: float = Field(default=0.1, ge=0, le=1)
    reset_after: float = Field(default=60.0, ge=0)

    def to_policy(self) -> RestartPolicy:
        """Convert to the supervisor's restart policy."""
        return RestartPolicy(
            mode=self.mode,
            max_restarts=self.max_restarts,
            backoff=self.backoff,
            backoff_base=self.backoff_base,
            backoff_max=self.backoff_max,
            jitter=self.jitter,
            reset_after=self.reset_after,
        )


class ServiceConfiguration(BaseModel):
    """One ``[services.<name>]`` table."""

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="forbid")

    command: list[str] = Field(
        ...,
        min_length=1,
        description="Program and arguments, executed without a shell.",
    )
    cwd: Path | None = Field(default=None, description="Working directory.")
    env: dict[str, str] = Field(
        default_factory=dict,
        description="Variables added to the inherited environment.",
    )
    depends_on: list[str] = Field(
        default_factory=list,
        description="Services that must be running before this one starts.",
    )
    restart: RestartConfiguration = Field(default_factory=RestartConfiguration)
    ready_pattern: str | None = Field(
        default=None,
        description="Regex an output line must match before the service counts as running.",
    )
    startup_timeout: float = Field(default=10.0, gt=0)
    stop_signal: signal.Signals = Field(
        default=signal.SIGTERM,
        description="Signal used for graceful termination.",
    )
    stop_as_group: bool = Field(
        default=True,
        description="Signal the whole process group of the service.",
    )

    @field_validator("stop_signal", mode="before")
    @classmethod
    def _parse_stop_signal(cls, value: object) -> signal.Signals:
        return parse_signal(value)

    @field_validator("ready_pattern")
    @classmethod
    def _compile_ready_pattern(cls, value: str | None) -> str | None:
        if value is not None:
            try:
                _ = re.compile(value)
            except re.error as e:
                msg = f"invalid regular expression: {e}"
                raise ValueError(msg) from e
        return value

    def to_spec(self, name: str) -> ServiceSpec:
        """Build the supervisor spec for the service called ``name``."""
        return ServiceSpec(
            name=name,
            command=tuple(self.command),
            cwd=self.cwd,
            env=dict(self.env),
            depends_on=frozenset(self.depends_on),
            restart=self.restart.to_policy(),
            ready_pattern=self.ready_pattern,
            startup_timeout=self.startup_timeout,
            stop_signal=self.stop_signal,
            stop_as_group=self.stop_as_group,
        )
