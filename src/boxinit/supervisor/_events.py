"""Messages delivered to the supervisor control loop.

Process tasks, timers and the signal relay never touch service state;
they post one of these messages and the control loop applies it.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from boxinit.exceptions import SpawnError

    from ._models import ServiceSpec


@dataclass(frozen=True, slots=True)
class ProcessStarted:
    """A process was spawned and, if it has a readiness marker, is ready."""

    name: str
    pid: int


@dataclass(frozen=True, slots=True)
class SpawnFailed:
    """A process could not be spawned or did not become ready."""

    name: str
    error: "SpawnError"


@dataclass(frozen=True, slots=True)
class ProcessExited:
    """A ready process terminated."""

    name: str
    exit_code: int


@dataclass(frozen=True, slots=True)
class RestartDue:
    """The backoff delay of a failed service elapsed."""

    name: str


@dataclass(frozen=True, slots=True)
class ShutdownRequested:
    """Cooperative shutdown was requested."""

    reason: str


@dataclass(frozen=True, slots=True)
class GraceExpired:
    """The shutdown grace period elapsed."""


@dataclass(frozen=True, slots=True)
class ReloadRequested:
    """A new set of service declarations was loaded."""

    specs: "tuple[ServiceSpec, ...]"


ControlMessage = (
    ProcessStarted
    | SpawnFailed
    | ProcessExited
    | RestartDue
    | ShutdownRequested
    | GraceExpired
    | ReloadRequested
)
