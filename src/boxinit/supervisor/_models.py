"""Data models for the supervisor system.

This module defines the core data types for service management:
- ServiceStatus: Lifecycle states for supervised services
- RestartMode: When a terminated service is restarted
- RestartPolicy: Restart limits and backoff settings
- ServiceSpec: Immutable service declaration
- ServiceState: Mutable runtime record owned by the control loop
- ServiceEventType: Types of lifecycle events
- ServiceEvent: Immutable event records
"""

import signal
from collections.abc import Mapping  # noqa: TC003 - Used in runtime type annotations
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path  # noqa: TC003 - Used in runtime type annotations
from types import MappingProxyType

from ._backoff import Backoff, ExponentialBackoff, LinearBackoff


class ServiceStatus(StrEnum):
    """Service lifecycle states.

    - PENDING: Waiting for dependencies to reach RUNNING
    - STARTING: Process spawned, waiting for readiness
    - RUNNING: Process is running and ready
    - BACKOFF: Process failed and is waiting before restart
    - STOPPING: Stop signal sent, waiting for the process to exit
    - EXITED: Process terminated and will not be restarted
    - FAILED: Restart attempts exhausted, will not be restarted
    """

    PENDING = "pending"
    STARTING = "starting"
    RUNNING = "running"
    BACKOFF = "backoff"
    STOPPING = "stopping"
    EXITED = "exited"
    FAILED = "failed"

    @property
    def is_alive(self) -> bool:
        """Whether an OS process may be associated with this state."""
        return self in (
            ServiceStatus.STARTING,
            ServiceStatus.RUNNING,
            ServiceStatus.STOPPING,
        )


class RestartMode(StrEnum):
    """When a terminated service is restarted.

    - ALWAYS: Restart after any exit, including exit code 0
    - ON_FAILURE: Restart only after a non-zero exit or spawn failure
    - NEVER: Never restart; a failure is immediately permanent
    """

    ALWAYS = "always"
    ON_FAILURE = "on-failure"
    NEVER = "never"


class BackoffKind(StrEnum):
    """Restart delay growth."""

    LINEAR = "linear"
    EXPONENTIAL = "exponential"


@dataclass(frozen=True, slots=True)
class RestartPolicy:
    """Restart policy for a supervised service.

    Attributes:
        mode: When to restart a terminated service.
        max_restarts: Consecutive restarts allowed before the service is
            pinned as permanently failed.
        backoff: Delay growth between restart attempts.
        backoff_base: Base delay in seconds.
        backoff_max: Maximum delay in seconds.
        jitter: Fraction of the delay to randomize (0.0-1.0).
        reset_after: Seconds of continuous running after which the
            consecutive failure counter is reset.
    """

    mode: RestartMode = RestartMode.ON_FAILURE
    max_restarts: int = 5
    backoff: BackoffKind = BackoffKind.EXPONENTIAL
    backoff_base: float = 1.0
    backoff_max: float = 60.0
    jitter: float = 0.1
    reset_after: float = 60.0

    def calculator(self) -> Backoff:
        """Build the delay calculator for this policy."""
        if self.backoff == BackoffKind.LINEAR:
            return LinearBackoff(
                base=self.backoff_base,
                max_delay=self.backoff_max,
                jitter=self.jitter,
            )
        return ExponentialBackoff(
            base=self.backoff_base,
            max_delay=self.backoff_max,
            jitter=self.jitter,
        )


@dataclass(frozen=True, slots=True)
class ServiceSpec:
    """Immutable declaration of a supervised process.

    Attributes:
        name: Unique identifier for the service.
        command: Command and arguments to execute.
        cwd: Working directory for the process.
        env: Additional environment variables, read-only.
        depends_on: Names of services that must be RUNNING before this
            service is started.
        restart: Restart policy.
        ready_pattern: Regular expression matched against output lines.
            When set, the service is RUNNING only once a line matches.
        startup_timeout: Seconds to wait for the readiness marker.
        stop_signal: Signal sent for graceful termination.
        stop_as_group: Signal the whole process group instead of the
            direct child only.
    """

    name: str
    command: tuple[str, ...]
    cwd: Path | None = None
    env: Mapping[str, str] = field(default_factory=dict)
    depends_on: frozenset[str] = frozenset()
    restart: RestartPolicy = field(default_factory=RestartPolicy)
    ready_pattern: str | None = None
    startup_timeout: float = 10.0
    stop_signal: signal.Signals = signal.SIGTERM
    stop_as_group: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "env", MappingProxyType(dict(self.env)))


@dataclass(slots=True)
class ServiceState:
    """Mutable runtime record of a supervised service.

    Owned by the supervisor control loop, which is the only writer.

    Attributes:
        spec: The service declaration currently in effect.
        status: Current lifecycle state.
        pid: Process ID of the live process, if any.
        restart_count: Consecutive restarts since the last stable run.
        start_count: Number of spawn attempts in this lifecycle.
        exit_code: Exit code from the last process termination.
        started_at: ISO 8601 timestamp of the last start.
        started_monotonic: Monotonic clock reading of the last start.
    """

    spec: ServiceSpec
    status: ServiceStatus = ServiceStatus.PENDING
    pid: int | None = None
    restart_count: int = 0
    start_count: int = 0
    exit_code: int | None = None
    started_at: str | None = None
    started_monotonic: float | None = None

    @property
    def name(self) -> str:
        """Return the service name."""
        return self.spec.name


class ServiceEventType(StrEnum):
    """Types of service lifecycle events.

    - TRANSITION: The service changed state
    - RESTART_SCHEDULED: A restart attempt was scheduled after a failure
    - STOP_REQUESTED: A graceful stop signal was sent
    - KILLED: The process was force-terminated
    """

    TRANSITION = "transition"
    RESTART_SCHEDULED = "restart_scheduled"
    STOP_REQUESTED = "stop_requested"
    KILLED = "killed"


@dataclass(frozen=True, slots=True)
class ServiceEvent:
    """Immutable service lifecycle event.

    Attributes:
        service_name: Name of the service that generated the event.
        event_type: Type of lifecycle event.
        timestamp: ISO 8601 formatted timestamp.
        status: Service state after the event.
        previous_status: Service state before a transition.
        pid: Process ID if applicable.
        exit_code: Exit code if the process terminated.
        restart_count: Consecutive restart counter at event time.
        message: Optional human-readable message.
    """

    service_name: str
    event_type: ServiceEventType
    timestamp: str
    status: ServiceStatus
    previous_status: ServiceStatus | None = None
    pid: int | None = None
    exit_code: int | None = None
    restart_count: int = 0
    message: str | None = None
