"""Supervisor package for managing container services.

This package launches a set of long-running daemons inside one container
lifecycle, restarts them when they fail, relays termination signals and
determines the container's exit code.

Key Components:
    - ServiceSpec: Immutable service declaration
    - RestartPolicy: Restart limits and backoff settings
    - ServiceState: Runtime record owned by the control loop
    - ServiceStatus: Lifecycle state enumeration
    - ServiceEvent: Lifecycle event records
    - OutputSink: Protocol for output consumption
    - StructuredOutputSink: structlog output implementation
    - ConcatenatedOutputSink: Console output implementation
    - ExponentialBackoff / LinearBackoff: Retry delay calculators
    - ServiceProcess: Single OS process handle
    - Supervisor: Event-driven control loop

Example:
    >>> from boxinit.supervisor import ServiceSpec, Supervisor
    >>> specs = [
    ...     ServiceSpec(name="php-fpm", command=("php-fpm", "--nodaemonize")),
    ...     ServiceSpec(
    ...         name="nginx",
    ...         command=("nginx", "-g", "daemon off;"),
    ...         depends_on=frozenset({"php-fpm"}),
    ...     ),
    ... ]
    >>> supervisor = Supervisor(specs)
    >>> exit_code = await supervisor.run()  # Blocks until shutdown
"""

from ._backoff import Backoff, ExponentialBackoff, LinearBackoff
from ._graph import resolve_start_order
from ._models import (
    BackoffKind,
    RestartMode,
    RestartPolicy,
    ServiceEvent,
    ServiceEventType,
    ServiceSpec,
    ServiceState,
    ServiceStatus,
)
from ._output import ConcatenatedOutputSink, StructuredOutputSink
from ._protocol import OutputSink
from ._service import ServiceProcess
from ._supervisor import Supervisor

__all__ = [
    "Backoff",
    "BackoffKind",
    "ConcatenatedOutputSink",
    "ExponentialBackoff",
    "LinearBackoff",
    "OutputSink",
    "RestartMode",
    "RestartPolicy",
    "ServiceEvent",
    "ServiceEventType",
    "ServiceProcess",
    "ServiceSpec",
    "ServiceState",
    "ServiceStatus",
    "StructuredOutputSink",
    "Supervisor",
    "resolve_start_order",
]
