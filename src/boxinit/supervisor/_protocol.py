"""Protocol definitions for the supervisor system.

This module defines the interface that decouples the supervisor core
from output rendering:
- OutputSink: Protocol for consuming service output and events
"""

from typing import TYPE_CHECKING, Literal, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ._models import ServiceEvent


@runtime_checkable
class OutputSink(Protocol):
    """Protocol for consuming service output lines and lifecycle events.

    The supervisor relays every state transition, every restart attempt
    and every line its children print through a single sink, so the
    container's one stdout stream describes all supervised daemons.
    """

    async def write_line(
        self,
        service_name: str,
        pid: int,
        stream: Literal["stdout", "stderr"],
        line: str,
    ) -> None:
        """Write a line of service output.

        Args:
            service_name: Name of the service that produced the output.
            pid: Process ID of the service.
            stream: Which output stream the line came from.
            line: The output line (without trailing newline).
        """
        ...

    async def write_event(self, event: "ServiceEvent") -> None:
        """Write a service lifecycle event.

        Args:
            event: The lifecycle event to record.
        """
        ...
