"""Output sink implementations for the supervisor system.

This module provides concrete implementations of the OutputSink protocol
for relaying service output and lifecycle events to the container's
standard output.
"""

from typing import TYPE_CHECKING, Literal, final

from rich.console import Console
from rich.style import Style
from rich.text import Text

from ._models import ServiceEventType, ServiceStatus

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from ._models import ServiceEvent


@final
class StructuredOutputSink:
    """Output sink that writes structured log records via structlog.

    Every lifecycle event becomes one record named ``service.<event_type>``
    and every child output line becomes one ``service.output`` record, so
    the combined stream can be filtered by ``service``.
    """

    __slots__ = ("_logger",)

    def __init__(self, logger: "FilteringBoundLogger") -> None:
        """Initialize the output sink.

        Args:
            logger: Bound structlog logger to write records to.
        """
        self._logger = logger

    async def write_line(
        self,
        service_name: str,
        pid: int,
        stream: Literal["stdout", "stderr"],
        line: str,
    ) -> None:
        """Write a line of service output as a structured record."""
        self._logger.info(
            "service.output",
            service=service_name,
            pid=pid,
            stream=stream,
            line=line,
        )

    async def write_event(self, event: "ServiceEvent") -> None:
        """Write a lifecycle event as a structured record.

        Permanent failures and forced kills are logged at error level,
        restarts at warning level, everything else at info level.
        """
        fields: dict[str, object] = {
            "service": event.service_name,
            "status": event.status.value,
            "restart_count": event.restart_count,
            "event_time": event.timestamp,
        }
        if event.previous_status is not None:
            fields["previous_status"] = event.previous_status.value
        if event.pid is not None:
            fields["pid"] = event.pid
        if event.exit_code is not None:
            fields["exit_code"] = event.exit_code
        if event.message:
            fields["message"] = event.message

        name = f"service.{event.event_type.value}"
        if event.event_type == ServiceEventType.KILLED or (
            event.status == ServiceStatus.FAILED
        ):
            self._logger.error(name, **fields)
        elif event.event_type == ServiceEventType.RESTART_SCHEDULED:
            self._logger.warning(name, **fields)
        else:
            self._logger.info(name, **fields)


@final
class ConcatenatedOutputSink:
    """Output sink that writes to the console with formatted prefixes.

    Formats service output as `[name:pid] line` with color coding:
    - stdout: Default styling
    - stderr: Dim red styling
    - Events: Styled by the service state they lead to
    """

    __slots__ = ("_console", "_status_styles", "_stderr_style", "_stdout_style")

    def __init__(self, console: Console | None = None) -> None:
        """Initialize the output sink.

        Args:
            console: Rich Console instance for output. If None, creates a new one.
        """
        self._console = console or Console()
        self._stdout_style = Style()
        self._stderr_style = Style(color="red", dim=True)
        self._status_styles: dict[ServiceStatus, Style] = {
            ServiceStatus.PENDING: Style(dim=True),
            ServiceStatus.STARTING: Style(color="cyan"),
            ServiceStatus.RUNNING: Style(color="green", bold=True),
            ServiceStatus.BACKOFF: Style(color="yellow", bold=True),
            ServiceStatus.STOPPING: Style(color="yellow"),
            ServiceStatus.EXITED: Style(color="yellow", dim=True),
            ServiceStatus.FAILED: Style(color="red", bold=True),
        }

    async def write_line(
        self,
        service_name: str,
        pid: int,
        stream: Literal["stdout", "stderr"],
        line: str,
    ) -> None:
        """Write a line of service output with prefix.

        Args:
            service_name: Name of the service that produced the output.
            pid: Process ID of the service.
            stream: Which output stream the line came from.
            line: The output line (without trailing newline).
        """
        prefix = f"[{service_name}:{pid}]"
        style = self._stderr_style if stream == "stderr" else self._stdout_style

        text = Text()
        _ = text.append(prefix, style=Style(color="blue", bold=True))
        _ = text.append(" ")
        _ = text.append(line, style=style)

        self._console.print(text)

    async def write_event(self, event: "ServiceEvent") -> None:
        """Write a service lifecycle event with special formatting.

        Args:
            event: The lifecycle event to record.
        """
        style = self._status_styles.get(event.status, Style())

        text = Text()
        _ = text.append(f"[{event.service_name}]", style=Style(color="blue", bold=True))
        _ = text.append(" ")

        if event.event_type == ServiceEventType.TRANSITION:
            if event.previous_status is not None:
                _ = text.append(
                    f"{event.previous_status.value.upper()} -> ", style=Style(dim=True)
                )
            _ = text.append(event.status.value.upper(), style=style)
        else:
            _ = text.append(event.event_type.value.upper(), style=style)

        if event.pid is not None:
            _ = text.append(f" (pid={event.pid})", style=Style(dim=True))

        if event.exit_code is not None:
            _ = text.append(f" exit_code={event.exit_code}", style=Style(dim=True))

        if event.message:
            _ = text.append(f" - {event.message}", style=style)

        self._console.print(text)
