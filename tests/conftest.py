"""Shared test fixtures for boxinit tests."""

import sys
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

import pytest
from rich.console import Console

from boxinit.supervisor import (
    RestartPolicy,
    ServiceEvent,
    ServiceEventType,
    ServiceSpec,
    ServiceStatus,
)

if TYPE_CHECKING:
    from pathlib import Path


@dataclass(frozen=True, slots=True)
class OutputLine:
    """One line relayed from a service."""

    service_name: str
    pid: int
    stream: Literal["stdout", "stderr"]
    line: str


@dataclass(slots=True)
class RecordingSink:
    """Output sink that keeps everything it receives."""

    lines: list[OutputLine] = field(default_factory=list)
    events: list[ServiceEvent] = field(default_factory=list)
    event_times: list[float] = field(default_factory=list)

    async def write_line(
        self,
        service_name: str,
        pid: int,
        stream: Literal["stdout", "stderr"],
        line: str,
    ) -> None:
        self.lines.append(OutputLine(service_name, pid, stream, line))

    async def write_event(self, event: ServiceEvent) -> None:
        self.events.append(event)
        self.event_times.append(time.monotonic())

    def transitions(self, service_name: str) -> list[ServiceStatus]:
        """Statuses entered by a service, in order."""
        return [
            event.status
            for event in self.events
            if event.service_name == service_name
            and event.event_type == ServiceEventType.TRANSITION
        ]

    def index_of(self, service_name: str, status: ServiceStatus) -> int:
        """Position of the first transition of a service into ``status``."""
        for index, event in enumerate(self.events):
            if (
                event.service_name == service_name
                and event.event_type == ServiceEventType.TRANSITION
                and event.status == status
            ):
                return index
        msg = f"{service_name} never entered {status}"
        raise AssertionError(msg)

    def of_type(self, event_type: ServiceEventType) -> list[ServiceEvent]:
        return [event for event in self.events if event.event_type == event_type]


def python_service(  # noqa: PLR0913
    name: str,
    code: str,
    *,
    depends_on: frozenset[str] = frozenset(),
    restart: RestartPolicy | None = None,
    ready_pattern: str | None = None,
    startup_timeout: float = 5.0,
    cwd: "Path | None" = None,
    env: dict[str, str] | None = None,
) -> ServiceSpec:
    """Build a spec running ``code`` with the current interpreter."""
    return ServiceSpec(
        name=name,
        command=(sys.executable, "-u", "-c", code),
        cwd=cwd,
        env=env or {},
        depends_on=depends_on,
        restart=restart or RestartPolicy(),
        ready_pattern=ready_pattern,
        startup_timeout=startup_timeout,
    )


# Restart quickly and deterministically in tests
FAST_RESTART = RestartPolicy(max_restarts=2, backoff_base=0.01, jitter=0.0)

SLEEP_FOREVER = "import time; time.sleep(60)"


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def console() -> Console:
    return Console(
        width=200,
        force_terminal=True,
        highlight=False,
        color_system=None,
        legacy_windows=False,
    )
