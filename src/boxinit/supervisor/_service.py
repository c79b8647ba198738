"""Process handle for a single supervised service.

This module provides the ServiceProcess class that spawns one OS process
for a ServiceSpec, relays its output, watches for its readiness marker
and delivers stop and kill signals. It holds no lifecycle state: the
supervisor control loop decides what a spawn, exit or timeout means.
"""

import os
import re
import signal
import subprocess
from typing import TYPE_CHECKING, Literal, final

import anyio
import anyio.abc
from anyio.streams.text import TextReceiveStream

from boxinit.exceptions import SpawnError

# Seconds to keep relaying output after the process exited
OUTPUT_DRAIN_TIMEOUT: float = 0.5

# Seconds between exit checks while descendants hold the output pipes
EXIT_POLL_INTERVAL: float = 0.1

if TYPE_CHECKING:
    from ._models import ServiceSpec
    from ._protocol import OutputSink


@final
class ServiceProcess:
    """One OS process spawned for a ServiceSpec.

    A new instance is created for every start attempt, so an instance
    never owns more than one process.

    Attributes:
        spec: The service declaration this process was spawned from.
    """

    __slots__ = (
        "_kill_requested",
        "_output_closed",
        "_output_sink",
        "_process",
        "_ready",
        "_ready_matched",
        "_ready_regex",
        "_stop_requested",
        "spec",
    )

    def __init__(self, spec: "ServiceSpec", output_sink: "OutputSink") -> None:
        """Initialize the process handle.

        Args:
            spec: Declaration of the service to spawn.
            output_sink: Sink for the process output lines.
        """
        self.spec = spec
        self._output_sink = output_sink
        self._process: anyio.abc.Process | None = None
        self._ready_regex = (
            re.compile(spec.ready_pattern) if spec.ready_pattern is not None else None
        )
        self._ready = anyio.Event()
        self._output_closed = anyio.Event()
        self._ready_matched = self._ready_regex is None
        self._stop_requested = False
        self._kill_requested = False

    @property
    def name(self) -> str:
        """Return the service name."""
        return self.spec.name

    @property
    def pid(self) -> int | None:
        """Return the process ID once spawned."""
        return self._process.pid if self._process is not None else None

    @property
    def returncode(self) -> int | None:
        """Return the exit code once the process has been reaped."""
        return self._process.returncode if self._process is not None else None

    async def spawn(self) -> int:
        """Spawn the process.

        A stop or kill requested before the spawn completed is delivered
        right after the process exists.

        Returns:
            The process ID.

        Raises:
            SpawnError: If the command cannot be executed.
        """
        env: dict[str, str] | None = None
        if self.spec.env:
            env = {**os.environ, **self.spec.env}

        try:
            self._process = await anyio.open_process(
                self.spec.command,
                cwd=self.spec.cwd,
                env=env,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                start_new_session=self.spec.stop_as_group,
            )
        except OSError as e:
            msg = f"Failed to start service '{self.name}': {e}"
            raise SpawnError(msg, service_name=self.name, cause=e) from e

        if self._kill_requested:
            self._send(signal.SIGKILL)
        elif self._stop_requested:
            self._send(self.spec.stop_signal)

        return self._process.pid

    async def pump_output(self) -> None:
        """Relay stdout and stderr to the output sink until both close.

        Readiness waiters are released once the streams are exhausted,
        whether or not the readiness marker was seen.
        """
        process = self._process
        if process is None:
            msg = f"Service '{self.name}' has not been spawned"
            raise SpawnError(msg, service_name=self.name)

        try:
            async with anyio.create_task_group() as tg:
                if process.stdout is not None:
                    tg.start_soon(self._pump_stream, process.stdout, "stdout")
                if process.stderr is not None:
                    tg.start_soon(self._pump_stream, process.stderr, "stderr")
        finally:
            self._ready.set()
            self._output_closed.set()

    async def _pump_stream(
        self,
        stream: anyio.abc.ByteReceiveStream,
        stream_name: Literal["stdout", "stderr"],
    ) -> None:
        buffer = ""
        try:
            async for chunk in TextReceiveStream(stream, errors="replace"):
                buffer += chunk
                *lines, buffer = buffer.split("\n")
                for line in lines:
                    await self._relay_line(stream_name, line.rstrip("\r"))
        except (anyio.ClosedResourceError, anyio.BrokenResourceError):
            # Stream closed, which is expected on process exit
            pass

        if buffer:
            await self._relay_line(stream_name, buffer.rstrip("\r"))

    async def _relay_line(
        self,
        stream_name: Literal["stdout", "stderr"],
        line: str,
    ) -> None:
        if (
            not self._ready_matched
            and self._ready_regex is not None
            and self._ready_regex.search(line)
        ):
            self._ready_matched = True
            self._ready.set()

        pid = self.pid
        if pid is None:
            return
        try:  # noqa: SIM105
            await self._output_sink.write_line(self.name, pid, stream_name, line)
        except Exception:  # noqa: BLE001, S110
            # Output sink errors should not crash streaming
            pass

    async def wait_ready(self) -> bool:
        """Wait for the readiness marker.

        Returns immediately for services without a readiness marker.

        Returns:
            True if the service is ready, False if the output closed or
            ``startup_timeout`` elapsed before the marker was seen.
        """
        if self._ready_matched:
            return True

        with anyio.move_on_after(self.spec.startup_timeout):
            await self._ready.wait()

        return self._ready_matched

    async def wait(self) -> int:
        """Wait for the process to exit and return its exit code.

        Returns as soon as the process itself has exited, even while
        descendants still hold its output pipes open. Processes killed by
        a signal report the negated signal number.
        """
        process = self._process
        if process is None:
            msg = f"Service '{self.name}' has not been spawned"
            raise SpawnError(msg, service_name=self.name)

        while process.returncode is None:
            with anyio.move_on_after(EXIT_POLL_INTERVAL):
                return await process.wait()
        return process.returncode

    async def drain_output(self, timeout: float = OUTPUT_DRAIN_TIMEOUT) -> bool:
        """Wait for the output streams to close after the process exited.

        Returns:
            True if both streams reached end of file within ``timeout``.
        """
        with anyio.move_on_after(timeout):
            await self._output_closed.wait()
        return self._output_closed.is_set()

    def kill_leftovers(self) -> bool:
        """SIGKILL whatever is left of the process group after the leader exited.

        Only services signalled as a group own a process group.

        Returns:
            True if any process was signalled.
        """
        if self._process is None or not self.spec.stop_as_group:
            return False
        return self._send(signal.SIGKILL)

    def terminate(self) -> bool:
        """Send the configured stop signal.

        Returns:
            True if a live process was signalled.
        """
        self._stop_requested = True
        if self._process is None or self._process.returncode is not None:
            return False
        return self._send(self.spec.stop_signal)

    def kill(self) -> bool:
        """Force-terminate the process with SIGKILL.

        Returns:
            True if a live process was signalled.
        """
        self._kill_requested = True
        if self._process is None or self._process.returncode is not None:
            return False
        return self._send(signal.SIGKILL)

    def _send(self, signum: signal.Signals) -> bool:
        if self._process is None:
            return False
        try:
            if self.spec.stop_as_group:
                # The child leads its own session, so its pid is the group id
                os.killpg(self._process.pid, signum)
            else:
                self._process.send_signal(signum)
        except ProcessLookupError:
            # Process already exited
            return False
        return True
