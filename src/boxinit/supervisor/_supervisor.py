"""Main supervisor coordinator for managing multiple services.

This module provides the Supervisor class: a single control loop that
owns every ServiceState and drives one ServiceProcess per start attempt.
Process tasks, restart timers, the grace timer and the signal relay run
in an anyio task group and only post messages to the loop's inbox; the
loop blocks on that inbox and applies each message in turn.
"""

import math
import shlex
import signal
import time
from typing import TYPE_CHECKING, final

import anyio
import anyio.abc
import anyio.to_thread
from anyio.streams.memory import MemoryObjectSendStream

from boxinit.exceptions import (
    ConfigError,
    RuntimeExit,
    ServiceNotFoundError,
    ShutdownTimeout,
    SpawnError,
)
from boxinit.exit_codes import ExitCode
from boxinit.utils import create_logger, get_timestamp

from ._events import (
    ControlMessage,
    GraceExpired,
    ProcessExited,
    ProcessStarted,
    ReloadRequested,
    RestartDue,
    ShutdownRequested,
    SpawnFailed,
)
from ._graph import resolve_start_order
from ._models import (
    RestartMode,
    ServiceEvent,
    ServiceEventType,
    ServiceSpec,
    ServiceState,
    ServiceStatus,
)
from ._output import StructuredOutputSink
from ._service import ServiceProcess

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from structlog.typing import FilteringBoundLogger

    from ._backoff import Backoff
    from ._protocol import OutputSink


@final
class Supervisor:
    """Supervises a set of services inside one container lifecycle.

    Services start once all of their dependencies are running, failed
    services are restarted per their RestartPolicy, and a termination
    signal stops every live service within the grace period.

    The supervisor exits when shutdown has completed, or on its own when
    nothing is alive and nothing can make progress.
    """

    __slots__ = (
        "_backoffs",
        "_grace_exceeded",
        "_grace_period",
        "_handle_signals",
        "_inbox",
        "_logger",
        "_order",
        "_output_sink",
        "_processes",
        "_reload_source",
        "_shutdown_reason",
        "_states",
        "_stop_on_fatal",
        "_stopping",
        "_task_group",
    )

    def __init__(  # noqa: PLR0913
        self,
        specs: "Iterable[ServiceSpec]",
        output_sink: "OutputSink | None" = None,
        *,
        logger: "FilteringBoundLogger | None" = None,
        grace_period: float = 10.0,
        stop_on_fatal: bool = True,
        handle_signals: bool = True,
        reload_source: "Callable[[], Iterable[ServiceSpec]] | None" = None,
    ) -> None:
        """Initialize the supervisor.

        Args:
            specs: Declarations of the services to supervise.
            output_sink: Sink for service output and lifecycle events.
                Uses a StructuredOutputSink on ``logger`` if None.
            logger: Logger for supervisor-level records.
            grace_period: Seconds between the graceful stop request and
                forced termination during shutdown.
            stop_on_fatal: Shut everything down once a service fails
                permanently.
            handle_signals: Install SIGTERM/SIGINT/SIGHUP handlers while
                running.
            reload_source: Callable returning fresh service declarations,
                invoked on SIGHUP.

        Raises:
            DependencyError: If the dependency graph is invalid.
        """
        spec_list = list(specs)
        self._order = resolve_start_order(spec_list)
        by_name = {spec.name: spec for spec in spec_list}

        self._logger: FilteringBoundLogger = logger or create_logger(
            component="supervisor"
        )
        self._output_sink: OutputSink = output_sink or StructuredOutputSink(
            self._logger
        )
        self._states: dict[str, ServiceState] = {
            name: ServiceState(spec=by_name[name]) for name in self._order
        }
        self._backoffs: dict[str, Backoff] = {
            name: by_name[name].restart.calculator() for name in self._order
        }
        self._processes: dict[str, ServiceProcess] = {}
        self._grace_period = grace_period
        self._stop_on_fatal = stop_on_fatal
        self._handle_signals = handle_signals
        self._reload_source = reload_source
        self._inbox: MemoryObjectSendStream[ControlMessage] | None = None
        self._task_group: anyio.abc.TaskGroup | None = None
        self._stopping = False
        self._shutdown_reason: str | None = None
        self._grace_exceeded = False

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def get_state(self, name: str) -> ServiceState:
        """Get the state record of a service by name.

        Raises:
            ServiceNotFoundError: If no service exists with that name.
        """
        state = self._states.get(name)
        if state is None:
            msg = f"Service '{name}' not found"
            raise ServiceNotFoundError(msg, service_name=name)
        return state

    @property
    def exit_code(self) -> ExitCode:
        """Return the exit code for the current service states.

        A permanently failed service takes precedence over an exceeded
        grace period.
        """
        if any(s.status == ServiceStatus.FAILED for s in self._states.values()):
            return ExitCode.SERVICE_FAILED
        if self._grace_exceeded:
            return ExitCode.SHUTDOWN_TIMEOUT
        return ExitCode.SUCCESS

    async def run(self) -> ExitCode:
        """Run the supervisor until shutdown completes.

        Returns:
            The exit code for the container.
        """
        send_stream, receive_stream = anyio.create_memory_object_stream[
            ControlMessage
        ](max_buffer_size=math.inf)

        async with send_stream, receive_stream:
            self._inbox = send_stream
            try:
                async with anyio.create_task_group() as tg:
                    self._task_group = tg
                    if self._handle_signals:
                        await tg.start(self._relay_signals)

                    self._logger.info("supervisor.started", services=list(self._order))
                    await self._start_ready_services()

                    while not self._is_settled():
                        message = await receive_stream.receive()
                        await self._dispatch(message)

                    # Only timers and the signal relay are left
                    tg.cancel_scope.cancel()
            finally:
                self._task_group = None
                self._inbox = None

        exit_code = self.exit_code
        self._logger.info(
            "supervisor.finished",
            exit_code=int(exit_code),
            reason=self._shutdown_reason,
            services=self.get_status(),
        )
        return exit_code

    async def shutdown(self, reason: str = "shutdown requested") -> None:
        """Trigger graceful shutdown of all services.

        Safe to call more than once; only the first request takes effect.
        """
        self._post(ShutdownRequested(reason=reason))

    async def reload(self, specs: "Iterable[ServiceSpec]") -> None:
        """Apply new service declarations without restarting live services.

        New services are started once their dependencies run. Changed
        declarations take effect at the next start of that service.
        Services missing from ``specs`` keep running.
        """
        self._post(ReloadRequested(specs=tuple(specs)))

    def get_status(self) -> dict[str, dict[str, object]]:
        """Get status summary for all services, in start order.

        Returns:
            Dictionary mapping service names to status dictionaries.
        """
        return {
            name: {
                "status": state.status.value,
                "pid": state.pid,
                "restart_count": state.restart_count,
                "start_count": state.start_count,
                "exit_code": state.exit_code,
                "started_at": state.started_at,
            }
            for name, state in self._states.items()
        }

    # -------------------------------------------------------------------------
    # Inbox producers
    # -------------------------------------------------------------------------

    def _post(self, message: ControlMessage) -> None:
        if self._inbox is None:
            msg = "Supervisor is not running"
            raise RuntimeError(msg)
        self._inbox.send_nowait(message)

    async def _relay_signals(
        self,
        *,
        task_status: anyio.abc.TaskStatus[None] = anyio.TASK_STATUS_IGNORED,
    ) -> None:
        with anyio.open_signal_receiver(
            signal.SIGINT, signal.SIGTERM, signal.SIGHUP
        ) as signals:
            task_status.started()
            async for signum in signals:
                if signum == signal.SIGHUP:
                    await self._reload_from_source()
                else:
                    name = signal.Signals(signum).name
                    self._post(ShutdownRequested(reason=f"received {name}"))

    async def _reload_from_source(self) -> None:
        if self._reload_source is None:
            self._logger.warning("supervisor.reload_unsupported")
            return

        source = self._reload_source
        try:
            specs = await anyio.to_thread.run_sync(lambda: tuple(source()))
        except ConfigError as e:
            self._logger.error("supervisor.reload_failed", error=str(e))
            return
        self._post(ReloadRequested(specs=specs))

    async def _drive(self, process: ServiceProcess) -> None:
        name = process.name
        try:
            pid = await process.spawn()
        except SpawnError as e:
            self._post(SpawnFailed(name=name, error=e))
            return

        async with anyio.create_task_group() as tg:
            tg.start_soon(process.pump_output)
            ready = await process.wait_ready()
            timed_out = not ready and process.returncode is None
            if ready:
                self._post(ProcessStarted(name=name, pid=pid))
            else:
                _ = process.kill()
            exit_code = await process.wait()

            if not await process.drain_output():
                # Descendants inherited the output pipes and outlived the leader
                killed = process.kill_leftovers()
                self._logger.warning(
                    "supervisor.output_held_open",
                    service=name,
                    pid=pid,
                    leftovers_killed=killed,
                )
                tg.cancel_scope.cancel()

        if ready:
            self._post(ProcessExited(name=name, exit_code=exit_code))
            return

        if timed_out:
            timeout = process.spec.startup_timeout
            msg = f"Service '{name}' was not ready within {timeout:g}s"
        else:
            msg = f"Service '{name}' exited with code {exit_code} before it was ready"
        error = SpawnError(msg, service_name=name, exit_code=exit_code)
        self._post(SpawnFailed(name=name, error=error))

    async def _restart_after(self, name: str, delay: float) -> None:
        await anyio.sleep(delay)
        self._post(RestartDue(name=name))

    async def _grace_timer(self, delay: float) -> None:
        await anyio.sleep(delay)
        self._post(GraceExpired())

    # -------------------------------------------------------------------------
    # Control loop
    # -------------------------------------------------------------------------

    def _is_settled(self) -> bool:
        for state in self._states.values():
            if state.status.is_alive:
                return False
            if state.status == ServiceStatus.BACKOFF and not self._stopping:
                return False
        return True

    async def _dispatch(self, message: ControlMessage) -> None:
        if isinstance(message, ProcessStarted):
            await self._on_process_started(message)
        elif isinstance(message, SpawnFailed):
            await self._on_spawn_failed(message)
        elif isinstance(message, ProcessExited):
            await self._on_process_exited(message)
        elif isinstance(message, RestartDue):
            await self._on_restart_due(message)
        elif isinstance(message, ShutdownRequested):
            await self._begin_shutdown(message.reason)
        elif isinstance(message, GraceExpired):
            await self._on_grace_expired()
        else:
            await self._on_reload(message)

    async def _on_process_started(self, message: ProcessStarted) -> None:
        state = self._states[message.name]
        state.pid = message.pid
        if state.status != ServiceStatus.STARTING:
            # Shutdown began while the process was starting
            return

        await self._transition(state, ServiceStatus.RUNNING)
        await self._start_ready_services()

    async def _on_spawn_failed(self, message: SpawnFailed) -> None:
        state = self._states[message.name]
        _ = self._processes.pop(message.name, None)
        state.pid = None
        state.exit_code = message.error.exit_code

        if self._stopping:
            await self._transition(
                state,
                ServiceStatus.EXITED,
                exit_code=state.exit_code,
                message="Stopped before it was ready",
            )
            return

        await self._handle_failure(state, str(message.error), was_running=False)

    async def _on_process_exited(self, message: ProcessExited) -> None:
        state = self._states[message.name]
        _ = self._processes.pop(message.name, None)
        state.pid = None
        state.exit_code = message.exit_code

        if self._stopping or state.status == ServiceStatus.STOPPING:
            await self._transition(
                state,
                ServiceStatus.EXITED,
                exit_code=message.exit_code,
                message="Stopped by request",
            )
            return

        if message.exit_code == 0 and state.spec.restart.mode != RestartMode.ALWAYS:
            await self._transition(
                state,
                ServiceStatus.EXITED,
                exit_code=0,
                message="Exited normally",
            )
            return

        error = RuntimeExit(
            f"Service '{state.name}' exited with code {message.exit_code}",
            service_name=state.name,
            exit_code=message.exit_code,
        )
        await self._handle_failure(state, str(error), was_running=True)

    async def _handle_failure(
        self,
        state: ServiceState,
        reason: str,
        *,
        was_running: bool,
    ) -> None:
        policy = state.spec.restart

        # A long enough run breaks the chain of consecutive failures
        if (
            was_running
            and state.started_monotonic is not None
            and time.monotonic() - state.started_monotonic >= policy.reset_after
        ):
            state.restart_count = 0

        if (
            policy.mode == RestartMode.NEVER
            or state.restart_count >= policy.max_restarts
        ):
            await self._transition(
                state,
                ServiceStatus.FAILED,
                exit_code=state.exit_code,
                message=f"{reason}; giving up after {state.restart_count} restarts",
            )
            if self._stop_on_fatal:
                await self._begin_shutdown(
                    f"service '{state.name}' failed permanently"
                )
            return

        state.restart_count += 1
        delay = self._backoffs[state.name].delay(state.restart_count - 1)
        await self._transition(
            state,
            ServiceStatus.BACKOFF,
            exit_code=state.exit_code,
            message=reason,
        )
        await self._emit(
            state,
            ServiceEventType.RESTART_SCHEDULED,
            message=(
                f"Restarting in {delay:.1f}s "
                f"(attempt {state.restart_count}/{policy.max_restarts})"
            ),
        )
        self._start_task(self._restart_after, state.name, delay)

    async def _on_restart_due(self, message: RestartDue) -> None:
        state = self._states[message.name]
        if self._stopping or state.status != ServiceStatus.BACKOFF:
            return

        if self._dependencies_running(state.spec):
            await self._launch(state)
        else:
            await self._transition(
                state,
                ServiceStatus.PENDING,
                message="Waiting for dependencies",
            )

    async def _begin_shutdown(self, reason: str) -> None:
        if self._stopping:
            self._logger.info("supervisor.shutdown_already_in_progress", reason=reason)
            return

        self._stopping = True
        self._shutdown_reason = reason
        self._logger.info(
            "supervisor.shutdown",
            reason=reason,
            grace_period=self._grace_period,
        )

        # Dependents first; every live service is asked before any is killed
        any_alive = False
        for name in reversed(self._order):
            state = self._states[name]
            if state.status.is_alive:
                any_alive = True
                await self._transition(state, ServiceStatus.STOPPING, message=reason)
                process = self._processes.get(name)
                if process is not None and process.terminate():
                    await self._emit(
                        state,
                        ServiceEventType.STOP_REQUESTED,
                        message=f"Sent {process.spec.stop_signal.name}",
                    )
            elif state.status == ServiceStatus.BACKOFF:
                await self._transition(
                    state,
                    ServiceStatus.EXITED,
                    exit_code=state.exit_code,
                    message="Restart cancelled by shutdown",
                )

        if any_alive:
            self._start_task(self._grace_timer, self._grace_period)

    async def _on_grace_expired(self) -> None:
        stragglers = tuple(
            name for name in self._order if self._states[name].status.is_alive
        )
        if not stragglers:
            return

        self._grace_exceeded = True
        error = ShutdownTimeout(
            f"Grace period of {self._grace_period:g}s exceeded",
            services=stragglers,
        )
        self._logger.error(
            "supervisor.grace_period_exceeded",
            error=str(error),
            services=list(error.services),
        )
        for name in stragglers:
            process = self._processes.get(name)
            if process is not None and process.kill():
                await self._emit(
                    self._states[name],
                    ServiceEventType.KILLED,
                    message="Sent SIGKILL",
                )

    async def _on_reload(self, message: ReloadRequested) -> None:
        if self._stopping:
            self._logger.info("supervisor.reload_ignored", reason="shutting down")
            return

        incoming = {spec.name: spec for spec in message.specs}
        removed = sorted(set(self._states) - set(incoming))
        merged = [
            incoming.get(name, state.spec) for name, state in self._states.items()
        ]
        merged.extend(spec for name, spec in incoming.items() if name not in self._states)

        try:
            order = resolve_start_order(merged)
        except ConfigError as e:
            self._logger.error("supervisor.reload_failed", error=str(e))
            return

        added: list[str] = []
        updated: list[str] = []
        for spec in merged:
            state = self._states.get(spec.name)
            if state is None:
                self._states[spec.name] = ServiceState(spec=spec)
                added.append(spec.name)
            elif state.spec != spec:
                state.spec = spec
                updated.append(spec.name)
            else:
                continue
            self._backoffs[spec.name] = spec.restart.calculator()
        self._order = order

        if removed:
            self._logger.warning(
                "supervisor.reload_kept_removed_services",
                services=removed,
            )
        self._logger.info("supervisor.reloaded", added=added, updated=updated)
        await self._start_ready_services()

    # -------------------------------------------------------------------------
    # State changes
    # -------------------------------------------------------------------------

    def _dependencies_running(self, spec: ServiceSpec) -> bool:
        return all(
            self._states[dependency].status == ServiceStatus.RUNNING
            for dependency in spec.depends_on
        )

    async def _start_ready_services(self) -> None:
        if self._stopping:
            return
        for name in self._order:
            state = self._states[name]
            if state.status == ServiceStatus.PENDING and self._dependencies_running(
                state.spec
            ):
                await self._launch(state)

    async def _launch(self, state: ServiceState) -> None:
        spec = state.spec
        process = ServiceProcess(spec, self._output_sink)
        self._processes[spec.name] = process

        state.start_count += 1
        state.started_at = get_timestamp()
        state.started_monotonic = None
        state.pid = None
        state.exit_code = None

        command = shlex.join(spec.command)
        if state.restart_count:
            message = (
                f"Restart attempt {state.restart_count}/"
                f"{spec.restart.max_restarts}: {command}"
            )
        else:
            message = f"Starting: {command}"
        await self._transition(state, ServiceStatus.STARTING, message=message)
        self._start_task(self._drive, process)

    async def _transition(
        self,
        state: ServiceState,
        status: ServiceStatus,
        *,
        exit_code: int | None = None,
        message: str | None = None,
    ) -> None:
        previous = state.status
        state.status = status
        if status == ServiceStatus.RUNNING:
            state.started_monotonic = time.monotonic()
        await self._emit(
            state,
            ServiceEventType.TRANSITION,
            previous_status=previous,
            exit_code=exit_code,
            message=message,
        )

    async def _emit(
        self,
        state: ServiceState,
        event_type: ServiceEventType,
        *,
        previous_status: ServiceStatus | None = None,
        exit_code: int | None = None,
        message: str | None = None,
    ) -> None:
        event = ServiceEvent(
            service_name=state.name,
            event_type=event_type,
            timestamp=get_timestamp(),
            status=state.status,
            previous_status=previous_status,
            pid=state.pid,
            exit_code=exit_code,
            restart_count=state.restart_count,
            message=message,
        )
        try:  # noqa: SIM105
            await self._output_sink.write_event(event)
        except Exception:  # noqa: BLE001, S110
            # Output sink errors should not crash the supervisor
            pass

    def _start_task(self, func: "Callable[..., object]", *args: object) -> None:
        if self._task_group is None:
            msg = "Supervisor is not running"
            raise RuntimeError(msg)
        self._task_group.start_soon(func, *args)  # pyright: ignore[reportArgumentType]
