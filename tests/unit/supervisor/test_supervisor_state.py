from io import StringIO

import pytest

from boxinit.exceptions import DependencyError, ServiceNotFoundError
from boxinit.exit_codes import ExitCode
from boxinit.supervisor import ServiceSpec, ServiceStatus, Supervisor
from boxinit.utils import create_logger
from tests.conftest import RecordingSink


def make_supervisor(*specs: ServiceSpec) -> Supervisor:
    return Supervisor(
        specs,
        RecordingSink(),
        logger=create_logger(file=StringIO()),
        handle_signals=False,
    )


class TestSupervisorState:
    def test_states_follow_start_order(self) -> None:
        supervisor = make_supervisor(
            ServiceSpec(name="nginx", command=("nginx",), depends_on=frozenset({"php"})),
            ServiceSpec(name="php", command=("php-fpm",)),
        )

        status = supervisor.get_status()
        assert list(status) == ["php", "nginx"]
        assert all(entry["status"] == "pending" for entry in status.values())

    def test_get_state_unknown(self) -> None:
        supervisor = make_supervisor()

        with pytest.raises(ServiceNotFoundError) as exc_info:
            _ = supervisor.get_state("missing")

        assert exc_info.value.service_name == "missing"

    def test_invalid_graph_is_rejected(self) -> None:
        with pytest.raises(DependencyError):
            _ = make_supervisor(
                ServiceSpec(name="a", command=("a",), depends_on=frozenset({"b"}))
            )

    def test_exit_code_failed_wins_over_timeout(self) -> None:
        supervisor = make_supervisor(ServiceSpec(name="a", command=("a",)))

        assert supervisor.exit_code == ExitCode.SUCCESS

        supervisor._grace_exceeded = True
        assert supervisor.exit_code == ExitCode.SHUTDOWN_TIMEOUT

        supervisor.get_state("a").status = ServiceStatus.FAILED
        assert supervisor.exit_code == ExitCode.SERVICE_FAILED

    def test_get_status(self) -> None:
        supervisor = make_supervisor(ServiceSpec(name="a", command=("a",)))

        status = supervisor.get_status()

        assert status == {
            "a": {
                "status": "pending",
                "pid": None,
                "restart_count": 0,
                "start_count": 0,
                "exit_code": None,
                "started_at": None,
            }
        }

    @pytest.mark.anyio
    async def test_shutdown_requires_running_supervisor(self) -> None:
        supervisor = make_supervisor()

        with pytest.raises(RuntimeError, match="not running"):
            await supervisor.shutdown()

    @pytest.mark.anyio
    async def test_run_without_services_finishes_immediately(self) -> None:
        supervisor = make_supervisor()

        assert await supervisor.run() == ExitCode.SUCCESS
