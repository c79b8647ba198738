"""Sequential, fail-fast runner for bootstrap steps."""

from typing import TYPE_CHECKING, final

from boxinit.exceptions import BootstrapError
from boxinit.utils import create_logger

from ._models import BootstrapReport

if TYPE_CHECKING:
    from collections.abc import Iterable

    from structlog.typing import FilteringBoundLogger

    from ._models import BootstrapStep


@final
class Bootstrapper:
    """Runs bootstrap steps once, in order, before any service starts.

    Each step's predicate is evaluated first and a satisfied step is
    skipped, so running the bootstrapper again on an initialized
    filesystem performs no actions. The first failing step aborts the run.
    """

    __slots__ = ("_logger",)

    def __init__(self, logger: "FilteringBoundLogger | None" = None) -> None:
        """Initialize the bootstrapper.

        Args:
            logger: Logger for step records.
        """
        self._logger: FilteringBoundLogger = logger or create_logger(
            component="bootstrap"
        )

    def run(
        self,
        steps: "Iterable[BootstrapStep]",
        *,
        dry_run: bool = False,
    ) -> BootstrapReport:
        """Run the steps strictly in order.

        Args:
            steps: Steps to run.
            dry_run: Only evaluate predicates and report the steps that
                would run.

        Returns:
            Which steps ran, were skipped, or would run.

        Raises:
            BootstrapError: On the first step whose predicate or action
                fails.
        """
        executed: list[str] = []
        skipped: list[str] = []
        pending: list[str] = []

        for step in steps:
            log = self._logger.bind(step=step.name, description=step.description)
            try:
                satisfied = step.check()
            except BootstrapError:
                raise
            except Exception as e:
                raise self._failure(step, "check", e) from e

            if satisfied:
                log.debug("bootstrap.step_skipped")
                skipped.append(step.name)
                continue

            if dry_run:
                log.info("bootstrap.step_pending")
                pending.append(step.name)
                continue

            log.info("bootstrap.step_running")
            try:
                step.action()
            except BootstrapError as e:
                log.error("bootstrap.step_failed", error=str(e))
                raise
            except Exception as e:
                raise self._failure(step, "action", e) from e
            executed.append(step.name)

        report = BootstrapReport(
            executed=tuple(executed),
            skipped=tuple(skipped),
            pending=tuple(pending),
        )
        self._logger.info(
            "bootstrap.completed",
            executed=len(report.executed),
            skipped=len(report.skipped),
            pending=len(report.pending),
            dry_run=dry_run,
        )
        return report

    def _failure(
        self,
        step: "BootstrapStep",
        phase: str,
        cause: Exception,
    ) -> BootstrapError:
        msg = f"Bootstrap step '{step.name}' failed during {phase}: {cause}"
        self._logger.error(
            "bootstrap.step_failed",
            step=step.name,
            phase=phase,
            error=str(cause),
        )
        return BootstrapError(msg, step_name=step.name, cause=cause)
