"""Data models for the bootstrap system."""

from collections.abc import Callable
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class BootstrapStep:
    """One idempotent setup step.

    The step's ``check`` predicate inspects the filesystem; when it
    returns True the step is already satisfied and ``action`` is skipped.

    Attributes:
        name: Unique, human-readable step name.
        check: Predicate returning True when no action is needed.
        action: Mutation that brings the filesystem into the wanted state.
        description: Short summary used in logs and plans.
    """

    name: str
    check: Callable[[], bool]
    action: Callable[[], None]
    description: str = ""


@dataclass(frozen=True, slots=True)
class BootstrapReport:
    """Outcome of a bootstrap run.

    Attributes:
        executed: Names of steps whose action ran.
        skipped: Names of steps whose predicate was already satisfied.
        pending: Names of steps that would run (dry runs only).
    """

    executed: tuple[str, ...] = ()
    skipped: tuple[str, ...] = ()
    pending: tuple[str, ...] = ()

    @property
    def changed(self) -> bool:
        """Whether any action ran."""
        return bool(self.executed)
