"""Process exit codes for boxinit."""

from enum import IntEnum


class ExitCode(IntEnum):
    """Exit codes of the boxinit entry process."""

    SUCCESS = 0
    """Every service stopped gracefully (or exited cleanly on its own)."""

    STARTUP_ERROR = 1
    """Bootstrap or configuration failed; no service was started."""

    SERVICE_FAILED = 2
    """A service exhausted its restart attempts."""

    SHUTDOWN_TIMEOUT = 3
    """A service had to be force-terminated after the grace period."""
