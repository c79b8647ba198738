"""boxinit exceptions."""

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pathlib import Path


class BoxinitError(Exception):
    """Base exception for boxinit errors."""


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigError(BoxinitError):
    """Base exception for configuration errors."""


class ConfigLoadError(ConfigError):
    """Raised when configuration cannot be loaded or parsed."""

    def __init__(
        self,
        message: str,
        *,
        path: "Path | None" = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        """Initialize with error message and optional location context."""
        super().__init__(message)
        self.path: Path | None = path
        self.line: int | None = line
        self.column: int | None = column


class ConfigValidationError(ConfigError):
    """Raised when configuration fails validation."""

    def __init__(
        self,
        message: str,
        *,
        key: str,
        value: Any,  # pyright: ignore[reportAny,reportExplicitAny]
        expected: str,
    ) -> None:
        """Initialize with error message and validation context."""
        super().__init__(message)
        self.key: str = key
        self.value: Any = value  # pyright: ignore[reportExplicitAny]
        self.expected: str = expected


class DependencyError(ConfigError):
    """Raised when the service dependency graph is invalid.

    Covers dependencies on unknown services and dependency cycles.
    """

    def __init__(
        self,
        message: str,
        *,
        service_name: str,
        cycle: tuple[str, ...] = (),
    ) -> None:
        """Initialize with error message and the offending service."""
        super().__init__(message)
        self.service_name: str = service_name
        self.cycle: tuple[str, ...] = cycle


# =============================================================================
# Bootstrap Exceptions
# =============================================================================


class BootstrapError(BoxinitError):
    """Raised when a bootstrap step fails.

    Bootstrap failures are fatal: the container must not proceed to
    supervision.
    """

    def __init__(
        self,
        message: str,
        *,
        step_name: str,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and failing step context."""
        super().__init__(message)
        self.step_name: str = step_name
        self.cause: Exception | None = cause


# =============================================================================
# Service Exceptions
# =============================================================================


class ServiceError(BoxinitError):
    """Base exception for supervised service errors."""

    def __init__(self, message: str, *, service_name: str) -> None:
        """Initialize with error message and service name."""
        super().__init__(message)
        self.service_name: str = service_name


class ServiceNotFoundError(ServiceError):
    """Raised when a service name is not known to the supervisor."""


class SpawnError(ServiceError):
    """Raised when a service fails to start.

    Covers exec failures as well as processes that exit or time out
    before signalling readiness.
    """

    def __init__(
        self,
        message: str,
        *,
        service_name: str,
        cause: Exception | None = None,
        exit_code: int | None = None,
    ) -> None:
        """Initialize with error message and start failure context."""
        super().__init__(message, service_name=service_name)
        self.cause: Exception | None = cause
        self.exit_code: int | None = exit_code


class RuntimeExit(ServiceError):  # noqa: N818
    """A running service terminated while no shutdown was requested."""

    def __init__(self, message: str, *, service_name: str, exit_code: int) -> None:
        """Initialize with error message and the process exit code."""
        super().__init__(message, service_name=service_name)
        self.exit_code: int = exit_code


class ShutdownTimeout(BoxinitError):  # noqa: N818
    """Graceful shutdown exceeded the grace period.

    Attributes:
        services: Names of services that had to be force-terminated.
    """

    def __init__(self, message: str, *, services: tuple[str, ...]) -> None:
        """Initialize with error message and straggler names."""
        super().__init__(message)
        self.services: tuple[str, ...] = services
