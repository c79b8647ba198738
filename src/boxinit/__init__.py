"""boxinit: a container init that bootstraps the filesystem and supervises services."""

from .exit_codes import ExitCode

__all__ = ["ExitCode"]
