"""Configuration models.

This module provides Pydantic models for boxinit configuration sections
and the main Config container class.
"""

from ._bootstrap import (
    CheckStepConfiguration,
    DirectoryStepConfiguration,
    FileStepConfiguration,
    ModeStepConfiguration,
    OwnershipStepConfiguration,
    StepConfiguration,
    parse_mode,
)
from ._common import ConfigSource, ConfigSourceName, LogFormat, LogLevel
from ._config import Config
from ._logging import LoggingConfig
from ._services import RestartConfiguration, ServiceConfiguration, parse_signal
from ._supervisor import SupervisorConfig

__all__ = [
    "CheckStepConfiguration",
    "Config",
    "ConfigSource",
    "ConfigSourceName",
    "DirectoryStepConfiguration",
    "FileStepConfiguration",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "ModeStepConfiguration",
    "OwnershipStepConfiguration",
    "RestartConfiguration",
    "ServiceConfiguration",
    "StepConfiguration",
    "SupervisorConfig",
    "parse_mode",
    "parse_signal",
]
