"""Configuration loading for boxinit.

Configuration is read from a TOML file, merged over built-in defaults and
overridden by ``BOXINIT_<SECTION>__<KEY>`` environment variables.

Example:
    >>> from boxinit.config import Config
    >>> config = Config.load()
    >>> config.supervisor.grace_period
    10.0
"""

from ._defaults import BASE_CONFIG, DEFAULT_CONFIG
from ._discovery import CONFIG_ENV_VAR, DEFAULT_CONFIG_PATH, find_config_file
from ._loader import (
    deep_merge,
    parse_env_vars,
    parse_string_value,
    read_toml_file,
    set_nested_key,
)
from ._models import (
    CheckStepConfiguration,
    Config,
    ConfigSource,
    ConfigSourceName,
    DirectoryStepConfiguration,
    FileStepConfiguration,
    LogFormat,
    LoggingConfig,
    LogLevel,
    ModeStepConfiguration,
    OwnershipStepConfiguration,
    RestartConfiguration,
    ServiceConfiguration,
    StepConfiguration,
    SupervisorConfig,
    parse_mode,
    parse_signal,
)

__all__ = [
    "BASE_CONFIG",
    "CONFIG_ENV_VAR",
    "DEFAULT_CONFIG",
    "DEFAULT_CONFIG_PATH",
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
    "deep_merge",
    "find_config_file",
    "parse_env_vars",
    "parse_mode",
    "parse_signal",
    "parse_string_value",
    "read_toml_file",
    "set_nested_key",
]
