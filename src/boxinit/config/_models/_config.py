"""Main configuration container."""

from typing import TYPE_CHECKING, Any, ClassVar, Self

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    ValidationError,
    model_validator,
)

from boxinit.config._defaults import BASE_CONFIG, DEFAULT_CONFIG
from boxinit.config._loader import deep_merge, parse_env_vars, read_toml_file
from boxinit.exceptions import ConfigValidationError
from boxinit.supervisor import resolve_start_order

from ._bootstrap import StepConfiguration  # noqa: TC001
from ._common import ConfigSource, ConfigSourceName
from ._logging import LoggingConfig
from ._services import ServiceConfiguration
from ._supervisor import SupervisorConfig

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

    from boxinit.bootstrap import BootstrapStep
    from boxinit.supervisor import ServiceSpec


def _to_config_error(
    error: ValidationError, *, source: str | None
) -> ConfigValidationError:
    """Convert a pydantic error into a ConfigValidationError.

    Only the first problem is carried as structured context; the message
    lists all of them.
    """
    details = error.errors(include_url=False)
    first = details[0]
    key = ".".join(str(part) for part in first["loc"]) or "<root>"
    lines = [
        f"  {'.'.join(str(part) for part in d['loc']) or '<root>'}: {d['msg']}"
        for d in details
    ]
    where = f" in {source}" if source else ""
    msg = f"Invalid configuration{where}:\n" + "\n".join(lines)
    return ConfigValidationError(
        msg,
        key=key,
        value=first.get("input"),
        expected=first["msg"],
    )


class Config(BaseModel):
    """Validated boxinit configuration.

    Use the factory methods ``from_dict()``, ``from_file()`` or ``load()``
    rather than the constructor so that built-in defaults are applied and
    validation errors are reported as ConfigValidationError.

    Attributes:
        logging: Logging section.
        supervisor: Supervisor section.
        bootstrap: Ordered bootstrap steps.
        services: Service tables keyed by service name.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    supervisor: SupervisorConfig = Field(default_factory=SupervisorConfig)
    bootstrap: list[StepConfiguration] = Field(default_factory=list)
    services: dict[str, ServiceConfiguration] = Field(default_factory=dict)

    _sources: tuple[ConfigSource, ...] = PrivateAttr(default=())

    @model_validator(mode="after")
    def _check_step_names(self) -> Self:
        seen: set[str] = set()
        for step in self.bootstrap:
            if step.name in seen:
                msg = f"bootstrap step '{step.name}' is declared more than once"
                raise ValueError(msg)
            seen.add(step.name)
        return self

    @property
    def sources(self) -> tuple[ConfigSource, ...]:
        """Sources that contributed to this configuration, highest precedence first."""
        return self._sources

    @classmethod
    def from_dict(
        cls,
        data: "Mapping[str, Any]",  # pyright: ignore[reportExplicitAny]
        *,
        source: str | None = None,
    ) -> Self:
        """Create configuration from a dictionary merged over the base defaults.

        Args:
            data: Dictionary of configuration values.
            source: Where the values came from, for error messages.

        Raises:
            ConfigValidationError: If a value is invalid.
            DependencyError: If the service dependency graph is invalid.
        """
        merged = deep_merge(BASE_CONFIG, dict(data))
        try:
            config = cls.model_validate(merged)
        except ValidationError as e:
            raise _to_config_error(e, source=source) from e
        _ = resolve_start_order(config.service_specs())
        return config

    @classmethod
    def from_file(cls, path: "Path") -> Self:
        """Load configuration from a single TOML file.

        Raises:
            FileNotFoundError: If the file does not exist.
            ConfigLoadError: If the file cannot be parsed.
            ConfigValidationError: If a value is invalid.
            DependencyError: If the service dependency graph is invalid.
        """
        data = read_toml_file(path)
        config = cls.from_dict(data, source=str(path))
        config._sources = (
            ConfigSource(
                name=ConfigSourceName.FILE, path=path, exists=True, values=data
            ),
        )
        return config

    @classmethod
    def load(
        cls,
        path: "Path | None" = None,
        *,
        environ: "Mapping[str, str] | None" = None,
    ) -> Self:
        """Load configuration from all sources.

        The configuration file (or the built-in defaults when none exists)
        is merged with ``BOXINIT_<SECTION>__<KEY>`` environment overrides.

        Args:
            path: Explicit configuration file (``--config``).
            environ: Environment to read. Defaults to os.environ.

        Raises:
            ConfigLoadError: If an explicitly named file is missing or
                cannot be parsed.
            ConfigValidationError: If a value is invalid.
            DependencyError: If the service dependency graph is invalid.
        """
        # Deferred import to avoid circular dependency
        from boxinit.config._discovery import find_config_file  # noqa: PLC0415

        config_path = find_config_file(path, environ=environ)
        env_values = parse_env_vars(
            environ=None if environ is None else dict(environ)
        )

        if config_path is not None:
            file_values = read_toml_file(config_path)
            base_source = ConfigSource(
                name=ConfigSourceName.FILE,
                path=config_path,
                exists=True,
                values=file_values,
            )
        else:
            file_values = DEFAULT_CONFIG
            base_source = ConfigSource(
                name=ConfigSourceName.DEFAULT,
                path=None,
                exists=True,
                values=DEFAULT_CONFIG,
            )

        env_source = ConfigSource(
            name=ConfigSourceName.ENV,
            path=None,
            exists=bool(env_values),
            values=env_values,
        )

        merged = deep_merge(file_values, env_values)
        config = cls.from_dict(
            merged,
            source=str(config_path) if config_path is not None else None,
        )
        config._sources = (env_source, base_source)
        return config

    def service_specs(self) -> "tuple[ServiceSpec, ...]":
        """Return the supervisor specs in declaration order."""
        return tuple(
            service.to_spec(name) for name, service in self.services.items()
        )

    def bootstrap_steps(self) -> "tuple[BootstrapStep, ...]":
        """Return the bootstrap steps in declaration order."""
        return tuple(step.to_step() for step in self.bootstrap)
