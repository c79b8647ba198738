"""Supervisor configuration model."""

from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field


class SupervisorConfig(BaseModel):
    """Supervisor configuration section.

    Attributes:
        grace_period: Seconds between the stop signal and force-killing
            services that are still alive.
        stop_on_fatal: Shut the container down once any service has
            permanently failed.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    grace_period: float = Field(
        default=10.0,
        gt=0,
        description="Seconds to wait for services to stop before killing them.",
    )
    stop_on_fatal: bool = Field(
        default=True,
        description="Stop all services when one fails permanently.",
    )
