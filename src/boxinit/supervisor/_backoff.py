"""Backoff calculators for service restarts.

Both calculators cap the delay at ``max_delay`` and apply optional
jitter so that services failing together do not restart in lockstep.
"""

import random
from dataclasses import dataclass
from typing import Protocol


class Backoff(Protocol):
    """Protocol for restart delay calculators."""

    def delay(self, attempt: int) -> float:
        """Return the delay in seconds before restart ``attempt`` (0-indexed)."""
        ...


def _apply_jitter(delay: float, jitter: float) -> float:
    if jitter <= 0:
        return delay
    jitter_range = delay * jitter
    jitter_offset = random.uniform(-jitter_range / 2, jitter_range / 2)  # noqa: S311
    return max(0.0, delay + jitter_offset)


@dataclass(frozen=True, slots=True)
class ExponentialBackoff:
    """Exponential backoff calculator with jitter.

    The delay formula is:
        delay = min(base * (multiplier ^ attempt), max_delay)
        delay = delay * (1 - jitter/2 + random() * jitter)

    Attributes:
        base: Base delay in seconds for first retry.
        max_delay: Maximum delay in seconds.
        multiplier: Factor to multiply delay for each attempt.
        jitter: Fraction of delay to randomize (0.0-1.0).
    """

    base: float = 1.0
    max_delay: float = 60.0
    multiplier: float = 2.0
    jitter: float = 0.1

    def delay(self, attempt: int) -> float:
        """Calculate the delay for a given attempt number.

        Args:
            attempt: The attempt number (0-indexed, where 0 is the first retry).

        Returns:
            The delay in seconds before the next retry attempt.
        """
        # Exponent grows without bound; cap before overflow
        try:
            exponential_delay = self.base * (self.multiplier**attempt)
        except OverflowError:
            exponential_delay = self.max_delay

        capped_delay = min(exponential_delay, self.max_delay)
        return _apply_jitter(capped_delay, self.jitter)


@dataclass(frozen=True, slots=True)
class LinearBackoff:
    """Linear backoff calculator with jitter.

    The delay formula is:
        delay = min(base * (attempt + 1), max_delay)

    Attributes:
        base: Delay increment in seconds per attempt.
        max_delay: Maximum delay in seconds.
        jitter: Fraction of delay to randomize (0.0-1.0).
    """

    base: float = 1.0
    max_delay: float = 60.0
    jitter: float = 0.1

    def delay(self, attempt: int) -> float:
        """Calculate the delay for a given attempt number.

        Args:
            attempt: The attempt number (0-indexed, where 0 is the first retry).

        Returns:
            The delay in seconds before the next retry attempt.
        """
        capped_delay = min(self.base * (attempt + 1), self.max_delay)
        return _apply_jitter(capped_delay, self.jitter)
