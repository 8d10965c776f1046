"""Polling policy shared by both generation kinds."""

import math
from dataclasses import dataclass

from axishair.core.config import Settings


@dataclass(frozen=True)
class PollingPolicy:
    """How often and for how long to re-read a consultation while a job runs.

    The budget is expressed as wall-clock seconds and converted to a number of
    reads; one extra final read always follows an exhausted budget.
    """

    interval_seconds: float = 3.0
    timeout_seconds: float = 60.0

    def __post_init__(self) -> None:
        if self.interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        if self.timeout_seconds < self.interval_seconds:
            raise ValueError("timeout_seconds must be at least one interval")

    @property
    def max_attempts(self) -> int:
        """Number of regular polls before the final check (20 with the defaults)."""
        return max(1, math.ceil(self.timeout_seconds / self.interval_seconds))

    @classmethod
    def from_settings(cls, settings: Settings) -> "PollingPolicy":
        return cls(
            interval_seconds=settings.generation_poll_interval_seconds,
            timeout_seconds=settings.generation_timeout_seconds,
        )
