"""Retry delay policy for resend attempts."""

from dataclasses import dataclass
from typing import Optional


class Backoff:
    """
    Delay generator for consecutive failures.

    With multiplier 1.0 (the default) every delay equals min_seconds, i.e. a
    fixed retry delay. Larger multipliers grow the delay geometrically up to
    max_seconds.
    """

    def __init__(
        self,
        min_seconds: float = 1.0,
        max_seconds: float = 60.0,
        multiplier: float = 1.0,
    ):
        self.min_seconds = min_seconds
        self.max_seconds = max(max_seconds, min_seconds)
        self.multiplier = multiplier
        self._current = min_seconds

    def reset(self) -> None:
        """Reset backoff to minimum."""
        self._current = self.min_seconds

    def next(self) -> float:
        """Get next delay and advance for next time."""
        current = self._current
        self._current = min(self._current * self.multiplier, self.max_seconds)
        return current


@dataclass
class RetryPolicy:
    """
    How the recovery loop reacts to a failed resend attempt.

    max_retries=None retries forever: a dead server stalls recovery until the
    process is stopped. Setting a bound turns that stall into an error.
    """
    delay_seconds: float = 1.0
    multiplier: float = 1.0
    max_delay_seconds: float = 60.0
    max_retries: Optional[int] = None

    def new_backoff(self) -> Backoff:
        return Backoff(
            min_seconds=self.delay_seconds,
            max_seconds=self.max_delay_seconds,
            multiplier=self.multiplier,
        )

    def exhausted(self, failures: int) -> bool:
        """True once failures exceed the retry bound."""
        return self.max_retries is not None and failures > self.max_retries
