"""Auto-promotion countdown.

A countdown ends exactly once: either it is cancelled or it expires, never
both. Ticks after the end are ignored, so a cancelled countdown can never
fire.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class CountdownState(Enum):
    RUNNING = "running"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


@dataclass(slots=True)
class Countdown:
    """Discrete countdown measured in ticks."""

    total: int
    remaining: int = -1
    state: CountdownState = CountdownState.RUNNING

    def __post_init__(self) -> None:
        if self.total < 1:
            raise ValueError(f"countdown needs at least one tick, got {self.total}")
        if self.remaining < 0:
            self.remaining = self.total

    @property
    def running(self) -> bool:
        return self.state is CountdownState.RUNNING

    def tick(self) -> bool:
        """Advance one tick. Returns True only on the tick that expires it."""
        if not self.running:
            return False
        self.remaining -= 1
        if self.remaining <= 0:
            self.remaining = 0
            self.state = CountdownState.EXPIRED
            return True
        return False

    def cancel(self) -> bool:
        """Stop the countdown. Returns False if it had already ended."""
        if not self.running:
            return False
        self.state = CountdownState.CANCELLED
        return True
