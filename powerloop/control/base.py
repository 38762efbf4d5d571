from __future__ import annotations
from typing import Protocol


class Compensator(Protocol):
    """
    Protocol for per-tick compensators (2p2z, 3p3z, PI, PID).
    """

    def reset(self) -> None:
        """Clear the recurrence history."""
        ...

    def update(self, error: float) -> float:
        """
        Advance one tick with an already formed error sample.

        Returns:
            control output, clamped to the configured range.
        """
        ...

    def calculate(self, reference: float, feedback: float) -> float:
        """Advance one tick with error = reference - feedback."""
        ...

    @property
    def output(self) -> float:
        """Most recent (clamped) output."""
        ...

    @property
    def error(self) -> float:
        """Most recent error sample."""
        ...
