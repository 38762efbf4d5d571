"""
Two-pole/two-zero and three-pole/three-zero direct-form compensators.

Difference equation (order N = 2 or 3):

    u(k) = b0*e(k) + b1*e(k-1) + ... + bN*e(k-N) + a1*u(k-1) + ... + aN*u(k-N)

The ``a`` coefficients are added, i.e. they are the negated denominator
coefficients of H(z) = (b0 + b1 z^-1 + ...) / (1 - a1 z^-1 - ...).
"""

from __future__ import annotations

import logging
import math
from collections import deque
from dataclasses import dataclass
from typing import ClassVar, Deque, Sequence, Tuple

logger = logging.getLogger(__name__)


def _check_coefficients(names: Sequence[str], values: Sequence[float]) -> None:
    for name, value in zip(names, values):
        if not math.isfinite(float(value)):
            raise ValueError(f"{name} must be finite, got {value!r}")


def _check_range(u_min: float, u_max: float) -> None:
    if math.isnan(u_min) or math.isnan(u_max):
        raise ValueError("u_min/u_max must not be NaN")
    if u_min > u_max:
        raise ValueError(f"u_min ({u_min}) must not exceed u_max ({u_max})")


@dataclass(frozen=True)
class Coefficients2p2z:
    """Immutable 2p2z coefficient set with output saturation range."""

    b0: float
    b1: float
    b2: float
    a1: float
    a2: float
    u_min: float = -math.inf
    u_max: float = math.inf

    ORDER: ClassVar[int] = 2

    def __post_init__(self) -> None:
        _check_coefficients(
            ("b0", "b1", "b2", "a1", "a2"), (self.b0, self.b1, self.b2, self.a1, self.a2)
        )
        _check_range(self.u_min, self.u_max)

    @classmethod
    def from_sequence(
        cls, values: Sequence[float], u_min: float = -math.inf, u_max: float = math.inf
    ) -> "Coefficients2p2z":
        """Build from ``(b0, b1, b2, a1, a2)``."""
        if len(values) != 5:
            raise ValueError(f"2p2z needs 5 coefficients, got {len(values)}")
        return cls(*(float(v) for v in values), u_min=u_min, u_max=u_max)

    @classmethod
    def from_pi(
        cls, kp: float, ki: float, dt: float, u_min: float = -math.inf, u_max: float = math.inf
    ) -> "Coefficients2p2z":
        """Tustin-discretised parallel PI (kp + ki/s)."""
        if not math.isfinite(dt) or dt <= 0.0:
            raise ValueError(f"dt must be positive and finite, got {dt!r}")
        half = 0.5 * ki * dt
        return cls(b0=kp + half, b1=-kp + half, b2=0.0, a1=1.0, a2=0.0, u_min=u_min, u_max=u_max)

    @property
    def b(self) -> Tuple[float, float, float]:
        return (self.b0, self.b1, self.b2)

    @property
    def a(self) -> Tuple[float, float]:
        return (self.a1, self.a2)

    @property
    def dc_gain(self) -> float:
        return _dc_gain(self.b, self.a)


@dataclass(frozen=True)
class Coefficients3p3z:
    """Immutable 3p3z coefficient set with output saturation range."""

    b0: float
    b1: float
    b2: float
    b3: float
    a1: float
    a2: float
    a3: float
    u_min: float = -math.inf
    u_max: float = math.inf

    ORDER: ClassVar[int] = 3

    def __post_init__(self) -> None:
        _check_coefficients(
            ("b0", "b1", "b2", "b3", "a1", "a2", "a3"),
            (self.b0, self.b1, self.b2, self.b3, self.a1, self.a2, self.a3),
        )
        _check_range(self.u_min, self.u_max)

    @classmethod
    def from_sequence(
        cls, values: Sequence[float], u_min: float = -math.inf, u_max: float = math.inf
    ) -> "Coefficients3p3z":
        """Build from ``(b0, b1, b2, b3, a1, a2, a3)``."""
        if len(values) != 7:
            raise ValueError(f"3p3z needs 7 coefficients, got {len(values)}")
        return cls(*(float(v) for v in values), u_min=u_min, u_max=u_max)

    @property
    def b(self) -> Tuple[float, float, float, float]:
        return (self.b0, self.b1, self.b2, self.b3)

    @property
    def a(self) -> Tuple[float, float, float]:
        return (self.a1, self.a2, self.a3)

    @property
    def dc_gain(self) -> float:
        return _dc_gain(self.b, self.a)


def _dc_gain(b: Sequence[float], a: Sequence[float]) -> float:
    den = 1.0 - sum(a)
    num = sum(b)
    if den == 0.0:
        return math.copysign(math.inf, num) if num != 0.0 else math.nan
    return num / den


class _History:
    """Fixed-length history, newest sample first, zero-initialised."""

    def __init__(self, length: int) -> None:
        if length <= 0:
            raise ValueError("history length must be positive")
        self._length = length
        self._queue: Deque[float] = deque([0.0] * length, maxlen=length)

    def push(self, value: float) -> None:
        self._queue.appendleft(value)

    def clear(self) -> None:
        self._queue.extend([0.0] * self._length)

    def __getitem__(self, idx: int) -> float:
        return self._queue[idx]

    def values(self) -> Tuple[float, ...]:
        return tuple(self._queue)


class _DirectFormCompensator:
    coefficients_type: ClassVar[type]

    def __init__(self, coeffs) -> None:
        if not isinstance(coeffs, self.coefficients_type):
            raise TypeError(
                f"{type(self).__name__} needs {self.coefficients_type.__name__}, "
                f"got {type(coeffs).__name__}"
            )
        self._coeffs = coeffs
        self._order = coeffs.ORDER
        self._b = coeffs.b
        self._a = coeffs.a
        self._errors = _History(self._order)
        self._outputs = _History(self._order)
        self._error = 0.0
        self._out = 0.0
        logger.debug("%s created: b=%s a=%s range=[%s, %s]",
                     type(self).__name__, self._b, self._a, coeffs.u_min, coeffs.u_max)

    @property
    def coefficients(self):
        return self._coeffs

    @property
    def order(self) -> int:
        return self._order

    @property
    def output(self) -> float:
        return self._out

    @property
    def error(self) -> float:
        return self._error

    @property
    def error_history(self) -> Tuple[float, ...]:
        """Past errors e(k-1)..e(k-N)."""
        return self._errors.values()

    @property
    def output_history(self) -> Tuple[float, ...]:
        """Past clamped outputs u(k-1)..u(k-N)."""
        return self._outputs.values()

    def reset(self) -> None:
        self._errors.clear()
        self._outputs.clear()
        self._error = 0.0
        self._out = 0.0

    def update(self, error: float) -> float:
        b = self._b
        a = self._a
        out = b[0] * error
        for i in range(self._order):
            out += b[i + 1] * self._errors[i] + a[i] * self._outputs[i]

        # в историю попадает уже ограниченное значение
        out = min(max(out, self._coeffs.u_min), self._coeffs.u_max)

        self._errors.push(error)
        self._outputs.push(out)
        self._error = error
        self._out = out
        return out

    def calculate(self, reference: float, feedback: float) -> float:
        return self.update(reference - feedback)


class Controller2p2z(_DirectFormCompensator):
    """Two-pole, two-zero compensator."""

    coefficients_type = Coefficients2p2z


class Controller3p3z(_DirectFormCompensator):
    """Three-pole, three-zero compensator."""

    coefficients_type = Coefficients3p3z


__all__ = [
    "Coefficients2p2z",
    "Coefficients3p3z",
    "Controller2p2z",
    "Controller3p3z",
]
