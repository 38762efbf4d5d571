from __future__ import annotations

import logging
import math

logger = logging.getLogger(__name__)


def _validate_gains(dt: float, u_min: float, u_max: float, **gains: float) -> None:
    for name, value in gains.items():
        if not math.isfinite(float(value)):
            raise ValueError(f"{name} must be finite, got {value!r}")
    if not math.isfinite(float(dt)) or dt <= 0.0:
        raise ValueError(f"dt must be positive and finite, got {dt!r}")
    if math.isnan(u_min) or math.isnan(u_max):
        raise ValueError("u_min/u_max must not be NaN")
    if u_min > u_max:
        raise ValueError(f"u_min ({u_min}) must not exceed u_max ({u_max})")


def _integrate(integrator: float, increment: float, u_unsat: float, u_min: float, u_max: float) -> float:
    # антинасыщение: не интегрируем, если выход упёрся в предел и ошибка толкает дальше
    if u_unsat > u_max and increment > 0.0:
        return integrator
    if u_unsat < u_min and increment < 0.0:
        return integrator
    return min(max(integrator + increment, u_min), u_max)


class ControllerPI:
    """
    Parallel PI compensator with conditional-integration anti-windup.

    u = kp*e + I,  I += ki*e*dt  (frozen while saturated in the same direction)
    """

    def __init__(
        self,
        kp: float,
        ki: float,
        dt: float,
        u_min: float = -math.inf,
        u_max: float = math.inf,
    ):
        _validate_gains(dt, u_min, u_max, kp=kp, ki=ki)
        self.kp = float(kp)
        self.ki = float(ki)
        self.dt = float(dt)
        self.u_min = float(u_min)
        self.u_max = float(u_max)
        self.integrator = 0.0
        self._error = 0.0
        self._out = 0.0
        logger.debug("ControllerPI created: kp=%s ki=%s dt=%s", self.kp, self.ki, self.dt)

    @property
    def output(self) -> float:
        return self._out

    @property
    def error(self) -> float:
        return self._error

    def reset(self) -> None:
        self.integrator = 0.0
        self._error = 0.0
        self._out = 0.0

    def update(self, error: float) -> float:
        u_unsat = self.kp * error + self.integrator
        u = min(max(u_unsat, self.u_min), self.u_max)
        self.integrator = _integrate(
            self.integrator, self.ki * error * self.dt, u_unsat, self.u_min, self.u_max
        )
        self._error = error
        self._out = u
        return u

    def calculate(self, reference: float, feedback: float) -> float:
        return self.update(reference - feedback)


__all__ = ["ControllerPI"]
