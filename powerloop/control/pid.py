"""
Discrete PID compensator.

    P(k) = kp*e(k)
    I(k) = I(k-1) + ki*e(k)*dt          (conditional integration, clamped)
    D(k) = kd*(e(k) - e(k-1))/dt        or  -kd*(y(k) - y(k-1))/dt on measurement
    u(k) = clamp(P + I + D)

The derivative is skipped on the first tick after construction or reset.
"""

from __future__ import annotations

import logging
import math
from typing import Optional

from powerloop.control.pi import _integrate, _validate_gains

logger = logging.getLogger(__name__)


class ControllerPID:
    def __init__(
        self,
        kp: float,
        ki: float,
        kd: float,
        dt: float,
        u_min: float = -math.inf,
        u_max: float = math.inf,
        derivative_on_measurement: bool = False,
    ):
        _validate_gains(dt, u_min, u_max, kp=kp, ki=ki, kd=kd)
        self.kp = float(kp)
        self.ki = float(ki)
        self.kd = float(kd)
        self.dt = float(dt)
        self.u_min = float(u_min)
        self.u_max = float(u_max)
        self.derivative_on_measurement = bool(derivative_on_measurement)
        self.integrator = 0.0
        self.derivative = 0.0
        self._last_error = 0.0
        self._last_measurement = 0.0
        self._first_pass = True
        self._out = 0.0
        logger.debug(
            "ControllerPID created: kp=%s ki=%s kd=%s dt=%s on_measurement=%s",
            self.kp, self.ki, self.kd, self.dt, self.derivative_on_measurement,
        )

    @property
    def output(self) -> float:
        return self._out

    @property
    def error(self) -> float:
        return self._last_error

    def reset(self) -> None:
        self.integrator = 0.0
        self.derivative = 0.0
        self._last_error = 0.0
        self._last_measurement = 0.0
        self._first_pass = True
        self._out = 0.0

    def update(self, error: float, measurement: Optional[float] = None) -> float:
        """
        Advance one tick.

        Args:
            error: reference minus measurement.
            measurement: plant output, used by the derivative term when the
                controller differentiates the measurement instead of the error.
                Required in that mode.
        """
        if self.derivative_on_measurement and measurement is None:
            raise ValueError("measurement is required when differentiating the measurement")
        if self._first_pass:
            d_term = 0.0
        elif self.derivative_on_measurement:
            d_term = -self.kd * (measurement - self._last_measurement) / self.dt
        else:
            d_term = self.kd * (error - self._last_error) / self.dt

        u_unsat = self.kp * error + self.integrator + d_term
        u = min(max(u_unsat, self.u_min), self.u_max)
        self.integrator = _integrate(
            self.integrator, self.ki * error * self.dt, u_unsat, self.u_min, self.u_max
        )

        self.derivative = d_term
        self._last_error = error
        if measurement is not None:
            self._last_measurement = measurement
        self._first_pass = False
        self._out = u
        return u

    def calculate(self, reference: float, feedback: float) -> float:
        return self.update(reference - feedback, measurement=feedback)


__all__ = ["ControllerPID"]
