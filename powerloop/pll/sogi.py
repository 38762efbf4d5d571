"""
Single-phase SOGI-PLL.

The second order generalized integrator turns one periodic input into an
in-phase estimate v and a quadrature estimate qv lagging v by 90 degrees:

    v/x  = k*w*s  / (s^2 + k*w*s + w^2)
    qv/x = k*w^2  / (s^2 + k*w*s + w^2)

Both are discretised with the bilinear rule at the current frequency
estimate. For x = A*sin(theta_g) the pair is (A*sin(theta_g), -A*cos(theta_g)),
so with the estimated angle theta

    e = (v*cos(theta) + qv*sin(theta)) / A = sin(theta_g - theta)

drives a PI loop filter whose output is the frequency correction around
nominal. The correction is clamped to the configured band.
"""

from __future__ import annotations

import logging
import math
from typing import NamedTuple, Tuple

from powerloop.config.env import NotchParams, PllParams
from powerloop.control.compensators import Coefficients2p2z, Controller2p2z

logger = logging.getLogger(__name__)

TWO_PI = 2.0 * math.pi
AMPLITUDE_FLOOR = 1e-9


def wrap_angle(theta: float) -> float:
    """Wrap to [0, 2*pi)."""
    theta = math.fmod(theta, TWO_PI)
    if theta < 0.0:
        theta += TWO_PI
    if theta >= TWO_PI:
        theta = 0.0
    return theta


def _check_dt(dt: float) -> float:
    dt = float(dt)
    if not math.isfinite(dt) or dt <= 0.0:
        raise ValueError(f"dt must be positive and finite, got {dt!r}")
    return dt


class PllOutput(NamedTuple):
    angle: float
    frequency: float
    in_phase: float
    quadrature: float


class OrthogonalSignalGenerator:
    def __init__(self, k: float, dt: float):
        k = float(k)
        if not math.isfinite(k) or k <= 0.0:
            raise ValueError(f"k must be positive and finite, got {k!r}")
        self.k = k
        self.dt = _check_dt(dt)
        self.reset()

    def reset(self) -> None:
        self._u1 = 0.0
        self._u2 = 0.0
        self._v1 = 0.0
        self._v2 = 0.0
        self._qv1 = 0.0
        self._qv2 = 0.0

    def coefficients(self, omega: float) -> Tuple[float, float, float, float, float]:
        """(b0, a1, a2, qb0, qb1) for the bilinear SOGI at ``omega``; b2 = -b0, qb2 = qb0."""
        w_t = omega * self.dt
        x = 2.0 * self.k * w_t
        y = w_t * w_t
        temp = 1.0 / (x + y + 4.0)
        b0 = x * temp
        a1 = 2.0 * (4.0 - y) * temp
        a2 = (x - y - 4.0) * temp
        qb0 = self.k * y * temp
        return b0, a1, a2, qb0, 2.0 * qb0

    def update(self, x: float, omega: float) -> Tuple[float, float]:
        b0, a1, a2, qb0, qb1 = self.coefficients(omega)
        v = b0 * (x - self._u2) + a1 * self._v1 + a2 * self._v2
        qv = qb0 * (x + self._u2) + qb1 * self._u1 + a1 * self._qv1 + a2 * self._qv2

        self._u2, self._u1 = self._u1, x
        self._v2, self._v1 = self._v1, v
        self._qv2, self._qv1 = self._qv1, qv
        return v, qv


class NotchFilter:
    """
    Second-order notch with unity DC gain:

        H(z) = g * (1 - 2cos(w0) z^-1 + z^-2) / (1 - 2r cos(w0) z^-1 + r^2 z^-2)
    """

    def __init__(self, frequency: float, dt: float, radius: float = 0.99):
        dt = _check_dt(dt)
        frequency = float(frequency)
        radius = float(radius)
        if not math.isfinite(frequency) or frequency <= 0.0:
            raise ValueError(f"frequency must be positive, got {frequency!r}")
        if frequency >= 0.5 / dt:
            raise ValueError(f"notch frequency {frequency} Hz is at or above Nyquist ({0.5 / dt} Hz)")
        if not 0.0 < radius < 1.0:
            raise ValueError(f"radius must lie in (0, 1), got {radius!r}")

        w0 = TWO_PI * frequency * dt
        cos_w0 = math.cos(w0)
        gain = (1.0 - 2.0 * radius * cos_w0 + radius * radius) / (2.0 - 2.0 * cos_w0)
        self.frequency = frequency
        self.radius = radius
        self._filter = Controller2p2z(
            Coefficients2p2z(
                b0=gain,
                b1=-2.0 * gain * cos_w0,
                b2=gain,
                a1=2.0 * radius * cos_w0,
                a2=-radius * radius,
            )
        )

    @property
    def coefficients(self) -> Coefficients2p2z:
        return self._filter.coefficients

    def reset(self) -> None:
        self._filter.reset()

    def update(self, x: float) -> float:
        return self._filter.update(x)


class SogiPll:
    """
    SOGI-based single-phase PLL, advanced once per tick.

    ``update`` returns the angle estimate aligned with the sample passed in;
    the internal phase accumulator then moves on to the next tick.
    """

    def __init__(self, params: PllParams, dt: float, notch: NotchParams | None = None):
        if not isinstance(params, PllParams):
            raise TypeError("params must be PllParams")
        self.params = params
        self.dt = _check_dt(dt)
        self.w_nominal = TWO_PI * params.f_nominal
        self.w_band = TWO_PI * params.band_hz

        self.osg = OrthogonalSignalGenerator(params.k_sogi, self.dt)

        # bilinear PI: y(k) = y(k-1) + b0*e(k) + b1*e(k-1)
        half_ki_t = 0.5 * params.ki * self.dt
        self._loop_filter = Controller2p2z(
            Coefficients2p2z(
                b0=params.kp + half_ki_t,
                b1=-params.kp + half_ki_t,
                b2=0.0,
                a1=1.0,
                a2=0.0,
                u_min=-self.w_band,
                u_max=self.w_band,
            )
        )

        self.notch: NotchFilter | None = None
        if notch is not None and notch.enabled:
            self.notch = NotchFilter(notch.harmonic * params.f_nominal, self.dt, notch.radius)

        logger.debug(
            "SogiPll created: f_nominal=%s Hz band=%s Hz dt=%s notch=%s",
            params.f_nominal, params.band_hz, self.dt,
            None if self.notch is None else self.notch.frequency,
        )
        self.reset()

    def reset(self) -> None:
        self.osg.reset()
        self._loop_filter.reset()
        if self.notch is not None:
            self.notch.reset()
        self.theta = 0.0
        self.omega = self.w_nominal
        self.phase_error = 0.0
        self.amplitude = 0.0
        self.v = 0.0
        self.qv = 0.0
        self._band_clamped = False

    @property
    def frequency(self) -> float:
        return self.omega / TWO_PI

    def update(self, x: float) -> PllOutput:
        v, qv = self.osg.update(x, self.omega)

        theta = self.theta
        amplitude = math.hypot(v, qv)
        if amplitude > AMPLITUDE_FLOOR:
            error = (v * math.cos(theta) + qv * math.sin(theta)) / amplitude
        else:
            error = 0.0
        if self.notch is not None:
            error = self.notch.update(error)

        delta = self._loop_filter.update(error)
        clamped = abs(delta) >= self.w_band
        if clamped and not self._band_clamped:
            logger.debug("PLL frequency clamped to band edge: %.3f Hz", (self.w_nominal + delta) / TWO_PI)
        self._band_clamped = clamped

        self.omega = self.w_nominal + delta
        self.theta = wrap_angle(theta + self.omega * self.dt)
        self.phase_error = error
        self.amplitude = amplitude
        self.v = v
        self.qv = qv
        return PllOutput(theta, self.omega / TWO_PI, v, qv)


__all__ = [
    "OrthogonalSignalGenerator",
    "NotchFilter",
    "SogiPll",
    "PllOutput",
    "wrap_angle",
]
