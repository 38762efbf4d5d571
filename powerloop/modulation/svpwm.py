"""
Space-vector PWM for a two-level three-phase bridge.

Sectors are numbered 1..6 counter-clockwise from the alpha axis, sector n
covering [(n-1)*60, n*60) degrees. A vector lying on a boundary belongs to the
lower-numbered of the two sectors, the zero vector to sector 1.

The linear range is |V| <= Vdc/sqrt(3). Beyond it the active dwell times are
scaled back onto the hexagon edge (direction kept) and the zero vector drops out.
"""

from __future__ import annotations

import math
from itertools import product
from typing import NamedTuple, Tuple

from powerloop.models.transformations import SQRT3, clarke

# код по знакам проекций (4*[v3>0] + 2*[v2>0] + [v1>0]) -> сектор
_SECTOR_BY_CODE = {3: 1, 1: 2, 5: 3, 4: 4, 6: 5, 2: 6}

# cos/sin of the six active vectors V1..V6 at k*60 degrees, V7 == V1
_COS_K = (1.0, 0.5, -0.5, -1.0, -0.5, 0.5, 1.0)
_SIN_K = (0.0, SQRT3 / 2.0, SQRT3 / 2.0, 0.0, -SQRT3 / 2.0, -SQRT3 / 2.0, 0.0)

# switch states (a, b, c) of V1..V6, V7 == V1
_SWITCH_STATES = (
    (1, 0, 0),
    (1, 1, 0),
    (0, 1, 0),
    (0, 1, 1),
    (0, 0, 1),
    (1, 0, 1),
    (1, 0, 0),
)

BOUNDARY_TOL = 1e-9


class SvpwmOutput(NamedTuple):
    duty_a: float
    duty_b: float
    duty_c: float
    sector: int


class DwellTimes(NamedTuple):
    t1: float
    t2: float
    t0: float


def _check_vdc(vdc: float) -> None:
    if not vdc > 0.0:
        raise ValueError(f"vdc must be positive, got {vdc!r}")


def sector_of(v_alpha: float, v_beta: float) -> int:
    """Sector 1..6 from the three auxiliary projections."""
    v1 = v_beta
    v2 = 0.5 * (SQRT3 * v_alpha - v_beta)
    v3 = 0.5 * (-SQRT3 * v_alpha - v_beta)
    tol = BOUNDARY_TOL * max(abs(v_alpha), abs(v_beta))

    options = []
    for p in (v1, v2, v3):
        if abs(p) <= tol:
            options.append((0, 1))
        elif p > 0.0:
            options.append((1,))
        else:
            options.append((0,))

    candidates = []
    for s1, s2, s3 in product(*options):
        code = 4 * s3 + 2 * s2 + s1
        if code in _SECTOR_BY_CODE:
            candidates.append(_SECTOR_BY_CODE[code])
    return min(candidates) if candidates else 1


def _dwell(v_alpha: float, v_beta: float, vdc: float, sector: int) -> DwellTimes:
    k = sector - 1
    scale = SQRT3 / vdc
    t1 = scale * (v_alpha * _SIN_K[k + 1] - v_beta * _COS_K[k + 1])
    t2 = scale * (v_beta * _COS_K[k] - v_alpha * _SIN_K[k])
    t1 = max(t1, 0.0)
    t2 = max(t2, 0.0)
    total = t1 + t2
    if total > 1.0:
        t1 /= total
        t2 /= total
        total = 1.0
    return DwellTimes(t1, t2, 1.0 - total)


def svpwm(v_alpha: float, v_beta: float, vdc: float) -> SvpwmOutput:
    """Compute center-aligned SVPWM duty cycles (0..1) and sector from alpha-beta voltages."""
    _check_vdc(vdc)
    sector = sector_of(v_alpha, v_beta)
    t1, t2, t0 = _dwell(v_alpha, v_beta, vdc, sector)

    first = _SWITCH_STATES[sector - 1]
    second = _SWITCH_STATES[sector]
    half_zero = 0.5 * t0
    duties = [
        min(max(half_zero + t1 * s1 + t2 * s2, 0.0), 1.0)
        for s1, s2 in zip(first, second)
    ]
    return SvpwmOutput(duties[0], duties[1], duties[2], sector)


def average_voltage(duty_a: float, duty_b: float, duty_c: float, vdc: float) -> Tuple[float, float]:
    """Inverse modulation: period-averaged alpha-beta voltage produced by the duties."""
    v_alpha, v_beta, _ = clarke(duty_a * vdc, duty_b * vdc, duty_c * vdc)
    return v_alpha, v_beta


class SpaceVectorModulator:
    """Stateless SVPWM stage bound to a PWM period."""

    def __init__(self, pwm_period: float):
        pwm_period = float(pwm_period)
        if not math.isfinite(pwm_period) or pwm_period <= 0.0:
            raise ValueError(f"pwm_period must be positive and finite, got {pwm_period!r}")
        self.pwm_period = pwm_period

    def compute(self, v_alpha: float, v_beta: float, vdc: float) -> SvpwmOutput:
        return svpwm(v_alpha, v_beta, vdc)

    def dwell_times(self, v_alpha: float, v_beta: float, vdc: float) -> DwellTimes:
        """Active and zero vector dwell times in seconds."""
        _check_vdc(vdc)
        t1, t2, t0 = _dwell(v_alpha, v_beta, vdc, sector_of(v_alpha, v_beta))
        return DwellTimes(t1 * self.pwm_period, t2 * self.pwm_period, t0 * self.pwm_period)

    @staticmethod
    def linear_limit(vdc: float) -> float:
        return vdc / SQRT3


__all__ = [
    "SvpwmOutput",
    "DwellTimes",
    "SpaceVectorModulator",
    "svpwm",
    "sector_of",
    "average_voltage",
]
