"""
Offline coefficient design for the direct-form compensators.

Continuous compensators given as s-plane zeros/poles (rad/s) or as a transfer
function are discretised with the bilinear (Tustin) rule and converted into
the added-feedback coefficient convention of ``Controller2p2z`` and
``Controller3p3z``. Nothing here runs inside the control tick.
"""

from __future__ import annotations

import math
from typing import Sequence, Union

import numpy as np
from scipy import signal

from powerloop.control.compensators import Coefficients2p2z, Coefficients3p3z

Coefficients = Union[Coefficients2p2z, Coefficients3p3z]


def _check_dt(dt: float) -> float:
    dt = float(dt)
    if not math.isfinite(dt) or dt <= 0.0:
        raise ValueError(f"dt must be positive and finite, got {dt!r}")
    return dt


def _pack(b: np.ndarray, a: np.ndarray, order: int, u_min: float, u_max: float) -> Coefficients:
    b = np.real(np.asarray(b, dtype=complex))
    a = np.real(np.asarray(a, dtype=complex))
    b = np.pad(b, (0, order + 1 - len(b)))
    a = np.pad(a, (0, order + 1 - len(a)))
    if a[0] == 0.0:
        raise ValueError("leading denominator coefficient must be non-zero")
    b = b / a[0]
    fb = -a[1:] / a[0]
    values = [float(x) for x in b] + [float(x) for x in fb]
    if order == 2:
        return Coefficients2p2z.from_sequence(values, u_min=u_min, u_max=u_max)
    return Coefficients3p3z.from_sequence(values, u_min=u_min, u_max=u_max)


def design_from_zpk(
    zeros: Sequence[complex],
    poles: Sequence[complex],
    gain: float,
    dt: float,
    u_min: float = -math.inf,
    u_max: float = math.inf,
) -> Coefficients:
    """
    Discretise H(s) = gain * prod(s - z) / prod(s - p).

    One or two poles give a 2p2z set, three poles a 3p3z set. Complex roots
    must come in conjugate pairs.
    """
    dt = _check_dt(dt)
    zeros = list(zeros)
    poles = list(poles)
    if not 1 <= len(poles) <= 3:
        raise ValueError(f"need 1..3 poles, got {len(poles)}")
    if len(zeros) > len(poles):
        raise ValueError("improper compensator: more zeros than poles")
    z_d, p_d, k_d = signal.bilinear_zpk(zeros, poles, gain, fs=1.0 / dt)
    b, a = signal.zpk2tf(z_d, p_d, k_d)
    order = max(len(poles), 2)
    return _pack(np.atleast_1d(b), np.atleast_1d(a), order, u_min, u_max)


def design_from_tf(
    num: Sequence[float],
    den: Sequence[float],
    dt: float,
    u_min: float = -math.inf,
    u_max: float = math.inf,
) -> Coefficients:
    """Discretise a continuous transfer function given by polynomial coefficients in s."""
    dt = _check_dt(dt)
    den_arr = np.trim_zeros(np.asarray(den, dtype=float), "f")
    num_arr = np.trim_zeros(np.asarray(num, dtype=float), "f")
    if den_arr.size < 2 or den_arr.size > 4:
        raise ValueError("denominator must be of degree 1..3")
    if num_arr.size > den_arr.size:
        raise ValueError("improper compensator: numerator degree exceeds denominator degree")
    b, a = signal.bilinear(num_arr, den_arr, fs=1.0 / dt)
    order = max(den_arr.size - 1, 2)
    return _pack(np.atleast_1d(b), np.atleast_1d(a), order, u_min, u_max)


__all__ = ["design_from_zpk", "design_from_tf"]
