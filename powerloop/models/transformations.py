"""
Coordinate transformations between abc, alpha-beta-zero, and dq0 frames.

Amplitude-invariant convention: a balanced abc set of peak X maps to an
alpha-beta vector of length X. Angles are in radians.
"""

from __future__ import annotations

import math
from typing import NamedTuple, Optional, Union


SQRT3 = math.sqrt(3.0)
TWO_THIRDS = 2.0 / 3.0
ONE_THIRD = 1.0 / 3.0


class AbcFrame(NamedTuple):
    a: float
    b: float
    c: float


class AlphaBetaFrame(NamedTuple):
    alpha: float
    beta: float
    zero: float = 0.0


class DqFrame(NamedTuple):
    d: float
    q: float
    zero: float = 0.0


Frame = Union[AbcFrame, AlphaBetaFrame, DqFrame]


def clarke(a: float, b: float, c: float) -> AlphaBetaFrame:
    """Clarke transform from three-phase to alpha-beta stationary frame."""
    alpha = TWO_THIRDS * (a - 0.5 * (b + c))
    beta = (b - c) * (SQRT3 / 3.0)
    zero = ONE_THIRD * (a + b + c)
    return AlphaBetaFrame(alpha, beta, zero)


def inverse_clarke(alpha: float, beta: float, zero: float = 0.0) -> AbcFrame:
    """Inverse Clarke transform from alpha-beta back to three-phase abc."""
    a = alpha + zero
    b = -0.5 * alpha + (SQRT3 / 2.0) * beta + zero
    c = -0.5 * alpha - (SQRT3 / 2.0) * beta + zero
    return AbcFrame(a, b, c)


def park(alpha: float, beta: float, theta: float, zero: float = 0.0) -> DqFrame:
    """Park transform from alpha-beta to dq rotating frame."""
    cos_t = math.cos(theta)
    sin_t = math.sin(theta)
    d = alpha * cos_t + beta * sin_t
    q = -alpha * sin_t + beta * cos_t
    return DqFrame(d, q, zero)


def inverse_park(d: float, q: float, theta: float, zero: float = 0.0) -> AlphaBetaFrame:
    """Inverse Park transform from dq to alpha-beta."""
    cos_t = math.cos(theta)
    sin_t = math.sin(theta)
    alpha = d * cos_t - q * sin_t
    beta = d * sin_t + q * cos_t
    return AlphaBetaFrame(alpha, beta, zero)


def abc_to_dq0(a: float, b: float, c: float, theta: float) -> DqFrame:
    """Direct transform from abc to dq0."""
    alpha, beta, zero = clarke(a, b, c)
    return park(alpha, beta, theta, zero)


def dq0_to_abc(d: float, q: float, theta: float, zero: float = 0.0) -> AbcFrame:
    """Direct transform from dq0 to abc."""
    alpha, beta, zero = inverse_park(d, q, theta, zero)
    return inverse_clarke(alpha, beta, zero)


def transform(sample: Frame, theta: Optional[float] = None) -> Frame:
    """
    Move a frame sample one step along the abc <-> alpha-beta <-> dq chain.

    abc goes to alpha-beta (no angle) or straight to dq0 (with angle),
    alpha-beta goes to dq0 (with angle) or back to abc (no angle),
    dq0 goes back to alpha-beta and needs the angle.
    """
    if isinstance(sample, AbcFrame):
        if theta is None:
            return clarke(*sample)
        return abc_to_dq0(sample.a, sample.b, sample.c, theta)
    if isinstance(sample, AlphaBetaFrame):
        if theta is None:
            return inverse_clarke(*sample)
        return park(sample.alpha, sample.beta, theta, sample.zero)
    if isinstance(sample, DqFrame):
        if theta is None:
            raise ValueError("theta is required to leave the dq frame")
        return inverse_park(sample.d, sample.q, theta, sample.zero)
    raise TypeError(f"Unsupported frame sample: {type(sample).__name__}")


__all__ = [
    "AbcFrame",
    "AlphaBetaFrame",
    "DqFrame",
    "clarke",
    "inverse_clarke",
    "park",
    "inverse_park",
    "abc_to_dq0",
    "dq0_to_abc",
    "transform",
]
