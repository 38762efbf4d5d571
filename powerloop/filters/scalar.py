"""
Scalar smoothing filters: first-order IIR and a random-walk Kalman estimator.
"""

from __future__ import annotations

import math


class FirstOrderIIR:
    """y(k) = alpha*x(k) + (1 - alpha)*y(k-1)"""

    def __init__(self, alpha: float):
        alpha = float(alpha)
        if not 0.0 < alpha <= 1.0:
            raise ValueError(f"alpha must lie in (0, 1], got {alpha!r}")
        self.alpha = alpha
        self.reset()

    @classmethod
    def from_cutoff(cls, fc: float, fs: float) -> "FirstOrderIIR":
        """Alpha matching a continuous first-order low-pass at ``fc`` (step invariant)."""
        if not fs > 0.0 or not 0.0 < fc:
            raise ValueError(f"need fc > 0 and fs > 0, got fc={fc!r} fs={fs!r}")
        return cls(1.0 - math.exp(-2.0 * math.pi * fc / fs))

    def reset(self) -> None:
        self.out = 0.0

    def process(self, x: float) -> float:
        self.out = self.alpha * x + (1.0 - self.alpha) * self.out
        return self.out


class ScalarKalman:
    """
    Kalman filter for a constant (random-walk) scalar observed in noise.

    Args:
        q: process noise variance.
        r: measurement noise variance.
        p0: initial estimate variance.
    """

    def __init__(self, q: float, r: float, p0: float = 1.0):
        q = float(q)
        r = float(r)
        if not math.isfinite(q) or q < 0.0:
            raise ValueError(f"q must be non-negative, got {q!r}")
        if not math.isfinite(r) or r <= 0.0:
            raise ValueError(f"r must be positive, got {r!r}")
        if not math.isfinite(float(p0)) or p0 < 0.0:
            raise ValueError(f"p0 must be non-negative, got {p0!r}")
        self.q = q
        self.r = r
        self.p0 = float(p0)
        self.reset()

    def reset(self) -> None:
        self.estimate = 0.0
        self.covariance = self.p0
        self.gain = 0.0

    def update(self, z: float) -> float:
        p_pred = self.covariance + self.q
        self.gain = p_pred / (p_pred + self.r)
        self.estimate += self.gain * (z - self.estimate)
        self.covariance = (1.0 - self.gain) * p_pred
        return self.estimate

    process = update


__all__ = ["FirstOrderIIR", "ScalarKalman"]
