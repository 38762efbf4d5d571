"""
Butterworth and Chebyshev type I low/high-pass filters as cascaded biquads.

Sections are designed once with ``scipy.signal`` (bilinear transform with
pre-warped cutoff) and each one runs as a ``Controller2p2z`` without output
limits, so the per-sample path is the same fixed-history recurrence as the
compensators.
"""

from __future__ import annotations

import logging
import math
from typing import List, Tuple

import numpy as np
from scipy import signal

from powerloop.control.compensators import Coefficients2p2z, Controller2p2z

logger = logging.getLogger(__name__)

MAX_ORDER = 8


def _check_design(order: int, fc: float, fs: float) -> Tuple[int, float, float]:
    order = int(order)
    fc = float(fc)
    fs = float(fs)
    if not 1 <= order <= MAX_ORDER:
        raise ValueError(f"order must lie in 1..{MAX_ORDER}, got {order}")
    if not math.isfinite(fs) or fs <= 0.0:
        raise ValueError(f"fs must be positive and finite, got {fs!r}")
    if not math.isfinite(fc) or not 0.0 < fc < 0.5 * fs:
        raise ValueError(f"fc must lie in (0, fs/2) = (0, {0.5 * fs}), got {fc!r}")
    return order, fc, fs


def _sections(sos: np.ndarray) -> List[Controller2p2z]:
    # строка sos: [b0, b1, b2, 1, a1, a2] -> a-коэффициенты со сменой знака
    sections = []
    for b0, b1, b2, a0, a1, a2 in np.asarray(sos, dtype=float):
        sections.append(
            Controller2p2z(
                Coefficients2p2z(
                    b0=b0 / a0, b1=b1 / a0, b2=b2 / a0, a1=-a1 / a0, a2=-a2 / a0
                )
            )
        )
    return sections


class _SosFilter:
    btype: str = "lowpass"

    def __init__(self, order: int, fc: float, fs: float):
        self.init(order, fc, fs)

    def _design(self, order: int, fc: float, fs: float) -> np.ndarray:
        raise NotImplementedError

    def init(self, order: int, fc: float, fs: float) -> None:
        """(Re)design the cascade; filter state starts from zero."""
        self.order, self.fc, self.fs = _check_design(order, fc, fs)
        self.sos = self._design(self.order, self.fc, self.fs)
        self._sections = _sections(self.sos)
        self._out = 0.0
        logger.debug(
            "%s designed: order=%d fc=%s Hz fs=%s Hz sections=%d",
            type(self).__name__, self.order, self.fc, self.fs, len(self._sections),
        )

    @property
    def n_sections(self) -> int:
        return len(self._sections)

    @property
    def output(self) -> float:
        return self._out

    def reset(self) -> None:
        for section in self._sections:
            section.reset()
        self._out = 0.0

    def process(self, x: float) -> float:
        for section in self._sections:
            x = section.update(x)
        self._out = x
        return x


class _ButterworthFilter(_SosFilter):
    def _design(self, order: int, fc: float, fs: float) -> np.ndarray:
        return signal.butter(order, fc, btype=self.btype, fs=fs, output="sos")


class ButterworthLPF(_ButterworthFilter):
    """Maximally flat low-pass, -3 dB at ``fc``."""


class ButterworthHPF(_ButterworthFilter):
    """Maximally flat high-pass, -3 dB at ``fc``."""

    btype = "highpass"


class _ChebyshevFilter(_SosFilter):
    def __init__(self, order: int, fc: float, fs: float, ripple_db: float = 1.0):
        ripple_db = float(ripple_db)
        if not math.isfinite(ripple_db) or ripple_db <= 0.0:
            raise ValueError(f"ripple_db must be positive, got {ripple_db!r}")
        self.ripple_db = ripple_db
        super().__init__(order, fc, fs)

    @classmethod
    def from_epsilon(cls, order: int, fc: float, fs: float, epsilon: float):
        """Build from the ripple factor: ripple_db = 10*log10(1 + epsilon^2)."""
        epsilon = float(epsilon)
        if not math.isfinite(epsilon) or epsilon <= 0.0:
            raise ValueError(f"epsilon must be positive, got {epsilon!r}")
        return cls(order, fc, fs, ripple_db=10.0 * math.log10(1.0 + epsilon * epsilon))

    def _design(self, order: int, fc: float, fs: float) -> np.ndarray:
        return signal.cheby1(order, self.ripple_db, fc, btype=self.btype, fs=fs, output="sos")


class ChebyshevLPF(_ChebyshevFilter):
    """
    Type I low-pass: equiripple passband of ``ripple_db``, the response leaves
    the ripple band at ``fc``.
    """


class ChebyshevHPF(_ChebyshevFilter):
    """Type I high-pass, ripple band above ``fc``."""

    btype = "highpass"


__all__ = ["ButterworthLPF", "ButterworthHPF", "ChebyshevLPF", "ChebyshevHPF", "MAX_ORDER"]
