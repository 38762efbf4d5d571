"""
Averaged two-level inverter feeding a stiff three-phase grid through an RL filter.

Used only by the host-side reference simulation.
"""

from __future__ import annotations

import math
from typing import Tuple

from powerloop.config.env import PlantParams
from powerloop.models.transformations import AbcFrame, clarke, inverse_clarke
from powerloop.modulation.svpwm import average_voltage

TWO_PI_3 = 2.0 * math.pi / 3.0


class GridRlFilter:
    """
    L di/dt = v_inv - R i - e_grid in the alpha-beta frame, integrated exactly
    over one tick with the inverter voltage held constant.
    """

    def __init__(self, params: PlantParams, dt: float):
        if dt <= 0.0:
            raise ValueError("dt must be positive")
        self.params = params
        self.dt = float(dt)
        self._decay = math.exp(-params.R * self.dt / params.L)
        self._gain = (1.0 - self._decay) / params.R
        self.reset()

    def reset(self) -> None:
        self.t = 0.0
        self.i_alpha = 0.0
        self.i_beta = 0.0

    def grid_angle(self, t: float | None = None) -> float:
        t = self.t if t is None else t
        return 2.0 * math.pi * self.params.grid_f * t + self.params.grid_phase

    def grid_voltage(self, t: float | None = None) -> AbcFrame:
        """Phase voltages, phase a = V*sin(angle)."""
        theta = self.grid_angle(t)
        v = self.params.grid_v_peak
        return AbcFrame(
            v * math.sin(theta),
            v * math.sin(theta - TWO_PI_3),
            v * math.sin(theta + TWO_PI_3),
        )

    def currents(self) -> AbcFrame:
        return inverse_clarke(self.i_alpha, self.i_beta)

    def step(self, duties: Tuple[float, float, float]) -> AbcFrame:
        """Apply duty cycles for one tick and return the new phase currents."""
        v_alpha, v_beta = average_voltage(duties[0], duties[1], duties[2], self.params.vdc)
        e_alpha, e_beta, _ = clarke(*self.grid_voltage())
        self.i_alpha = self.i_alpha * self._decay + self._gain * (v_alpha - e_alpha)
        self.i_beta = self.i_beta * self._decay + self._gain * (v_beta - e_beta)
        self.t += self.dt
        return self.currents()


__all__ = ["GridRlFilter"]
