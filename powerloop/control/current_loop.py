"""
Grid-synchronised vector current loop, one call per control tick.

PLL (reference voltage) -> abc->dq0 -> d/q compensators -> dq->alpha-beta -> SVPWM.
"""

from __future__ import annotations

import logging
import math
from typing import NamedTuple, Tuple

from powerloop.config.env import LoopConfig
from powerloop.control.base import Compensator
from powerloop.control.compensators import Coefficients2p2z, Controller2p2z
from powerloop.control.pi import ControllerPI
from powerloop.models.transformations import abc_to_dq0, inverse_park
from powerloop.modulation.svpwm import SpaceVectorModulator
from powerloop.pll.sogi import SogiPll, wrap_angle

logger = logging.getLogger(__name__)


class LoopOutput(NamedTuple):
    tick: int
    duty_a: float
    duty_b: float
    duty_c: float
    sector: int
    theta: float
    frequency: float
    i_d: float
    i_q: float
    v_d: float
    v_q: float


def _make_compensator(kind: str, kp: float, ki: float, dt: float, v_limit: float) -> Compensator:
    if kind == "pi":
        return ControllerPI(kp, ki, dt, u_min=-v_limit, u_max=v_limit)
    if kind == "2p2z":
        return Controller2p2z(Coefficients2p2z.from_pi(kp, ki, dt, u_min=-v_limit, u_max=v_limit))
    raise ValueError(f"Unknown compensator '{kind}'")


class VectorCurrentLoop:
    def __init__(self, config: LoopConfig):
        if not isinstance(config, LoopConfig):
            raise TypeError("config must be LoopConfig")
        self.config = config
        params = config.loop
        self.dt = params.dt
        self.angle_offset = params.angle_offset
        self.feedforward = params.feedforward
        self.v_limit = params.v_limit

        limit = math.inf if params.v_limit is None else params.v_limit
        self.pll = SogiPll(config.pll, params.dt, config.notch)
        self.comp_d = _make_compensator(params.compensator, params.kp, params.ki, params.dt, limit)
        self.comp_q = _make_compensator(params.compensator, params.kp, params.ki, params.dt, limit)
        self.modulator = SpaceVectorModulator(params.dt)
        logger.debug("VectorCurrentLoop created: compensator=%s dt=%s", params.compensator, params.dt)

    def reset(self) -> None:
        self.pll.reset()
        self.comp_d.reset()
        self.comp_q.reset()

    def step(
        self,
        tick: int,
        i_abc: Tuple[float, float, float],
        v_grid: float,
        i_dq_ref: Tuple[float, float],
        vdc: float,
    ) -> LoopOutput:
        """
        Run one control tick.

        Args:
            tick: caller's tick counter, carried into the output.
            i_abc: measured phase currents (A).
            v_grid: single-phase reference voltage sample for the PLL (V).
            i_dq_ref: current references in the grid-voltage-oriented frame (A).
            vdc: DC link voltage (V).
        """
        pll_out = self.pll.update(v_grid)
        theta = wrap_angle(pll_out.angle + self.angle_offset)

        i_a, i_b, i_c = i_abc
        i_d, i_q, _ = abc_to_dq0(i_a, i_b, i_c, theta)

        v_d = self.comp_d.update(i_dq_ref[0] - i_d)
        v_q = self.comp_q.update(i_dq_ref[1] - i_q)
        if self.feedforward:
            v_d += self.pll.amplitude

        # ограничиваем результирующее напряжение по модулю
        if self.v_limit is not None:
            mag = math.hypot(v_d, v_q)
            if mag > self.v_limit and mag > 0.0:
                scale = self.v_limit / mag
                v_d *= scale
                v_q *= scale

        v_alpha, v_beta, _ = inverse_park(v_d, v_q, theta)
        duty_a, duty_b, duty_c, sector = self.modulator.compute(v_alpha, v_beta, vdc)
        return LoopOutput(
            tick, duty_a, duty_b, duty_c, sector, theta, pll_out.frequency, i_d, i_q, v_d, v_q
        )


__all__ = ["VectorCurrentLoop", "LoopOutput"]
