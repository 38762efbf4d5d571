import math
from dataclasses import replace

import numpy as np
import pytest

from powerloop.config.env import CONFIG, LoopConfig
from powerloop.control.compensators import Controller2p2z
from powerloop.control.current_loop import VectorCurrentLoop
from powerloop.control.pi import ControllerPI
from powerloop.simulation.run_simulation import simulate


def _config(**loop_changes) -> LoopConfig:
    return replace(CONFIG, loop=replace(CONFIG.loop, **loop_changes))


def test_idle_tick_outputs_half_duty():
    loop = VectorCurrentLoop(CONFIG)
    out = loop.step(7, (0.0, 0.0, 0.0), 0.0, (0.0, 0.0), 700.0)
    assert out.tick == 7
    assert out.sector == 1
    assert (out.duty_a, out.duty_b, out.duty_c) == pytest.approx((0.5, 0.5, 0.5))
    assert out.v_d == 0.0
    assert out.v_q == 0.0
    assert out.frequency == pytest.approx(CONFIG.pll.f_nominal)
    assert out.theta == pytest.approx(1.5 * math.pi)


def test_voltage_vector_is_limited():
    loop = VectorCurrentLoop(CONFIG)
    out = loop.step(0, (0.0, 0.0, 0.0), 0.0, (1000.0, 1000.0), 700.0)
    assert math.hypot(out.v_d, out.v_q) == pytest.approx(CONFIG.loop.v_limit)
    for duty in (out.duty_a, out.duty_b, out.duty_c):
        assert 0.0 <= duty <= 1.0


def test_compensator_kind_follows_config():
    assert isinstance(VectorCurrentLoop(_config(compensator="pi")).comp_d, ControllerPI)
    loop = VectorCurrentLoop(_config(compensator="2p2z"))
    assert isinstance(loop.comp_d, Controller2p2z)
    assert isinstance(loop.comp_q, Controller2p2z)


def test_reset_clears_pll_and_compensators():
    loop = VectorCurrentLoop(CONFIG)
    for k in range(50):
        loop.step(k, (1.0, -0.5, -0.5), 300.0 * math.sin(0.0314 * k), (5.0, 0.0), 700.0)
    loop.reset()
    assert loop.pll.theta == 0.0
    assert loop.comp_d.output == 0.0
    assert loop.comp_q.output == 0.0


def test_loop_rejects_wrong_config_type():
    with pytest.raises(TypeError):
        VectorCurrentLoop(CONFIG.loop)


@pytest.mark.parametrize("compensator", ["pi", "2p2z"])
def test_closed_loop_tracks_current_reference(compensator):
    cfg = _config(compensator=compensator)
    cfg = replace(cfg, sim=replace(cfg.sim, t_end=0.3, id_ref=10.0, iq_ref=-5.0))
    res = simulate(cfg)
    tail = res["t"] >= 0.25
    assert np.mean(res["i_d"][tail]) == pytest.approx(10.0, abs=0.5)
    assert np.mean(res["i_q"][tail]) == pytest.approx(-5.0, abs=0.5)
    assert np.mean(res["freq"][tail]) == pytest.approx(cfg.plant.grid_f, abs=0.05)
    assert np.all((res["duty_a"] >= 0.0) & (res["duty_a"] <= 1.0))
