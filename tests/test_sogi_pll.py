import math

import numpy as np
import pytest

from powerloop.config.env import NotchParams, PllParams
from powerloop.pll.sogi import (
    NotchFilter,
    OrthogonalSignalGenerator,
    SogiPll,
    wrap_angle,
)

DT = 1e-4


def _run_pll(pll: SogiPll, freq: float, seconds: float, amplitude: float = 325.0, phase: float = 0.0):
    outputs = []
    for k in range(int(round(seconds / DT))):
        theta_g = 2.0 * math.pi * freq * k * DT + phase
        outputs.append((theta_g, pll.update(amplitude * math.sin(theta_g))))
    return outputs


def test_wrap_angle_range():
    assert wrap_angle(-0.1) == pytest.approx(2.0 * math.pi - 0.1)
    assert wrap_angle(2.0 * math.pi) == 0.0
    assert wrap_angle(7.0) == pytest.approx(7.0 - 2.0 * math.pi)
    for theta in np.linspace(-20.0, 20.0, 41):
        assert 0.0 <= wrap_angle(theta) < 2.0 * math.pi


def test_osg_produces_quadrature_pair():
    omega = 2.0 * math.pi * 50.0
    osg = OrthogonalSignalGenerator(math.sqrt(2.0), DT)
    for k in range(2000):
        theta = omega * k * DT
        v, qv = osg.update(math.sin(theta), omega)
    # qv отстаёт от v на 90 градусов
    assert v == pytest.approx(math.sin(theta), abs=1e-2)
    assert qv == pytest.approx(-math.cos(theta), abs=1e-2)


def test_pll_locks_to_nominal_grid():
    pll = SogiPll(PllParams(), DT)
    outputs = _run_pll(pll, 50.0, 1.0)
    theta_g, out = outputs[-1]
    assert out.frequency == pytest.approx(50.0, abs=0.01)
    assert abs(math.sin(out.angle - theta_g)) < 0.02
    assert math.cos(out.angle - theta_g) > 0.0
    assert pll.amplitude == pytest.approx(325.0, rel=0.01)
    assert 0.0 <= out.angle < 2.0 * math.pi


def test_pll_tracks_off_nominal_frequency_and_phase():
    pll = SogiPll(PllParams(), DT)
    outputs = _run_pll(pll, 50.5, 1.0, phase=1.0)
    theta_g, out = outputs[-1]
    assert out.frequency == pytest.approx(50.5, abs=0.02)
    assert abs(math.sin(out.angle - theta_g)) < 0.02
    assert math.cos(out.angle - theta_g) > 0.0


def test_pll_frequency_stays_inside_band():
    params = PllParams(band_hz=5.0)
    pll = SogiPll(params, DT)
    freqs = np.array([out.frequency for _, out in _run_pll(pll, 60.0, 0.5)])
    assert freqs.max() <= 55.0 + 1e-9
    assert freqs.min() >= 45.0 - 1e-9
    assert freqs.max() == pytest.approx(55.0)


def test_pll_holds_nominal_without_input():
    pll = SogiPll(PllParams(), DT)
    theta = 0.0
    for _ in range(100):
        out = pll.update(0.0)
        assert out.frequency == pytest.approx(50.0)
        assert out.angle == pytest.approx(theta)
        theta = wrap_angle(theta + 2.0 * math.pi * 50.0 * DT)


def test_pll_reset_restores_initial_state():
    pll = SogiPll(PllParams(), DT)
    _run_pll(pll, 51.0, 0.2)
    pll.reset()
    assert pll.theta == 0.0
    assert pll.frequency == pytest.approx(50.0)
    assert pll.amplitude == 0.0


def test_notch_rejects_its_frequency_and_passes_dc():
    notch = NotchFilter(100.0, DT, radius=0.99)
    assert notch.coefficients.dc_gain == pytest.approx(1.0)
    out = 0.0
    for _ in range(3000):
        out = notch.update(1.0)
    assert out == pytest.approx(1.0, abs=1e-6)

    notch.reset()
    tail = []
    for k in range(5000):
        y = notch.update(math.sin(2.0 * math.pi * 100.0 * k * DT))
        if k >= 4000:
            tail.append(abs(y))
    assert max(tail) < 0.05


def test_notch_rejects_frequency_above_nyquist():
    with pytest.raises(ValueError):
        NotchFilter(6000.0, DT)
    with pytest.raises(ValueError):
        NotchFilter(100.0, DT, radius=1.0)


def test_pll_with_notch_still_locks():
    pll = SogiPll(PllParams(), DT, NotchParams(enabled=True))
    assert pll.notch is not None
    assert pll.notch.frequency == pytest.approx(100.0)
    theta_g, out = _run_pll(pll, 50.0, 1.0)[-1]
    assert out.frequency == pytest.approx(50.0, abs=0.05)
    assert abs(math.sin(out.angle - theta_g)) < 0.05


def test_disabled_notch_is_not_built():
    pll = SogiPll(PllParams(), DT, NotchParams(enabled=False))
    assert pll.notch is None


def test_pll_rejects_invalid_arguments():
    with pytest.raises(ValueError):
        SogiPll(PllParams(), 0.0)
    with pytest.raises(TypeError):
        SogiPll({"f_nominal": 50.0}, DT)
    with pytest.raises(ValueError):
        PllParams(band_hz=60.0)
