import math

import numpy as np
import pytest

from powerloop.modulation.svpwm import (
    SpaceVectorModulator,
    average_voltage,
    sector_of,
    svpwm,
)

SQRT3 = math.sqrt(3.0)


def test_svpwm_reference_point():
    out = svpwm(1.0, 0.0, 2.0)
    assert out.sector == 1
    assert (out.duty_a, out.duty_b, out.duty_c) == pytest.approx((0.875, 0.125, 0.125))


def test_zero_vector_gives_half_duty_sector_one():
    out = svpwm(0.0, 0.0, 700.0)
    assert out.sector == 1
    assert (out.duty_a, out.duty_b, out.duty_c) == pytest.approx((0.5, 0.5, 0.5))


@pytest.mark.parametrize("sector", [1, 2, 3, 4, 5, 6])
def test_sector_mid_angles(sector):
    angle = math.radians(60.0 * (sector - 1) + 30.0)
    assert sector_of(math.cos(angle), math.sin(angle)) == sector
    assert svpwm(100.0 * math.cos(angle), 100.0 * math.sin(angle), 700.0).sector == sector


@pytest.mark.parametrize(
    "degrees, expected",
    [(0.0, 1), (60.0, 1), (120.0, 2), (180.0, 3), (240.0, 4), (300.0, 5)],
)
def test_boundary_goes_to_lower_sector(degrees, expected):
    angle = math.radians(degrees)
    assert sector_of(10.0 * math.cos(angle), 10.0 * math.sin(angle)) == expected


def test_linear_range_reproduces_reference():
    vdc = 700.0
    mag = 0.95 * vdc / SQRT3
    for angle in np.linspace(0.0, 2.0 * math.pi, 37)[:-1]:
        v_alpha = mag * math.cos(angle)
        v_beta = mag * math.sin(angle)
        out = svpwm(v_alpha, v_beta, vdc)
        for duty in (out.duty_a, out.duty_b, out.duty_c):
            assert 0.0 <= duty <= 1.0
        avg = average_voltage(out.duty_a, out.duty_b, out.duty_c, vdc)
        assert avg == pytest.approx((v_alpha, v_beta), abs=1e-6)


def test_overmodulation_keeps_direction_and_drops_zero_vector():
    vdc = 100.0
    mod = SpaceVectorModulator(1e-4)
    for degrees in (20.0, 100.0, 230.0):
        angle = math.radians(degrees)
        v_alpha = 2.0 * vdc * math.cos(angle)
        v_beta = 2.0 * vdc * math.sin(angle)
        out = svpwm(v_alpha, v_beta, vdc)
        duties = (out.duty_a, out.duty_b, out.duty_c)
        assert min(duties) == pytest.approx(0.0, abs=1e-12)
        assert max(duties) == pytest.approx(1.0)
        avg_alpha, avg_beta = average_voltage(*duties, vdc)
        assert math.atan2(avg_beta, avg_alpha) == pytest.approx(math.atan2(v_beta, v_alpha))
        assert mod.dwell_times(v_alpha, v_beta, vdc).t0 == pytest.approx(0.0, abs=1e-15)


def test_dwell_times_sum_to_period():
    mod = SpaceVectorModulator(1e-4)
    t1, t2, t0 = mod.dwell_times(1.0, 0.0, 2.0)
    assert t1 == pytest.approx(0.75e-4)
    assert t2 == pytest.approx(0.0, abs=1e-15)
    assert t1 + t2 + t0 == pytest.approx(1e-4)
    assert mod.compute(1.0, 0.0, 2.0) == svpwm(1.0, 0.0, 2.0)
    assert SpaceVectorModulator.linear_limit(700.0) == pytest.approx(700.0 / SQRT3)


def test_invalid_dc_link_rejected():
    with pytest.raises(ValueError):
        svpwm(1.0, 0.0, 0.0)
    with pytest.raises(ValueError):
        SpaceVectorModulator(0.0)


@pytest.mark.parametrize("boundary", [0, 1, 2, 3, 4, 5])
@pytest.mark.parametrize("scale", [0.1, 0.5, 0.99])
def test_boundary_duties_reconstruct_and_match_neighbours(boundary, scale):
    vdc = 700.0
    mag = scale * vdc / SQRT3
    angle = math.radians(60.0 * boundary)
    v_alpha = mag * math.cos(angle)
    v_beta = mag * math.sin(angle)

    out = svpwm(v_alpha, v_beta, vdc)
    duties = (out.duty_a, out.duty_b, out.duty_c)
    assert out.sector == (boundary if boundary > 0 else 1)
    for duty in duties:
        assert 0.0 <= duty <= 1.0
    assert average_voltage(*duties, vdc) == pytest.approx((v_alpha, v_beta), abs=1e-6)
    # центрированная схема: нулевой вектор делится поровну
    assert max(duties) + min(duties) == pytest.approx(1.0)

    # скважности непрерывны при переходе через границу сектора
    for delta in (-1e-6, 1e-6):
        near = svpwm(mag * math.cos(angle + delta), mag * math.sin(angle + delta), vdc)
        assert (near.duty_a, near.duty_b, near.duty_c) == pytest.approx(duties, abs=1e-5)
