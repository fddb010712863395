from __future__ import annotations
import numpy as np
import pytest
from scipy.integrate import cumulative_trapezoid
from gaitcore.math.drift import linear_dedrift, integrate_stride, zupt_integrate


def test_linear_dedrift_zeroes_end_and_keeps_start():
    v = np.cumsum(np.ones((11, 3)), axis=0) - 1.0
    out = linear_dedrift(v)
    np.testing.assert_allclose(out[0], 0.0)
    np.testing.assert_array_equal(out[-1], 0.0)
    # pure ramp is entirely drift
    np.testing.assert_allclose(out, 0.0, atol=1e-12)


def test_velocity_zero_at_every_foot_strike():
    rng = np.random.default_rng(7)
    t = np.arange(250) / 100.0
    a = rng.normal(0.0, 4.0, size=(250, 3))
    fs_idx = np.array([10, 60, 130, 190])
    vel, pos = zupt_integrate(t, a, fs_idx)
    for i in fs_idx:
        np.testing.assert_allclose(vel[i], 0.0, atol=1e-9)
    # at rest at the origin before the first strike
    np.testing.assert_array_equal(vel[:10], 0.0)
    np.testing.assert_array_equal(pos[:10], 0.0)
    # last position held after the final strike
    np.testing.assert_array_equal(vel[191:], 0.0)
    np.testing.assert_array_equal(pos[191:], np.tile(pos[190], (59, 1)))


def test_constant_bias_is_removed_as_drift():
    t = np.arange(200) / 100.0
    a = np.zeros((200, 3))
    a[:, 0] = 0.5
    fs_idx = np.array([0, 60, 120, 180])
    vel, pos = zupt_integrate(t, a, fs_idx)
    np.testing.assert_allclose(vel, 0.0, atol=1e-9)
    np.testing.assert_allclose(pos, 0.0, atol=1e-9)
    # naive double integration over the same span drifts quadratically
    naive = 0.5 * 0.5 * (t[180] - t[0]) ** 2
    assert naive > 0.5


def test_position_integrates_corrected_velocity():
    t = np.arange(101) / 100.0
    T = t[-1] - t[0]
    a = np.zeros((101, 3))
    a[:, 0] = 2.0 * np.pi * 3.0 / T * np.sin(2.0 * np.pi * t / T) + 0.4
    v, p = integrate_stride(t, a, np.array([1.0, 2.0, 0.0]))
    np.testing.assert_allclose(v[0], 0.0)
    np.testing.assert_allclose(v[-1], 0.0, atol=1e-12)
    expected = np.array([1.0, 2.0, 0.0]) + cumulative_trapezoid(v, t, axis=0, initial=0.0)[-1]
    np.testing.assert_allclose(p[-1], expected, atol=1e-12)
    # mean forward speed of 3 m/s over one second
    assert p[-1, 0] - 1.0 == pytest.approx(3.0, rel=1e-2)


def test_stride_positions_chain():
    t = np.arange(120) / 100.0
    a = np.zeros((120, 3))
    for i0 in (0, 40, 80):
        seg = np.arange(40)
        a[i0:i0 + 40, 0] = 10.0 * np.sin(2.0 * np.pi * seg / 39.0)
    fs_idx = np.array([0, 39, 79, 119])
    vel, pos = zupt_integrate(t, a, fs_idx)
    assert pos[39, 0] > 0.0
    assert pos[79, 0] > pos[39, 0]
    assert pos[119, 0] > pos[79, 0]


def test_fewer_than_two_strikes_gives_rest():
    t = np.arange(50) / 100.0
    vel, pos = zupt_integrate(t, np.ones((50, 3)), np.array([10]))
    np.testing.assert_array_equal(vel, 0.0)
    np.testing.assert_array_equal(pos, 0.0)
