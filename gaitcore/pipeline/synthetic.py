"""
Synthetic running sessions for demos, scripts, and tests.

The session starts with a static hold, then repeats a stride made of a
decaying vertical impact at foot strike and a forward acceleration cycle that
brings the foot to rest at the next strike. The sensor stays level, so body
and global frames coincide. Output is a list of raw entries, as captured.
"""
from __future__ import annotations
import numpy as np
from scipy.integrate import cumulative_trapezoid
from ..config.constants import G_STD, RAD2DEG, IMU_TAG, METERS_PER_DEGREE, DEG2RAD

__all__ = ["synthetic_run_session"]

# 2023-11-14T22:13:20Z in epoch nanoseconds
START_NS = 1_700_000_000_000_000_000


def synthetic_run_session(
    n_steps: int = 12,
    fs_hz: float = 100.0,
    step_time_s: float = 0.375,
    speed_mps: float = 1.0,
    static_s: float = 1.5,
    tail_s: float = 0.5,
    impact_peak: float = 28.0,
    impact_tau_s: float = 0.03,
    acc_bias=(0.0, 0.0, 0.15),
    gyro_bias=(0.02, -0.01, 0.015),
    acc_in_g: bool = False,
    gyro_in_deg: bool = False,
    noise_std: float = 0.02,
    seed: int = 0,
    with_counter: bool = True,
    gps_origin: tuple[float, float] | None = None,
    start_ns: int = START_NS,
) -> list[dict]:
    """Build raw entries for a level-sensor run of ``n_steps`` strides.

    n_steps + 1 foot strikes are generated, the first one right after the
    static hold. Timestamps are integer epoch nanoseconds. When ``with_counter``
    is set a ``counter`` entry accompanies every foot strike; ``gps_origin``
    adds 1 Hz ``gps`` entries carrying a ``position``.
    """
    fs = float(fs_hz)
    n_static = int(round(static_s * fs))
    n_step = max(2, int(round(step_time_s * fs)))
    n_tail = max(1, int(round(tail_s * fs)))
    n_fs = int(n_steps) + 1
    N = n_static + int(n_steps) * n_step + n_tail
    T = n_step / fs
    t = np.arange(N, dtype=float) / fs

    a_world = np.zeros((N, 3), dtype=float)
    offset = -impact_peak * impact_tau_s / T
    fwd_amp = 2.0 * np.pi * speed_mps / T
    fs_idx = [n_static + k * n_step for k in range(n_fs)]
    for k, i0 in enumerate(fs_idx):
        tp = t[i0:] - t[i0]
        a_world[i0:, 2] += impact_peak * np.exp(-tp / impact_tau_s)
        if k < n_steps:
            seg = slice(i0, i0 + n_step)
            a_world[seg, 2] += offset
            a_world[seg, 0] += fwd_amp * np.sin(2.0 * np.pi * (t[seg] - t[i0]) / T)

    rng = np.random.default_rng(seed)
    acc = a_world + np.array([0.0, 0.0, G_STD]) + np.asarray(acc_bias, dtype=float)[None, :]
    gyro = np.zeros((N, 3), dtype=float) + np.asarray(gyro_bias, dtype=float)[None, :]
    if noise_std > 0:
        acc = acc + rng.normal(0.0, noise_std, size=acc.shape)
        gyro = gyro + rng.normal(0.0, noise_std * 0.05, size=gyro.shape)
    if acc_in_g:
        acc = acc / G_STD
    if gyro_in_deg:
        gyro = gyro * RAD2DEG

    stamps = [int(start_ns + round(i * 1e9 / fs)) for i in range(N)]
    entries: list[dict] = []
    fs_set = {i: k for k, i in enumerate(fs_idx)}
    for i in range(N):
        entries.append({
            "timestamp": stamps[i],
            "type": IMU_TAG,
            "data": {
                "ax": float(acc[i, 0]), "ay": float(acc[i, 1]), "az": float(acc[i, 2]),
                "gx": float(gyro[i, 0]), "gy": float(gyro[i, 1]), "gz": float(gyro[i, 2]),
            },
        })
        if with_counter and i in fs_set:
            entries.append({"timestamp": stamps[i], "type": "counter", "data": {"steps": fs_set[i] + 1}})

    if gps_origin is not None:
        lat0, lng0 = (float(x) for x in gps_origin)
        vx = cumulative_trapezoid(a_world[:, 0], t, initial=0.0)
        x = cumulative_trapezoid(vx, t, initial=0.0)
        lng_scale = METERS_PER_DEGREE * np.cos(lat0 * DEG2RAD)
        for i in range(0, N, max(1, int(round(fs)))):
            entries.append({
                "timestamp": stamps[i],
                "type": "gps",
                "data": {},
                "position": {"lat": lat0, "lng": lng0 + float(x[i]) / lng_scale},
            })
    return entries
