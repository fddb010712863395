from __future__ import annotations
import numpy as np
from scipy.integrate import cumulative_trapezoid

__all__ = [
    "linear_dedrift",
    "integrate_stride",
    "zupt_integrate",
]


def linear_dedrift(v: np.ndarray) -> np.ndarray:
    """Remove a linear ramp so the last sample of a stride window is zero.

    v: (n,3) velocity accumulated from zero at the first sample. The end value
    is treated entirely as drift and subtracted in proportion to the sample's
    position within the window, (i - i0) / (i1 - i0).
    """
    V = np.asarray(v, dtype=float)
    n = V.shape[0]
    if n < 2:
        return np.zeros_like(V)
    ramp = np.arange(n, dtype=float) / float(n - 1)
    out = V - ramp[:, None] * V[-1][None, :]
    out[-1] = 0.0
    return out


def integrate_stride(t: np.ndarray, a: np.ndarray, p0: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Zero-velocity-anchored integration over one stride window [i0, i1].

    - velocity starts at 0 at i0 (ZUPT) and is trapezoid-integrated from a
    - linear drift correction forces velocity back to 0 at i1
    - position is the trapezoid integral of the corrected velocity, from p0
    Returns (vel, pos), both (n,3).
    """
    ts = np.asarray(t, dtype=float)
    A = np.asarray(a, dtype=float)
    v_raw = cumulative_trapezoid(A, ts, axis=0, initial=0.0)
    v = linear_dedrift(v_raw)
    p = np.asarray(p0, dtype=float)[None, :] + cumulative_trapezoid(v, ts, axis=0, initial=0.0)
    return v, p


def zupt_integrate(t: np.ndarray, a_dyn: np.ndarray, fs_idx: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Stride-wise ZUPT double integration of dynamic acceleration.

    t: (T,) seconds; a_dyn: (T,3) global-frame dynamic acceleration [m/s^2];
    fs_idx: foot-strike sample indices (ascending).

    Output buffers are allocated once and written stride by stride. Velocity is
    reset at each foot strike; position carries over from the previous stride.
    Before the first foot strike the sensor is held at rest at the origin;
    after the last one the final position is held with zero velocity.
    """
    ts = np.asarray(t, dtype=float)
    A = np.asarray(a_dyn, dtype=float)
    T = ts.shape[0]
    vel = np.zeros((T, 3), dtype=float)
    pos = np.zeros((T, 3), dtype=float)
    idx = np.asarray(fs_idx, dtype=int)
    if T == 0 or idx.size < 2:
        return vel, pos
    for i0, i1 in zip(idx[:-1], idx[1:]):
        i0 = int(i0); i1 = int(i1)
        if i1 <= i0 or i1 >= T:
            continue
        v, p = integrate_stride(ts[i0:i1 + 1], A[i0:i1 + 1], pos[i0])
        vel[i0:i1 + 1] = v
        pos[i0:i1 + 1] = p
    last = int(idx[-1])
    if last < T - 1:
        pos[last + 1:] = pos[last]
    return vel, pos
