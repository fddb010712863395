"""
Complementary-filter orientation and gravity removal.

Orientation is a left-to-right fold: a FilterState is threaded through
complementary_step once per sample. Quaternions are [w, x, y, z] and rotate
body-frame vectors into the global frame (z up).
"""
from __future__ import annotations
import numpy as np
from dataclasses import dataclass
from ..config.constants import G, G_STD, UP, CF_ALPHA, CF_ACC_WINDOW_G, DEFAULT_FS_HZ
from ..math.kinematics import (
    IDENTITY_QUAT,
    normalize_quat,
    quat_multiply,
    quat_from_rotvec,
    quat_from_two_vectors,
    quat_to_R,
    quats_to_R_batch,
    world_vec,
    slerp,
)

__all__ = [
    "FilterState",
    "accel_is_plausible",
    "initial_state",
    "complementary_step",
    "estimate_orientation",
    "dynamic_acceleration",
]


@dataclass(frozen=True)
class FilterState:
    q: np.ndarray


def accel_is_plausible(acc: np.ndarray, window_g: tuple[float, float] = CF_ACC_WINDOW_G) -> bool:
    """True when |a| lies in [0.5 g, 1.5 g], i.e. the reading is mostly gravity."""
    mag = float(np.linalg.norm(acc))
    return window_g[0] * G_STD <= mag <= window_g[1] * G_STD


def initial_state(acc0: np.ndarray) -> FilterState:
    # Tilt-only start from the first reading; yaw is unobservable here
    if accel_is_plausible(acc0):
        return FilterState(q=quat_from_two_vectors(acc0, UP))
    return FilterState(q=IDENTITY_QUAT.copy())


def complementary_step(
    state: FilterState,
    acc: np.ndarray,
    gyro: np.ndarray,
    dt: float,
    alpha: float = CF_ALPHA,
) -> FilterState:
    """One filter update: gyro propagation, then optional gravity correction."""
    dq = quat_from_rotvec(np.asarray(gyro, dtype=float) * dt)
    q = normalize_quat(quat_multiply(state.q, dq))
    if accel_is_plausible(acc):
        a_world = world_vec(quat_to_R(q), np.asarray(acc, dtype=float))
        q_corr = quat_from_two_vectors(a_world, UP)
        q_target = normalize_quat(quat_multiply(q_corr, q))
        q = normalize_quat(slerp(q, q_target, 1.0 - alpha))
    return FilterState(q=q)


def estimate_orientation(
    t: np.ndarray,
    acc: np.ndarray,
    gyro: np.ndarray,
    fs_hz: float = DEFAULT_FS_HZ,
    alpha: float = CF_ALPHA,
) -> np.ndarray:
    """Run the complementary filter over a session; returns (T,4) unit quaternions."""
    ts = np.asarray(t, dtype=float)
    A = np.asarray(acc, dtype=float)
    W = np.asarray(gyro, dtype=float)
    T = ts.shape[0]
    out = np.zeros((T, 4), dtype=float)
    if T == 0:
        return out
    dt_default = 1.0 / fs_hz if fs_hz > 0 else 1.0 / DEFAULT_FS_HZ
    state = initial_state(A[0])
    for i in range(T):
        dt = float(ts[i] - ts[i - 1]) if i > 0 else 0.0
        if not dt > 0:
            dt = dt_default
        state = complementary_step(state, A[i], W[i], dt, alpha)
        out[i] = state.q
    return out


def dynamic_acceleration(quats: np.ndarray, acc: np.ndarray) -> np.ndarray:
    """Rotate body-frame specific force to the global frame and remove gravity on z."""
    R = quats_to_R_batch(quats)
    a_world = world_vec(R, np.asarray(acc, dtype=float))
    return a_world + G[None, :]
