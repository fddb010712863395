from __future__ import annotations
import numpy as np

__all__ = [
    "normalize_quat",
    "quat_multiply",
    "quat_from_rotvec",
    "quat_from_two_vectors",
    "quats_to_R_batch",
    "quat_to_R",
    "world_vec",
    "moving_avg",
    "slerp",
]

IDENTITY_QUAT = np.array([1.0, 0.0, 0.0, 0.0], dtype=float)


def normalize_quat(q: np.ndarray) -> np.ndarray:
    q = np.asarray(q, dtype=float)
    n = np.linalg.norm(q, axis=-1, keepdims=True) + 1e-12
    return q / n


def quat_multiply(q1: np.ndarray, q2: np.ndarray) -> np.ndarray:
    """Hamilton product q1 ⊗ q2 for [w, x, y, z] quaternions."""
    w1, x1, y1, z1 = q1
    w2, x2, y2, z2 = q2
    return np.array(
        [
            w1 * w2 - x1 * x2 - y1 * y2 - z1 * z2,
            w1 * x2 + x1 * w2 + y1 * z2 - z1 * y2,
            w1 * y2 - x1 * z2 + y1 * w2 + z1 * x2,
            w1 * z2 + x1 * y2 - y1 * x2 + z1 * w2,
        ],
        dtype=float,
    )


def quat_from_rotvec(rotvec: np.ndarray, eps: float = 1e-12) -> np.ndarray:
    """Quaternion for a rotation of |rotvec| radians about rotvec's direction.

    Returns identity when the angle is numerically zero.
    """
    v = np.asarray(rotvec, dtype=float)
    angle = float(np.linalg.norm(v))
    if angle < eps:
        return IDENTITY_QUAT.copy()
    axis = v / angle
    h = 0.5 * angle
    return np.concatenate([[np.cos(h)], np.sin(h) * axis])


def quat_from_two_vectors(u: np.ndarray, v: np.ndarray) -> np.ndarray:
    """Shortest-arc rotation taking the direction of u onto the direction of v."""
    a = np.asarray(u, dtype=float)
    b = np.asarray(v, dtype=float)
    a = a / (np.linalg.norm(a) + 1e-12)
    b = b / (np.linalg.norm(b) + 1e-12)
    dot = float(np.dot(a, b))
    if dot < -1.0 + 1e-9:
        # Antiparallel: any axis orthogonal to a works
        ortho = np.cross(a, [1.0, 0.0, 0.0])
        if np.linalg.norm(ortho) < 1e-6:
            ortho = np.cross(a, [0.0, 1.0, 0.0])
        ortho = ortho / np.linalg.norm(ortho)
        return np.concatenate([[0.0], ortho])
    q = np.concatenate([[1.0 + dot], np.cross(a, b)])
    return normalize_quat(q)


def quats_to_R_batch(quats: np.ndarray) -> np.ndarray:
    q = normalize_quat(np.asarray(quats, dtype=float))
    w, x, y, z = q[:, 0], q[:, 1], q[:, 2], q[:, 3]
    ww, xx, yy, zz = w * w, x * x, y * y, z * z
    wx, wy, wz = w * x, w * y, w * z
    xy, xz, yz = x * y, x * z, y * z
    R = np.empty((q.shape[0], 3, 3), dtype=float)
    R[:, 0, 0] = 1 - 2 * (yy + zz)
    R[:, 0, 1] = 2 * (xy - wz)
    R[:, 0, 2] = 2 * (xz + wy)
    R[:, 1, 0] = 2 * (xy + wz)
    R[:, 1, 1] = 1 - 2 * (xx + zz)
    R[:, 1, 2] = 2 * (yz - wx)
    R[:, 2, 0] = 2 * (xz - wy)
    R[:, 2, 1] = 2 * (yz + wx)
    R[:, 2, 2] = 1 - 2 * (xx + yy)
    return R


def quat_to_R(q: np.ndarray) -> np.ndarray:
    return quats_to_R_batch(np.asarray(q, dtype=float)[None, :])[0]


def world_vec(R_WS: np.ndarray, v_S: np.ndarray) -> np.ndarray:
    return (R_WS @ v_S[..., None]).squeeze(-1)


def moving_avg(x: np.ndarray, win: int = 9) -> np.ndarray:
    if win <= 1:
        return x
    win = int(max(1, win))
    k = np.ones(win, dtype=float) / win
    if x.ndim == 1:
        return np.convolve(x, k, mode="same")
    return np.vstack(
        [np.convolve(x[:, i], k, mode="same") for i in range(x.shape[1])]
    ).T


def slerp(q0: np.ndarray, q1: np.ndarray, u: float) -> np.ndarray:
    dot = float(np.dot(q0, q1))
    q1c = q1.copy()
    if dot < 0.0:
        q1c = -q1c
        dot = -dot
    if dot > 0.9995:
        v = q0 + u * (q1c - q0)
        return v / (np.linalg.norm(v) + 1e-12)
    th0 = np.arccos(np.clip(dot, -1.0, 1.0))
    s0 = np.sin((1.0 - u) * th0) / np.sin(th0)
    s1 = np.sin(u * th0) / np.sin(th0)
    return s0 * q0 + s1 * q1c
