"""
Quick step estimator without orientation tracking.

LEGACY: This estimator predates the orientation-aware pipeline in
gaitcore.pipeline.pipeline and is kept only for comparison. It assumes the
sensor z axis stays vertical and that the accelerometer reports g. Step length
comes from an empirical drop-height formula, not from integration.
"""
from __future__ import annotations
import numpy as np
from typing import Any, Iterable
from ...config.constants import (
    G_STD, DEFAULT_MASS_KG, QUICK_FS_THRESHOLD, QUICK_MIN_SPACING_S, QUICK_DROP_HEIGHT_M,
)
from ..io_utils import parse_timestamp, _is_imu_entry, _num
from ..heel_strike_detection import local_maxima
from ..step_metrics import StepMetric, resolve_mass, foot_strike_angles, summarize_session

__all__ = ["quick_step_metrics", "quick_analysis"]


def _quick_foot_strikes(t: np.ndarray, adyn_z: np.ndarray) -> list[int]:
    # spacing is measured in time, not samples
    out: list[int] = []
    for i in local_maxima(adyn_z):
        if adyn_z[i] <= QUICK_FS_THRESHOLD:
            continue
        if not out or (t[i] - t[out[-1]]) > QUICK_MIN_SPACING_S:
            out.append(int(i))
    return out


def _raw_accel(raw: Iterable[Any]) -> tuple[np.ndarray, np.ndarray]:
    ts: list[float] = []
    acc: list[list[float]] = []
    for e in raw or []:
        if not _is_imu_entry(e):
            continue
        t = parse_timestamp(e.get("timestamp"))
        if t is None:
            continue
        d = e["data"]
        ts.append(t)
        acc.append([_num(d.get("ax")), _num(d.get("ay")), _num(d.get("az"))])
    t = np.asarray(ts, dtype=float)
    A = np.asarray(acc, dtype=float).reshape(-1, 3)
    order = np.argsort(t, kind="stable")
    return t[order], A[order]


def quick_step_metrics(raw: Iterable[Any], mass_kg: float | None = DEFAULT_MASS_KG) -> list[StepMetric]:
    """Per-stride metrics from raw entries using vertical accel only.

    adyn_z = (az - 1) * g; foot strikes are peaks above 5 m/s^2 more than
    0.2 s apart; toe-off is the minimum of adyn_z between consecutive strikes.
    Returns [] for fewer than two IMU samples or foot strikes.
    """
    t, A = _raw_accel(raw)
    return _quick_steps(t, A, mass_kg)


def quick_analysis(raw: Iterable[Any], mass_kg: float | None = DEFAULT_MASS_KG) -> dict | None:
    """Steps and session summary from the quick estimator; None when no strides."""
    t, A = _raw_accel(raw)
    steps = _quick_steps(t, A, mass_kg)
    if not steps:
        return None
    return {
        "steps": [s.to_dict() for s in steps],
        "summary": summarize_session(steps, t).to_dict(),
    }


def _quick_steps(t: np.ndarray, A: np.ndarray, mass_kg: float | None) -> list[StepMetric]:
    if t.size < 2:
        return []
    adyn_z = (A[:, 2] - 1.0) * G_STD

    fs_idx = _quick_foot_strikes(t, adyn_z)
    if len(fs_idx) < 2:
        return []

    mass = resolve_mass(mass_kg)
    steps: list[StepMetric] = []
    for k, (i0, i1) in enumerate(zip(fs_idx[:-1], fs_idx[1:])):
        seg = adyn_z[i0:i1]
        i_to = i0 + int(np.argmin(seg))
        t_fs, t_to, t_fs2 = float(t[i0]), float(t[i_to]), float(t[i1])
        tstep = t_fs2 - t_fs
        ft = max(0.0, t_fs2 - t_to)
        L = 2.0 * np.sqrt(2.0 * QUICK_DROP_HEIGHT_M * abs(ft * G_STD))
        v = L / tstep
        apeak = float(np.max(seg))
        pitch, roll = foot_strike_angles(A[i0])
        steps.append(
            StepMetric(
                index=k + 1,
                tFS=t_fs,
                tTO=t_to,
                tFS2=t_fs2,
                CT=max(0.0, t_to - t_fs),
                FT=ft,
                Tstep=tstep,
                cadencePmin=60.0 / tstep,
                L=float(L),
                vmean=float(v),
                vi=float(v),
                pitchDeg=pitch,
                rollDeg=roll,
                apeak=apeak,
                Fpeak=mass * apeak,
            )
        )
    return steps
