from __future__ import annotations
import numpy as np
from dataclasses import dataclass, asdict
from ..config.constants import STEP_TIME_FLOOR_S, DEFAULT_MASS_KG, RAD2DEG
from .heel_strike_detection import StepEvents

__all__ = [
    "StepMetric",
    "SessionSummary",
    "resolve_mass",
    "foot_strike_angles",
    "compute_step_metrics",
    "summarize_session",
]


@dataclass(frozen=True)
class StepMetric:
    """Per-stride metrics. Field names are the serialized keys."""
    index: int
    tFS: float
    tTO: float
    tFS2: float
    CT: float
    FT: float
    Tstep: float
    cadencePmin: float
    L: float
    vmean: float
    vi: float
    pitchDeg: float
    rollDeg: float
    apeak: float
    Fpeak: float

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class SessionSummary:
    nSteps: int
    totalDistance: float
    avgSpeed: float
    avgCadence: float
    avgStepLength: float
    avgContactTime: float
    avgFlightTime: float
    duration: float

    def to_dict(self) -> dict:
        return asdict(self)


def resolve_mass(mass_kg: float | None) -> float:
    try:
        m = float(mass_kg) if mass_kg is not None else DEFAULT_MASS_KG
    except (TypeError, ValueError):
        return DEFAULT_MASS_KG
    return m if np.isfinite(m) and m > 0 else DEFAULT_MASS_KG


def foot_strike_angles(acc_body: np.ndarray) -> tuple[float, float]:
    """Pitch/roll (deg) from a body-frame accelerometer reading.

    Assumes the reading is dominated by gravity at the strike instant.
    """
    ax, ay, az = (float(v) for v in acc_body)
    pitch = np.arctan2(-ax, np.sqrt(ay * ay + az * az)) * RAD2DEG
    roll = np.arctan2(ay, az) * RAD2DEG
    return float(pitch), float(roll)


def compute_step_metrics(
    t: np.ndarray,
    acc_body: np.ndarray,
    a_dyn: np.ndarray,
    pos: np.ndarray,
    events: StepEvents,
    mass_kg: float | None = DEFAULT_MASS_KG,
    step_time_floor_s: float = STEP_TIME_FLOOR_S,
) -> list[StepMetric]:
    ts = np.asarray(t, dtype=float)
    A = np.asarray(acc_body, dtype=float)
    D = np.asarray(a_dyn, dtype=float)
    P = np.asarray(pos, dtype=float)
    N = ts.shape[0]
    mass = resolve_mass(mass_kg)
    steps: list[StepMetric] = []
    for k, (i_fs, i_to, i_fs2) in enumerate(events.strides()):
        if not (0 <= i_fs < N and 0 <= i_to < N and 0 <= i_fs2 < N):
            continue
        t_fs, t_to, t_fs2 = float(ts[i_fs]), float(ts[i_to]), float(ts[i_fs2])
        ct = max(0.0, t_to - t_fs)
        ft = max(0.0, t_fs2 - t_to)
        tstep = max(step_time_floor_s, t_fs2 - t_fs)
        L = float(np.hypot(P[i_fs2, 0] - P[i_fs, 0], P[i_fs2, 1] - P[i_fs, 1]))
        v = L / tstep
        lo, hi = min(i_fs, i_to), max(i_fs, i_to)
        apeak = float(np.max(D[lo:hi + 1, 2]))
        pitch, roll = foot_strike_angles(A[i_fs])
        steps.append(
            StepMetric(
                index=k + 1,
                tFS=t_fs,
                tTO=t_to,
                tFS2=t_fs2,
                CT=ct,
                FT=ft,
                Tstep=tstep,
                cadencePmin=60.0 / tstep,
                L=L,
                vmean=v,
                vi=v,
                pitchDeg=pitch,
                rollDeg=roll,
                apeak=apeak,
                Fpeak=mass * apeak,
            )
        )
    return steps


def summarize_session(steps: list[StepMetric], t: np.ndarray) -> SessionSummary:
    ts = np.asarray(t, dtype=float)
    duration = float(ts[-1] - ts[0]) if ts.size >= 2 else 0.0
    total = float(sum(s.L for s in steps))
    n = len(steps)

    def _mean(vals) -> float:
        return float(np.mean(vals)) if n else 0.0

    return SessionSummary(
        nSteps=n,
        totalDistance=total,
        avgSpeed=total / duration if duration > 0 else 0.0,
        avgCadence=_mean([s.cadencePmin for s in steps]),
        avgStepLength=_mean([s.L for s in steps]),
        avgContactTime=_mean([s.CT for s in steps]),
        avgFlightTime=_mean([s.FT for s in steps]),
        duration=duration,
    )
