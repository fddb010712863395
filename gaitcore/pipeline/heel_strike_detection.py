"""
Foot-strike / toe-off detection on global-frame vertical dynamic acceleration.
Foot strikes are impact peaks; toe-off is the first drop below a low level.
"""
from __future__ import annotations
import numpy as np
from dataclasses import dataclass
from ..config.constants import (
    FS_THRESHOLD, FS_MIN_SPACING_S,
    TO_THRESHOLD, TO_SEARCH_S, TO_FALLBACK_SAMPLES,
)

__all__ = [
    "StepEvents",
    "local_maxima",
    "detect_foot_strikes",
    "detect_toe_offs",
    "detect_step_events",
]


@dataclass(frozen=True)
class StepEvents:
    """Parallel foot-strike / toe-off sample indices.

    to[k] belongs to fs[k] and lies strictly between fs[k] and fs[k+1].
    Strides are consecutive (fs[k], fs[k+1]) pairs.
    """
    fs: np.ndarray
    to: np.ndarray

    @property
    def n_strides(self) -> int:
        return int(max(0, min(self.fs.size - 1, self.to.size)))

    def strides(self) -> list[tuple[int, int, int]]:
        return [
            (int(self.fs[k]), int(self.to[k]), int(self.fs[k + 1]))
            for k in range(self.n_strides)
        ]


def local_maxima(x: np.ndarray) -> np.ndarray:
    """Indices i with x[i] > x[i-1] and x[i] > x[i+1] (plateaus are not peaks)."""
    a = np.asarray(x, dtype=float)
    if a.size < 3:
        return np.array([], dtype=int)
    mid = a[1:-1]
    mask = (mid > a[:-2]) & (mid > a[2:])
    return np.flatnonzero(mask) + 1


def detect_foot_strikes(
    a_z: np.ndarray,
    fs_hz: float,
    threshold: float = FS_THRESHOLD,
    min_spacing_s: float = FS_MIN_SPACING_S,
) -> np.ndarray:
    """Impact peaks above threshold, at least floor(fs * 0.3) samples apart.

    Candidates are taken in time order; one that falls within the spacing of
    the last accepted foot strike is dropped, never merged.
    """
    a = np.asarray(a_z, dtype=float)
    min_distance = int(np.floor(fs_hz * min_spacing_s))
    peaks = local_maxima(a)
    peaks = peaks[a[peaks] > threshold]
    accepted: list[int] = []
    for p in peaks:
        if accepted and (p - accepted[-1]) < min_distance:
            continue
        accepted.append(int(p))
    return np.asarray(accepted, dtype=int)


def detect_toe_offs(
    a_z: np.ndarray,
    fs_idx: np.ndarray,
    fs_hz: float,
    low_threshold: float = TO_THRESHOLD,
    search_s: float = TO_SEARCH_S,
    fallback_samples: int = TO_FALLBACK_SAMPLES,
) -> np.ndarray:
    """First sample after each foot strike where a_z drops below low_threshold.

    The scan covers at most floor(fs * 0.8) samples and stops before the next
    foot strike. When nothing qualifies the toe-off is placed a fixed number
    of samples after the strike (not rate-relative), kept before the next
    strike and inside the series.
    """
    a = np.asarray(a_z, dtype=float)
    N = a.size
    idx = np.asarray(fs_idx, dtype=int)
    window = int(np.floor(fs_hz * search_s))
    out = np.empty(idx.size, dtype=int)
    for k, i0 in enumerate(idx):
        i0 = int(i0)
        limit = N - 1 if k + 1 >= idx.size else int(idx[k + 1]) - 1
        stop = min(i0 + window, limit)
        seg = a[i0 + 1:stop + 1]
        below = np.flatnonzero(seg < low_threshold)
        if below.size:
            out[k] = i0 + 1 + int(below[0])
        else:
            out[k] = min(i0 + int(fallback_samples), limit)
    return out


def detect_step_events(
    a_dyn: np.ndarray,
    fs_hz: float,
    fs_threshold: float = FS_THRESHOLD,
    min_spacing_s: float = FS_MIN_SPACING_S,
    to_threshold: float = TO_THRESHOLD,
    to_search_s: float = TO_SEARCH_S,
    to_fallback_samples: int = TO_FALLBACK_SAMPLES,
) -> StepEvents:
    A = np.asarray(a_dyn, dtype=float)
    a_z = A[:, 2] if A.ndim == 2 else A
    fs_idx = detect_foot_strikes(a_z, fs_hz, fs_threshold, min_spacing_s)
    to_idx = detect_toe_offs(a_z, fs_idx, fs_hz, to_threshold, to_search_s, to_fallback_samples)
    return StepEvents(fs=fs_idx, to=to_idx)
