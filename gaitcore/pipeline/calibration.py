from __future__ import annotations
import logging
import numpy as np
from dataclasses import dataclass
from ..config.constants import (
    G_STD, DEFAULT_FS_HZ, CALIB_WINDOW_S,
    STILL_THR_W, STILL_THR_A, STILL_SMOOTH_S,
)
from ..math.kinematics import moving_avg
from .io_utils import ImuSeries

__all__ = [
    "Bias", "CalibrationResult",
    "estimate_sampling_hz", "calibration_window_size", "calibrate_static_bias",
    "calibration_window_is_still", "apply_bias", "calibrate_all",
]

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Bias:
    """Per-channel offsets estimated once from the opening static hold.

    acc: (3,) m/s^2. Only the deviation of the static reading from 1 g along
    its own direction is treated as bias, so gravity stays in the signal.
    gyro: (3,) rad/s, plain channel means.
    """
    acc: np.ndarray
    gyro: np.ndarray
    n_window: int

    def as_dict(self) -> dict:
        return {
            "acc": [float(x) for x in self.acc],
            "gyro": [float(x) for x in self.gyro],
            "n_window": int(self.n_window),
        }


@dataclass
class CalibrationResult:
    """Container for calibration artifacts computed in a single pass.

    fs_hz: assumed sampling rate (Hz) derived from count / duration.
    bias: static bias subtracted from every sample.
    window_still: whether the calibration window passed the still check.
    series: bias-corrected samples.
    """
    fs_hz: float
    bias: Bias
    window_still: bool
    series: ImuSeries


def estimate_sampling_hz(t: np.ndarray) -> float:
    """round(N / duration); 100 Hz when duration is not positive or N < 2."""
    t = np.asarray(t, dtype=float)
    if t.size < 2:
        return DEFAULT_FS_HZ
    dur = float(t[-1] - t[0])
    if not np.isfinite(dur) or dur <= 0:
        return DEFAULT_FS_HZ
    # half-up rounding
    fs = int(np.floor(t.size / dur + 0.5))
    return float(max(1, fs))


def calibration_window_size(n: int, fs_hz: float, window_s: float = CALIB_WINDOW_S) -> int:
    k = int(np.floor(fs_hz * window_s))
    return int(max(1, min(n, k)))


def calibrate_static_bias(series: ImuSeries, fs_hz: float, window_s: float = CALIB_WINDOW_S) -> Bias:
    k = calibration_window_size(len(series), fs_hz, window_s)
    gb = np.mean(series.gyro[:k], axis=0)
    m = np.mean(series.acc[:k], axis=0)
    norm = float(np.linalg.norm(m))
    if norm > 1e-9:
        ab = m - G_STD * (m / norm)
    else:
        ab = m.copy()
    return Bias(acc=ab, gyro=gb, n_window=k)


def calibration_window_is_still(series: ImuSeries, n: int, fs_hz: float) -> bool:
    """Check that the first n samples look like a static hold.

    Uses the smoothed gyro deviation magnitude and the smoothed deviation of
    |a| from its window mean. Diagnostic only; the bias is computed regardless.
    """
    n = int(max(1, min(n, len(series))))
    g = series.gyro[:n]
    a = series.acc[:n]
    gdev = np.linalg.norm(g - np.mean(g, axis=0), axis=1)
    amag = np.linalg.norm(a, axis=1)
    adev = np.abs(amag - float(np.mean(amag)))
    win = max(1, min(n, int(round(STILL_SMOOTH_S * fs_hz))))
    gdev_s = moving_avg(gdev, win=win)
    adev_s = moving_avg(adev, win=win)
    return bool(np.all(gdev_s < STILL_THR_W) and np.all(adev_s < STILL_THR_A))


def apply_bias(series: ImuSeries, bias: Bias) -> ImuSeries:
    return ImuSeries(
        t=series.t.copy(),
        acc=series.acc - bias.acc[None, :],
        gyro=series.gyro - bias.gyro[None, :],
    )


def calibrate_all(series: ImuSeries, window_s: float = CALIB_WINDOW_S) -> CalibrationResult:
    """One-shot calibration: sampling rate, static bias, still check, correction."""
    fs_hz = estimate_sampling_hz(series.t)
    bias = calibrate_static_bias(series, fs_hz, window_s)
    still = calibration_window_is_still(series, bias.n_window, fs_hz)
    if not still:
        log.warning(
            "calibration window (%d samples) is not static; bias estimate may absorb motion",
            bias.n_window,
        )
    return CalibrationResult(fs_hz=fs_hz, bias=bias, window_still=still, series=apply_bias(series, bias))
