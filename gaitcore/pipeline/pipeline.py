from __future__ import annotations
import logging
import numpy as np
from dataclasses import dataclass, field
from typing import Any, Iterable

# Local imports
from ..math.drift import zupt_integrate
from ..config.constants import (
    MIN_SAMPLES, CALIB_WINDOW_S, CF_ALPHA,
    FS_THRESHOLD, FS_MIN_SPACING_S, TO_THRESHOLD, TO_SEARCH_S, TO_FALLBACK_SAMPLES,
    STEP_TIME_FLOOR_S, ORIGIN_LAT, ORIGIN_LNG,
)
from .io_utils import normalize_samples
from .calibration import calibrate_all
from .orientation import estimate_orientation, dynamic_acceleration
from .heel_strike_detection import StepEvents, detect_step_events
from .step_metrics import StepMetric, SessionSummary, compute_step_metrics, summarize_session
from .ground_track import project_ground_track, extract_gps_track

__all__ = [
    "PipelineConfig",
    "GaitAnalysisResult",
    "run_gait_pipeline",
    "to_json_safe",
]

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineConfig:
    """Tunables for one pipeline run.

    Parameters
    - fs_threshold: foot-strike peak threshold on a_dyn.z (m/s^2)
    - min_peak_spacing_s: minimum time between accepted foot strikes (s)
    - to_threshold: toe-off level on a_dyn.z (m/s^2)
    - to_search_s: toe-off search window after each foot strike (s)
    - to_fallback_samples: toe-off offset when nothing drops below to_threshold
    - alpha: complementary filter gyro weight (1 - alpha is the accel weight)
    - calibration_window_s: length of the assumed static hold at the start (s)
    - min_samples: minimum IMU samples required to analyse a session
    - step_time_floor_s: lower bound on step time
    - origin_lat, origin_lng: reference for the synthetic ground track
    """
    fs_threshold: float = FS_THRESHOLD
    min_peak_spacing_s: float = FS_MIN_SPACING_S
    to_threshold: float = TO_THRESHOLD
    to_search_s: float = TO_SEARCH_S
    to_fallback_samples: int = TO_FALLBACK_SAMPLES
    alpha: float = CF_ALPHA
    calibration_window_s: float = CALIB_WINDOW_S
    min_samples: int = MIN_SAMPLES
    step_time_floor_s: float = STEP_TIME_FLOOR_S
    origin_lat: float = ORIGIN_LAT
    origin_lng: float = ORIGIN_LNG

    @classmethod
    def from_options(cls, options: dict | None) -> "PipelineConfig":
        if not isinstance(options, dict):
            return cls()
        kw: dict[str, Any] = {}
        for name, f in cls.__dataclass_fields__.items():
            if options.get(name) is None:
                continue
            caster = int if f.type in ("int", int) else float
            kw[name] = caster(options[name])
        # the insufficient-data floor can be raised, never lowered
        if "min_samples" in kw:
            kw["min_samples"] = max(MIN_SAMPLES, kw["min_samples"])
        return cls(**kw)


@dataclass
class GaitAnalysisResult:
    steps: list[StepMetric]
    summary: SessionSummary
    t: np.ndarray
    a_dyn: np.ndarray
    vel: np.ndarray
    pos: np.ndarray
    quats: np.ndarray
    events: StepEvents
    ground_track: list[dict]
    ground_track_source: str
    meta: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        t = self.t
        return to_json_safe({
            "steps": [s.to_dict() for s in self.steps],
            "summary": self.summary.to_dict(),
            "a_dyn": [
                {"t": ti, "ax": a[0], "ay": a[1], "az": a[2]} for ti, a in zip(t, self.a_dyn)
            ],
            "vel": [{"vx": v[0], "vy": v[1], "vz": v[2]} for v in self.vel],
            "pos": [{"x": p[0], "y": p[1], "z": p[2]} for p in self.pos],
            "quats": self.quats,
            "events": {"FS": self.events.fs, "TO": self.events.to},
            "groundTrack": self.ground_track,
            "groundTrackSource": self.ground_track_source,
            "meta": self.meta,
        })


def to_json_safe(obj: Any):
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    if isinstance(obj, (np.generic,)):
        return obj.item()
    if isinstance(obj, dict):
        return {k: to_json_safe(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_json_safe(x) for x in obj]
    return obj


def run_gait_pipeline(
    raw_samples: Iterable[Any],
    mass_kg: float | None = None,
    options: dict | None = None,
) -> GaitAnalysisResult | None:
    """Analyse one session of raw IMU entries.

    Returns None when there is not enough data to analyse (too few IMU
    samples or fewer than two foot strikes); never raises for that case.
    """
    cfg = PipelineConfig.from_options(options)
    raw = list(raw_samples or [])

    # 1) normalize units and time
    session = normalize_samples(raw, min_samples=cfg.min_samples)
    if session is None:
        return None
    series = session.series

    # 2) static bias from the opening hold
    cal = calibrate_all(series, window_s=cfg.calibration_window_s)
    fs_hz = cal.fs_hz
    t = cal.series.t
    acc = cal.series.acc
    gyro = cal.series.gyro

    # 3-4) orientation and gravity removal
    quats = estimate_orientation(t, acc, gyro, fs_hz=fs_hz, alpha=cfg.alpha)
    a_dyn = dynamic_acceleration(quats, acc)

    # 5) gait events
    events = detect_step_events(
        a_dyn,
        fs_hz,
        fs_threshold=cfg.fs_threshold,
        min_spacing_s=cfg.min_peak_spacing_s,
        to_threshold=cfg.to_threshold,
        to_search_s=cfg.to_search_s,
        to_fallback_samples=cfg.to_fallback_samples,
    )
    if events.fs.size < 2:
        log.info("insufficient data: %d foot strikes detected", int(events.fs.size))
        return None

    # 6) ZUPT-anchored double integration
    vel, pos = zupt_integrate(t, a_dyn, events.fs)

    # 7) per-step metrics and summary
    steps = compute_step_metrics(
        t, acc, a_dyn, pos, events,
        mass_kg=mass_kg,
        step_time_floor_s=cfg.step_time_floor_s,
    )
    summary = summarize_session(steps, t)

    gps = extract_gps_track(raw)
    if len(gps) >= 2:
        track, track_src = gps, "gps"
    else:
        track = project_ground_track(t, pos, cfg.origin_lat, cfg.origin_lng)
        track_src = "imu"

    meta = {
        "fs_hz": fs_hz,
        "n_samples": len(series),
        "n_dropped": session.n_dropped,
        "units": session.units.as_dict(),
        "bias": cal.bias.as_dict(),
        "calibration_window_still": cal.window_still,
        "n_foot_strikes": int(events.fs.size),
    }
    log.info(
        "analysed %d samples at %.0f Hz: %d steps, %.2f m",
        len(series), fs_hz, summary.nSteps, summary.totalDistance,
    )
    return GaitAnalysisResult(
        steps=steps,
        summary=summary,
        t=t,
        a_dyn=a_dyn,
        vel=vel,
        pos=pos,
        quats=quats,
        events=events,
        ground_track=track,
        ground_track_source=track_src,
        meta=meta,
    )
