from __future__ import annotations
import json
from pathlib import Path
import sys

repo_root = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(repo_root))

from gaitcore.pipeline.pipeline import run_gait_pipeline  # type: ignore
from gaitcore.pipeline.synthetic import synthetic_run_session  # type: ignore
from gaitcore.pipeline.legacy.quick_steps import quick_analysis  # type: ignore


def main():
    raw = synthetic_run_session(n_steps=16, speed_mps=1.2, acc_in_g=True, gyro_in_deg=True)
    res = run_gait_pipeline(raw, mass_kg=70.0)
    if res is None:
        print(json.dumps({"error": "insufficient_data"}))
        return

    quick = quick_analysis(raw, 70.0) or {}
    steps = res.steps

    def rng(vals):
        vals = [v for v in vals if isinstance(v, (int, float))]
        if not vals:
            return float('nan')
        return [round(min(vals), 3), round(max(vals), 3)]

    summary = {
        'fs_hz': res.meta.get('fs_hz'),
        'units': res.meta.get('units'),
        'calibration_window_still': res.meta.get('calibration_window_still'),
        'summary': {k: round(v, 3) for k, v in res.summary.to_dict().items()},
        'contact_time_range_s': rng([s.CT for s in steps]),
        'step_length_range_m': rng([s.L for s in steps]),
        'Fpeak_range_N': rng([s.Fpeak for s in steps]),
        'ground_track_source': res.ground_track_source,
        'quick_summary': quick.get('summary'),
    }
    print(json.dumps(summary, indent=2))


if __name__ == '__main__':
    main()
