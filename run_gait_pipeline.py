from __future__ import annotations
from pathlib import Path
import argparse
import json
import logging
from gaitcore.config.settings import settings
from gaitcore.pipeline.io_utils import read_session_bytes
from gaitcore.pipeline.pipeline import run_gait_pipeline
from gaitcore.pipeline.synthetic import synthetic_run_session


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument('--data', type=str, default=None, help='session file (.json or .csv); demo run if omitted')
    ap.add_argument('--mass', type=float, default=settings.default_mass_kg)
    ap.add_argument('--origin-lat', type=float, default=settings.origin_lat)
    ap.add_argument('--origin-lng', type=float, default=settings.origin_lng)
    ap.add_argument('--json', action='store_true', help='dump the full JSON result')
    args = ap.parse_args()
    logging.basicConfig(level=settings.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    if args.data:
        path = Path(args.data)
        raw = read_session_bytes(path.read_bytes(), path.name)
    else:
        raw = synthetic_run_session()
    options = {'origin_lat': args.origin_lat, 'origin_lng': args.origin_lng}
    out = run_gait_pipeline(raw, mass_kg=args.mass, options=options)
    if out is None:
        print('Insufficient data: need at least 10 IMU samples and 2 foot strikes')
        raise SystemExit(1)
    if args.json:
        print(json.dumps(out.to_dict()))
        return

    s = out.summary
    print('Samples:', out.meta['n_samples'], 'at', out.meta['fs_hz'], 'Hz')
    print('Units:', out.meta['units']['acc_unit'], '/', out.meta['units']['gyro_unit'])
    print('Steps:', s.nSteps, ' distance: %.2f m  duration: %.2f s' % (s.totalDistance, s.duration))
    print('Avg cadence: %.1f spm  step length: %.2f m  speed: %.2f m/s' % (s.avgCadence, s.avgStepLength, s.avgSpeed))
    print('Avg CT/FT: %.3f / %.3f s' % (s.avgContactTime, s.avgFlightTime))
    print('Ground track:', out.ground_track_source, f'({len(out.ground_track)} points)')

    print('\n=== PER-STEP ===')
    for st in out.steps:
        print(f'{st.index:3d}  t={st.tFS:.3f}  CT={st.CT:.3f}  FT={st.FT:.3f}  L={st.L:.2f}  '
              f'v={st.vi:.2f}  Fpeak={st.Fpeak:.0f} N')

    if not out.meta.get('calibration_window_still', True):
        print('\nWARNING: first second of data is not static; bias estimate may be off')


if __name__ == '__main__':
    main()
