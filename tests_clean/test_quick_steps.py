from __future__ import annotations
import numpy as np
import pytest
from gaitcore.config.constants import G_STD
from gaitcore.pipeline.legacy.quick_steps import quick_step_metrics, quick_analysis


def _entries(az):
    return [
        {"timestamp": 1.0 + 0.01 * i, "type": "imu", "data": {"ax": 0.0, "ay": 0.0, "az": float(v)}}
        for i, v in enumerate(az)
    ]


def _two_strides():
    az = np.ones(200)
    for i in (20, 80, 140):
        az[i] = 3.0
    az[50] = 0.5
    az[110] = 0.5
    return _entries(az)


def test_quick_steps_two_strides():
    steps = quick_step_metrics(_two_strides(), mass_kg=60.0)
    assert [s.index for s in steps] == [1, 2]
    s = steps[0]
    assert s.CT == pytest.approx(0.3, abs=1e-9)
    assert s.FT == pytest.approx(0.3, abs=1e-9)
    assert s.Tstep == pytest.approx(0.6, abs=1e-9)
    assert s.cadencePmin == pytest.approx(100.0, rel=1e-6)
    L = 2.0 * np.sqrt(2.0 * 1.0 * 0.3 * G_STD)
    assert s.L == pytest.approx(L, rel=1e-6)
    assert s.vi == pytest.approx(L / 0.6, rel=1e-6)
    assert s.apeak == pytest.approx(2.0 * G_STD)
    assert s.Fpeak == pytest.approx(60.0 * 2.0 * G_STD)


def test_quick_peaks_closer_than_spacing_are_dropped():
    az = np.ones(200)
    az[20] = 3.0
    az[35] = 3.0  # 0.15 s later
    az[100] = 3.0
    steps = quick_step_metrics(_entries(az))
    assert len(steps) == 1
    assert steps[0].tFS2 == pytest.approx(2.0)


def test_quick_insufficient():
    assert quick_step_metrics(_entries([1.0])) == []
    assert quick_step_metrics(_entries(np.ones(100))) == []
    assert quick_analysis(_entries(np.ones(100))) is None


def test_quick_analysis_summary():
    out = quick_analysis(_two_strides())
    assert out["summary"]["nSteps"] == 2
    assert out["summary"]["duration"] == pytest.approx(1.99)
    assert len(out["steps"]) == 2
