from __future__ import annotations
import numpy as np
import pytest
from gaitcore.pipeline.ground_track import project_ground_track, extract_gps_track


def test_projection_axes_and_scale():
    t = np.array([0.0, 1.0, 2.0])
    pos = np.array([[0.0, 0.0, 0.0], [0.0, 111.32, 0.0], [111.32, 0.0, 0.0]])
    track = project_ground_track(t, pos, origin_lat=0.0, origin_lng=10.0)
    assert track[0] == {"t": 0.0, "lat": 0.0, "lng": 10.0}
    assert track[1]["lat"] == pytest.approx(0.001)
    assert track[1]["lng"] == pytest.approx(10.0)
    assert track[2]["lat"] == pytest.approx(0.0)
    assert track[2]["lng"] == pytest.approx(10.001)


def test_projection_longitude_shrinks_with_latitude():
    pos = np.array([[111.32, 0.0, 0.0]])
    track = project_ground_track(np.array([0.0]), pos, origin_lat=60.0, origin_lng=0.0)
    assert track[0]["lng"] == pytest.approx(0.002, rel=1e-9)


def test_extract_gps_track_sorted_and_filtered():
    raw = [
        {"timestamp": 3.0, "type": "gps", "position": {"lat": 45.1, "lng": 9.1}},
        {"timestamp": 1.0, "type": "imu", "data": {}, "position": {"lat": 45.0, "lng": 9.0}},
        {"timestamp": 2.0, "type": "gps", "position": {"lat": "n/a", "lng": 9.0}},
        {"timestamp": "bad", "type": "gps", "position": {"lat": 45.0, "lng": 9.0}},
        {"timestamp": 4.0, "type": "imu", "data": {}},
        "not an entry",
    ]
    fixes = extract_gps_track(raw)
    assert [f["t"] for f in fixes] == [1.0, 3.0]
    assert fixes[1] == {"t": 3.0, "lat": 45.1, "lng": 9.1}
