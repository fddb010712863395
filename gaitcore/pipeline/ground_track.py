from __future__ import annotations
from typing import Any, Iterable, Mapping
import numpy as np
from ..config.constants import METERS_PER_DEGREE, ORIGIN_LAT, ORIGIN_LNG, DEG2RAD
from .io_utils import parse_timestamp

__all__ = ["project_ground_track", "extract_gps_track"]


def project_ground_track(
    t: np.ndarray,
    pos: np.ndarray,
    origin_lat: float = ORIGIN_LAT,
    origin_lng: float = ORIGIN_LNG,
) -> list[dict]:
    """Local tangent-plane positions (x east, y north, meters) to lat/lng.

    Flat-earth projection around the origin; only meant for display when the
    session carried no GPS fixes.
    """
    ts = np.asarray(t, dtype=float)
    P = np.asarray(pos, dtype=float)
    lng_scale = np.cos(origin_lat * DEG2RAD)
    if abs(lng_scale) < 1e-9:
        lng_scale = 1e-9
    lat = origin_lat + P[:, 1] / METERS_PER_DEGREE
    lng = origin_lng + P[:, 0] / (METERS_PER_DEGREE * lng_scale)
    return [
        {"t": float(ti), "lat": float(la), "lng": float(lo)}
        for ti, la, lo in zip(ts, lat, lng)
    ]


def extract_gps_track(raw: Iterable[Any]) -> list[dict]:
    """Captured GPS fixes ({t, lat, lng}) from raw entries, time-ordered."""
    fixes = []
    for e in raw or []:
        if not isinstance(e, Mapping):
            continue
        p = e.get("position")
        if not isinstance(p, Mapping):
            continue
        ts = parse_timestamp(e.get("timestamp"))
        try:
            lat = float(p.get("lat"))
            lng = float(p.get("lng"))
        except (TypeError, ValueError):
            continue
        if ts is None or not (np.isfinite(lat) and np.isfinite(lng)):
            continue
        fixes.append({"t": ts, "lat": lat, "lng": lng})
    fixes.sort(key=lambda f: f["t"])
    return fixes
