from __future__ import annotations
import io, json, re, logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Iterable, Mapping
import numpy as np
import pandas as pd
from ..config.constants import (
    G_STD, DEG2RAD, MIN_SAMPLES, TS_NS_ABOVE, TS_MS_ABOVE,
    ACC_G_RANGE, GYRO_DPS_ABOVE, IMU_TAG,
    TIME_CANDS, TYPE_CANDS, ACC, GYR, LAT_CANDS, LNG_CANDS,
)

__all__ = [
    "ImuSeries",
    "UnitInference",
    "NormalizedSession",
    "parse_timestamp",
    "infer_units",
    "normalize_samples",
    "sanitize_cols",
    "pick_col",
    "read_session_bytes",
]

log = logging.getLogger(__name__)

_FIELDS_ACC = ("ax", "ay", "az")
_FIELDS_GYR = ("gx", "gy", "gz")


@dataclass(frozen=True)
class ImuSeries:
    """Time-ordered IMU samples in SI units.

    t: (T,) seconds, non-decreasing; acc: (T,3) m/s^2; gyro: (T,3) rad/s.
    """
    t: np.ndarray
    acc: np.ndarray
    gyro: np.ndarray

    def __len__(self) -> int:
        return int(self.t.shape[0])


@dataclass(frozen=True)
class UnitInference:
    acc_unit: str
    gyro_unit: str
    acc_scale: float
    gyro_scale: float
    mean_acc_mag: float
    mean_gyro_mag: float

    def as_dict(self) -> dict:
        return {
            "acc_unit": self.acc_unit,
            "gyro_unit": self.gyro_unit,
            "mean_acc_mag": self.mean_acc_mag,
            "mean_gyro_mag": self.mean_gyro_mag,
        }


@dataclass(frozen=True)
class NormalizedSession:
    series: ImuSeries
    units: UnitInference
    n_tagged: int
    n_dropped: int


def parse_timestamp(value: Any) -> float | None:
    """Resolve a raw timestamp to epoch seconds, or None if unusable.

    Numbers are classified by magnitude: > 1e12 ns, > 1e9 ms, else seconds.
    Strings are parsed as calendar date-times (naive values taken as UTC).

    Present-day epoch milliseconds (~1.7e12) fall in the nanosecond band and
    shrink the session a millionfold in time, so such sessions come out as
    insufficient data. Send epoch ns, seconds below 1e9, or ISO strings.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, np.integer, np.floating)):
        ts = float(value)
        if not np.isfinite(ts):
            return None
        if ts > TS_NS_ABOVE:
            ts = ts / 1e9
        elif ts > TS_MS_ABOVE:
            ts = ts / 1e3
    elif isinstance(value, (str, datetime)):
        if isinstance(value, str) and not value.strip():
            return None
        try:
            stamp = pd.Timestamp(value.strip() if isinstance(value, str) else value)
        except (ValueError, TypeError, OverflowError):
            return None
        if pd.isna(stamp):
            return None
        if stamp.tzinfo is None:
            stamp = stamp.tz_localize("UTC")
        ts = float(stamp.timestamp())
    else:
        return None
    return ts if ts > 0 else None


def infer_units(acc: np.ndarray, gyro: np.ndarray) -> UnitInference:
    """Session-wide unit heuristic over batch mean magnitudes.

    Mean |a| inside (0.3, 5.0) means the accelerometer reports g; mean |w|
    above 1.0 means the gyro reports deg/s. This is a classification over the
    whole batch, so sessions mixing units, or that never sit near 1 g, can be
    misclassified without any error being raised.
    """
    A = np.asarray(acc, dtype=float)
    W = np.asarray(gyro, dtype=float)
    amag = float(np.mean(np.linalg.norm(A, axis=1))) if A.size else 0.0
    wmag = float(np.mean(np.linalg.norm(W, axis=1))) if W.size else 0.0
    lo, hi = ACC_G_RANGE
    acc_is_g = lo < amag < hi
    gyro_is_deg = wmag > GYRO_DPS_ABOVE
    return UnitInference(
        acc_unit="g" if acc_is_g else "m/s^2",
        gyro_unit="deg/s" if gyro_is_deg else "rad/s",
        acc_scale=G_STD if acc_is_g else 1.0,
        gyro_scale=DEG2RAD if gyro_is_deg else 1.0,
        mean_acc_mag=amag,
        mean_gyro_mag=wmag,
    )


def _num(v: Any) -> float:
    if v is None or isinstance(v, bool):
        return 0.0
    try:
        x = float(v)
    except (TypeError, ValueError):
        return 0.0
    return x if np.isfinite(x) else 0.0


def _is_imu_entry(entry: Any) -> bool:
    if not isinstance(entry, Mapping):
        return False
    tag = entry.get("type")
    return isinstance(tag, str) and tag.strip().lower() == IMU_TAG and isinstance(entry.get("data"), Mapping)


def normalize_samples(
    raw: Iterable[Any],
    unit_classifier: Callable[[np.ndarray, np.ndarray], UnitInference] = infer_units,
    min_samples: int = MIN_SAMPLES,
) -> NormalizedSession | None:
    """Turn heterogeneous raw entries into a sorted SI-unit ImuSeries.

    Returns None ("insufficient data") when fewer than ``min_samples``
    IMU-tagged entries exist or survive timestamp resolution.
    """
    tagged = [e for e in (raw or []) if _is_imu_entry(e)]
    if len(tagged) < min_samples:
        log.info("insufficient data: %d IMU-tagged entries (< %d)", len(tagged), min_samples)
        return None

    ts: list[float] = []
    rows_a: list[list[float]] = []
    rows_w: list[list[float]] = []
    dropped = 0
    for e in tagged:
        t = parse_timestamp(e.get("timestamp"))
        if t is None:
            dropped += 1
            continue
        d = e["data"]
        ts.append(t)
        rows_a.append([_num(d.get(k)) for k in _FIELDS_ACC])
        rows_w.append([_num(d.get(k)) for k in _FIELDS_GYR])
    if dropped:
        log.debug("dropped %d entries with unusable timestamps", dropped)
    if len(ts) < min_samples:
        log.info("insufficient data: %d valid samples (< %d)", len(ts), min_samples)
        return None

    t_arr = np.asarray(ts, dtype=float)
    acc = np.asarray(rows_a, dtype=float)
    gyro = np.asarray(rows_w, dtype=float)
    units = unit_classifier(acc, gyro)
    acc = acc * units.acc_scale
    gyro = gyro * units.gyro_scale
    order = np.argsort(t_arr, kind="stable")
    series = ImuSeries(t=t_arr[order], acc=acc[order], gyro=gyro[order])
    log.debug("normalized %d samples (acc=%s, gyro=%s)", len(series), units.acc_unit, units.gyro_unit)
    return NormalizedSession(series=series, units=units, n_tagged=len(tagged), n_dropped=dropped)


# -----------------------------
# Upload parsing (JSON / CSV session files)
# -----------------------------
def sanitize_cols(cols):
    sc = []
    for c in cols:
        s = str(c).strip()
        s = re.sub(r"[^0-9A-Za-z]+", "_", s)
        s = re.sub(r"_+", "_", s)
        sc.append(s.strip("_").lower())
    return sc


def pick_col(df: pd.DataFrame, candidates: list[str], required: bool = True) -> str | None:
    for c in candidates:
        if c in df.columns:
            return c
    base = ["".join(filter(str.isalpha, c)) for c in df.columns]
    for c in candidates:
        token = "".join(filter(str.isalpha, c))
        if len(token) < 3:
            continue
        for bidx, b in enumerate(base):
            if token in b:
                return df.columns[bidx]
    if required:
        raise KeyError(f"Missing any of {candidates}")
    return None


def _entries_from_json(obj: Any) -> list[dict]:
    if isinstance(obj, Mapping):
        for key in ("samples", "data", "entries", "runData"):
            if isinstance(obj.get(key), list):
                obj = obj[key]
                break
    if not isinstance(obj, list):
        raise ValueError("JSON session must be a list of entries or an object with a 'samples' list")
    return [e for e in obj if isinstance(e, Mapping)]


def _read_csv_text(text: str) -> pd.DataFrame:
    df = None
    try:
        df = pd.read_csv(io.StringIO(text), low_memory=False)
    except (pd.errors.ParserError, ValueError):
        df = None
    if df is None or df.shape[1] < 2:
        for sep in [";", "\t", "|"]:
            try:
                cand = pd.read_csv(io.StringIO(text), engine="python", sep=sep, on_bad_lines="skip")
            except (pd.errors.ParserError, ValueError):
                continue
            if cand.shape[1] >= 2:
                df = cand
                break
    if df is None:
        raise ValueError("Could not parse CSV payload")
    df.columns = sanitize_cols(df.columns)
    return df


def _entries_from_csv(df: pd.DataFrame) -> list[dict]:
    t_col = pick_col(df, TIME_CANDS)
    type_col = pick_col(df, TYPE_CANDS, required=False)
    fields = {}
    for name, axis in zip(_FIELDS_ACC, "xyz"):
        col = pick_col(df, ACC[axis], required=False)
        if col is not None:
            fields[name] = col
    for name, axis in zip(_FIELDS_GYR, "xyz"):
        col = pick_col(df, GYR[axis], required=False)
        if col is not None:
            fields[name] = col
    lat_col = pick_col(df, LAT_CANDS, required=False)
    lng_col = pick_col(df, LNG_CANDS, required=False)

    entries: list[dict] = []
    for row in df.to_dict(orient="records"):
        ts = row.get(t_col)
        if isinstance(ts, float) and not np.isfinite(ts):
            ts = None
        data = {}
        for name, col in fields.items():
            v = row.get(col)
            if v is not None and not (isinstance(v, float) and np.isnan(v)):
                data[name] = v
        if type_col:
            tag = row.get(type_col)
            tag = tag.strip() if isinstance(tag, str) and tag.strip() else None
        else:
            tag = IMU_TAG
        entry: dict = {
            "timestamp": ts,
            "type": tag,
            "data": data,
        }
        if lat_col and lng_col:
            lat, lng = _num(row.get(lat_col)), _num(row.get(lng_col))
            if lat != 0.0 or lng != 0.0:
                entry["position"] = {"lat": lat, "lng": lng}
        entries.append(entry)
    return entries


def read_session_bytes(b: bytes, filename: str = "") -> list[dict]:
    """Parse an uploaded session file (.json or .csv) into raw entries."""
    text = b.decode("utf-8-sig", errors="ignore").strip()
    if not text:
        raise ValueError("Empty session payload")
    name = (filename or "").lower()
    if name.endswith(".json") or (not name.endswith(".csv") and text[:1] in "[{"):
        try:
            obj = json.loads(text)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON session: {e.msg}") from e
        return _entries_from_json(obj)
    return _entries_from_csv(_read_csv_text(text))
