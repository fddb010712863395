"""Centralized constants, thresholds, and column aliases for the gait pipeline."""
from __future__ import annotations

import numpy as np

# Physics
G_STD = 9.80665
G = np.array([0.0, 0.0, -G_STD], dtype=float)
UP = np.array([0.0, 0.0, 1.0], dtype=float)
DEG2RAD = np.pi / 180.0
RAD2DEG = 180.0 / np.pi

# Sample normalization
MIN_SAMPLES = 10
TS_NS_ABOVE = 1e12          # numeric timestamps above this are epoch ns
TS_MS_ABOVE = 1e9           # ... above this are epoch ms, else seconds
ACC_G_RANGE = (0.3, 5.0)    # mean |a| strictly inside => accelerometer in g
GYRO_DPS_ABOVE = 1.0        # mean |w| above this => gyro in deg/s
IMU_TAG = "imu"

# Sampling / calibration
DEFAULT_FS_HZ = 100.0
CALIB_WINDOW_S = 1.0
STILL_THR_W = 0.08          # rad/s
STILL_THR_A = 0.30          # m/s^2, deviation of |a| from its window mean
STILL_SMOOTH_S = 0.2        # seconds

# Orientation (complementary filter)
CF_ALPHA = 0.98
CF_ACC_WINDOW_G = (0.5, 1.5)

# Event detection
FS_THRESHOLD = 15.0         # m/s^2, foot-strike peak on a_dyn.z
FS_MIN_SPACING_S = 0.3
TO_THRESHOLD = 2.0          # m/s^2
TO_SEARCH_S = 0.8
TO_FALLBACK_SAMPLES = 5

# Step metrics
STEP_TIME_FLOOR_S = 0.01
DEFAULT_MASS_KG = 75.0

# Ground track
METERS_PER_DEGREE = 111320.0
ORIGIN_LAT = 45.4642
ORIGIN_LNG = 9.1900

# Legacy quick estimator
QUICK_FS_THRESHOLD = 5.0    # m/s^2
QUICK_MIN_SPACING_S = 0.2
QUICK_DROP_HEIGHT_M = 1.0

# CSV column aliases
TIME_CANDS = [
    "timestamp", "time", "time_s", "timestamp_s", "ts", "t", "sampletimefine", "seconds", "sec",
]
TYPE_CANDS = ["type", "kind", "tag", "entry_type"]
ACC = {
    "x": ["ax", "acc_x", "accel_x", "accx", "a_x"],
    "y": ["ay", "acc_y", "accel_y", "accy", "a_y"],
    "z": ["az", "acc_z", "accel_z", "accz", "a_z"],
}
GYR = {
    "x": ["gx", "gyr_x", "gyro_x", "wx", "omega_x", "rate_x"],
    "y": ["gy", "gyr_y", "gyro_y", "wy", "omega_y", "rate_y"],
    "z": ["gz", "gyr_z", "gyro_z", "wz", "omega_z", "rate_z"],
}
LAT_CANDS = ["lat", "latitude"]
LNG_CANDS = ["lng", "lon", "long", "longitude"]
