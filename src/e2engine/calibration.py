# src/e2engine/calibration.py
import math
from typing import Optional, Sequence, Tuple

import numpy as np

# (day, factor) pairs taken from blood tests, sorted by day
CalibrationSeries = Sequence[Tuple[float, float]]


def fudge_factor(measured: float, predicted: Optional[float]) -> float:
    """
    Ratio of a measured level to the model's prediction for the same day,
    rounded to 3 decimals. Falls back to 1.0 when there is no usable prediction.
    """
    if predicted is None or not predicted > 0:
        return 1.0
    ratio = measured / predicted
    if not math.isfinite(ratio):
        return 1.0
    # Halves round away from zero; ratios here are positive
    return math.floor(ratio * 1000.0 + 0.5) / 1000.0


def _as_arrays(series: CalibrationSeries):
    ordered = sorted(series, key=lambda p: p[0])
    days = np.array([p[0] for p in ordered], dtype=float)
    values = np.array([p[1] for p in ordered], dtype=float)
    return days, values


def blend_fudge(series: CalibrationSeries, t: float) -> float:
    """Linear interpolation between calibration points, held constant past either end."""
    if len(series) == 0:
        return 1.0
    days, values = _as_arrays(series)
    if t <= days[0]:
        return float(values[0])
    if t >= days[-1]:
        return float(values[-1])
    # Several tests on the same day: the earliest recorded value holds on that day
    idx = int(np.searchsorted(days, t, side="left"))
    if days[idx] == t:
        return float(values[idx])
    return float(np.interp(t, days, values))


def step_fudge(series: CalibrationSeries, t: float) -> float:
    """Value of the latest calibration point at or before `t` (first point before the series)."""
    if len(series) == 0:
        return 1.0
    days, values = _as_arrays(series)
    idx = int(np.searchsorted(days, t, side="right")) - 1
    return float(values[max(idx, 0)])
