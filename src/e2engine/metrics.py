# src/e2engine/metrics.py
import numpy as np
from typing import Tuple


def cmax_tmax(t: np.ndarray, C: np.ndarray) -> Tuple[float, float]:
    """Peak concentration and the day it occurs."""
    idx = int(np.argmax(C))
    return float(C[idx]), float(t[idx])

def cmin(C: np.ndarray) -> float:
    return float(np.min(C))

def cavg(C: np.ndarray) -> float:
    """Mean of the sampled curve."""
    return float(np.mean(C))

def auc_trapz(t: np.ndarray, C: np.ndarray) -> float:
    """Area under the curve by the trapezoidal rule (pg/mL * day)."""
    return float(np.trapezoid(C, t))

def trough(t: np.ndarray, C: np.ndarray, interval_days: float) -> float:
    """
    Concentration at the end of the last full dosing interval
    (nearest sample to it); nan if the curve is shorter than one interval.
    """
    if not interval_days > 0:
        raise ValueError(f"interval_days must be > 0 (got {interval_days}).")
    n_intervals = int((t[-1] - t[0]) // interval_days)
    if n_intervals < 1:
        return float("nan")
    target = t[0] + n_intervals * interval_days
    return float(C[int(np.argmin(np.abs(t - target)))])

def _last_interval_mask(t: np.ndarray, interval_days: float) -> np.ndarray:
    """Samples of the last full dosing interval; all samples if none fits."""
    if interval_days <= 0:
        return np.ones_like(t, dtype=bool)
    last_edge = t[0] + ((t[-1] - t[0]) // interval_days) * interval_days
    start = last_edge - interval_days
    if start < t[0]:
        return np.ones_like(t, dtype=bool)
    return (t >= start) & (t <= last_edge)

def peak_to_trough_ratio(t: np.ndarray, C: np.ndarray, interval_days: float | None = None) -> float:
    """
    Cmax / Cmin, over the last full dosing interval when interval_days is given.
    inf when the minimum is not positive.
    """
    Cw = C[_last_interval_mask(t, float(interval_days))] if interval_days else C
    lo = float(np.min(Cw))
    if lo <= 0:
        return float("inf")
    return float(np.max(Cw)) / lo

def fluctuation_index(t: np.ndarray, C: np.ndarray, interval_days: float | None = None) -> float:
    """(Cmax - Cmin) / Cavg, over the last full dosing interval when interval_days is given."""
    Cw = C[_last_interval_mask(t, float(interval_days))] if interval_days else C
    mean = float(np.mean(Cw))
    if mean == 0.0:
        return float("inf")
    return (float(np.max(Cw)) - float(np.min(Cw))) / mean
