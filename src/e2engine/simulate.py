# src/e2engine/simulate.py
import math
from typing import Optional

import numpy as np

from .types import DoseSeries, SteadyStateQuery, DoseEvent
from .superposition import absolute_times, evaluate_series
from .helpers import split_series_by_formulation
from .parameters import is_known_formulation


def time_grid(t_start: float, t_end: float, dt: float) -> np.ndarray:
    """Sample days from t_start to t_end inclusive, every dt."""
    if not dt > 0:
        raise ValueError(f"dt must be > 0 (got {dt}).")
    if t_end < t_start:
        raise ValueError(f"t_end must be >= t_start (got {t_start}..{t_end}).")
    return np.arange(t_start, t_end + dt / 2, dt)


def run_series(series: DoseSeries, t_end: float, dt: float = 0.25, t_start: float = 0.0):
    """
    Sample the superposed curve of a series.
    Returns (t, C): days and concentrations.
    """
    t = time_grid(t_start, t_end, dt)
    C = np.fromiter((evaluate_series(float(x), series) for x in t), dtype=float, count=t.size)
    return t, C


def run_by_formulation(series: DoseSeries, t_end: float, dt: float = 0.25,
                       t_start: float = 0.0) -> dict[str, tuple[np.ndarray, np.ndarray]]:
    """
    One curve per modelled formulation present in the series; doses with no
    parameter set are left out, as in evaluate_series().
    Summing the returned curves gives run_series() on the whole series.
    """
    return {
        formulation: run_series(sub_series, t_end, dt, t_start)
        for formulation, sub_series in split_series_by_formulation(series).items()
        if is_known_formulation(formulation)
    }


def run_steady_state(formulation: str, amount_mg: float, period: float,
                     t_end: float, dt: float = 0.25, conversion_factor: float = 1.0):
    """Sample the idealized periodic profile of `amount_mg` every `period` days."""
    series = DoseSeries(
        events=(DoseEvent(amount=amount_mg, timestamp=0.0, formulation=formulation,
                          kind=SteadyStateQuery(period=period)),),
        conversion_factor=conversion_factor,
    )
    return run_series(series, t_end, dt)


def predict_at(series: DoseSeries, t: float) -> Optional[float]:
    """
    Predicted concentration at day `t`, or None when there is nothing to predict:
    no doses, `t` before the first dose, or a non-positive / non-finite value.
    """
    if not series.events:
        return None
    times = absolute_times([e.timestamp for e in series.events], series.intervals)
    if t < min(times):
        return None
    value = evaluate_series(t, series)
    if math.isfinite(value) and value > 0:
        return value
    return None
