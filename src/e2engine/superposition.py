# src/e2engine/superposition.py
import logging
from itertools import accumulate
from typing import Optional, Sequence

import numpy as np

from .models.three_compartment import dose_response, respond
from .parameters import PK_PARAMETERS, is_known_formulation
from .types import DoseSeries

logger = logging.getLogger(__name__)


def absolute_times(times: Sequence[float], intervals: bool = False) -> list[float]:
    """
    Dose times as absolute days.
    With intervals=True, `times` holds successive intervals: the first entry is
    kept as-is and every later timestamp is the previous one plus its interval.
    """
    if not intervals:
        return [float(x) for x in times]
    return [float(x) for x in accumulate(times)]


def evaluate(t: float, doses: Sequence[float], times: Sequence[float],
             formulations: Sequence[Optional[str]], conversion_factor: float = 1.0,
             intervals: bool = False) -> float:
    """
    Concentration at day `t` from a dose history, by linear superposition.

    doses, times, formulations are parallel sequences. An index without a usable
    formulation (missing, None, not in the table) or without a time is skipped.
    conversion_factor multiplies every dose; it is never applied to `t`.
    """
    computed_times = absolute_times(times, intervals)

    total = 0.0
    for i, dose in enumerate(doses):
        if i >= len(formulations) or i >= len(computed_times):
            logger.debug("Skipping dose %d: no matching formulation/time entry.", i)
            continue
        formulation = formulations[i]
        if not is_known_formulation(formulation):
            logger.debug("Skipping dose %d: unrecognized formulation %r.", i, formulation)
            continue
        total += respond(t - computed_times[i], conversion_factor * dose,
                         PK_PARAMETERS[formulation])
    return total


def evaluate_series(t: float, series: DoseSeries) -> float:
    """
    Same as evaluate() for a DoseSeries. Each event's kind is honoured, so
    patch doses get their extra absorption paths and SteadyStateQuery events
    contribute their periodic profile (phase measured from the event timestamp).
    """
    events = list(series.events)
    computed_times = absolute_times([e.timestamp for e in events], series.intervals)

    total = 0.0
    for event, t_dose in zip(events, computed_times):
        if not is_known_formulation(event.formulation):
            logger.debug("Skipping event at day %s: unrecognized formulation %r.",
                         t_dose, event.formulation)
            continue
        total += dose_response(t - t_dose, event.amount, PK_PARAMETERS[event.formulation],
                               event.kind, scale=series.conversion_factor)
    return total


def evaluate_many(ts, doses: Sequence[float], times: Sequence[float],
                  formulations: Sequence[Optional[str]], conversion_factor: float = 1.0,
                  intervals: bool = False) -> np.ndarray:
    """Sample evaluate() over an array of times; each sample is independent."""
    t_arr = np.asarray(ts, dtype=float)
    values = np.fromiter(
        (evaluate(float(t), doses, times, formulations, conversion_factor, intervals)
         for t in t_arr.ravel()),
        dtype=float, count=t_arr.size,
    )
    return values.reshape(t_arr.shape)
