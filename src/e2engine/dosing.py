# src/e2engine/dosing.py
from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence, Tuple
import numpy as np

from .types import DoseEvent, DoseKind, DoseSeries, SimpleDose
from .parameters import formulation_for_ester, pk_parameters
from .superposition import absolute_times

logger = logging.getLogger(__name__)


def single_dose(amount_mg: float, day: float = 0.0, formulation: str = "EV im",
                kind: Optional[DoseKind] = None) -> DoseSeries:
    """
    Create a series with exactly one dose.
    Examples:
      - 5 mg estradiol valerate IM at day 0
      - a twice-weekly patch applied on day 3.5 with an instant-release term
    """
    _validate_positive("amount_mg", amount_mg)
    _validate_formulation(formulation)
    event = DoseEvent(amount=float(amount_mg), timestamp=float(day), formulation=formulation,
                      kind=kind if kind is not None else SimpleDose())
    return DoseSeries(events=(event,))


def every_n_days(amount_mg: float, every_days: float, weeks: int,
                 formulation: str = "EV im", start_offset_days: float = 0.0) -> DoseSeries:
    """
    Make a repeated schedule like: 4 mg EV IM every 5 days for 12 weeks.

    amount_mg         : size of each dose, mg
    every_days        : spacing between doses in days (fractional allowed, e.g. 3.5)
    weeks             : total schedule length in weeks
    formulation       : formulation tag of every dose
    start_offset_days : shift the very first dose (e.g. 0.375 = 9:00)
    """
    _validate_positive("amount_mg", amount_mg)
    _validate_positive("every_days", every_days)
    _validate_positive_int("weeks", weeks)
    _validate_non_negative("start_offset_days", start_offset_days)
    _validate_formulation(formulation)

    total_days = weeks * 7
    # Dose days: 0, every_days, 2*every_days, ... <= total_days
    n = int(np.floor(total_days / every_days + 1e-9)) + 1
    days = np.arange(n, dtype=float) * float(every_days) + float(start_offset_days)

    events = tuple(
        DoseEvent(amount=float(amount_mg), timestamp=float(t), formulation=formulation)
        for t in days
    )
    return DoseSeries(events=events)


def forecast_doses(start_day: float, end_day: float, every_days: float,
                   amount_mg: float, formulation: str) -> DoseSeries:
    """
    Future doses from `start_day` up to and including `end_day`, every `every_days`.
    Used to extend a recorded history with the current schedule.
    """
    _validate_positive("amount_mg", amount_mg)
    _validate_positive("every_days", every_days)
    _validate_formulation(formulation)

    # Multiples of the step, not a running sum, so the end day is not lost to rounding
    n = max(int(np.floor((end_day - start_day) / every_days + 1e-9)) + 1, 0)
    days = float(start_day) + np.arange(n, dtype=float) * float(every_days)
    events = tuple(
        DoseEvent(amount=float(amount_mg), timestamp=float(t), formulation=formulation)
        for t in days
    )
    return DoseSeries(events=events)


def extend_with_forecast(history: DoseSeries, every_days: float, amount_mg: float,
                         formulation: str, weeks: int) -> DoseSeries:
    """
    Append the current schedule to a recorded history: one dose every `every_days`
    after the last recorded dose, for `weeks` weeks past it.
    """
    _validate_positive_int("weeks", weeks)
    if not history.events:
        return forecast_doses(0.0, weeks * 7.0, every_days, amount_mg, formulation)
    last_day = max(absolute_times([e.timestamp for e in history.events], history.intervals))
    forecast = forecast_doses(last_day + every_days, last_day + weeks * 7.0,
                              every_days, amount_mg, formulation)
    return combine_series(
        history,
        DoseSeries(events=forecast.events, conversion_factor=history.conversion_factor),
    )


def combine_series(*series: DoseSeries) -> DoseSeries:
    """
    Merge several series into one (e.g. recorded history + forecast).
    Interval-mode inputs are resolved to absolute days; all inputs must share
    the same conversion factor.
    """
    factors = {s.conversion_factor for s in series}
    if len(factors) > 1:
        raise ValueError(f"Cannot combine series with different conversion factors {sorted(factors)}.")

    all_events: list[DoseEvent] = []
    for s in series:
        times = absolute_times([e.timestamp for e in s.events], s.intervals)
        all_events.extend(
            DoseEvent(amount=e.amount, timestamp=t, formulation=e.formulation, kind=e.kind)
            for e, t in zip(s.events, times)
        )
    all_events.sort(key=lambda e: (e.timestamp, e.formulation))
    return DoseSeries(events=tuple(all_events),
                      conversion_factor=factors.pop() if factors else 1.0)


def from_explicit_schedule(entries: Sequence[Tuple[float, float]],
                           formulation: str = "EV im") -> DoseSeries:
    """
    Build a series from manual (day, amount_mg) entries.
    Example: entries=[(0.0, 5.0), (7.0, 5.0), (14.0, 6.0)]
    """
    _validate_formulation(formulation)
    events: list[DoseEvent] = []
    for day, amount_mg in entries:
        _validate_positive("amount_mg", amount_mg)
        events.append(DoseEvent(amount=float(amount_mg), timestamp=float(day),
                                formulation=formulation))
    events.sort(key=lambda e: e.timestamp)
    return DoseSeries(events=tuple(events))


def series_from_history(entries: Iterable[Tuple[float, str, float]],
                        conversion_factor: float = 1.0) -> DoseSeries:
    """
    Build a series from dose-history records (day, ester name, amount_mg).
    Esters without a fitted model are left out; unknown ester names raise.
    """
    events: list[DoseEvent] = []
    for day, ester, amount_mg in entries:
        formulation = formulation_for_ester(ester)
        if formulation is None:
            logger.debug("No model for %s; dose on day %s left out.", ester, day)
            continue
        events.append(DoseEvent(amount=float(amount_mg), timestamp=float(day),
                                formulation=formulation))
    events.sort(key=lambda e: e.timestamp)
    return DoseSeries(events=tuple(events), conversion_factor=float(conversion_factor))


# --------------------------
# Small input validators
# --------------------------
def _validate_positive(name: str, x: float) -> None:
    if not (x > 0):
        raise ValueError(f"{name} must be > 0 (got {x}).")

def _validate_non_negative(name: str, x: float) -> None:
    if x < 0:
        raise ValueError(f"{name} must be >= 0 (got {x}).")

def _validate_positive_int(name: str, x: int) -> None:
    if not (isinstance(x, int) and x > 0):
        raise ValueError(f"{name} must be a positive integer (got {x}).")

def _validate_formulation(formulation: str) -> None:
    pk_parameters(formulation)
