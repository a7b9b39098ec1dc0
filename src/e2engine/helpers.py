from collections import defaultdict
from dataclasses import replace

from .types import DoseEvent, DoseSeries
from .superposition import absolute_times


def split_series_by_formulation(series: DoseSeries) -> dict[str, DoseSeries]:
    """
    Group events by formulation into separate DoseSeries.
    Interval-mode timestamps are resolved to absolute days first, so each group
    keeps its original dose days; the conversion factor is carried over.
    """
    times = absolute_times([e.timestamp for e in series.events], series.intervals)
    buckets: dict[str, list[DoseEvent]] = defaultdict(list)
    for event, t_dose in zip(series.events, times):
        buckets[event.formulation].append(replace(event, timestamp=t_dose))
    return {
        formulation: DoseSeries(events=tuple(sorted(evs, key=lambda e: e.timestamp)),
                                conversion_factor=series.conversion_factor)
        for formulation, evs in buckets.items()
    }
