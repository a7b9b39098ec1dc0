# src/e2viz/request.py
from dataclasses import dataclass

from e2engine.types import DoseSeries
from e2engine.dosing import every_n_days, extend_with_forecast
from e2engine.convert import estradiol_display_factor


@dataclass(frozen=True)
class SimulateRequest:
    series: DoseSeries
    formulation: str
    amount_mg: float
    interval_days: float
    t_end_days: float
    dt_days: float = 0.25
    steady_state: bool = False
    display_unit: str = "pg/mL"
    forecast_weeks: int = 0


def build_request(formulation: str, amount_mg: float, interval_days: float, weeks: int,
                  dt_days: float = 0.25, steady_state: bool = False,
                  display_unit: str = "pg/mL", forecast_weeks: int = 0) -> SimulateRequest:
    """
    Turn control-panel values into a dose series scaled to the display unit.
    With `forecast_weeks` > 0 the schedule is continued that many weeks past its last dose.
    """
    base = every_n_days(amount_mg=amount_mg, every_days=interval_days, weeks=weeks,
                        formulation=formulation)
    t_end = float(weeks * 7)
    if forecast_weeks > 0:
        base = extend_with_forecast(base, every_days=interval_days, amount_mg=amount_mg,
                                    formulation=formulation, weeks=forecast_weeks)
        t_end += forecast_weeks * 7.0
    series = DoseSeries(events=base.events,
                        conversion_factor=estradiol_display_factor(display_unit))
    return SimulateRequest(
        series=series,
        formulation=formulation,
        amount_mg=float(amount_mg),
        interval_days=float(interval_days),
        t_end_days=t_end,
        dt_days=float(dt_days),
        steady_state=steady_state,
        display_unit=display_unit,
        forecast_weeks=forecast_weeks,
    )
