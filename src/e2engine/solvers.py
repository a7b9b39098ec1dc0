# src/e2engine/solvers.py
import numpy as np
from scipy.integrate import solve_ivp

from .types import DepotDose, DoseSeries, PKParameterSet, SteadyStateQuery
from .models.three_compartment import three_compartment_rhs
from .parameters import pk_parameters
from .helpers import split_series_by_formulation
from .superposition import absolute_times


def simulate_3c_ode(params: PKParameterSet, series: DoseSeries,
                    t_end: float, dt: float = 0.25):
    """
    Integrate the three-compartment chain numerically (reference for the closed forms).

    Every event of `series` is treated as a dose of the formulation described by
    `params`. Doses are instantaneous state jumps at their scheduled day:
    the amount enters the first depot, DepotDose terms enter the second depot and
    the central compartment. Steady-state queries have no ODE counterpart.

    Returns:
      t : array of sample times (days), dt..t_end
      C : array of concentrations (pg/mL)
    """
    if any(isinstance(e.kind, SteadyStateQuery) for e in series.events):
        raise ValueError("Steady-state queries cannot be integrated; use steady_state().")

    times = absolute_times([e.timestamp for e in series.events], series.intervals)
    scale = float(series.conversion_factor)

    # Jumps grouped by exact dose day: [first depot, second depot, central]
    jumps: dict[float, np.ndarray] = {}
    for event, t_dose in zip(series.events, times):
        jump = jumps.setdefault(t_dose, np.zeros(3))
        jump[0] += scale * event.amount
        if isinstance(event.kind, DepotDose):
            jump[1] += scale * event.kind.secondary_fraction / params.d
            jump[2] += scale * event.kind.instant_fraction / params.d

    t0 = min([0.0] + times)
    t_grid = np.arange(dt, t_end + dt / 2, dt)

    # Segment boundaries at every dose day so jumps land on a boundary
    boundaries = sorted({t0, float(t_end), *(t for t in jumps if t0 <= t <= t_end)})

    def rhs(t, y):
        return three_compartment_rhs(t, y, params)

    y0 = np.zeros(3)
    if boundaries[0] in jumps:
        y0 = y0 + jumps[boundaries[0]]

    t_out: list[float] = []
    A3_out: list[float] = []

    prev = boundaries[0]
    for curr in boundaries[1:]:
        if len(t_out) == 0:
            t_eval_seg = t_grid[(t_grid >= prev) & (t_grid <= curr)]
        else:
            t_eval_seg = t_grid[(t_grid > prev) & (t_grid <= curr)]

        sol_seg = solve_ivp(rhs, t_span=(prev, curr), y0=y0, method="RK45",
                            t_eval=t_eval_seg if t_eval_seg.size else None,
                            rtol=1e-9, atol=1e-12)
        if t_eval_seg.size:
            t_out.extend(sol_seg.t.tolist())
            A3_out.extend(sol_seg.y[2].tolist())

        y0 = sol_seg.y[:, -1].copy()
        if curr in jumps:
            y0 = y0 + jumps[curr]
        prev = curr

    t_arr = np.asarray(t_out, dtype=float)
    C = params.d * np.asarray(A3_out, dtype=float)
    return t_arr, C


def simulate_series_ode(series: DoseSeries, t_end: float, dt: float = 0.25):
    """
    Numerically integrate a series that may mix formulations.

    Each formulation is integrated with its own parameters and the curves are
    summed (the system is linear). Unknown formulations raise
    UnknownFormulationError: the reference solver does not skip doses.
    """
    per_formulation = split_series_by_formulation(series)
    if not per_formulation:
        t = np.arange(dt, t_end + dt / 2, dt)
        return t, np.zeros_like(t)

    t_arr = None
    total = None
    for formulation, sub_series in per_formulation.items():
        t, C = simulate_3c_ode(pk_parameters(formulation), sub_series, t_end, dt)
        if total is None:
            t_arr, total = t, C.copy()
        else:
            total += C
    return t_arr, total
