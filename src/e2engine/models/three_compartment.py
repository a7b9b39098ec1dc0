# src/e2engine/models/three_compartment.py
import logging
import math

from ..types import DepotDose, DoseKind, PKParameterSet, SteadyStateQuery

logger = logging.getLogger(__name__)


class DegenerateRateConstantsError(ValueError):
    """Raised when the steady-state closed form is asked for coinciding rate constants."""


def three_compartment_rhs(t, y, params: PKParameterSet):
    """
    Linear absorption chain behind the closed forms below.
    Three states:
      y[0] = amount in the first depot
      y[1] = amount in the second depot
      y[2] = amount in the central compartment (concentration is d * y[2])
    """
    A1, A2, A3 = y
    dA1_dt = -params.k1 * A1
    dA2_dt = params.k1 * A1 - params.k2 * A2
    dA3_dt = params.k2 * A2 - params.k3 * A3
    return [dA1_dt, dA2_dt, dA3_dt]


def _absorption_chain(t: float, scale: float, k1: float, k2: float, k3: float) -> float:
    """
    Central-compartment response of the depot chain, scale = dose * d.

    Rate constants are compared with exact equality: the fitted table stores
    literals, and each coincidence has its own limiting form.
    """
    if k1 == k2 and k2 == k3:
        return scale * k1 * k1 * t * t * math.exp(-k1 * t) / 2.0
    if k1 == k2:
        return (scale * k1 * k1
                * (math.exp(-k3 * t) - math.exp(-k1 * t) * (1.0 + (k1 - k3) * t))
                / (k1 - k3) ** 2)
    if k1 == k3:
        return (scale * k1 * k2
                * (math.exp(-k2 * t) - math.exp(-k1 * t) * (1.0 + (k1 - k2) * t))
                / (k1 - k2) ** 2)
    if k2 == k3:
        return (scale * k1 * k2
                * (math.exp(-k1 * t) - math.exp(-k2 * t) * (1.0 - (k1 - k2) * t))
                / (k1 - k2) ** 2)

    # The three weights sum to zero, so exp(-k t) may be swapped for expm1(-k t).
    # Same function, but the onset value is exactly 0 and small t keeps its precision.
    w1 = 1.0 / ((k1 - k2) * (k1 - k3))
    w2 = 1.0 / ((k1 - k2) * (k2 - k3))
    w3 = 1.0 / ((k1 - k3) * (k2 - k3))
    return scale * k1 * k2 * (w1 * math.expm1(-k1 * t)
                              - w2 * math.expm1(-k2 * t)
                              + w3 * math.expm1(-k3 * t))


def respond(t: float, dose: float, params: PKParameterSet,
            depot_fraction: float = 0.0, instant_fraction: float = 0.0) -> float:
    """
    Concentration contributed by one dose, `t` days after it was given.

    Parameters:
      t                : elapsed time since the dose (days); negative -> 0
      dose             : dose amount (mg, already scaled by any conversion factor)
      params           : PKParameterSet of the formulation
      depot_fraction   : amount entering the second depot directly (patches)
      instant_fraction : amount released straight into the central compartment

    Non-finite results (cancellation under extreme parameters) are reported as 0
    so sampled curves never contain gaps.
    """
    if t < 0:
        return 0.0

    d, k1, k2, k3 = params.d, params.k1, params.k2, params.k3
    try:
        ret = 0.0
        if instant_fraction > 0:
            ret += instant_fraction * math.exp(-k3 * t)
        if depot_fraction > 0:
            if k2 == k3:
                ret += depot_fraction * k2 * t * math.exp(-k2 * t)
            else:
                ret += depot_fraction * k2 / (k2 - k3) * (math.exp(-k3 * t) - math.exp(-k2 * t))
        if dose > 0 and d > 0:
            ret += _absorption_chain(t, dose * d, k1, k2, k3)
    except OverflowError:
        logger.debug("Overflow evaluating dose response at t=%r; reporting 0.", t)
        return 0.0

    if not math.isfinite(ret):
        logger.debug("Non-finite dose response at t=%r; reporting 0.", t)
        return 0.0
    return ret


def steady_state(t: float, dose: float, period: float, params: PKParameterSet) -> float:
    """
    Long-run periodic concentration at phase `t` of identical doses repeated
    every `period` days forever.

    Each exponential mode exp(-k t) of the generic closed form becomes the
    periodic kernel exp(-k phi) / (1 - exp(-k period)), with phi = t mod period.
    Only defined for pairwise-distinct rate constants.
    """
    if not period > 0:
        raise ValueError(f"period must be > 0 (got {period}).")
    d, k1, k2, k3 = params.d, params.k1, params.k2, params.k3
    if k1 == k2 or k1 == k3 or k2 == k3:
        raise DegenerateRateConstantsError(
            f"Steady state needs distinct rate constants (got k1={k1}, k2={k2}, k3={k3})."
        )

    phase = t - period * math.floor(t / period)

    def kernel(k: float) -> float:
        return math.exp(-k * phase) / -math.expm1(-k * period)

    return dose * d * k1 * k2 * (kernel(k1) / (k1 - k2) / (k1 - k3)
                                 - kernel(k2) / (k1 - k2) / (k2 - k3)
                                 + kernel(k3) / (k1 - k3) / (k2 - k3))


def dose_response(t: float, amount: float, params: PKParameterSet,
                  kind: DoseKind, scale: float = 1.0) -> float:
    """Dispatch on the dose kind; `scale` multiplies every amount-like term."""
    if isinstance(kind, SteadyStateQuery):
        return steady_state(t, scale * amount, kind.period, params)
    if isinstance(kind, DepotDose):
        return respond(t, scale * amount, params,
                       depot_fraction=scale * kind.secondary_fraction,
                       instant_fraction=scale * kind.instant_fraction)
    return respond(t, scale * amount, params)
