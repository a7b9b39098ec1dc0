import math
import numpy as np
import pytest

from e2engine.types import PKParameterSet, DoseEvent, DoseSeries, DepotDose, SimpleDose, SteadyStateQuery
from e2engine.parameters import PK_PARAMETERS, pk_parameters
from e2engine.models.three_compartment import (
    respond, steady_state, dose_response, DegenerateRateConstantsError,
)
from e2engine.superposition import evaluate, evaluate_series
from e2engine.solvers import simulate_3c_ode, simulate_series_ode
from e2engine.dosing import every_n_days


def _k1_equals_k2(t, dose, d, k1, k3):
    return dose * d * k1 * k1 * (math.exp(-k3 * t) - math.exp(-k1 * t) * (1 + (k1 - k3) * t)) / (k1 - k3) ** 2

def _k1_equals_k3(t, dose, d, k1, k2):
    return dose * d * k1 * k2 * (math.exp(-k2 * t) - math.exp(-k1 * t) * (1 + (k1 - k2) * t)) / (k1 - k2) ** 2

def _k2_equals_k3(t, dose, d, k1, k2):
    return dose * d * k1 * k2 * (math.exp(-k1 * t) - math.exp(-k2 * t) * (1 - (k1 - k2) * t)) / (k1 - k2) ** 2


@pytest.mark.parametrize("formulation", sorted(PK_PARAMETERS))
def test_zero_before_the_dose(formulation):
    params = pk_parameters(formulation)
    for t in (-1e-9, -0.5, -30.0):
        assert respond(t, 5.0, params) == 0.0
        assert respond(t, 5.0, params, depot_fraction=2.0, instant_fraction=3.0) == 0.0


@pytest.mark.parametrize("formulation", sorted(PK_PARAMETERS))
def test_zero_at_the_moment_of_dosing(formulation):
    """The absorption chain delays the rise: C(0) is exactly 0 for every formulation."""
    assert respond(0.0, 5.0, pk_parameters(formulation)) == 0.0


def test_triple_coincidence_scenario():
    """k1=k2=k3=k reduces to dose*d*k^2*t^2*exp(-k t)/2."""
    params = PKParameterSet(d=1.0, k1=2.0, k2=2.0, k3=2.0)
    value = respond(1.0, 1.0, params)
    assert value == pytest.approx(0.270671, abs=1e-6)
    assert value == pytest.approx(2.0 * math.exp(-2.0), rel=1e-12)


def test_all_distinct_onset_is_exactly_zero():
    assert respond(0.0, 1.0, PKParameterSet(d=1.0, k1=1.0, k2=2.0, k3=3.0)) == 0.0


def test_all_distinct_matches_partial_fractions():
    d, k1, k2, k3, dose, t = 2.0, 1.0, 2.0, 3.0, 1.5, 0.8
    expected = dose * d * k1 * k2 * (
        math.exp(-k1 * t) / ((k1 - k2) * (k1 - k3))
        - math.exp(-k2 * t) / ((k1 - k2) * (k2 - k3))
        + math.exp(-k3 * t) / ((k1 - k3) * (k2 - k3))
    )
    assert respond(t, dose, PKParameterSet(d=d, k1=k1, k2=k2, k3=k3)) == pytest.approx(expected, rel=1e-12)


@pytest.mark.parametrize("params, limit", [
    (PKParameterSet(d=3.0, k1=0.5, k2=0.5, k3=2.0), lambda t: _k1_equals_k2(t, 1.2, 3.0, 0.5, 2.0)),
    (PKParameterSet(d=3.0, k1=0.5, k2=2.0, k3=0.5), lambda t: _k1_equals_k3(t, 1.2, 3.0, 0.5, 2.0)),
    (PKParameterSet(d=3.0, k1=0.5, k2=2.0, k3=2.0), lambda t: _k2_equals_k3(t, 1.2, 3.0, 0.5, 2.0)),
])
def test_degenerate_branches_use_their_limiting_forms(params, limit):
    for t in (0.1, 1.0, 3.0, 12.0):
        assert respond(t, 1.2, params) == pytest.approx(limit(t), rel=1e-12)
    assert respond(0.0, 1.2, params) == 0.0


@pytest.mark.parametrize("shift", ["k2", "k3_on_k1", "k3_on_k2"])
def test_generic_form_converges_to_degenerate_forms(shift):
    """
    Nudging one rate constant off a coincidence and using the all-distinct
    formula must approach the limiting closed form as the gap closes.
    """
    d, dose, t = 1.5, 2.0, 3.0
    k1, k_other = 0.5, 2.0
    for eps in (1e-3, 1e-4, 1e-5):
        if shift == "k2":
            exact = respond(t, dose, PKParameterSet(d, k1, k1, k_other))
            near = respond(t, dose, PKParameterSet(d, k1, k1 + eps, k_other))
        elif shift == "k3_on_k1":
            exact = respond(t, dose, PKParameterSet(d, k1, k_other, k1))
            near = respond(t, dose, PKParameterSet(d, k1, k_other, k1 + eps))
        else:
            exact = respond(t, dose, PKParameterSet(d, k1, k_other, k_other))
            near = respond(t, dose, PKParameterSet(d, k1, k_other, k_other + eps))
        assert abs(near - exact) <= 50 * eps * abs(exact)


def test_triple_coincidence_is_the_limit_of_the_double_one():
    d, dose, t, k = 1.0, 1.0, 1.0, 2.0
    triple = respond(t, dose, PKParameterSet(d, k, k, k))
    near = respond(t, dose, PKParameterSet(d, k, k, k + 1e-5))
    assert near == pytest.approx(triple, rel=1e-3)


def test_instant_and_depot_terms_add_to_the_main_term():
    params = PKParameterSet(d=16.792, k1=0.283, k2=5.592, k3=4.3)
    t = 1.7
    main = respond(t, 1.0, params)
    instant = 0.4 * math.exp(-params.k3 * t)
    depot = 0.6 * params.k2 / (params.k2 - params.k3) * (math.exp(-params.k3 * t) - math.exp(-params.k2 * t))
    combined = respond(t, 1.0, params, depot_fraction=0.6, instant_fraction=0.4)
    assert combined == pytest.approx(main + instant + depot, rel=1e-12)
    # The instant-release path is visible at t=0
    assert respond(0.0, 1.0, params, instant_fraction=0.4) == pytest.approx(0.4)


def test_depot_term_with_equal_k2_k3():
    params = PKParameterSet(d=1.0, k1=0.3, k2=2.0, k3=2.0)
    t = 0.9
    only_depot = respond(t, 0.0, params, depot_fraction=1.5)
    assert only_depot == pytest.approx(1.5 * 2.0 * t * math.exp(-2.0 * t), rel=1e-12)


def test_non_finite_results_are_reported_as_zero():
    assert respond(float("nan"), 1.0, pk_parameters("EV im")) == 0.0
    assert respond(float("inf"), 1.0, PKParameterSet(d=1.0, k1=2.0, k2=2.0, k3=2.0)) == 0.0


def test_curve_fades_long_after_the_dose():
    value = respond(2000.0, 5.0, pk_parameters("EV im"))
    assert abs(value) < 1e-9


def test_steady_state_is_periodic():
    params = pk_parameters("EEn im")
    period = 7.0
    for t in (0.0, 1.3, 4.9, 6.99):
        base = steady_state(t, 5.0, period, params)
        assert steady_state(t + period, 5.0, period, params) == pytest.approx(base, rel=1e-9)
        assert steady_state(t + 3 * period, 5.0, period, params) == pytest.approx(base, rel=1e-9)
    # Phase-periodic rather than causal
    assert steady_state(-2.0, 5.0, period, params) == pytest.approx(steady_state(5.0, 5.0, period, params), rel=1e-9)


def test_steady_state_is_the_limit_of_repeated_doses():
    """Summing a long weekly history must land on the periodic closed form."""
    params = pk_parameters("EV im")
    period, dose, n = 7.0, 4.0, 60
    times = [i * period for i in range(n)]
    t = times[-1] + 2.5
    superposed = evaluate(t, [dose] * n, times, ["EV im"] * n)
    assert superposed == pytest.approx(steady_state(2.5, dose, period, params), rel=1e-6)


def test_steady_state_rejects_coinciding_rate_constants():
    with pytest.raises(DegenerateRateConstantsError):
        steady_state(1.0, 1.0, 7.0, PKParameterSet(d=1.0, k1=2.0, k2=2.0, k3=3.0))
    with pytest.raises(ValueError):
        steady_state(1.0, 1.0, 0.0, pk_parameters("EV im"))


def test_dose_response_dispatches_on_kind():
    params = pk_parameters("patch ow")
    t = 2.0
    assert dose_response(t, 1.0, params, SimpleDose()) == respond(t, 1.0, params)
    assert dose_response(t, 1.0, params, DepotDose(instant_fraction=0.2, secondary_fraction=0.3)) == \
        respond(t, 1.0, params, depot_fraction=0.3, instant_fraction=0.2)
    assert dose_response(t, 1.0, params, SteadyStateQuery(period=3.5)) == steady_state(t, 1.0, 3.5, params)
    assert dose_response(t, 1.0, params, SimpleDose(), scale=2.0) == pytest.approx(2.0 * respond(t, 1.0, params))


def test_ode_reference_matches_closed_form():
    """
    Integrating the depot chain numerically must reproduce the superposed
    closed form for a weekly EV schedule.
    """
    series = every_n_days(amount_mg=5.0, every_days=7, weeks=3, formulation="EV im")
    t, C = simulate_3c_ode(pk_parameters("EV im"), series, t_end=28.0, dt=0.5)
    expected = np.array([evaluate_series(float(x), series) for x in t])

    assert len(t) == len(C) and len(t) > 10
    assert np.allclose(C, expected, rtol=1e-5, atol=1e-6)


def test_ode_reference_matches_patch_paths():
    params = pk_parameters("patch tw")
    series = DoseSeries(events=(
        DoseEvent(amount=1.0, timestamp=0.0, formulation="patch tw",
                  kind=DepotDose(instant_fraction=5.0, secondary_fraction=8.0)),
    ))
    t, C = simulate_3c_ode(params, series, t_end=10.0, dt=0.25)
    expected = np.array([evaluate_series(float(x), series) for x in t])
    assert np.allclose(C, expected, rtol=1e-5, atol=1e-6)


def test_ode_reference_mixed_formulations():
    series = DoseSeries(events=(
        DoseEvent(amount=4.0, timestamp=0.0, formulation="EV im"),
        DoseEvent(amount=5.0, timestamp=3.0, formulation="EC im"),
    ), conversion_factor=2.0)
    t, C = simulate_series_ode(series, t_end=20.0, dt=0.5)
    expected = np.array([evaluate_series(float(x), series) for x in t])
    assert np.allclose(C, expected, rtol=1e-5, atol=1e-6)


def test_ode_reference_refuses_steady_state_queries():
    series = DoseSeries(events=(
        DoseEvent(amount=1.0, timestamp=0.0, formulation="EV im", kind=SteadyStateQuery(period=7.0)),
    ))
    with pytest.raises(ValueError):
        simulate_3c_ode(pk_parameters("EV im"), series, t_end=7.0)
