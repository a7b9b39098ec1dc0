# src/e2engine/types.py
from dataclasses import dataclass, field
from typing import Literal, Sequence, Union, get_args

# All time is in DAYS (the fitted rate constants are per day). Doses in mg,
# predicted concentrations in pg/mL unless the caller applies a conversion factor.
Formulation = Literal[
    "EB im",
    "EV im",
    "EEn im",
    "EC im",
    "EUn im",
    "EUn casubq",
    "patch tw",
    "patch ow",
]

FORMULATIONS: tuple[str, ...] = get_args(Formulation)


@dataclass(frozen=True)
class PKParameterSet:
    """
    Calibrated constants of the three-compartment absorption chain.

    d   : absorption scale factor (dimensionless)
    k1  : first depot rate constant (1/day)
    k2  : second depot rate constant (1/day)
    k3  : elimination rate constant from the central compartment (1/day)
    """
    d: float
    k1: float
    k2: float
    k3: float


# --------------------------
# Dose kinds
# --------------------------
@dataclass(frozen=True)
class SimpleDose:
    """Ordinary dose entering the first depot."""


@dataclass(frozen=True)
class DepotDose:
    """
    Dose with the alternate absorption paths used by patches.

    instant_fraction   : amount released straight into the central compartment
    secondary_fraction : amount entering the second depot directly
    """
    instant_fraction: float = 0.0
    secondary_fraction: float = 0.0


@dataclass(frozen=True)
class SteadyStateQuery:
    """Evaluate the dose as if it were repeated forever every `period` days."""
    period: float


DoseKind = Union[SimpleDose, DepotDose, SteadyStateQuery]


@dataclass(frozen=True)
class DoseEvent:
    """
    A single administration, as supplied by the storage layer.

    amount      : dose size in mg
    timestamp   : day of administration (or a delta, see DoseSeries.intervals)
    formulation : formulation tag, see Formulation
    kind        : SimpleDose unless the record carries patch terms or asks for
                  the steady-state profile
    """
    amount: float
    timestamp: float
    formulation: str
    kind: DoseKind = field(default_factory=SimpleDose)


@dataclass(frozen=True)
class DoseSeries:
    """
    A collection of DoseEvents plus the uniform dose multiplier.

    events            : any order; the engine never relies on sorting
    conversion_factor : multiplies every dose amount (never the time)
    intervals         : if True, timestamps are successive intervals rather
                        than absolute days
    """
    events: Sequence[DoseEvent] = ()
    conversion_factor: float = 1.0
    intervals: bool = False
