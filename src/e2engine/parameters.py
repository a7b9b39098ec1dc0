# src/e2engine/parameters.py
from types import MappingProxyType
from typing import Mapping, Optional

from .types import PKParameterSet


class UnknownFormulationError(KeyError):
    """Raised when a formulation (or ester name) has no entry in the table."""


# Published three-compartment fits; per-day rate constants.
PK_PARAMETERS: Mapping[str, PKParameterSet] = MappingProxyType({
    "EV im": PKParameterSet(d=478.0, k1=0.236, k2=4.85, k3=1.24),
    "EEn im": PKParameterSet(d=191.4, k1=0.119, k2=0.601, k3=0.402),
    "EC im": PKParameterSet(d=246.0, k1=0.0825, k2=3.57, k3=0.669),
    "EB im": PKParameterSet(d=1893.1, k1=0.67, k2=61.5, k3=4.34),
    "EUn im": PKParameterSet(d=471.5, k1=0.01729, k2=6.528, k3=2.285),
    "EUn casubq": PKParameterSet(d=16.15, k1=0.046, k2=0.022, k3=0.101),
    "patch tw": PKParameterSet(d=16.792, k1=0.283, k2=5.592, k3=4.3),
    "patch ow": PKParameterSet(d=59.481, k1=0.107, k2=7.842, k3=5.193),
})

# Injectable ester names as stored in dose-history records.
ESTER_FORMULATIONS: Mapping[str, Optional[str]] = MappingProxyType({
    "Estradiol Benzoate": "EB im",
    "Estradiol Cypionate": "EC im",
    "Estradiol Enanthate": "EEn im",
    "Estradiol Undecylate": "EUn im",
    "Estradiol Valerate": "EV im",
    "Polyestradiol Phosphate": None,  # no fitted model
})


def pk_parameters(formulation: str) -> PKParameterSet:
    """Look up the parameter set of a formulation; unknown tags are rejected."""
    try:
        return PK_PARAMETERS[formulation]
    except (KeyError, TypeError):
        raise UnknownFormulationError(f"No PK parameters for formulation {formulation!r}.") from None


def is_known_formulation(formulation: object) -> bool:
    return isinstance(formulation, str) and formulation in PK_PARAMETERS


def formulation_for_ester(name: str) -> Optional[str]:
    """
    Map an injectable ester name to its formulation tag.
    Returns None for esters that exist but have no model (polyestradiol phosphate).
    """
    if name not in ESTER_FORMULATIONS:
        raise UnknownFormulationError(f"Unknown injectable ester {name!r}.")
    return ESTER_FORMULATIONS[name]
