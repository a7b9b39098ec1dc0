# src/e2engine/convert.py
"""
Mass <-> molar conversion of hormone concentrations.

Units are ratios "<prefix><base>/<prefix>L" where base is g or mol, e.g.
pg/mL, pmol/L, ng/dL, nmol/L. Example:

    convert_hormone(100, "Estradiol", "pg/mL", "pmol/L")  # ~367.1
"""
import re
from dataclasses import dataclass
from typing import Literal

Base = Literal["g", "mol", "L"]

MOLAR_MASS_G_PER_MOL: dict[str, float] = {
    "Cholesterol": 386.65,
    "Testosterone": 288.431,
    "Dihydrotestosterone": 290.447,
    "Dehydroepiandrosterone": 288.424,
    "Estrone": 270.336,
    "Estradiol": 272.38,
    "Estriol": 288.387,
    "Estetrol": 304.386,
    "Progesterone": 314.469,
    "Aldosterone": 360.45,
    "Androstenedione": 286.415,
    "Cortisol": 362.46,
    "Gonadorelin": 1182.311,
    "Follicle-stimulating hormone": 30000.0,
    "Luteinising hormone": 33000.0,
    "Thyroid-stimulating hormone": 28000.0,
    "Sex hormone-binding globulin": 43700.0,
    "Prolactin": 22892.0,
    "Thyroxine": 776.87,
    "Triiodothyronine": 650.977,
    "Vitamin D3": 384.64,
    "Vitamin B12": 1355.388,
}

PREFIX_EXP: dict[str, int] = {
    "y": -24, "z": -21, "a": -18, "f": -15, "p": -12, "n": -9, "µ": -6, "μ": -6, "u": -6,
    "m": -3, "c": -2, "d": -1, "": 0, "da": 1, "h": 2, "k": 3, "M": 6, "G": 9,
    "T": 12, "P": 15, "E": 18, "Z": 21, "Y": 24,
}


class UnitParseError(ValueError):
    """Raised for unit strings outside mass/volume and mol/volume ratios."""


@dataclass(frozen=True)
class UnitSingle:
    base: Base
    exp: int  # SI exponent of the prefix, 'm' -> -3


@dataclass(frozen=True)
class UnitRatio:
    numerator: UnitSingle
    denominator: UnitSingle


_BASE_SUFFIXES: tuple[tuple[str, Base], ...] = (
    ("mol", "mol"),
    ("g", "g"),
    ("L", "L"),
    ("l", "L"),
    ("ℓ", "L"),
)


def parse_unit_single(token: str) -> UnitSingle:
    t = re.sub(r"\s+", "", token)

    # Match the base first so 'M' (mega) is never confused with 'mol'
    for suffix, base in _BASE_SUFFIXES:
        if t.endswith(suffix):
            prefix = t[: len(t) - len(suffix)]
            break
    else:
        raise UnitParseError(f'Unsupported unit token "{token}"')

    if prefix not in PREFIX_EXP:
        raise UnitParseError(f'Unsupported prefix "{prefix}" in "{token}"')
    return UnitSingle(base=base, exp=PREFIX_EXP[prefix])


def parse_unit_ratio(unit: str) -> UnitRatio:
    parts = unit.split("/")
    if len(parts) != 2 or not parts[0].strip() or not parts[1].strip():
        raise UnitParseError(f'Expected a ratio like "pg/mL", got "{unit}"')
    numerator = parse_unit_single(parts[0])
    denominator = parse_unit_single(parts[1])

    if numerator.base not in ("g", "mol") or denominator.base != "L":
        raise UnitParseError(f'Only mass/volume or mol/volume units are supported (got "{unit}")')
    return UnitRatio(numerator=numerator, denominator=denominator)


def convert_hormone(value: float, hormone: str, from_unit: str, to_unit: str) -> float:
    """
    Convert a concentration between units:
      value_out = value * 10^((from.num + to.den) - (from.den + to.num)) * base factor
    where the base factor is the molar mass for mol -> g, its inverse for g -> mol.
    """
    if hormone not in MOLAR_MASS_G_PER_MOL:
        raise KeyError(f"Unknown hormone {hormone!r}.")
    src = parse_unit_ratio(from_unit)
    dst = parse_unit_ratio(to_unit)

    # Integer exponent keeps rounding out of the prefix part
    prefix_exp = ((src.numerator.exp + dst.denominator.exp)
                  - (src.denominator.exp + dst.numerator.exp))

    molar_mass = MOLAR_MASS_G_PER_MOL[hormone]
    if src.numerator.base == "mol" and dst.numerator.base == "g":
        base_factor = molar_mass
    elif src.numerator.base == "g" and dst.numerator.base == "mol":
        base_factor = 1.0 / molar_mass
    else:
        base_factor = 1.0

    return value * 10.0 ** prefix_exp * base_factor


def convert_estradiol(value: float, from_unit: str, to_unit: str) -> float:
    return convert_hormone(value, "Estradiol", from_unit, to_unit)


def convert_testosterone(value: float, from_unit: str, to_unit: str) -> float:
    return convert_hormone(value, "Testosterone", from_unit, to_unit)


def convert_progesterone(value: float, from_unit: str, to_unit: str) -> float:
    return convert_hormone(value, "Progesterone", from_unit, to_unit)


def estradiol_display_factor(display_unit: str) -> float:
    """Multiplier taking model output (pg/mL) to `display_unit`; pass as conversion_factor."""
    return convert_estradiol(1.0, "pg/mL", display_unit)
