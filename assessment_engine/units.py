"""
Unit conversion for techno-economic metrics.

Conversions come from a fixed rule table. Factor rules are reversible by
division; formula rules carry an explicit inverse. Unit strings are compared
after normalization (case, whitespace, superscripts), so "$/MWh", "$/mwh" and
"$ / MWh" are the same unit.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from assessment_engine.reference.constants import CONVERSION_CONSTANTS as C
from assessment_engine.utils.logging_utils import get_logger

logger = get_logger(__name__)

Formula = Callable[..., float]


@dataclass(frozen=True)
class ConversionRule:
    from_unit: str
    to_unit: str
    factor: Optional[float] = None
    formula: Optional[Formula] = None
    inverse: Optional[Formula] = None
    description: str = ""

    @property
    def reversible(self) -> bool:
        return self.factor is not None or self.inverse is not None


def _lcoe_to_lcoh(value: float, kwh_per_kg: float = 50.0, **_: float) -> float:
    return value * kwh_per_kg / 1000.0


def _lcoh_to_lcoe(value: float, kwh_per_kg: float = 50.0, **_: float) -> float:
    return value * 1000.0 / kwh_per_kg


def _reciprocal(numerator: float) -> Formula:
    # x -> numerator / x is its own inverse
    def convert(value: float, **_: float) -> float:
        if value == 0:
            raise ValueError("Cannot convert a zero specific consumption to an efficiency")
        return numerator / value
    return convert


CONVERSION_RULES: Tuple[ConversionRule, ...] = (
    # Hydrogen
    ConversionRule("$/MWh", "$/kg", formula=_lcoe_to_lcoh, inverse=_lcoh_to_lcoe,
                   description="Electricity price to hydrogen cost at a given kWh/kg"),
    ConversionRule("kWh/Nm3", "kWh/kg", factor=1.0 / C["h2_density_stp"],
                   description="Per normal cubic metre to per kilogram of H2"),
    ConversionRule("kWh/Nm3", "%", formula=_reciprocal(C["h2_energy_lhv_kwh_per_nm3"] * 100.0),
                   inverse=_reciprocal(C["h2_energy_lhv_kwh_per_nm3"] * 100.0),
                   description="Specific consumption to LHV efficiency"),
    ConversionRule("kWh/kg", "%", formula=_reciprocal(C["h2_energy_lhv_kwh_per_kg"] * 100.0),
                   inverse=_reciprocal(C["h2_energy_lhv_kwh_per_kg"] * 100.0),
                   description="Specific consumption to LHV efficiency"),
    # Energy
    ConversionRule("MWh", "kWh", factor=1000.0),
    ConversionRule("GWh", "MWh", factor=1000.0),
    ConversionRule("GJ", "MWh", factor=1.0 / C["kwh_to_mj"]),
    ConversionRule("MJ", "kWh", factor=1.0 / C["kwh_to_mj"]),
    # Cost
    ConversionRule("$/MWh", "$/kWh", factor=0.001),
    ConversionRule("$/GJ", "$/MWh", factor=C["kwh_to_mj"]),
    ConversionRule("EUR/MWh", "$/MWh", factor=1.08, description="Fixed reference exchange rate"),
    ConversionRule("$/kW", "$/MW", factor=1000.0),
    ConversionRule("M$", "$", factor=1e6),
    ConversionRule("B$", "$", factor=1e9),
    # Pressure
    ConversionRule("bar", "psi", factor=C["bar_to_psi"]),
    ConversionRule("atm", "bar", factor=C["atm_to_bar"]),
    ConversionRule("MPa", "bar", factor=10.0),
    # Temperature
    ConversionRule("C", "K", formula=lambda v, **_: v + C["kelvin_offset"],
                   inverse=lambda v, **_: v - C["kelvin_offset"]),
    ConversionRule("F", "C", formula=lambda v, **_: (v - 32.0) * 5.0 / 9.0,
                   inverse=lambda v, **_: v * 9.0 / 5.0 + 32.0),
    # Time
    ConversionRule("years", "hours", factor=C["hours_per_year"]),
    ConversionRule("days", "hours", factor=24.0),
    # Mass
    ConversionRule("kg", "tonne", factor=0.001),
    ConversionRule("Nm3", "kg", factor=C["h2_density_stp"], description="Hydrogen at STP"),
    # Ratio
    ConversionRule("%", "decimal", factor=0.01),
)

_EQUIVALENT_UNITS = (
    {"%", "percent", "pct"},
    {"kwh/nm3", "kwh/m3"},
    {"$/kg", "usd/kg"},
    {"$/mwh", "usd/mwh"},
    {"$/kwh", "usd/kwh"},
    {"$/kw", "usd/kw"},
    {"hours", "hour", "h", "hrs"},
    {"years", "year", "yr", "yrs"},
    {"tonne", "tonnes", "t", "metricton"},
    {"c", "°c", "degc"},
    {"k", "kelvin"},
)


def normalize_unit(unit: str) -> str:
    """Lower-case, drop whitespace and fold superscripts / micro sign."""
    text = unit.strip().lower()
    text = re.sub(r"\s+", "", text)
    return text.replace("³", "3").replace("²", "2").replace("μ", "u").replace("µ", "u")


def _canonical(unit: str) -> str:
    norm = normalize_unit(unit)
    for group in _EQUIVALENT_UNITS:
        if norm in group:
            return min(group)
    return norm


def units_equivalent(a: str, b: str) -> bool:
    return _canonical(a) == _canonical(b)


def _build_index() -> Dict[Tuple[str, str], Tuple[ConversionRule, bool]]:
    index: Dict[Tuple[str, str], Tuple[ConversionRule, bool]] = {}
    for rule in CONVERSION_RULES:
        index[(_canonical(rule.from_unit), _canonical(rule.to_unit))] = (rule, False)
    for rule in CONVERSION_RULES:
        key = (_canonical(rule.to_unit), _canonical(rule.from_unit))
        if rule.reversible and key not in index:
            index[key] = (rule, True)
    return index


_RULE_INDEX = _build_index()


def find_rule(from_unit: str, to_unit: str) -> Optional[Tuple[ConversionRule, bool]]:
    """Return (rule, reversed) for a unit pair, or None."""
    return _RULE_INDEX.get((_canonical(from_unit), _canonical(to_unit)))


def convert_unit(value: float, from_unit: str, to_unit: str, **params: float) -> float:
    """
    Convert a value between two units.

    Args:
        value: Numeric value in `from_unit`
        from_unit: Source unit
        to_unit: Target unit
        **params: Extra inputs for formula rules (e.g. kwh_per_kg)

    Returns:
        The converted value

    Raises:
        ValueError: If no rule covers the unit pair or the result is not finite
    """
    if units_equivalent(from_unit, to_unit):
        return value

    found = find_rule(from_unit, to_unit)
    if found is None:
        logger.warning(f"No conversion rule from '{from_unit}' to '{to_unit}'")
        raise ValueError(f"No conversion rule from '{from_unit}' to '{to_unit}'")

    rule, reverse = found
    if rule.factor is not None:
        result = value / rule.factor if reverse else value * rule.factor
    elif reverse:
        result = rule.inverse(value, **params)
    else:
        result = rule.formula(value, **params)

    if not math.isfinite(result):
        raise ValueError(f"Conversion of {value} {from_unit} to {to_unit} is not finite")
    return result


_VALUE_WITH_UNIT = re.compile(r"^\s*(-?[\d.,]+)\s*(.*?)\s*$")


def parse_value_with_unit(text: str) -> Optional[Tuple[float, str]]:
    """Split strings like '55 kWh/kg' or '1,200 $/kW' into (value, unit)."""
    match = _VALUE_WITH_UNIT.match(text)
    if not match:
        return None
    try:
        value = float(match.group(1).replace(",", ""))
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value, match.group(2)


# Domain helpers

def lcoe_to_lcoh(lcoe_per_mwh: float, kwh_per_kg: float = 50.0) -> float:
    """Electricity cost contribution to LCOH in $/kg."""
    return convert_unit(lcoe_per_mwh, "$/MWh", "$/kg", kwh_per_kg=kwh_per_kg)


def specific_consumption_to_efficiency(kwh_per_nm3: float, basis: str = "LHV") -> float:
    """Electrolyzer efficiency (%) from specific consumption in kWh/Nm3."""
    if kwh_per_nm3 <= 0:
        raise ValueError("Specific consumption must be positive")
    energy = C["h2_energy_hhv_kwh_per_nm3"] if basis.upper() == "HHV" else C["h2_energy_lhv_kwh_per_nm3"]
    return energy / kwh_per_nm3 * 100.0


def efficiency_to_specific_consumption(efficiency_pct: float, basis: str = "LHV") -> float:
    """Specific consumption in kWh/Nm3 for an electrolyzer efficiency (%)."""
    if efficiency_pct <= 0:
        raise ValueError("Efficiency must be positive")
    energy = C["h2_energy_hhv_kwh_per_nm3"] if basis.upper() == "HHV" else C["h2_energy_lhv_kwh_per_nm3"]
    return energy / (efficiency_pct / 100.0)


def kwh_per_kg_to_efficiency(kwh_per_kg: float) -> float:
    return convert_unit(kwh_per_kg, "kWh/kg", "%")


def calculate_lcos(
    capex_per_kwh: float,
    cycle_life: float,
    round_trip_efficiency: float,
    electricity_cost_per_kwh: float = 0.05,
    om_cost_per_kwh: float = 0.0,
) -> float:
    """Simplified levelized cost of storage in $/kWh discharged."""
    if cycle_life <= 0:
        raise ValueError("Cycle life must be positive")
    if not 0 < round_trip_efficiency <= 1:
        raise ValueError("Round-trip efficiency must be in (0, 1]")
    capital_per_cycle = capex_per_kwh / cycle_life
    charging_cost = electricity_cost_per_kwh / round_trip_efficiency
    return capital_per_cycle + charging_cost + om_cost_per_kwh
