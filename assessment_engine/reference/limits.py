"""
Hard physical ceilings by technology class.

These are the numbers a claim can be refuted against: thermodynamic and
detailed-balance limits, not industry ranges.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Optional, Tuple

from .constants import CONVERSION_CONSTANTS, PHYSICS_CONSTANTS


@dataclass(frozen=True)
class PhysicsCeiling:
    metric: str
    max_value: float
    unit: str
    source: str


@dataclass(frozen=True)
class TechnologyLimits:
    technology_class: str
    efficiency_max: float  # %
    practical_max: Optional[float] = None  # %
    notes: str = ""
    extra: MappingProxyType = field(default_factory=lambda: MappingProxyType({}))


THEORETICAL_CEILINGS = MappingProxyType({
    "betz": PhysicsCeiling(
        "Power Coefficient", round(PHYSICS_CONSTANTS["betz_limit"] * 100, 1), "%",
        "Betz limit for open-rotor wind turbines (16/27)",
    ),
    "shockley_queisser": PhysicsCeiling(
        "Single-Junction Cell Efficiency", round(PHYSICS_CONSTANTS["shockley_queisser_max"] * 100, 1), "%",
        "Shockley-Queisser detailed-balance limit at 1.34 eV",
    ),
    "multi_junction_solar": PhysicsCeiling(
        "Multi-Junction Cell Efficiency", 47.0, "%",
        "Record multi-junction cell under concentration",
    ),
    "htl_second_law": PhysicsCeiling(
        "Net Energy Efficiency", 85.0, "%",
        "Second-law thermodynamic limit for HTL processes",
    ),
    "electrolysis_thermoneutral": PhysicsCeiling(
        "Electrolyzer Efficiency (HHV)", 100.0, "%",
        "Thermoneutral voltage 1.481 V; above 100% requires external heat",
    ),
})

HTL_PHYSICS_LIMITS: Tuple[PhysicsCeiling, ...] = (
    THEORETICAL_CEILINGS["htl_second_law"],
    PhysicsCeiling("Biocrude Yield", 60.0, "wt%", "Maximum organic fraction recoverable as biocrude"),
    PhysicsCeiling("Reactor Temperature", 400.0, "°C", "Near-critical water operating window"),
    PhysicsCeiling("Reactor Pressure", 35.0, "MPa", "Subcritical HTL pressure envelope"),
    PhysicsCeiling("Water Recycle", 95.0, "%", "Practical process-water recovery"),
    PhysicsCeiling("Mass Conversion", 90.0, "%", "Ash and char fraction cannot be converted"),
)

# Keyword -> limits, first match wins so more specific keywords come first
_TECHNOLOGY_LIMITS = (
    (("soec", "solid oxide electroly"), TechnologyLimits(
        "electrolyzer", 120.0, 100.0,
        "High-temperature electrolysis can exceed 100% electrical efficiency with external heat",
    )),
    (("electroly",), TechnologyLimits(
        "electrolyzer", 100.0, 95.0,
        "HHV basis at thermoneutral voltage",
        MappingProxyType({"min_kwh_per_nm3": PHYSICS_CONSTANTS["h2_min_kwh_per_nm3"]}),
    )),
    (("wind",), TechnologyLimits("wind", round(PHYSICS_CONSTANTS["betz_limit"] * 100, 1), 50.0, "Betz limit")),
    (("tandem", "multi-junction", "multijunction"), TechnologyLimits(
        "solar", 47.0, 33.9, "Multi-junction record under concentration",
    )),
    (("csp", "concentrated solar", "concentrating solar"), TechnologyLimits(
        "csp", 45.0, 35.0, "Carnot-limited by receiver temperature",
    )),
    (("solar", "photovoltaic", "pv"), TechnologyLimits(
        "solar", round(PHYSICS_CONSTANTS["shockley_queisser_max"] * 100, 1), 26.8, "Shockley-Queisser single-junction limit",
    )),
    (("turbine", "engine", "combined cycle"), TechnologyLimits(
        "heat-engine", 70.0, 64.0, "Carnot-limited; best combined cycles reach ~64%",
    )),
    (("solid-state", "solid state"), TechnologyLimits(
        "battery", 100.0, 98.0, "Round-trip efficiency",
        MappingProxyType({"energy_density_max_wh_per_kg": 700.0}),
    )),
    (("battery", "lithium", "li-ion"), TechnologyLimits(
        "battery", 100.0, 98.0, "Round-trip efficiency",
        MappingProxyType({"energy_density_max_wh_per_kg": 500.0}),
    )),
    (("htl", "hydrothermal"), TechnologyLimits(
        "htl", 85.0, 75.0, "Second-law thermodynamic limit for HTL processes",
    )),
    (("nuclear", "fission", "reactor"), TechnologyLimits(
        "nuclear", 50.0, 45.0, "Thermal cycle efficiency",
    )),
)


def get_physics_limits(technology: str) -> Optional[TechnologyLimits]:
    """Limits for the first technology class whose keyword appears in `technology`."""
    label = technology.lower()
    for keywords, limits in _TECHNOLOGY_LIMITS:
        if any(keyword in label for keyword in keywords):
            return limits
    return None


def theoretical_ceiling(name: str) -> PhysicsCeiling:
    try:
        return THEORETICAL_CEILINGS[name]
    except KeyError:
        raise ValueError(
            f"Unknown theoretical ceiling '{name}'. Known: {sorted(THEORETICAL_CEILINGS)}"
        ) from None


@dataclass(frozen=True)
class IntensityMinimum:
    min_value: float
    unit: str
    description: str


# Thermodynamic minimum energy per unit of product, keyed by product
ENERGY_INTENSITY_MINIMUMS = MappingProxyType({
    "hydrogen_kg": IntensityMinimum(
        CONVERSION_CONSTANTS["h2_energy_hhv_kwh_per_kg"], "kWh/kg", "Hydrogen production (HHV)",
    ),
    "hydrogen_nm3": IntensityMinimum(
        PHYSICS_CONSTANTS["h2_min_kwh_per_nm3"], "kWh/Nm3", "Hydrogen production (HHV)",
    ),
    "dac": IntensityMinimum(178.0, "kWh/tonne", "Direct air capture (Gibbs minimum)"),
    "ammonia": IntensityMinimum(7400.0, "kWh/tonne", "Green ammonia synthesis"),
    "steel_dri": IntensityMinimum(3000.0, "kWh/tonne", "Direct reduced iron"),
})

_INTENSITY_KEYWORDS = (
    (("electroly", "hydrogen", "h2"), {"kg": "hydrogen_kg", "nm3": "hydrogen_nm3"}),
    (("dac", "direct air"), {"tonne": "dac"}),
    (("ammonia",), {"tonne": "ammonia"}),
    (("steel", "iron"), {"tonne": "steel_dri"}),
)


def get_energy_intensity_minimum(technology: str, per_unit: str) -> Optional[IntensityMinimum]:
    """Minimum kWh per `per_unit` ('kg', 'nm3', 'tonne') of product, None when unknown."""
    label = technology.lower()
    for keywords, by_unit in _INTENSITY_KEYWORDS:
        if any(keyword in label for keyword in keywords):
            key = by_unit.get(per_unit.lower())
            return ENERGY_INTENSITY_MINIMUMS[key] if key else None
    return None
