"""
Physics-bounded efficiency models.

Every model is a pure function of its physical parameters and returns an
EfficiencyResult: a best-estimate value, the theoretical ceiling for the
process, an uncertainty band and a breakdown of the loss components.
Efficiencies are fractions in [0, 1].

Invalid physical inputs raise ValueError instead of returning a number that
looks plausible but is wrong.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np

from assessment_engine.config import Config
from assessment_engine.reference.constants import CONVERSION_CONSTANTS, PHYSICS_CONSTANTS
from assessment_engine.reference.limits import get_physics_limits
from assessment_engine.utils.logging_utils import get_logger

logger = get_logger(__name__)

KELVIN_OFFSET = CONVERSION_CONSTANTS["kelvin_offset"]


@dataclass
class EfficiencyComponent:
    name: str
    value: float
    description: str = ""


@dataclass
class EfficiencyResult:
    """Computed efficiency with its ceiling and the assumptions behind it."""
    value: float
    theoretical_max: float
    uncertainty: float
    components: List[EfficiencyComponent] = field(default_factory=list)
    limiting_factors: List[str] = field(default_factory=list)
    assumptions: List[str] = field(default_factory=list)

    @property
    def band(self) -> tuple:
        return (max(0.0, self.value - self.uncertainty), min(1.0, self.value + self.uncertainty))


@dataclass(frozen=True)
class EfficiencyClaimCheck:
    valid: bool
    reason: str
    max_plausible: float


def _require_fraction(name: str, value: float, allow_zero: bool = False) -> None:
    low_ok = value >= 0 if allow_zero else value > 0
    if not (low_ok and value <= 1 and np.isfinite(value)):
        bound = "[0, 1]" if allow_zero else "(0, 1]"
        raise ValueError(f"{name} must be a fraction in {bound}, got {value}")


def _require_positive(name: str, value: float) -> None:
    if not (np.isfinite(value) and value > 0):
        raise ValueError(f"{name} must be positive and finite, got {value}")


# Heat engines

def carnot_efficiency(hot_temp_k: float, cold_temp_k: float) -> EfficiencyResult:
    """
    Carnot limit for a heat engine between two reservoirs.

    Args:
        hot_temp_k: Hot reservoir temperature (K)
        cold_temp_k: Cold reservoir temperature (K)

    Raises:
        ValueError: If either temperature is not positive or hot <= cold
    """
    _require_positive("Cold reservoir temperature (K)", cold_temp_k)
    _require_positive("Hot reservoir temperature (K)", hot_temp_k)
    if hot_temp_k <= cold_temp_k:
        raise ValueError(
            f"Hot temperature ({hot_temp_k} K) must be greater than cold temperature ({cold_temp_k} K)"
        )

    eta = 1.0 - cold_temp_k / hot_temp_k
    return EfficiencyResult(
        value=eta,
        theoretical_max=eta,
        uncertainty=0.0,
        components=[EfficiencyComponent("carnot", eta, "1 - Tc/Th")],
        limiting_factors=["Second law of thermodynamics"],
        assumptions=[f"Reversible cycle between {hot_temp_k:.1f} K and {cold_temp_k:.1f} K"],
    )


def carnot_from_celsius_or_kelvin(hot: float, cold: float = 313.0) -> EfficiencyResult:
    """Carnot limit where values at or below 200 are read as degrees Celsius."""
    hot_k = hot + KELVIN_OFFSET if hot <= 200 else hot
    cold_k = cold + KELVIN_OFFSET if cold <= 200 else cold
    return carnot_efficiency(hot_k, cold_k)


def rankine_efficiency(
    boiler_temp_k: float,
    condenser_temp_k: float,
    reheat_stages: int = 0,
    turbine_efficiency: float = 0.90,
    pump_efficiency: float = 0.85,
) -> EfficiencyResult:
    """Steam Rankine cycle as a fraction of Carnot, improved by reheat."""
    if reheat_stages < 0:
        raise ValueError(f"Reheat stages must be non-negative, got {reheat_stages}")
    _require_fraction("Turbine isentropic efficiency", turbine_efficiency)
    _require_fraction("Pump isentropic efficiency", pump_efficiency)

    carnot = carnot_efficiency(boiler_temp_k, condenser_temp_k).value
    cycle_factor = 0.65 + 0.02 * reheat_stages
    component_factor = turbine_efficiency * pump_efficiency
    eta = carnot * cycle_factor * component_factor

    return EfficiencyResult(
        value=eta,
        theoretical_max=carnot,
        uncertainty=0.03,
        components=[
            EfficiencyComponent("carnot", carnot, "Reservoir temperature limit"),
            EfficiencyComponent("cycle", cycle_factor, "Rankine cycle irreversibility"),
            EfficiencyComponent("turbomachinery", component_factor, "Turbine x pump"),
        ],
        limiting_factors=["Condenser temperature", "Boiler material temperature limits"],
        assumptions=[f"{reheat_stages} reheat stage(s)", "Saturated steam at condenser"],
    )


def brayton_efficiency(
    turbine_inlet_temp_k: float,
    compressor_inlet_temp_k: float,
    pressure_ratio: float,
    gamma: float = 1.4,
    compressor_efficiency: float = 0.88,
    turbine_efficiency: float = 0.90,
) -> EfficiencyResult:
    """Gas turbine (Brayton) cycle with non-ideal compressor and turbine."""
    if pressure_ratio <= 1:
        raise ValueError(f"Pressure ratio must be greater than 1, got {pressure_ratio}")
    if gamma <= 1:
        raise ValueError(f"Heat capacity ratio must be greater than 1, got {gamma}")
    _require_fraction("Compressor isentropic efficiency", compressor_efficiency)
    _require_fraction("Turbine isentropic efficiency", turbine_efficiency)

    carnot = carnot_efficiency(turbine_inlet_temp_k, compressor_inlet_temp_k).value
    ideal = 1.0 - pressure_ratio ** (-(gamma - 1.0) / gamma)
    component_factor = compressor_efficiency * turbine_efficiency
    eta = min(ideal * component_factor * 0.75, carnot)

    return EfficiencyResult(
        value=eta,
        theoretical_max=carnot,
        uncertainty=0.04,
        components=[
            EfficiencyComponent("ideal_brayton", ideal, "1 - PR^(-(gamma-1)/gamma)"),
            EfficiencyComponent("turbomachinery", component_factor, "Compressor x turbine"),
            EfficiencyComponent("real_cycle", 0.75, "Pressure losses and cooling air"),
        ],
        limiting_factors=["Turbine inlet temperature", "Compressor work"],
        assumptions=[f"Pressure ratio {pressure_ratio}", f"gamma = {gamma}"],
    )


def combined_cycle_efficiency(
    brayton_eff: float,
    rankine_eff: float,
    heat_recovery_efficiency: float = 0.90,
) -> EfficiencyResult:
    _require_fraction("Brayton efficiency", brayton_eff, allow_zero=True)
    _require_fraction("Rankine efficiency", rankine_eff, allow_zero=True)
    _require_fraction("Heat recovery efficiency", heat_recovery_efficiency)

    bottoming = (1.0 - brayton_eff) * rankine_eff * heat_recovery_efficiency
    eta = brayton_eff + bottoming
    return EfficiencyResult(
        value=eta,
        theoretical_max=0.65,
        uncertainty=0.02,
        components=[
            EfficiencyComponent("topping_cycle", brayton_eff, "Gas turbine"),
            EfficiencyComponent("bottoming_cycle", bottoming, "Steam cycle on recovered heat"),
        ],
        limiting_factors=["HRSG pinch point", "Stack losses"],
        assumptions=[f"Heat recovery efficiency {heat_recovery_efficiency:.0%}"],
    )


ORC_FLUID_FACTORS = {
    "r245fa": 0.60,
    "r134a": 0.55,
    "isobutane": 0.58,
    "pentane": 0.62,
}


def orc_efficiency(source_temp_k: float, sink_temp_k: float, working_fluid: str = "r245fa") -> EfficiencyResult:
    """Organic Rankine cycle for low-grade heat."""
    fluid = working_fluid.lower()
    if fluid not in ORC_FLUID_FACTORS:
        raise ValueError(f"Unknown ORC working fluid '{working_fluid}'. Known: {sorted(ORC_FLUID_FACTORS)}")

    carnot = carnot_efficiency(source_temp_k, sink_temp_k).value
    factor = ORC_FLUID_FACTORS[fluid]
    return EfficiencyResult(
        value=carnot * factor,
        theoretical_max=carnot,
        uncertainty=0.02,
        components=[
            EfficiencyComponent("carnot", carnot, "Source/sink temperature limit"),
            EfficiencyComponent("fluid", factor, f"Second-law efficiency of {fluid}"),
        ],
        limiting_factors=["Low source temperature"],
        assumptions=[f"Working fluid {fluid}"],
    )


# Solar

def shockley_queisser_limit(bandgap_ev: float, concentration: float = 1.0) -> EfficiencyResult:
    """
    Detailed-balance efficiency limit of a single-junction cell.

    Uses a Gaussian fit around the 1.34 eV optimum (33.7% at one sun).
    Concentration adds a logarithmic boost, capped at 45%.
    """
    _require_positive("Band gap (eV)", bandgap_ev)
    if not np.isfinite(concentration) or concentration < 1:
        raise ValueError(f"Concentration must be at least 1 sun, got {concentration}")

    peak = PHYSICS_CONSTANTS["shockley_queisser_max"]
    optimal = PHYSICS_CONSTANTS["shockley_queisser_optimal_bandgap"]
    sigma = 0.4
    gaussian = float(np.exp(-((bandgap_ev - optimal) ** 2) / (2 * sigma ** 2)))
    boost = float(np.log10(concentration)) * 0.05
    eta = min(peak * gaussian + boost, 0.45)

    return EfficiencyResult(
        value=eta,
        theoretical_max=eta,
        uncertainty=0.01,
        components=[
            EfficiencyComponent("detailed_balance", peak * gaussian, f"Band gap {bandgap_ev} eV"),
            EfficiencyComponent("concentration", boost, f"{concentration:g} suns"),
        ],
        limiting_factors=["Thermalization losses", "Sub-bandgap transmission"],
        assumptions=["AM1.5G spectrum", "Radiative recombination only"],
    )


PV_BANDGAPS = {
    "mono-si": 1.12,
    "poly-si": 1.12,
    "thin-film": 1.45,
    "perovskite": 1.55,
}


def solar_pv_efficiency(
    stc_efficiency: float,
    cell_temp_c: float = 25.0,
    irradiance: float = 1000.0,
    temp_coefficient: float = -0.004,
    technology: str = "mono-si",
) -> EfficiencyResult:
    """Module efficiency at operating conditions, derated from STC."""
    _require_fraction("STC efficiency", stc_efficiency)
    if irradiance < 0 or not np.isfinite(irradiance):
        raise ValueError(f"Irradiance must be non-negative, got {irradiance}")
    if cell_temp_c <= -KELVIN_OFFSET:
        raise ValueError(f"Cell temperature must be above absolute zero, got {cell_temp_c} C")
    tech = technology.lower()
    if tech not in PV_BANDGAPS:
        raise ValueError(f"Unknown PV technology '{technology}'. Known: {sorted(PV_BANDGAPS)}")

    theoretical = shockley_queisser_limit(PV_BANDGAPS[tech]).value
    if stc_efficiency > theoretical:
        raise ValueError(
            f"STC efficiency {stc_efficiency:.1%} exceeds the detailed-balance limit "
            f"{theoretical:.1%} for {tech}"
        )

    temp_factor = 1.0 + temp_coefficient * (cell_temp_c - 25.0)
    if irradiance >= 200:
        irradiance_factor = float(np.log10(irradiance)) / 3.0 * 0.95 + 0.05
    else:
        irradiance_factor = irradiance / 1000.0
    eta = max(0.0, stc_efficiency * temp_factor * irradiance_factor)

    return EfficiencyResult(
        value=eta,
        theoretical_max=theoretical,
        uncertainty=0.01,
        components=[
            EfficiencyComponent("stc", stc_efficiency, "Rated efficiency"),
            EfficiencyComponent("temperature", temp_factor, f"Cell at {cell_temp_c} C"),
            EfficiencyComponent("irradiance", irradiance_factor, f"{irradiance} W/m2"),
        ],
        limiting_factors=["Cell temperature", "Low-light performance"],
        assumptions=[f"Temperature coefficient {temp_coefficient}/K"],
    )


# Wind

def betz_limit() -> float:
    return PHYSICS_CONSTANTS["betz_limit"]


def wind_turbine_efficiency(
    wind_speed: float,
    rated_power_kw: float,
    rotor_diameter_m: float,
    air_density: float = 1.225,
    cp_max: float = 0.48,
    cut_in_speed: float = 3.0,
    rated_speed: float = 12.0,
    cut_out_speed: float = 25.0,
) -> EfficiencyResult:
    """
    Power coefficient of a turbine at a given wind speed.

    Raises:
        ValueError: For non-physical geometry or speeds, or when the rated
            power would require extracting more than the Betz limit.
    """
    if wind_speed < 0 or not np.isfinite(wind_speed):
        raise ValueError(f"Wind speed must be non-negative, got {wind_speed}")
    _require_positive("Rated power (kW)", rated_power_kw)
    _require_positive("Rotor diameter (m)", rotor_diameter_m)
    _require_positive("Air density (kg/m3)", air_density)
    if not 0 < cp_max <= betz_limit():
        raise ValueError(f"Maximum power coefficient must be in (0, {betz_limit():.3f}], got {cp_max}")
    if not 0 <= cut_in_speed < rated_speed < cut_out_speed:
        raise ValueError("Wind speeds must satisfy 0 <= cut-in < rated < cut-out")

    swept_area = np.pi * (rotor_diameter_m / 2.0) ** 2
    available_kw = 0.5 * air_density * swept_area * wind_speed ** 3 / 1000.0

    if wind_speed < cut_in_speed or wind_speed > cut_out_speed:
        cp = 0.0
    elif wind_speed >= rated_speed:
        cp = rated_power_kw / available_kw
    else:
        cp = cp_max * float(np.sqrt((wind_speed - cut_in_speed) / (rated_speed - cut_in_speed)))

    if cp > betz_limit():
        raise ValueError(
            f"Rated power {rated_power_kw} kW at {wind_speed} m/s implies a power coefficient "
            f"of {cp:.3f}, above the Betz limit"
        )

    return EfficiencyResult(
        value=float(cp),
        theoretical_max=betz_limit(),
        uncertainty=0.03,
        components=[
            EfficiencyComponent("available_power_kw", float(available_kw), "0.5 rho A v^3"),
            EfficiencyComponent("power_coefficient", float(cp), "Fraction of wind power extracted"),
        ],
        limiting_factors=["Betz limit", "Rated power cap above rated speed"],
        assumptions=[f"Air density {air_density} kg/m3", f"Cp max {cp_max}"],
    )


# Storage

BATTERY_CHEMISTRIES = {
    # charge, discharge, self-discharge per month
    "li-ion": (0.98, 0.98, 0.02),
    "lfp": (0.97, 0.97, 0.015),
    "nas": (0.92, 0.92, 0.15),
    "vrfb": (0.85, 0.85, 0.01),
    "lead-acid": (0.90, 0.90, 0.05),
}


def battery_round_trip_efficiency(chemistry: str, storage_duration_h: float = 0.0) -> EfficiencyResult:
    """Round-trip efficiency from chemistry losses plus self-discharge over the storage time."""
    key = chemistry.lower()
    if key not in BATTERY_CHEMISTRIES:
        raise ValueError(f"Unknown battery chemistry '{chemistry}'. Known: {sorted(BATTERY_CHEMISTRIES)}")
    if storage_duration_h < 0 or not np.isfinite(storage_duration_h):
        raise ValueError(f"Storage duration must be non-negative, got {storage_duration_h}")

    charge, discharge, monthly_loss = BATTERY_CHEMISTRIES[key]
    hourly_retention = (1.0 - monthly_loss) ** (1.0 / 720.0)
    retention = hourly_retention ** storage_duration_h
    eta = charge * discharge * retention

    return EfficiencyResult(
        value=eta,
        theoretical_max=0.98,
        uncertainty=0.02,
        components=[
            EfficiencyComponent("charge", charge),
            EfficiencyComponent("discharge", discharge),
            EfficiencyComponent("self_discharge_retention", retention, f"{storage_duration_h} h stored"),
        ],
        limiting_factors=["Internal resistance", "Self-discharge"],
        assumptions=[f"Chemistry {key}", "Auxiliary loads excluded"],
    )


def pumped_hydro_efficiency(
    pump_efficiency: float = 0.92,
    motor_efficiency: float = 0.93,
    turbine_efficiency: float = 0.97,
    generator_efficiency: float = 0.98,
    head_loss_fraction: float = 0.02,
) -> EfficiencyResult:
    for name, value in (
        ("Pump efficiency", pump_efficiency),
        ("Motor efficiency", motor_efficiency),
        ("Turbine efficiency", turbine_efficiency),
        ("Generator efficiency", generator_efficiency),
    ):
        _require_fraction(name, value)
    if not 0 <= head_loss_fraction < 1:
        raise ValueError(f"Head loss fraction must be in [0, 1), got {head_loss_fraction}")

    hydraulic = 1.0 - head_loss_fraction
    pumping = pump_efficiency * motor_efficiency * hydraulic
    generating = turbine_efficiency * generator_efficiency * hydraulic
    return EfficiencyResult(
        value=pumping * generating,
        theoretical_max=0.90,
        uncertainty=0.02,
        components=[
            EfficiencyComponent("pumping", pumping, "Motor x pump x penstock"),
            EfficiencyComponent("generating", generating, "Turbine x generator x penstock"),
        ],
        limiting_factors=["Penstock friction", "Machine efficiency"],
        assumptions=[f"Head loss {head_loss_fraction:.0%} each way"],
    )


def caes_efficiency(
    adiabatic: bool = False,
    compressor_efficiency: float = 0.85,
    expander_efficiency: float = 0.85,
    thermal_storage_efficiency: float = 0.90,
) -> EfficiencyResult:
    """Compressed air energy storage, diabatic (gas-fired reheat) or adiabatic."""
    _require_fraction("Compressor efficiency", compressor_efficiency)
    _require_fraction("Expander efficiency", expander_efficiency)
    _require_fraction("Thermal storage efficiency", thermal_storage_efficiency)

    if adiabatic:
        eta = compressor_efficiency * expander_efficiency * thermal_storage_efficiency
        theoretical = 0.75
        assumptions = ["Heat of compression stored and returned"]
    else:
        # Fuel heat input on expansion counted against the cycle
        eta = compressor_efficiency * expander_efficiency / 1.4
        theoretical = 0.55
        assumptions = ["Natural gas reheat before expansion"]

    return EfficiencyResult(
        value=min(eta, theoretical),
        theoretical_max=theoretical,
        uncertainty=0.05,
        components=[
            EfficiencyComponent("compression", compressor_efficiency),
            EfficiencyComponent("expansion", expander_efficiency),
        ],
        limiting_factors=["Heat of compression losses"],
        assumptions=assumptions,
    )


# Claim checks

def validate_efficiency_claim(
    claimed: float,
    result: EfficiencyResult,
    margin_of_error: Optional[float] = None,
) -> EfficiencyClaimCheck:
    """
    Judge a claimed efficiency (fraction) against a computed result.

    A claim is rejected when it exceeds the theoretical maximum by more than
    the margin of error, or the typical computed value by more than 50%.
    """
    margin = Config.EFFICIENCY_MARGIN_OF_ERROR if margin_of_error is None else margin_of_error
    if margin < 0:
        raise ValueError(f"Margin of error must be non-negative, got {margin}")

    max_plausible = min(1.0, result.theoretical_max * (1.0 + margin))

    if claimed > max_plausible:
        return EfficiencyClaimCheck(
            valid=False,
            reason=(
                f"Claimed efficiency {claimed * 100:.1f}% exceeds theoretical maximum of "
                f"{result.theoretical_max * 100:.1f}%"
            ),
            max_plausible=max_plausible,
        )

    if claimed > result.value * 1.5:
        excess = (claimed / result.value - 1.0) * 100 if result.value > 0 else float("inf")
        return EfficiencyClaimCheck(
            valid=False,
            reason=f"Claimed efficiency is {excess:.0f}% higher than typical for this technology",
            max_plausible=max_plausible,
        )

    return EfficiencyClaimCheck(
        valid=True,
        reason="Claimed efficiency is within plausible range",
        max_plausible=max_plausible,
    )


def validate_electrolyzer_efficiency(efficiency_pct: float, technology: str = "pem electrolyzer") -> EfficiencyClaimCheck:
    """Electrolyzer efficiency (%, HHV) against the thermoneutral ceiling."""
    limits = get_physics_limits(technology)
    if limits is None or limits.technology_class != "electrolyzer":
        limits = get_physics_limits("electrolyzer")
    ceiling = limits.efficiency_max

    if efficiency_pct > ceiling:
        return EfficiencyClaimCheck(
            valid=False,
            reason=f"Efficiency {efficiency_pct:.1f}% exceeds the {ceiling:.0f}% limit ({limits.notes})",
            max_plausible=ceiling / 100.0,
        )
    if limits.practical_max is not None and efficiency_pct > limits.practical_max:
        logger.debug(f"Electrolyzer efficiency {efficiency_pct}% above practical maximum")
        return EfficiencyClaimCheck(
            valid=True,
            reason=(
                f"Efficiency {efficiency_pct:.1f}% is within physical limits but very high; "
                f"verify the heating value basis"
            ),
            max_plausible=ceiling / 100.0,
        )
    return EfficiencyClaimCheck(
        valid=True,
        reason="Efficiency is within physical limits",
        max_plausible=ceiling / 100.0,
    )
