"""Physics-bounded efficiency models."""
from .efficiency import (
    EfficiencyClaimCheck,
    EfficiencyComponent,
    EfficiencyResult,
    battery_round_trip_efficiency,
    betz_limit,
    brayton_efficiency,
    caes_efficiency,
    carnot_efficiency,
    carnot_from_celsius_or_kelvin,
    combined_cycle_efficiency,
    orc_efficiency,
    pumped_hydro_efficiency,
    rankine_efficiency,
    shockley_queisser_limit,
    solar_pv_efficiency,
    validate_efficiency_claim,
    validate_electrolyzer_efficiency,
    wind_turbine_efficiency,
)

__all__ = [
    "EfficiencyClaimCheck",
    "EfficiencyComponent",
    "EfficiencyResult",
    "battery_round_trip_efficiency",
    "betz_limit",
    "brayton_efficiency",
    "caes_efficiency",
    "carnot_efficiency",
    "carnot_from_celsius_or_kelvin",
    "combined_cycle_efficiency",
    "orc_efficiency",
    "pumped_hydro_efficiency",
    "rankine_efficiency",
    "shockley_queisser_limit",
    "solar_pv_efficiency",
    "validate_efficiency_claim",
    "validate_electrolyzer_efficiency",
    "wind_turbine_efficiency",
]
