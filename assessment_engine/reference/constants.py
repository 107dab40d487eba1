"""Physical and conversion constants shared by the unit and efficiency modules."""

from types import MappingProxyType

PHYSICS_CONSTANTS = MappingProxyType({
    "faraday": 96485.33212,  # C/mol
    "gas_constant": 8.314462618,  # J/(mol K)
    "boltzmann_ev": 8.617333262e-5,  # eV/K
    # Water electrolysis
    "reversible_voltage": 1.229,  # V at 25 C
    "thermoneutral_voltage_hhv": 1.481,  # V
    "thermoneutral_voltage_lhv": 1.253,  # V
    "h2_min_kwh_per_nm3": 3.54,  # HHV basis
    # Limits
    "betz_limit": 16.0 / 27.0,
    "shockley_queisser_max": 0.337,
    "shockley_queisser_optimal_bandgap": 1.34,  # eV
    "standard_temperature_k": 298.15,
})

CONVERSION_CONSTANTS = MappingProxyType({
    "h2_lhv_mj_per_kg": 120.0,
    "h2_hhv_mj_per_kg": 141.8,
    "h2_density_stp": 0.08988,  # kg/Nm3
    "h2_energy_lhv_kwh_per_kg": 33.33,
    "h2_energy_hhv_kwh_per_kg": 39.39,
    "h2_energy_lhv_kwh_per_nm3": 2.54,
    "h2_energy_hhv_kwh_per_nm3": 3.0,
    "kwh_to_mj": 3.6,
    "co2_density_stp": 1.977,  # kg/m3
    "bar_to_psi": 14.5038,
    "atm_to_bar": 1.01325,
    "kelvin_offset": 273.15,
    "hours_per_year": 8760.0,
})
