"""Static physics reference tables (benchmarks, domain ranges, ceilings)."""
from .benchmarks import BENCHMARKS, COST_PROJECTIONS, compare_to_benchmark, get_benchmark
from .constants import CONVERSION_CONSTANTS, PHYSICS_CONSTANTS
from .domains import get_industry_range, get_sanity_range, get_trl_benchmark, resolve_domain
from .limits import (
    ENERGY_INTENSITY_MINIMUMS,
    HTL_PHYSICS_LIMITS,
    get_energy_intensity_minimum,
    get_physics_limits,
    theoretical_ceiling,
)

__all__ = [
    "BENCHMARKS",
    "COST_PROJECTIONS",
    "CONVERSION_CONSTANTS",
    "ENERGY_INTENSITY_MINIMUMS",
    "HTL_PHYSICS_LIMITS",
    "PHYSICS_CONSTANTS",
    "compare_to_benchmark",
    "get_benchmark",
    "get_energy_intensity_minimum",
    "get_industry_range",
    "get_physics_limits",
    "get_sanity_range",
    "get_trl_benchmark",
    "resolve_domain",
    "theoretical_ceiling",
]
