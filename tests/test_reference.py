"""
Tests for the static reference tables.
"""

import pytest

from assessment_engine.reference import (
    BENCHMARKS,
    HTL_PHYSICS_LIMITS,
    PHYSICS_CONSTANTS,
    compare_to_benchmark,
    get_benchmark,
    get_industry_range,
    get_physics_limits,
    get_sanity_range,
    get_trl_benchmark,
    resolve_domain,
    theoretical_ceiling,
)
from assessment_engine.reference.benchmarks import benchmarks_for_domain, benchmarks_frame, get_cost_projection


def test_tables_are_read_only():
    """Shared tables cannot be mutated in place."""
    with pytest.raises(TypeError):
        PHYSICS_CONSTANTS["betz_limit"] = 1.0
    with pytest.raises(AttributeError):
        BENCHMARKS[0].median = 0.0


def test_benchmark_lookup_and_comparison():
    """Benchmarks are found by technology substring and position values around the median."""
    benchmark = get_benchmark("pem", "efficiency")
    assert benchmark is not None and benchmark.technology == "pem electrolyzer"

    comparison = compare_to_benchmark(75.0, benchmark)
    assert comparison["position"] == "competitive"
    assert comparison["percentile"] == pytest.approx(75.0)
    assert compare_to_benchmark(90.0, benchmark)["position"] == "leading"
    assert compare_to_benchmark(40.0, benchmark)["percentile"] == 0.0
    assert get_benchmark("fusion", "efficiency") is None


def test_benchmarks_frame_covers_all_records():
    """The DataFrame view has one row per benchmark and min <= median <= max."""
    frame = benchmarks_frame()
    assert len(frame) == len(BENCHMARKS)
    assert (frame["min"] <= frame["median"]).all()
    assert (frame["median"] <= frame["max"]).all()
    assert len(benchmarks_for_domain("hydrogen")) > 0


def test_cost_projection_uses_next_tabulated_year():
    """Projections snap forward to the next tabulated year, clamped at the last one."""
    assert get_cost_projection("utility pv", 2027).mid == 25
    assert get_cost_projection("utility pv", 2030).mid == 25
    assert get_cost_projection("utility pv", 2070).mid == 14
    assert get_cost_projection("tidal", 2030) is None


@pytest.mark.parametrize("label, expected", [
    ("hydrogen", "hydrogen"),
    ("PEM electrolysis", "hydrogen"),
    ("Grid battery storage", "energy-storage"),
    ("Offshore wind", "clean-energy"),
    ("Hydrothermal liquefaction", "waste-to-fuel"),
    ("Quantum widgets", "general"),
    (None, "general"),
])
def test_resolve_domain(label, expected):
    """Free-form labels map onto known domains."""
    assert resolve_domain(label) == expected


def test_domain_ranges():
    """Industry, sanity and TRL tables resolve through domain aliases."""
    lcoh = get_industry_range("hydrogen", "lcoh")
    assert lcoh.min == 3.0 and lcoh.midpoint == 5.5
    assert get_industry_range("general", "lcoh") is None
    assert get_sanity_range("anything", "trl").fail_action == "reject"
    assert get_trl_benchmark("hydrogen", "SOEC stack").typical == 6
    assert get_trl_benchmark("hydrogen").typical == 7


def test_physics_limits_by_technology():
    """Keyword order picks the most specific technology class."""
    assert get_physics_limits("SOEC electrolyzer").efficiency_max == 120.0
    assert get_physics_limits("PEM electrolyzer").efficiency_max == 100.0
    assert get_physics_limits("perovskite tandem solar").efficiency_max == 47.0
    assert get_physics_limits("HTL reactor").technology_class == "htl"
    assert get_physics_limits("cold fusion") is None


def test_theoretical_ceilings():
    """Named ceilings carry their citation; unknown names fail loudly."""
    assert theoretical_ceiling("htl_second_law").max_value == 85.0
    assert theoretical_ceiling("betz").max_value == pytest.approx(59.3)
    assert HTL_PHYSICS_LIMITS[0].metric == "Net Energy Efficiency"
    with pytest.raises(ValueError, match="Unknown theoretical ceiling"):
        theoretical_ceiling("perpetual_motion")
