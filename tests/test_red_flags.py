"""
Tests for red-flag screening.
"""

import pytest

from assessment_engine.aggregation import detect_red_flags, summarize_assessment
from assessment_engine.aggregation.red_flags import (
    benchmark_outlier_flags,
    economic_flags,
    missing_data_flags,
    thermodynamic_flags,
    trl_flags,
)
from assessment_engine.claims import validate_claims
from assessment_engine.reference.limits import get_energy_intensity_minimum
from assessment_engine.schemas import create_empty_record, create_metric


def _record(**metrics):
    return create_empty_record("tea-analysis").model_copy(update=metrics)


@pytest.mark.parametrize("claim, severity", [
    ("Rotor reaches 65% efficiency", "high"),
    ("Rotor reaches 95% efficiency", "critical"),
    ("Rotor reaches 58% efficiency", "medium"),
])
def test_efficiency_claims_against_betz(claim, severity):
    """Wind efficiency claims are graded against the Betz limit."""
    flags = thermodynamic_flags("Onshore wind turbine", [claim])
    assert [f.severity for f in flags] == [severity]
    assert flags[0].limit == pytest.approx(59.3)
    assert flags[0].claim_index == 0


def test_efficiency_within_limits_is_quiet():
    """Ordinary efficiency claims raise nothing."""
    assert thermodynamic_flags("PEM electrolyzer", ["70% efficiency"]) == []


def test_energy_intensity_below_minimum():
    """Hydrogen below the HHV energy minimum is a critical flag."""
    flags = thermodynamic_flags("PEM electrolyzer", ["Uses only 30 kWh/kg of hydrogen"])
    assert len(flags) == 1
    assert flags[0].severity == "critical"
    assert flags[0].limit == pytest.approx(39.39)
    assert thermodynamic_flags("PEM electrolyzer", ["Uses 52 kWh/kg of hydrogen"]) == []


def test_energy_intensity_minimums_by_unit():
    """The minimum depends on the technology and the product unit."""
    assert get_energy_intensity_minimum("alkaline electrolysis", "nm3").min_value == pytest.approx(3.54)
    assert get_energy_intensity_minimum("Direct air capture", "tonne").min_value == 178.0
    assert get_energy_intensity_minimum("Direct air capture", "kg") is None
    assert get_energy_intensity_minimum("heat pump", "kg") is None


def test_hundred_percent_claims():
    """100% efficiency is scrutinized except for electrolyzers."""
    flags = thermodynamic_flags("heat pump", ["Achieves 100% efficiency"])
    assert {f.id for f in flags} == {"thermo-100-0", "thermo-eff-high-0"}
    electrolyzer = thermodynamic_flags("PEM electrolyzer", ["Achieves 100% efficiency"])
    assert all(f.id != "thermo-100-0" for f in electrolyzer)


def test_trl_text_mismatches():
    """Lab-scale wording next to commercial, cheap or fast claims is flagged."""
    flags = trl_flags(
        "PEM electrolyzer",
        ["Already in commercial operation", "Production cost of $2/kg", "2 years to commercial launch"],
        description="Bench scale proof of concept",
    )
    assert {f.id for f in flags} == {"trl-conflict", "trl-cost-mismatch", "trl-timeline"}
    assert {f.category for f in flags} == {"trl_mismatch", "timeline"}


def test_trl_records():
    """Record TRLs outside the technology's range, or too high for lab work, are flagged."""
    low = _record(trl=create_metric("trl", 3.0))
    flags = trl_flags("PEM electrolyzer", [], records=[low], domain="hydrogen")
    assert [f.id for f in flags] == ["trl-tea-analysis"]
    assert flags[0].severity == "medium"
    assert flags[0].limit == 8.0

    high = _record(trl=create_metric("trl", 8.0))
    flags = trl_flags("PEM electrolyzer", [], "laboratory prototype", [high], "hydrogen")
    assert [f.id for f in flags] == ["trl-lab-tea-analysis"]

    assert trl_flags("PEM electrolyzer", [], records=[create_empty_record("tea-analysis")]) == []


@pytest.mark.parametrize("claim, severity", [
    ("Green hydrogen at $1/kg", "high"),
    ("Green hydrogen at $2.2/kg", "medium"),
])
def test_cost_claims_below_industry_range(claim, severity):
    """Costs under 50% / 80% of the industry minimum are high / medium."""
    flags = benchmark_outlier_flags([claim], domain="hydrogen")
    assert [f.severity for f in flags] == [severity]
    assert flags[0].limit == 3.0


def test_benchmark_quiet_and_vague_claims():
    """In-range costs pass; superlatives need numbers."""
    assert benchmark_outlier_flags(["Green hydrogen at $4/kg"], domain="hydrogen") == []
    flags = benchmark_outlier_flags(["Industry leading performance"], domain="hydrogen")
    assert [f.id for f in flags] == ["benchmark-vague-0"]
    assert benchmark_outlier_flags(["Breakthrough 40% efficiency"], domain="hydrogen") == []


def test_record_benchmark_outliers():
    """Record values far outside industry ranges become high flags."""
    record = _record(primary_cost_metric=create_metric("lcoh", 20.0))
    flags = benchmark_outlier_flags([], [record], "hydrogen")
    assert len(flags) == 1
    assert flags[0].severity == "high"
    assert "20 $/kg" in flags[0].description


def test_missing_critical_data():
    """Three or more uncovered metrics is high, fewer is medium."""
    flags = missing_data_flags("PEM electrolyzer", ["70% efficiency"])
    assert flags[0].severity == "high"
    assert flags[0].description == "Missing critical data: lifetime, stack cost, hydrogen purity"

    flags = missing_data_flags("PEM electrolyzer", ["70% efficiency and 80000 h lifetime", "stack-cost of 300 $/kW"])
    assert flags[0].severity == "medium"
    assert flags[0].description.endswith("hydrogen purity")

    assert missing_data_flags("PEM electrolyzer", []) == []


@pytest.mark.parametrize("claim, flagged", [
    ("Negative cost of production", True),
    ("Negative cost through carbon credits", False),
    ("Assumes a 35% learning rate", True),
    ("Assumes a 20% learning rate", False),
    ("6 month payback", True),
    ("3 year payback", False),
])
def test_economic_flags(claim, flagged):
    """Economic impossibilities are flagged; plausible economics are not."""
    assert bool(economic_flags([claim])) is flagged


def test_report_summary():
    """The report counts flags by severity."""
    clean = detect_red_flags(
        "PEM electrolyzer",
        ["70% efficiency, 80000 h lifetime, stack cost 300 $/kW, hydrogen purity 99.99%"],
    )
    assert not clean.has_red_flags
    assert clean.summary.startswith("No red flags detected")

    report = detect_red_flags("Onshore wind", ["95% efficiency"])
    assert report.has_red_flags
    assert report.summary == "Detected 1 critical, 1 high severity red flag(s). Review required before proceeding."
    assert [f.category for f in report.by_severity("critical")] == ["thermodynamic"]


def test_summary_carries_red_flags():
    """The assessment summary includes the red-flag report."""
    claims = validate_claims(["95% conversion efficiency", "Modular and scalable design"])
    summary = summarize_assessment(claims, [], domain="PEM electrolysis")
    assert summary.red_flags is not None
    assert "missing_data" in {f.category for f in summary.red_flags.flags}
    assert summary.model_dump(mode="json")["red_flags"]["has_red_flags"] is True
