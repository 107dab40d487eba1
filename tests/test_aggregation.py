"""
Tests for quality checks and assessment aggregation.
"""

import pandas as pd
import pytest

from assessment_engine.aggregation import (
    benchmark_flags,
    check_standardized_block,
    check_trl,
    consolidate_metrics,
    metrics_frame,
    sanity_check,
    summarize_assessment,
)
from assessment_engine.aggregation.summary import claims_score, confidence_tier, metrics_score
from assessment_engine.claims import validate_claims
from assessment_engine.extraction import build_record
from assessment_engine.schemas import create_empty_record, create_metric


def _complete_block():
    return {
        "primaryCostMetric": {"id": "lcoh", "value": 4.5, "unit": "$/kg"},
        "efficiency": {"id": "efficiency", "value": 68, "unit": "%"},
        "trl": {"id": "trl", "value": 7, "unit": ""},
        "rating": "PROMISING",
        "secondaryMetrics": [{"id": "specific_consumption", "value": 4.8, "unit": "kWh/Nm3"}],
    }


def test_complete_block_scores_full_marks():
    """A complete hydrogen block is valid with a perfect score."""
    status = check_standardized_block(_complete_block(), "hydrogen")
    assert status.is_valid
    assert status.score == 100
    assert status.missing_required == []
    assert status.warnings == []


def test_empty_block_loses_required_and_domain_points():
    """Missing fields cost 15/15/10/10 and each missing domain metric 3."""
    status = check_standardized_block({}, "general")
    assert not status.is_valid
    assert status.score == 100 - 50 - 9
    assert status.missing_required == ["primaryCostMetric", "efficiency", "trl", "rating"]


def test_invalid_values_are_reported():
    """Out-of-range TRL and efficiency and unknown ratings invalidate the block."""
    block = _complete_block()
    block["trl"] = 11
    block["efficiency"] = {"id": "efficiency", "value": 120, "unit": "%"}
    block["rating"] = "GREAT"
    status = check_standardized_block(block, "hydrogen")
    assert not status.is_valid
    assert status.score == 70
    assert {v.field for v in status.invalid_values} == {"trl", "efficiency", "rating"}


def test_metric_without_value_and_missing_unit():
    """Non-numeric metric values cost 5 points; missing ids and units are warnings."""
    block = _complete_block()
    block["primaryCostMetric"] = {"id": "lcoh", "value": "n/a", "unit": "$/kg"}
    block["efficiency"] = {"value": 68}
    status = check_standardized_block(block, "hydrogen")
    assert status.score == 95
    assert "primaryCostMetric has no numeric value" in status.warnings
    assert "efficiency is missing an id" in status.warnings
    assert "efficiency is missing a unit" in status.warnings


def test_block_check_tolerates_odd_shapes():
    """Non-finite numbers and unhashable ids are reported, not raised."""
    status = check_standardized_block({"trl": float("inf")})
    assert "trl has no numeric value" in status.warnings
    assert all(v.field != "trl" for v in status.invalid_values)

    status = check_standardized_block({"efficiency": {"id": "efficiency", "value": float("nan"), "unit": "%"}})
    assert "efficiency has no numeric value" in status.warnings

    status = check_standardized_block({"secondaryMetrics": [{"id": ["x"]}, "loose"]}, "hydrogen")
    assert "Missing hydrogen metric: specific_consumption" in status.warnings

    assert check_standardized_block(["not", "a", "block"]).missing_required == [
        "primaryCostMetric", "efficiency", "trl", "rating",
    ]


def test_sanity_check():
    """Values outside the plausible range warn or reject and suggest a midpoint."""
    assert sanity_check("lcoh", 4.0, "hydrogen").passed
    assert sanity_check("widgets", 1e9, "hydrogen").passed

    high = sanity_check("lcoh", 75.0, "hydrogen")
    assert high.status == "warn"
    assert high.suggested_value == 5.5
    assert "Levelized cost of hydrogen" in high.message

    trl = sanity_check("trl", 12, "general")
    assert trl.status == "reject"
    assert trl.suggested_value == 5.0


def test_check_trl_against_technology():
    """TRL is compared with the typical range for the technology."""
    assert check_trl(8, "hydrogen", "PEM electrolyzer").passed
    low = check_trl(3, "hydrogen", "PEM electrolyzer")
    assert low.status == "warn"
    assert low.suggested_value == 8.0
    assert "below the typical 7-9" in low.message
    assert check_trl(0, "hydrogen").status == "reject"


def test_benchmark_flags():
    """Values beyond twice the industry range are flagged; placeholders are ignored."""
    record = create_empty_record("tea-analysis")
    assert benchmark_flags(record, "hydrogen") == []

    expensive = record.model_copy(update={"primary_cost_metric": create_metric("lcoh", 20.0)})
    flags = benchmark_flags(expensive, "hydrogen")
    assert len(flags) == 1
    assert "20 $/kg" in flags[0]
    assert "3-8 $/kg" in flags[0]


def _stage_results():
    tea = {
        "standardizedMetrics": {
            "primaryCostMetric": {"id": "lcoh", "value": 4.5, "unit": "$/kg"},
            "efficiency": {"value": 68},
            "trl": 6,
            "rating": "PROMISING",
        },
        "capitalCosts": {"total": 900},
        "operatingCosts": {"total": 45000},
    }
    synthesis = {"keyFindings": {"efficiency": 40, "trl": 7}}
    return [
        build_record("tea-analysis", tea, "hydrogen"),
        build_record("final-synthesis", synthesis, "hydrogen"),
    ]


def test_metrics_frame_and_consolidation():
    """Found extractions become rows; consolidation flags inconsistent metrics."""
    frame = metrics_frame(_stage_results())
    assert isinstance(frame, pd.DataFrame)
    assert set(frame["stage"]) == {"tea-analysis", "final-synthesis"}
    assert frame["value"].notna().all()

    consolidated = {entry.metric: entry for entry in consolidate_metrics(frame)}
    efficiency = consolidated["efficiency"]
    assert efficiency.stages == 2
    assert efficiency.median == pytest.approx(54.0)
    assert efficiency.best_stage == "tea-analysis"
    assert not efficiency.consistent
    assert consolidated["trl"].consistent
    assert consolidated["capex"].spread == 0.0

    assert consolidate_metrics(metrics_frame([])) == []


def test_scores_and_tiers():
    """Scores are confidence weighted and tiers follow 80/50/20 thresholds."""
    assert claims_score([]) is None
    assert metrics_score([]) is None
    assert metrics_score(_stage_results()) == pytest.approx(100 * (4 * 1.0 + 2 * 0.6) / 6)
    assert confidence_tier(80) == "high"
    assert confidence_tier(79.9) == "medium"
    assert confidence_tier(20) == "low"
    assert confidence_tier(19.9) == "very-low"


def test_summarize_assessment():
    """Claims and stage metrics roll up into one summary."""
    claims = validate_claims(["95% conversion efficiency", "Modular and scalable design"])
    stages = _stage_results()
    summary = summarize_assessment(claims, stages, domain="PEM electrolysis")

    assert summary.domain == "hydrogen"
    assert summary.claims.total_claims == 2
    assert summary.overall_score == pytest.approx((summary.claims_score + summary.metrics_score) / 2)
    assert summary.tier == confidence_tier(summary.overall_score)
    assert summary.findings[0].startswith("PHYSICS VIOLATION")
    assert any(f.startswith("efficiency varies across 2 stages") for f in summary.findings)
    assert any("outside the plausible range" in f for f in summary.findings)
    assert any(w.startswith("final-synthesis: ") for w in summary.warnings)
    assert isinstance(summary.model_dump(mode="json")["consolidated"], list)


def test_summarize_assessment_without_inputs():
    """No claims and no stages give a zero, very-low summary."""
    summary = summarize_assessment([], [])
    assert summary.overall_score == 0.0
    assert summary.tier == "very-low"
    assert summary.claims_score is None and summary.metrics_score is None
