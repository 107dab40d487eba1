"""
Tests for metrics extraction from stage outputs.
"""

import pytest

from assessment_engine.extraction import (
    DEFAULT_BATCH_METRICS,
    STAGE_EXTRACTION_PATHS,
    STAGES,
    build_record,
    deep_search,
    extract_all_metrics,
    extract_metric,
    extract_standardized_block,
    fuzzy_match,
    to_number,
    to_rating_score,
    traverse_path,
)
from assessment_engine.extraction.paths import Select, get_metric_spec, parse_path, path


# Coercion

@pytest.mark.parametrize("raw, expected", [
    (42, 42.0),
    (3.5, 3.5),
    ("42", 42.0),
    (" $1,200 ", 1200.0),
    ("€3.50", 3.5),
    ("68%", 68.0),
    ({"value": "7"}, 7.0),
    ({"value": {"value": 9}}, 9.0),
])
def test_to_number_accepts(raw, expected):
    """Numbers, numeric strings and value wrappers coerce to floats."""
    assert to_number(raw) == expected


@pytest.mark.parametrize("raw", [True, None, "", "about 40ish", "nan", "inf", float("nan"), [1], {"amount": 3}])
def test_to_number_rejects(raw):
    """Booleans, malformed strings and non-finite values count as absent."""
    assert to_number(raw) is None


def test_to_number_bounds_value_nesting():
    """Deeply nested value wrappers are not followed forever."""
    node = 5
    for _ in range(10):
        node = {"value": node}
    assert to_number(node) is None


@pytest.mark.parametrize("raw, expected", [
    ("BREAKTHROUGH", 4.0),
    ("promising", 3.0),
    ("Not Recommended", 1.0),
    ("not-recommended", 1.0),
    (2, 2.0),
    ({"value": "CONDITIONAL"}, 2.0),
    (2.5, None),
    (7, None),
    ("excellent", None),
])
def test_to_rating_score(raw, expected):
    """Ratings map to ordinal scores regardless of case and separators."""
    assert to_rating_score(raw) == expected


@pytest.mark.parametrize("key, aliases, expected", [
    ("capexEstimate", ["capex"], True),
    ("LCOH", ["lcoh"], True),
    ("IRR", ["irr"], True),
    ("irr_pct", ["irr"], True),
    ("irrValue", ["irr"], True),
    ("irrigation", ["irr"], False),
    ("EFFORT", ["eff"], False),
    ("TRL_level", ["trl"], True),
    ("metadata", ["eta"], False),
    ("system_efficiency", ["efficiency"], True),
    ("cost", ["costReductionRate"], False),
    ("payback", ["paybackPeriod"], True),
])
def test_fuzzy_match(key, aliases, expected):
    """Short aliases need a word boundary; long ones match as substrings."""
    assert fuzzy_match(key, aliases) is expected


# Path tables

def test_parse_path_selectors():
    """Dotted paths support list selectors and indexes."""
    steps = parse_path("financialMetrics.metrics[id=lcoh].value")
    assert steps == ("financialMetrics", "metrics", Select("id", "lcoh"), "value")
    assert parse_path("items[0].name") == ("items", 0, "name")
    assert path("a.b[name=x]").dotted == "a.b[name=x]"


def test_stage_tables_cover_every_stage():
    """Every stage has fallback paths for the core metrics."""
    assert set(STAGE_EXTRACTION_PATHS) == set(STAGES)
    for stage, table in STAGE_EXTRACTION_PATHS.items():
        for metric in ("efficiency", "primaryCost", "trl", "rating"):
            assert table.get(metric), f"{stage} has no paths for {metric}"
        for specs in table.values():
            assert all(spec.steps for spec in specs)


def test_traverse_path():
    """Paths resolve through dicts, selectors and indexes; misses return None."""
    document = {"metrics": [{"id": "LCOH", "value": 4.2}, {"name": "npv", "value": 1e6}]}
    assert traverse_path(document, parse_path("metrics[id=lcoh].value")) == 4.2
    assert traverse_path(document, parse_path("metrics[1].value")) == 1e6
    assert traverse_path(document, parse_path("metrics[5].value")) is None
    assert traverse_path(document, parse_path("metrics.value")) is None


def test_unknown_metric_spec_searches_its_own_name():
    """Metrics without an alias table fall back to their own name."""
    spec = get_metric_spec("cycleLife")
    assert "cycleLife" in spec.aliases
    assert get_metric_spec("primaryCost").canonical_key == "primaryCostMetric"


# Strategies

def test_canonical_path_wins_over_everything():
    """A standardized value is never overridden by stage paths or deep search."""
    document = {
        "standardizedMetrics": {"efficiency": {"value": 55, "unit": "%"}},
        "assumptions": {"efficiency": 42},
        "elsewhere": {"efficiency": 10},
    }
    result = extract_metric("tea-analysis", "efficiency", document)
    assert result.found
    assert result.metric.value == 55.0
    assert result.extraction_method == "direct"
    assert result.metric.confidence == "high"
    assert result.path == ["standardizedMetrics", "efficiency"]


def test_canonical_bare_value_and_rating():
    """Bare numbers, numeric strings and rating labels are accepted on the canonical path."""
    document = {"standardizedMetrics": {"primaryCostMetric": "$4.50", "rating": "Promising"}}
    cost = extract_metric("final-synthesis", "primaryCost", document)
    assert cost.metric.value == 4.5 and cost.extraction_method == "direct"
    rating = extract_metric("final-synthesis", "rating", document)
    assert rating.metric.value == 3.0


def test_secondary_metrics_scan():
    """Secondary metrics are matched by normalized id or name."""
    document = {"standardizedMetrics": {"secondaryMetrics": [
        {"id": "energy_density", "value": 250},
        {"id": "System Efficiency", "value": "61%"},
    ]}}
    result = extract_metric("performance-simulation", "efficiency", document)
    assert result.metric.value == 61.0
    assert result.extraction_method == "direct"
    assert result.path == ["standardizedMetrics", "secondaryMetrics", "1"]


def test_scenario_stage_fallback_path():
    """tea-analysis efficiency is read from assumptions.efficiency."""
    result = extract_metric("tea-analysis", "efficiency", {"assumptions": {"efficiency": 42}})
    assert result.found
    assert result.metric.value == 42.0
    assert result.extraction_method == "search"
    assert result.metric.confidence == "medium"
    assert result.metric.source == "Extracted from assumptions.efficiency"
    assert result.path == ["assumptions", "efficiency"]


def test_stage_path_selector_conversion_and_transform():
    """Stage paths may select list items, convert units or transform values."""
    cost = extract_metric("tea-analysis", "primaryCost",
                          {"financialMetrics": {"metrics": [{"id": "LCOH", "value": 4.1}]}})
    assert cost.metric.value == 4.1
    assert cost.path == ["financialMetrics", "metrics", "[id=lcoh]", "value"]

    lifetime = extract_metric("tea-analysis", "lifetime", {"assumptions": {"lifetime": 20}})
    assert lifetime.metric.value == pytest.approx(175200.0)
    assert lifetime.metric.unit == "hours"

    years = extract_metric("technology-deep-dive", "lifetime", {"durability": {"expectedLifetime": 10}})
    assert years.metric.value == pytest.approx(87600.0)

    fraction = extract_metric("performance-simulation", "efficiency", {"simulationResults": {"efficiency": 0.62}})
    assert fraction.metric.value == pytest.approx(62.0)


def test_tea_lifetime_in_hours_is_not_rescaled():
    """Lifetimes of 100 or more are already hours; explicit year keys convert."""
    hours = extract_metric("tea-analysis", "lifetime", {"assumptions": {"lifetime": 80000}})
    assert hours.metric.value == 80000.0

    years = extract_metric("tea-analysis", "lifetime", {"assumptions": {"lifetimeYears": 25}})
    assert years.metric.value == pytest.approx(219000.0)
    assert years.metric.unit == "hours"
    assert years.metric.source == "Extracted from assumptions.lifetimeYears"


def test_implausible_path_value_falls_through():
    """A value failing its plausibility check gives way to the next path."""
    assert all(spec.validator for spec in STAGE_EXTRACTION_PATHS["technology-deep-dive"]["trl"])

    document = {"trl": {"currentTRL": 12}, "technologyReadiness": {"level": 6}}
    trl = extract_metric("technology-deep-dive", "trl", document)
    assert trl.metric.value == 6.0
    assert trl.path == ["technologyReadiness", "level"]

    document = {"capitalCosts": {"total": -5}, "costBreakdown": {"capex": {"total": 900}}}
    capex = extract_metric("tea-analysis", "capex", document)
    assert capex.metric.value == 900.0
    assert capex.metric.source == "Extracted from costBreakdown.capex.total"

    fractional = extract_metric("tea-analysis", "trl", {"assumptions": {"trl": 6.5}})
    assert fractional.path[0] == "deep_search", "a non-integer TRL is not taken from the stage path"


def test_scenario_deep_search():
    """A nested capexEstimate is found by fuzzy key match with low confidence."""
    document = {"costBreakdown": {"detail": {"capexEstimate": {"value": 1200}}}}
    result = extract_metric("tea-analysis", "capex", document)
    assert result.found
    assert result.metric.value == 1200.0
    assert result.extraction_method == "search"
    assert result.metric.confidence == "low"
    assert result.path[0] == "deep_search"
    assert result.path[-1] == "capexEstimate"


def test_deep_search_label_nodes():
    """Nodes labelled by name/id/metric/label yield their value field."""
    document = {"table": [{"metric": "Net Present Value", "value": "2,500,000"}]}
    assert deep_search(document, ["netPresentValue"])[0] == 2.5e6
    document = {"table": [{"metric": "NPV", "value": "2,500,000"}]}
    value, trail = deep_search(document, ["npv"])
    assert value == 2.5e6
    assert trail == ["table", "0", "metric"]


def test_deep_search_ignores_all_caps_lookalikes():
    """'EFFORT' is not an efficiency key even though it starts with 'eff'."""
    assert deep_search({"EFFORT": 12}, ("efficiency", "eff", "eta")) is None
    assert deep_search({"ETA": 0.4}, ("efficiency", "eff", "eta")) == (0.4, ["ETA"])


def test_deep_search_terminates_on_cycles():
    """Self-referencing documents end in 'not found' instead of looping."""
    document = {"a": {"b": []}}
    document["a"]["self"] = document
    document["a"]["b"].append(document["a"])
    result = extract_metric("tea-analysis", "npv", document)
    assert not result.found
    assert result.metric is None
    assert result.extraction_method == "fallback"
    assert result.path == []


def test_deep_search_depth_limit():
    """Values below the depth limit are not reached."""
    document = {"npv": 5}
    for index in range(15):
        document = {f"level{index}": document}
    assert deep_search(document, ["npv"]) is None
    assert deep_search(document, ["npv"], max_depth=20)[0] == 5.0


def test_malformed_values_are_absent():
    """Unparseable strings fall through every strategy."""
    document = {"standardizedMetrics": {"efficiency": "about 40ish"}}
    result = extract_metric("tea-analysis", "efficiency", document)
    assert not result.found


def test_unknown_stage_and_non_dict_documents():
    """Unknown stages skip the path tables; scalar documents yield nothing."""
    result = extract_metric("mystery-stage", "efficiency", {"assumptions": {"efficiency": 42}})
    assert result.found and result.metric.confidence == "low"
    assert not extract_metric("tea-analysis", "efficiency", "not a document").found
    assert extract_standardized_block(["list"]) is None


def test_extract_all_metrics_order_and_threads():
    """Batch extraction returns every default metric in order, threaded or not."""
    document = {"standardizedMetrics": {"trl": 6}, "assumptions": {"efficiency": 42}}
    sequential = extract_all_metrics("tea-analysis", document, max_workers=1)
    threaded = extract_all_metrics("tea-analysis", document, max_workers=4)
    assert list(sequential) == list(DEFAULT_BATCH_METRICS)
    assert list(threaded) == list(DEFAULT_BATCH_METRICS)
    assert sequential == threaded
    assert sequential["trl"].metric.value == 6.0
    assert not sequential["npv"].found


# Records

def _tea_document():
    return {
        "standardizedMetrics": {
            "primaryCostMetric": {"id": "lcoh", "value": 4.5, "unit": "$/kg"},
            "efficiency": {"value": 68},
            "trl": 6.4,
            "rating": "PROMISING",
            "secondaryMetrics": [
                {"id": "stack_lifetime", "name": "Stack Lifetime", "value": 80000, "unit": "hours"},
                {"id": "broken", "value": "n/a"},
            ],
        },
        "capitalCosts": {"total": 900},
        "operatingCosts": {"total": 45000},
        "keyMetrics": {"npv": 1.2e6, "irr": 11.5},
    }


def test_build_record_from_tea_output():
    """A complete stage output becomes a record without warnings."""
    result = build_record("tea-analysis", _tea_document(), domain="hydrogen")
    record = result.record
    assert record.source_component == "tea-analysis"
    assert record.primary_cost_metric.id == "lcoh"
    assert record.primary_cost_metric.unit == "$/kg"
    assert record.efficiency.value == 68.0
    assert record.trl.value == 6.0
    assert record.rating == "PROMISING"
    assert record.capex.value == 900.0 and record.capex.confidence == "medium"
    assert record.opex.value == 45000.0
    assert record.npv.value == 1.2e6
    assert record.irr.value == 11.5
    assert record.lifetime.value == 80000.0
    assert [m.id for m in record.secondary_metrics] == ["stack_lifetime"]
    assert record.warnings == []
    assert "primaryCost" in result.found


def test_build_record_with_nothing_found():
    """An empty output yields the empty-record defaults plus warnings."""
    record = build_record("final-synthesis", {}).record
    assert record.rating == "NOT_RECOMMENDED"
    assert record.trl.value == 1.0
    assert record.warnings[0] == "Metrics not yet calculated"
    assert any("Efficiency not found" in w for w in record.warnings)


def test_build_record_keeps_reported_cost_metric():
    """An LCOE in a hydrogen assessment keeps its id and unit and is flagged."""
    document = {"financialMetrics": {"primary": {"lcoe": {"value": 45}}}}
    record = build_record("tea-analysis", document, domain="hydrogen").record
    assert record.primary_cost_metric.id == "lcoe"
    assert record.primary_cost_metric.unit == "$/MWh"
    assert record.primary_cost_metric.value == 45.0
    assert any("reported as LCOE" in w for w in record.warnings)

    document = {"financialMetrics": {"primary": {"lcoh": {"value": 4.2}}}}
    record = build_record("tea-analysis", document, domain="hydrogen").record
    assert record.primary_cost_metric.id == "lcoh"
    assert record.primary_cost_metric.unit == "$/kg"
    assert not any("reported as" in w for w in record.warnings)

    general = build_record("tea-analysis", {"keyMetrics": {"lcoe": 45}}).record
    assert general.primary_cost_metric.id == "lcoe"
    assert not any("reported as" in w for w in general.warnings)


def test_build_record_rejects_out_of_range_values():
    """Out-of-range efficiency and TRL fall back to defaults with warnings."""
    document = {"standardizedMetrics": {"efficiency": 140, "trl": 12, "rating": "CONDITIONAL"}}
    record = build_record("tea-analysis", document).record
    assert record.efficiency.value == 0.0
    assert record.trl.value == 1.0
    assert record.rating == "CONDITIONAL"
    assert any("outside 0-100%" in w for w in record.warnings)
    assert any("outside 1-9" in w for w in record.warnings)
