"""
Quality checks for metrics: block completeness, sanity bounds, TRL fit and
industry-range comparison.
"""

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass
from typing import Any, Dict, List, Literal, Optional

from assessment_engine.reference.domains import (
    get_industry_range,
    get_sanity_range,
    get_trl_benchmark,
    resolve_domain,
)
from assessment_engine.schemas.metrics import (
    NOT_CALCULATED,
    RATINGS,
    REQUIRED_METRICS_BY_DOMAIN,
    InvalidValue,
    Metric,
    MetricsValidationStatus,
    StandardizedMetricsRecord,
    primary_cost_metric_id,
)
from assessment_engine.utils.logging_utils import get_logger

logger = get_logger(__name__)

# (block key, score penalty when missing)
REQUIRED_BLOCK_FIELDS = (
    ("primaryCostMetric", 15),
    ("efficiency", 15),
    ("trl", 10),
    ("rating", 10),
)
METRIC_BLOCK_FIELDS = ("primaryCostMetric", "efficiency", "trl", "capex", "opex")

INVALID_VALUE_PENALTY = 10
NON_NUMERIC_PENALTY = 5
MISSING_DOMAIN_METRIC_PENALTY = 3
MIN_VALID_SCORE = 60

# Values further than this factor outside an industry range are flagged
BENCHMARK_TOLERANCE = 2.0

CheckStatus = Literal["pass", "warn", "reject"]


@dataclass(frozen=True)
class SanityCheck:
    metric_id: str
    value: float
    status: CheckStatus
    message: str = ""
    suggested_value: Optional[float] = None

    @property
    def passed(self) -> bool:
        return self.status == "pass"


def _numeric(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return None
    if not math.isfinite(value):
        return None
    return float(value)


def _metric_value(entry: Any) -> Optional[float]:
    if isinstance(entry, dict):
        return _numeric(entry.get("value"))
    return _numeric(entry)


def check_standardized_block(block: Dict[str, Any], domain: Optional[str] = None) -> MetricsValidationStatus:
    """
    Score a raw standardizedMetrics block for completeness and validity.

    The score starts at 100 and loses points for missing required fields,
    invalid values, metrics without a numeric value and missing domain
    metrics. The block is valid when nothing required is missing, no value is
    invalid and the score stays at or above 60.

    Args:
        block: The standardizedMetrics dict from a stage output
        domain: Technology domain, selects the domain-required metrics

    Returns:
        MetricsValidationStatus
    """
    if not isinstance(block, dict):
        block = {}
    score = 100.0
    missing: List[str] = []
    invalid: List[InvalidValue] = []
    warnings: List[str] = []

    for key, penalty in REQUIRED_BLOCK_FIELDS:
        if block.get(key) is None:
            missing.append(key)
            score -= penalty

    for key in METRIC_BLOCK_FIELDS:
        entry = block.get(key)
        if entry is None:
            continue
        if _metric_value(entry) is None:
            warnings.append(f"{key} has no numeric value")
            score -= NON_NUMERIC_PENALTY
            continue
        if isinstance(entry, dict):
            if not entry.get("id"):
                warnings.append(f"{key} is missing an id")
            if "unit" not in entry:
                warnings.append(f"{key} is missing a unit")

    trl = _metric_value(block.get("trl"))
    if trl is not None and (trl != int(trl) or not 1 <= trl <= 9):
        invalid.append(InvalidValue(field="trl", reason=f"TRL must be an integer from 1 to 9, got {trl:g}"))
        score -= INVALID_VALUE_PENALTY

    efficiency = _metric_value(block.get("efficiency"))
    if efficiency is not None and not 0 <= efficiency <= 100:
        invalid.append(InvalidValue(field="efficiency", reason=f"Efficiency must be within 0-100%, got {efficiency:g}"))
        score -= INVALID_VALUE_PENALTY

    rating = block.get("rating")
    if rating is not None and rating not in RATINGS:
        invalid.append(InvalidValue(field="rating", reason=f"Unknown rating {rating!r}"))
        score -= INVALID_VALUE_PENALTY

    domain = resolve_domain(domain)
    core = {primary_cost_metric_id(domain), "efficiency"}
    secondary = block.get("secondaryMetrics")
    present = {
        entry["id"] for entry in secondary
        if isinstance(entry, dict) and isinstance(entry.get("id"), str)
    } if isinstance(secondary, list) else set()
    for metric_id in REQUIRED_METRICS_BY_DOMAIN.get(domain, ())[:3]:
        if metric_id in core or metric_id in present or block.get(metric_id) is not None:
            continue
        warnings.append(f"Missing {domain} metric: {metric_id}")
        score -= MISSING_DOMAIN_METRIC_PENALTY

    score = max(0.0, score)
    is_valid = not missing and not invalid and score >= MIN_VALID_SCORE
    logger.debug(f"Standardized block score {score:.0f} (valid={is_valid})")
    return MetricsValidationStatus(
        is_valid=is_valid,
        score=score,
        missing_required=missing,
        invalid_values=invalid,
        warnings=warnings,
    )


def sanity_check(metric_id: str, value: float, domain: Optional[str] = None) -> SanityCheck:
    """Check a value against the domain's plausible range for the metric."""
    bounds = get_sanity_range(domain, metric_id)
    if bounds is None or bounds.min <= value <= bounds.max:
        return SanityCheck(metric_id, value, "pass")

    industry = get_industry_range(domain, metric_id)
    suggested = industry.midpoint if industry is not None else (bounds.min + bounds.max) / 2.0
    message = (
        f"{bounds.description} of {value:g} {bounds.unit} is outside the plausible range "
        f"{bounds.min:g}-{bounds.max:g} {bounds.unit}".replace("  ", " ")
    )
    return SanityCheck(metric_id, value, bounds.fail_action, message, suggested)


def check_trl(value: float, domain: Optional[str] = None, technology: Optional[str] = None) -> SanityCheck:
    """Check a TRL for validity and against the typical range for the technology."""
    basic = sanity_check("trl", value, domain)
    if not basic.passed:
        return basic

    expected = get_trl_benchmark(domain, technology)
    label = technology or resolve_domain(domain)
    if value < expected.min:
        message = f"TRL {value:g} is below the typical {expected.min}-{expected.max} for {label}"
    elif value > expected.max:
        message = f"TRL {value:g} is above the typical {expected.min}-{expected.max} for {label}"
    else:
        return SanityCheck("trl", value, "pass")
    return SanityCheck("trl", value, "warn", message, float(expected.typical))


def _record_metrics(record: StandardizedMetricsRecord) -> List[Metric]:
    candidates = [
        record.primary_cost_metric,
        record.efficiency,
        record.trl,
        record.capex,
        record.opex,
        record.lifetime,
        record.capacity_factor,
        record.irr,
        record.payback_period,
    ]
    return [m for m in candidates if m is not None and m.source != NOT_CALCULATED]


def benchmark_flags(record: StandardizedMetricsRecord, domain: Optional[str] = None) -> List[str]:
    """Findings for record values far outside the domain's industry range."""
    findings = []
    for metric in _record_metrics(record):
        industry = get_industry_range(domain, metric.id)
        if industry is None:
            continue
        low, high = industry.min / BENCHMARK_TOLERANCE, industry.max * BENCHMARK_TOLERANCE
        if not low <= metric.value <= high:
            findings.append(
                f"{metric.name} of {metric.value:g} {metric.unit} is far outside the industry range "
                f"{industry.min:g}-{industry.max:g} {industry.unit}".replace("  ", " ")
            )
    return findings


def sanity_findings(record: StandardizedMetricsRecord, domain: Optional[str] = None) -> List[str]:
    """Sanity-check messages for every calculated metric in a record."""
    return [
        check.message
        for check in (sanity_check(m.id, m.value, domain) for m in _record_metrics(record))
        if not check.passed
    ]
