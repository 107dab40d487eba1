"""
Assessment summary: claims and per-stage metrics rolled up into scores,
findings and a confidence tier.
"""

from __future__ import annotations

from typing import List, Literal, Optional, Sequence

import numpy as np
import pandas as pd
from pydantic import BaseModel, Field

from assessment_engine.aggregation.quality import benchmark_flags, check_trl, sanity_findings
from assessment_engine.aggregation.red_flags import RedFlagReport, detect_red_flags
from assessment_engine.claims.validator import summarize_claims
from assessment_engine.config import Config
from assessment_engine.extraction.extractor import StageMetrics
from assessment_engine.reference.domains import resolve_domain
from assessment_engine.schemas.claims import ClaimsSummary, ClaimValidationResult
from assessment_engine.schemas.metrics import NOT_CALCULATED
from assessment_engine.utils.data_validation import validate_dataframe
from assessment_engine.utils.logging_utils import get_logger

logger = get_logger(__name__)

Tier = Literal["high", "medium", "low", "very-low"]

CONFIDENCE_WEIGHTS = {
    "very-high": 1.0,
    "high": 1.0,
    "medium": 0.6,
    "low": 0.3,
    "very-low": 0.1,
}

TIER_THRESHOLDS = (
    (80.0, "high"),
    (50.0, "medium"),
    (20.0, "low"),
)

# Metrics whose coverage drives the metrics score
SCORED_METRICS = ("primaryCost", "efficiency", "trl", "rating", "capex", "opex")

FRAME_COLUMNS = ["stage", "metric", "metric_id", "value", "unit", "confidence", "method", "source"]


class ConsolidatedMetric(BaseModel):
    metric: str
    median: float
    min: float
    max: float
    stages: int = Field(..., ge=1, description="Number of stages reporting the metric")
    spread: float = Field(..., description="(max - min) / |median|")
    best_stage: str = Field(..., description="Stage with the highest-confidence value")
    consistent: bool


class AssessmentSummary(BaseModel):
    """Overall result of validating claims and normalizing stage metrics."""
    domain: str
    claims: ClaimsSummary
    claims_score: Optional[float] = Field(default=None, ge=0, le=100)
    metrics_score: Optional[float] = Field(default=None, ge=0, le=100)
    overall_score: float = Field(..., ge=0, le=100)
    tier: Tier
    consolidated: List[ConsolidatedMetric] = Field(default_factory=list)
    findings: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    red_flags: Optional[RedFlagReport] = None


def metrics_frame(stage_results: Sequence[StageMetrics]) -> pd.DataFrame:
    """One row per found extraction across all stages."""
    rows = []
    for result in stage_results:
        for name, extraction in result.extractions.items():
            if not extraction.found:
                continue
            metric = extraction.metric
            rows.append({
                "stage": result.stage,
                "metric": name,
                "metric_id": metric.id,
                "value": metric.value,
                "unit": metric.unit,
                "confidence": metric.confidence,
                "method": extraction.extraction_method,
                "source": metric.source,
            })
    return pd.DataFrame(rows, columns=FRAME_COLUMNS)


def _spread(values: pd.Series) -> float:
    median = values.median()
    width = values.max() - values.min()
    if width == 0:
        return 0.0
    if median == 0:
        return float(np.inf)
    return float(width / abs(median))


def consolidate_metrics(frame: pd.DataFrame, tolerance: Optional[float] = None) -> List[ConsolidatedMetric]:
    """
    Reduce the per-stage frame to one entry per metric.

    Args:
        frame: Output of metrics_frame
        tolerance: Largest relative spread still considered consistent
            (Config.CONSISTENCY_TOLERANCE by default)

    Returns:
        ConsolidatedMetric list in first-seen metric order
    """
    if frame.empty:
        return []
    validate_dataframe(frame, required_columns=["stage", "metric", "value", "confidence"])
    tolerance = Config.CONSISTENCY_TOLERANCE if tolerance is None else tolerance

    ranked = frame.assign(weight=frame["confidence"].map(CONFIDENCE_WEIGHTS).fillna(0.0))
    consolidated = []
    for metric, group in ranked.groupby("metric", sort=False):
        spread = _spread(group["value"])
        best = group.sort_values("weight", ascending=False, kind="stable").iloc[0]
        consolidated.append(ConsolidatedMetric(
            metric=metric,
            median=float(group["value"].median()),
            min=float(group["value"].min()),
            max=float(group["value"].max()),
            stages=int(group["stage"].nunique()),
            spread=spread,
            best_stage=best["stage"],
            consistent=spread <= tolerance,
        ))
    return consolidated


def claims_score(results: Sequence[ClaimValidationResult]) -> Optional[float]:
    """Confidence-weighted share of validated claims, 0-100; None without claims."""
    if not results:
        return None
    weights = np.array([CONFIDENCE_WEIGHTS[r.confidence] for r in results])
    validated = np.array([1.0 if r.validated else 0.0 for r in results])
    return float(100.0 * np.sum(weights * validated) / np.sum(weights))


def metrics_score(stage_results: Sequence[StageMetrics]) -> Optional[float]:
    """Confidence-weighted coverage of the scored metrics across stages, 0-100."""
    if not stage_results:
        return None
    coverage = []
    for name in SCORED_METRICS:
        best = 0.0
        for result in stage_results:
            extraction = result.extractions.get(name)
            if extraction is not None and extraction.found:
                best = max(best, CONFIDENCE_WEIGHTS[extraction.metric.confidence])
        coverage.append(best)
    return float(100.0 * np.mean(coverage))


def confidence_tier(score: float) -> Tier:
    for threshold, tier in TIER_THRESHOLDS:
        if score >= threshold:
            return tier
    return "very-low"


def _stage_findings(stage_results: Sequence[StageMetrics], domain: str) -> List[str]:
    findings = []
    for result in stage_results:
        record = result.record
        findings.extend(benchmark_flags(record, domain))
        findings.extend(sanity_findings(record, domain))
        if record.trl.source != NOT_CALCULATED:
            trl = check_trl(record.trl.value, domain)
            if not trl.passed:
                findings.append(trl.message)
    return findings


def summarize_assessment(
    claim_results: Sequence[ClaimValidationResult],
    stage_results: Sequence[StageMetrics],
    domain: Optional[str] = None,
) -> AssessmentSummary:
    """
    Combine claim validation and stage metrics into one assessment.

    The overall score is the mean of the claims and metrics scores that are
    available (zero when neither is).

    Args:
        claim_results: Output of validate_claims
        stage_results: Output of build_record for each stage
        domain: Technology domain or label (e.g. 'PEM electrolysis') for range checks
            and red-flag screening

    Returns:
        AssessmentSummary
    """
    technology = domain or ""
    domain = resolve_domain(domain)
    claims = summarize_claims(claim_results)
    c_score = claims_score(claim_results)
    m_score = metrics_score(stage_results)

    available = [s for s in (c_score, m_score) if s is not None]
    overall = float(np.mean(available)) if available else 0.0

    consolidated = consolidate_metrics(metrics_frame(stage_results))

    findings = list(claims.key_findings)
    for entry in consolidated:
        if not entry.consistent:
            findings.append(
                f"{entry.metric} varies across {entry.stages} stages "
                f"({entry.min:g} to {entry.max:g}, median {entry.median:g})"
            )
    findings.extend(_stage_findings(stage_results, domain))

    warnings = [f"{r.stage}: {w}" for r in stage_results for w in r.record.warnings]

    red_flags = detect_red_flags(
        technology or domain,
        claims=[r.claim for r in claim_results],
        records=[r.record for r in stage_results],
        domain=domain,
    )

    tier = confidence_tier(overall)
    logger.info(
        f"Assessment summary for {domain}: overall {overall:.1f} ({tier}), "
        f"{claims.validated}/{claims.total_claims} claims validated, {len(stage_results)} stages"
    )
    return AssessmentSummary(
        domain=domain,
        claims=claims,
        claims_score=c_score,
        metrics_score=m_score,
        overall_score=overall,
        tier=tier,
        consolidated=consolidated,
        findings=list(dict.fromkeys(findings)),
        warnings=warnings,
        red_flags=red_flags,
    )
