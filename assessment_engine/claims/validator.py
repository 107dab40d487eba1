"""
Claim validation against physics ceilings, benchmarks and red flags.

A claim is matched to the first rule whose pattern it contains. If the rule
carries a physical ceiling and the claim states a number, the number is
checked against the ceiling. Without supporting data every red flag of the
rule is reported as a data gap, and confidence drops with the gap count.
"""

from __future__ import annotations

import re
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from assessment_engine.claims.rules import ValidationRule, get_rules, match_rule
from assessment_engine.config import Config
from assessment_engine.physics.efficiency import (
    EfficiencyResult,
    battery_round_trip_efficiency,
    carnot_from_celsius_or_kelvin,
    shockley_queisser_limit,
    validate_efficiency_claim,
)
from assessment_engine.reference.limits import HTL_PHYSICS_LIMITS, PhysicsCeiling
from assessment_engine.schemas.claims import ClaimsSummary, ClaimValidationResult, ConfidenceLevel, PhysicsCheck
from assessment_engine.utils.logging_utils import get_logger

logger = get_logger(__name__)

PHYSICS_VIOLATION = "PHYSICS VIOLATION"

# Tried in order; group 1 is the asserted number
NUMERIC_ASSERTION_PATTERNS = (
    re.compile(r"(?:>?\s*)(\d+(?:\.\d+)?)\s*(?:\+\s*)?%"),
    re.compile(r"(\d+(?:\.\d+)?)\s*percent", re.IGNORECASE),
    re.compile(r"over\s*(\d+(?:\.\d+)?)", re.IGNORECASE),
    re.compile(r"above\s*(\d+(?:\.\d+)?)", re.IGNORECASE),
    re.compile(r"(\d+(?:\.\d+)?)\s*or\s*(?:more|higher)", re.IGNORECASE),
)

STANDARD_HTL_CLAIMS = (
    ">90% conversion efficiency",
    "Carbon neutral operation",
    "No harmful byproducts",
    "Handles mixed/unsorted waste",
    "Modular and scalable design",
)

_HOT_KEYS = ("hotTemperature", "operatingTemperature", "T_hot")
_COLD_KEYS = ("coldTemperature", "ambientTemperature", "T_cold")


def extract_numeric_assertion(claim: str) -> Optional[float]:
    """First number asserted by the claim text ("90%", "over 90", ...), or None."""
    for pattern in NUMERIC_ASSERTION_PATTERNS:
        match = pattern.search(claim)
        if match:
            return float(match.group(1))
    return None


def _format_number(value: float) -> str:
    return f"{value:g}"


def _physics_check(rule: ValidationRule, claimed: float) -> Tuple[PhysicsCheck, str]:
    limit = rule.physics_limit
    passed = claimed <= limit.max_value
    check = PhysicsCheck(
        passed=passed,
        limit=f"{limit.metric}: {_format_number(limit.max_value)} {limit.unit}",
        claimed_value=claimed,
        limit_value=limit.max_value,
        margin=limit.max_value - claimed,
    )
    claimed_text = f"{_format_number(claimed)}{limit.unit}"
    max_text = f"{_format_number(limit.max_value)}{limit.unit}"
    if passed:
        finding = f"Physics check passed: {claimed_text} is within limit of {max_text}"
    else:
        finding = (
            f"{PHYSICS_VIOLATION}: Claimed {claimed_text} exceeds thermodynamic limit of "
            f"{max_text} (Source: {limit.source})"
        )
    return check, finding


def _first_number(data: Mapping[str, Any], keys: Sequence[str]) -> Optional[float]:
    for key in keys:
        value = data.get(key)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
    return None


def _efficiency_model(data: Mapping[str, Any]) -> Optional[Tuple[str, EfficiencyResult]]:
    """Pick an efficiency model from the physical parameters present in the data."""
    hot = _first_number(data, _HOT_KEYS)
    if hot is not None:
        cold = _first_number(data, _COLD_KEYS)
        return "Carnot limit", carnot_from_celsius_or_kelvin(hot, cold if cold is not None else 313.0)
    bandgap = _first_number(data, ("bandgapEv", "bandgap"))
    if bandgap is not None:
        return "Detailed-balance limit", shockley_queisser_limit(bandgap)
    chemistry = data.get("chemistry")
    if isinstance(chemistry, str):
        return "Round-trip model", battery_round_trip_efficiency(chemistry)
    return None


def _model_evidence(claimed_pct: float, data: Mapping[str, Any]) -> Tuple[Optional[bool], Optional[str]]:
    """Efficiency-model verdict for a claimed percentage, as (valid, finding)."""
    try:
        selected = _efficiency_model(data)
    except ValueError as exc:
        logger.warning(f"Efficiency model could not be evaluated: {exc}")
        return None, f"Efficiency model could not be evaluated: {exc}"
    if selected is None:
        return None, None

    label, result = selected
    check = validate_efficiency_claim(claimed_pct / 100.0, result)
    status = "consistent" if check.valid else "inconsistent"
    finding = (
        f"{label} check {status}: {check.reason} "
        f"(max plausible {check.max_plausible * 100:.1f}%)"
    )
    return check.valid, finding


def _degrade_confidence(gap_count: int, default: ConfidenceLevel) -> ConfidenceLevel:
    if gap_count > 3:
        return "very-low"
    if gap_count > 1:
        return "low"
    return default


def _unknown_result(claim: str) -> ClaimValidationResult:
    return ClaimValidationResult(
        claim=claim,
        claim_id="unknown",
        matched_rule="none",
        validated=False,
        confidence="very-low",
        risk_level="medium",
        interpretation="No validation rule matches this claim. Manual review required.",
        findings=["Claim does not match known claim patterns"],
        data_gaps=["No benchmarks available for comparison"],
        recommendations=["Manual expert review recommended"],
    )


def validate_claim(
    claim: str,
    provided_data: Optional[Mapping[str, Any]] = None,
    rules: Optional[Sequence[ValidationRule]] = None,
) -> ClaimValidationResult:
    """
    Validate one free-text claim.

    Args:
        claim: Claim text, e.g. "95% conversion efficiency"
        provided_data: Known data backing the claim; None or empty means no evidence
        rules: Rule set to match against (defaults to the packaged rules)

    Returns:
        ClaimValidationResult; unmatched claims get an 'unknown' manual-review result
    """
    rule = match_rule(claim, rules)
    if rule is None:
        logger.debug(f"No rule matched claim: {claim!r}")
        return _unknown_result(claim)

    findings: List[str] = []
    data_gaps: List[str] = []
    validated = True
    physics_check: Optional[PhysicsCheck] = None
    refuted = False

    claimed = extract_numeric_assertion(claim)

    if rule.physics_limit is not None and claimed is not None:
        physics_check, finding = _physics_check(rule, claimed)
        findings.append(finding)
        if not physics_check.passed:
            validated = False
            refuted = True

    if rule.category == "efficiency" and claimed is not None and provided_data:
        model_valid, model_finding = _model_evidence(claimed, provided_data)
        if model_finding:
            findings.append(model_finding)
        if model_valid is False:
            validated = False

    if not provided_data:
        data_gaps.extend(rule.red_flags)

    recommendations = [f"Request: {request}" for request in rule.data_requests]
    recommendations.extend(rule.validation_steps)

    # A ceiling violation refutes the claim regardless of missing evidence
    if refuted:
        confidence: ConfidenceLevel = "high"
    else:
        confidence = _degrade_confidence(len(data_gaps), rule.confidence_required)

    return ClaimValidationResult(
        claim=claim,
        claim_id=rule.id,
        matched_rule=rule.id,
        validated=validated,
        confidence=confidence,
        risk_level=rule.risk_level,
        interpretation=rule.interpretation.strip(),
        findings=findings,
        data_gaps=data_gaps,
        recommendations=recommendations,
        physics_check=physics_check,
    )


def validate_claims(
    claims: Sequence[str],
    provided_data: Optional[Mapping[str, Any]] = None,
    max_workers: Optional[int] = None,
) -> List[ClaimValidationResult]:
    """Validate claims independently against one shared data context, preserving order."""
    rules = get_rules()
    workers = Config.WORKER_THREADS if max_workers is None else max_workers
    if workers <= 1 or len(claims) <= 1:
        return [validate_claim(claim, provided_data, rules) for claim in claims]

    with ThreadPoolExecutor(max_workers=workers) as executor:
        return list(executor.map(lambda claim: validate_claim(claim, provided_data, rules), claims))


def summarize_claims(
    results: Sequence[ClaimValidationResult],
    max_requests: Optional[int] = None,
) -> ClaimsSummary:
    """
    Aggregate claim results into counts, key findings and priority data requests.

    Physics violations lead the key findings; data requests are deduplicated
    and capped (five by default) to keep the list actionable.
    """
    limit = Config.MAX_PRIORITY_DATA_REQUESTS if max_requests is None else max_requests

    total = len(results)
    validated = sum(1 for r in results if r.validated)
    high_risk = sum(1 for r in results if r.risk_level in ("high", "critical"))
    unique_gaps = {gap for r in results for gap in r.data_gaps}

    violations = [f for r in results for f in r.findings if f.startswith(PHYSICS_VIOLATION)]
    key_findings = list(dict.fromkeys(violations))
    key_findings.append(f"{validated} of {total} claims validated")
    if high_risk > 0:
        key_findings.append(f"{high_risk} claims flagged as high risk")

    requests = [rec for r in results for rec in r.recommendations if rec.startswith("Request:")]
    priority = list(dict.fromkeys(requests))[:limit]

    return ClaimsSummary(
        total_claims=total,
        validated=validated,
        invalidated=total - validated,
        high_risk=high_risk,
        data_gaps_count=len(unique_gaps),
        key_findings=key_findings,
        priority_data_requests=priority,
    )


def validate_standard_claims(
    provided_data: Optional[Mapping[str, Any]] = None,
) -> Tuple[List[ClaimValidationResult], ClaimsSummary]:
    """Validate the standard HTL marketing claim set and summarize it."""
    results = validate_claims(STANDARD_HTL_CLAIMS, provided_data)
    return results, summarize_claims(results)


def get_htl_physics_limits() -> List[Dict[str, Any]]:
    """HTL physical limits as plain dictionaries for reporting."""
    return [_ceiling_to_dict(ceiling) for ceiling in HTL_PHYSICS_LIMITS]


def _ceiling_to_dict(ceiling: PhysicsCeiling) -> Dict[str, Any]:
    return {
        "metric": ceiling.metric,
        "max_value": ceiling.max_value,
        "unit": ceiling.unit,
        "source": ceiling.source,
    }
