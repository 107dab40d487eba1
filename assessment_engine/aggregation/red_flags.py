"""
Red-flag screening for an assessment.

A fast pass over claim text and normalized stage records that surfaces
dealbreakers before a full review. Five checks run independently:

    thermodynamic      efficiency and energy-intensity claims against hard limits
    trl_mismatch       lab-scale wording next to commercial claims or high TRLs
    benchmark_outlier  costs far below industry ranges, vague superlatives
    missing_data       critical metrics the claims never mention
    economic           negative costs, steep learning rates, sub-year paybacks

Every flag carries a severity (critical, high, medium) and a recommendation.
"""

from __future__ import annotations

import re
from typing import List, Literal, Optional, Sequence

from pydantic import BaseModel, Field

from assessment_engine.aggregation.quality import benchmark_flags, check_trl
from assessment_engine.reference.domains import INDUSTRY_RANGES, resolve_domain
from assessment_engine.reference.limits import (
    TechnologyLimits,
    get_energy_intensity_minimum,
    get_physics_limits,
)
from assessment_engine.schemas.metrics import NOT_CALCULATED, StandardizedMetricsRecord
from assessment_engine.utils.logging_utils import get_logger

logger = get_logger(__name__)

Severity = Literal["critical", "high", "medium"]
Category = Literal["thermodynamic", "trl_mismatch", "benchmark_outlier", "missing_data", "economic", "timeline"]

SEVERITIES = ("critical", "high", "medium")

GENERIC_LIMITS = TechnologyLimits("generic", 100.0, notes="Second-law limit")

NEAR_LIMIT_FRACTION = 0.95
CRITICAL_OVERSHOOT = 1.5

LAB_INDICATORS = ("lab scale", "bench scale", "proof of concept", "laboratory", "research stage")
COMMERCIAL_INDICATORS = ("commercial", "production scale", "deployed", "operational", "in operation")
SUPERLATIVES = ("best in class", "industry leading", "world record", "breakthrough")

# (share of industry minimum, severity, label); first band the value falls under wins
COST_OUTLIER_BANDS = ((0.5, "high", "50%+"), (0.8, "medium", "20%+"))

AGGRESSIVE_COST = 50.0
MIN_LAB_TO_MARKET_YEARS = 3
MAX_LEARNING_RATE = 30.0
LAB_SCALE_MAX_TRL = 6

# Technology keyword -> metrics the claims are expected to cover; first match wins
CRITICAL_DATA = (
    ("solar", ("efficiency", "degradation", "temperature coefficient", "lcoe")),
    ("wind", ("capacity factor", "availability", "lcoe")),
    ("battery", ("cycle life", "round-trip efficiency", "energy density", "degradation")),
    ("electroly", ("efficiency", "lifetime", "stack cost", "hydrogen purity")),
    ("hydrogen", ("production cost", "purity", "storage", "delivery")),
    ("fuel cell", ("efficiency", "lifetime", "power density", "degradation")),
    ("dac", ("energy consumption", "cost per tonne", "sorbent lifetime")),
)
DEFAULT_CRITICAL_DATA = ("efficiency", "cost", "lifetime", "scalability")

_EFFICIENCY = re.compile(r"(\d+(?:\.\d+)?)\s*%?\s*(?:efficiency|conversion|yield)")
_INTENSITY = re.compile(r"(\d+(?:\.\d+)?)\s*(kwh|mwh)\s*/\s*(kg|nm3|tonne)")
_COST = re.compile(r"\$?\s*(\d+(?:\.\d+)?)\s*(?:/|per)\s*(mwh|kwh|kg|kw|tonne)\b")
_DOLLARS = re.compile(r"\$\s*(\d+(?:\.\d+)?)")
_DIGIT = re.compile(r"\d")
_TIMELINE = re.compile(r"(\d+)\s*(?:year|yr)s?\s*(?:to|until|before)\s*(?:commercial|deployment|production)")
_LEARNING = re.compile(r"(\d+(?:\.\d+)?)\s*%?\s*(?:learning rate|cost reduction|decline)")
_PAYBACK = re.compile(r"(\d+(?:\.\d+)?)\s*(month|year)s?\s*payback")


class RedFlag(BaseModel):
    """One screening finding."""
    id: str
    category: Category
    severity: Severity
    description: str
    explanation: str
    recommendation: str
    claim_index: Optional[int] = Field(default=None, description="Position of the claim that raised the flag")
    value: Optional[float] = None
    limit: Optional[float] = None


class RedFlagReport(BaseModel):
    has_red_flags: bool
    flags: List[RedFlag] = Field(default_factory=list)
    summary: str

    def by_severity(self, severity: Severity) -> List[RedFlag]:
        return [flag for flag in self.flags if flag.severity == severity]


def _efficiency_limit(technology: str, claim: str) -> TechnologyLimits:
    limits = get_physics_limits(technology) or GENERIC_LIMITS
    if limits.technology_class == "solar" and "tandem" in claim:
        return get_physics_limits("tandem")
    return limits


def thermodynamic_flags(technology: str, claims: Sequence[str]) -> List[RedFlag]:
    """Efficiency claims above the technology's ceiling and energy use below the minimum."""
    technology = technology.lower()
    flags = []
    for index, claim in enumerate(claims):
        text = claim.lower()

        match = _EFFICIENCY.search(text)
        if match:
            value = float(match.group(1))
            limits = _efficiency_limit(technology, text)
            ceiling = limits.efficiency_max
            basis = limits.notes or f"{limits.technology_class} limit"
            if value > ceiling:
                flags.append(RedFlag(
                    id=f"thermo-eff-{index}",
                    category="thermodynamic",
                    severity="critical" if value > ceiling * CRITICAL_OVERSHOOT else "high",
                    description=f"Efficiency claim ({value:g}%) exceeds the {limits.technology_class} limit ({ceiling:g}%)",
                    explanation=f"{basis} caps efficiency at {ceiling:g}%; {value:g}% is physically impossible.",
                    recommendation="Clarify the metric definition (thermal vs electrical efficiency) or reject the claim.",
                    claim_index=index, value=value, limit=ceiling,
                ))
            elif value > ceiling * NEAR_LIMIT_FRACTION:
                flags.append(RedFlag(
                    id=f"thermo-eff-high-{index}",
                    category="thermodynamic",
                    severity="medium",
                    description=f"Efficiency claim ({value:g}%) is very close to the theoretical limit ({ceiling:g}%)",
                    explanation=f"Within 5% of the limit ({basis}) is reachable only under ideal lab conditions.",
                    recommendation="Request experimental data and test conditions; verify the figure holds at scale.",
                    claim_index=index, value=value, limit=ceiling,
                ))

        match = _INTENSITY.search(text)
        if match:
            value = float(match.group(1)) * (1000.0 if match.group(2) == "mwh" else 1.0)
            minimum = get_energy_intensity_minimum(technology, match.group(3))
            if minimum is not None and value < minimum.min_value:
                flags.append(RedFlag(
                    id=f"thermo-energy-{index}",
                    category="thermodynamic",
                    severity="critical",
                    description=(f"Energy intensity ({value:g} {minimum.unit}) is below the thermodynamic "
                                 f"minimum ({minimum.min_value:g} {minimum.unit})"),
                    explanation=f"{minimum.description} needs at least {minimum.min_value:g} {minimum.unit}.",
                    recommendation="Reject the claim or ask how the energy use was measured.",
                    claim_index=index, value=value, limit=minimum.min_value,
                ))

        if "100%" in text and "efficiency" in text and "electroly" not in technology:
            flags.append(RedFlag(
                id=f"thermo-100-{index}",
                category="thermodynamic",
                severity="high",
                description="100% efficiency claim requires scrutiny",
                explanation="Only narrow metrics such as Faradaic efficiency reach 100%; real processes have losses.",
                recommendation="Clarify which efficiency (electrical, thermal, Faradaic) is claimed.",
                claim_index=index,
            ))
    return flags


def trl_flags(
    technology: str,
    claims: Sequence[str],
    description: str = "",
    records: Sequence[StandardizedMetricsRecord] = (),
    domain: Optional[str] = None,
) -> List[RedFlag]:
    """Development-stage contradictions in the text and TRLs outside the technology's range."""
    text = " ".join([description, *claims]).lower()
    lab = any(indicator in text for indicator in LAB_INDICATORS)
    commercial = any(indicator in text for indicator in COMMERCIAL_INDICATORS)
    flags = []

    if lab and commercial:
        flags.append(RedFlag(
            id="trl-conflict",
            category="trl_mismatch",
            severity="medium",
            description="Conflicting TRL indicators: lab-scale and commercial claims",
            explanation="The technology is described as both lab-scale and commercially deployed.",
            recommendation="Clarify the current development stage and deployment status.",
        ))

    if lab:
        cost_claims = [c for c in claims if any(k in c.lower() for k in ("cost", "$/", "price"))]
        prices = [float(m.group(1)) for m in (_DOLLARS.search(c) for c in cost_claims) if m]
        if any(price < AGGRESSIVE_COST for price in prices):
            flags.append(RedFlag(
                id="trl-cost-mismatch",
                category="trl_mismatch",
                severity="high",
                description="Aggressive cost claims for lab-scale technology",
                explanation="Early-stage cost projections often understate scale-up costs by 2-5x.",
                recommendation="Request a cost breakdown with contingencies suited to the TRL.",
            ))

        match = _TIMELINE.search(text)
        if match and int(match.group(1)) < MIN_LAB_TO_MARKET_YEARS:
            years = int(match.group(1))
            flags.append(RedFlag(
                id="trl-timeline",
                category="timeline",
                severity="medium",
                description=f"Aggressive timeline: {years} years from lab to commercial",
                explanation="Lab-to-commercial transitions usually take 5-10+ years for hardware.",
                recommendation="Request a development roadmap with milestones and risks.",
                value=float(years), limit=float(MIN_LAB_TO_MARKET_YEARS),
            ))

    for record in records:
        if record.trl.source == NOT_CALCULATED:
            continue
        trl = record.trl.value
        check = check_trl(trl, domain, technology)
        if not check.passed:
            flags.append(RedFlag(
                id=f"trl-{record.source_component}",
                category="trl_mismatch",
                severity="high" if check.status == "reject" else "medium",
                description=check.message,
                explanation=f"Reported by the {record.source_component} stage.",
                recommendation="Reconcile the reported TRL with the technology's development stage.",
                value=trl, limit=check.suggested_value,
            ))
        elif lab and trl > LAB_SCALE_MAX_TRL:
            flags.append(RedFlag(
                id=f"trl-lab-{record.source_component}",
                category="trl_mismatch",
                severity="medium",
                description=f"Lab-scale wording but TRL {trl:g} reported by {record.source_component}",
                explanation=f"Lab and bench scale work corresponds to TRL {LAB_SCALE_MAX_TRL} or below.",
                recommendation="Confirm whether the technology has been demonstrated outside the lab.",
                value=trl, limit=float(LAB_SCALE_MAX_TRL),
            ))
    return flags


def benchmark_outlier_flags(
    claims: Sequence[str],
    records: Sequence[StandardizedMetricsRecord] = (),
    domain: Optional[str] = None,
) -> List[RedFlag]:
    """Cost claims well below industry ranges, vague superlatives and record outliers."""
    domain = resolve_domain(domain)
    ranges = INDUSTRY_RANGES.get(domain, {})
    flags = []

    for index, claim in enumerate(claims):
        text = claim.lower()
        match = _COST.search(text)
        if match:
            unit = f"$/{match.group(2)}"
            matching = [r for r in ranges.values() if r.unit.lower() == unit]
            if matching:
                reference = min(matching, key=lambda r: r.min)
                value = float(match.group(1))
                for share, severity, label in COST_OUTLIER_BANDS:
                    if value < reference.min * share:
                        flags.append(RedFlag(
                            id=f"benchmark-cost-{index}",
                            category="benchmark_outlier",
                            severity=severity,
                            description=f"Cost claim ({value:g} {reference.unit}) is {label} below industry benchmarks",
                            explanation=(f"The {domain} industry range is {reference.min:g}-{reference.max:g} "
                                         f"{reference.unit}."),
                            recommendation="Request a cost breakdown, supplier quotes and learning-curve assumptions.",
                            claim_index=index, value=value, limit=reference.min,
                        ))
                        break

        if any(phrase in text for phrase in SUPERLATIVES) and not _DIGIT.search(text):
            flags.append(RedFlag(
                id=f"benchmark-vague-{index}",
                category="benchmark_outlier",
                severity="medium",
                description="Superlative claim without specific metrics",
                explanation="Best-in-class or breakthrough performance should come with verifiable numbers.",
                recommendation="Request specific performance metrics and third-party validation.",
                claim_index=index,
            ))

    for record in records:
        for n, finding in enumerate(benchmark_flags(record, domain)):
            flags.append(RedFlag(
                id=f"benchmark-{record.source_component}-{n}",
                category="benchmark_outlier",
                severity="high",
                description=finding,
                explanation=f"Reported by the {record.source_component} stage.",
                recommendation="Request the calculation behind the value and check its units.",
            ))
    return flags


def missing_data_flags(technology: str, claims: Sequence[str]) -> List[RedFlag]:
    """Critical metrics for the technology that no claim mentions."""
    if not claims:
        return []
    label = technology.lower()
    required = next((metrics for keyword, metrics in CRITICAL_DATA if keyword in label), DEFAULT_CRITICAL_DATA)
    text = " ".join(claims).lower()
    missing = [
        metric for metric in required
        if not any(form in text for form in (metric, metric.replace(" ", "-"), metric.replace(" ", "_")))
    ]
    if not missing:
        return []
    return [RedFlag(
        id="missing-data",
        category="missing_data",
        severity="high" if len(missing) >= 3 else "medium",
        description=f"Missing critical data: {', '.join(missing)}",
        explanation=f"For {technology or 'this technology'} these metrics are critical but no claim covers them.",
        recommendation="Request data for the missing parameters before proceeding.",
    )]


def economic_flags(claims: Sequence[str]) -> List[RedFlag]:
    """Negative costs outside carbon accounting, steep learning rates and sub-year paybacks."""
    flags = []
    for index, claim in enumerate(claims):
        text = claim.lower()

        if "negative" in text and "cost" in text and "carbon" not in text and "externality" not in text:
            flags.append(RedFlag(
                id=f"econ-negative-{index}",
                category="economic",
                severity="high",
                description="Negative cost claim requires clarification",
                explanation="Negative production costs are unusual outside carbon credit or externality accounting.",
                recommendation="Clarify the economic model and revenue sources.",
                claim_index=index,
            ))

        match = _LEARNING.search(text)
        if match and float(match.group(1)) > MAX_LEARNING_RATE:
            rate = float(match.group(1))
            flags.append(RedFlag(
                id=f"econ-learning-{index}",
                category="economic",
                severity="medium",
                description=f"Learning rate of {rate:g}% is above historical norms",
                explanation="Historical learning rates run 10-25%; above 30% is exceptional.",
                recommendation="Justify the learning rate with comparable technologies.",
                claim_index=index, value=rate, limit=MAX_LEARNING_RATE,
            ))

        match = _PAYBACK.search(text)
        if match:
            amount = float(match.group(1))
            years = amount / 12.0 if match.group(2) == "month" else amount
            if years < 1:
                flags.append(RedFlag(
                    id=f"econ-payback-{index}",
                    category="economic",
                    severity="medium",
                    description=f"Payback period of {amount:g} {match.group(2)}s is unusually short",
                    explanation="Sub-year payback for capital-intensive projects is unusual without subsidies.",
                    recommendation="Check the payback includes all capital costs and realistic revenue.",
                    claim_index=index, value=years, limit=1.0,
                ))
    return flags


def _summary(flags: Sequence[RedFlag]) -> str:
    if not flags:
        return "No red flags detected. All claims appear within physical and economic bounds."
    counts = [(severity, sum(1 for f in flags if f.severity == severity)) for severity in SEVERITIES]
    parts = [f"{count} {severity}" for severity, count in counts if count]
    return f"Detected {', '.join(parts)} severity red flag(s). Review required before proceeding."


def detect_red_flags(
    technology: str,
    claims: Sequence[str] = (),
    description: str = "",
    records: Sequence[StandardizedMetricsRecord] = (),
    domain: Optional[str] = None,
) -> RedFlagReport:
    """
    Screen an assessment for dealbreakers.

    Args:
        technology: Free-form technology label, e.g. 'PEM electrolyzer'
        claims: Claim texts in input order (flags refer to them by index)
        description: Technology description, searched for development-stage wording
        records: Normalized stage records to check for TRL and benchmark outliers
        domain: Technology domain; resolved from the technology label when omitted

    Returns:
        RedFlagReport with flags in check order and a one-line summary
    """
    domain = resolve_domain(domain or technology)
    flags = [
        *thermodynamic_flags(technology, claims),
        *trl_flags(technology, claims, description, records, domain),
        *benchmark_outlier_flags(claims, records, domain),
        *missing_data_flags(technology, claims),
        *economic_flags(claims),
    ]
    summary = _summary(flags)
    logger.info(f"Red-flag screen for {technology or domain}: {summary}")
    return RedFlagReport(has_red_flags=bool(flags), flags=flags, summary=summary)
