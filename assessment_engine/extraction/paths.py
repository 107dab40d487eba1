"""
Where each analysis stage puts each metric.

Stage outputs are generated, so their layout drifts. The tables below are
data: for every stage an ordered list of fallback locations per metric, tried
after the standardizedMetrics block and before deep search. Paths are written
as dotted strings; `[id=x]` / `[name=x]` select a list element by field and
`[n]` selects by index.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Callable, Literal, Optional, Tuple, Union

from assessment_engine.extraction.coerce import to_number, to_rating_score

Stage = Literal[
    "technology-deep-dive",
    "claims-validation",
    "performance-simulation",
    "system-integration",
    "tea-analysis",
    "improvement-opportunities",
    "final-synthesis",
]

STAGES: Tuple[str, ...] = (
    "technology-deep-dive",
    "claims-validation",
    "performance-simulation",
    "system-integration",
    "tea-analysis",
    "improvement-opportunities",
    "final-synthesis",
)


@dataclass(frozen=True)
class Select:
    """Pick the first dict in a list whose `key` equals `value` (case-insensitive)."""
    key: str
    value: str


Step = Union[str, int, Select]


@dataclass(frozen=True)
class PathSpec:
    steps: Tuple[Step, ...]
    convert: Optional[Tuple[str, str]] = None  # (from_unit, to_unit)
    transform: Optional[Callable[[float], float]] = None
    # Plausibility check on the final value; a failing path falls through
    validator: Optional[Callable[[float], bool]] = None

    @property
    def dotted(self) -> str:
        parts = []
        for step in self.steps:
            if isinstance(step, Select):
                parts.append(f"[{step.key}={step.value}]")
            elif isinstance(step, int):
                parts.append(f"[{step}]")
            else:
                parts.append(f".{step}" if parts else step)
        return "".join(parts)


@dataclass(frozen=True)
class MetricSpec:
    name: str
    metric_id: str
    canonical_key: str
    aliases: Tuple[str, ...]
    coerce: Callable = field(default=to_number)


_SEGMENT = re.compile(r"([^.\[\]]+)|\[(\d+)\]|\[(\w+)=([^\]]+)\]")


def parse_path(text: str) -> Tuple[Step, ...]:
    """'a.b[id=lcoh].value' -> ('a', 'b', Select('id', 'lcoh'), 'value')"""
    steps = []
    for name, index, select_key, select_value in _SEGMENT.findall(text):
        if name:
            steps.append(name)
        elif index:
            steps.append(int(index))
        else:
            steps.append(Select(select_key, select_value))
    return tuple(steps)


def path(text: str, convert: Optional[Tuple[str, str]] = None,
         transform: Optional[Callable[[float], float]] = None,
         validator: Optional[Callable[[float], bool]] = None) -> PathSpec:
    return PathSpec(parse_path(text), convert, transform, validator)


def _years_to_hours_if_small(value: float) -> float:
    # Lifetimes under 100 are reported in years
    return value * 8760.0 if value < 100 else value


def _fraction_to_percent(value: float) -> float:
    return value * 100.0 if 0 < value <= 1 else value


def _is_level(value: float, top: int) -> bool:
    return float(value).is_integer() and 1 <= value <= top


# Plausible values per metric after conversion; NPV may take any sign
PATH_VALIDATORS = MappingProxyType({
    "primaryCost": lambda v: 0 < v < 10000,
    "efficiency": lambda v: 0 <= v <= 100,
    "capex": lambda v: v > 0,
    "opex": lambda v: v > 0,
    "irr": lambda v: -100 <= v <= 500,
    "lifetime": lambda v: v >= 1000,
    "trl": lambda v: _is_level(v, 9),
    "rating": lambda v: _is_level(v, 4),
})


METRIC_SPECS = MappingProxyType({
    "efficiency": MetricSpec(
        "efficiency", "efficiency", "efficiency",
        ("efficiency", "eff", "eta", "system_efficiency", "systemEfficiency", "roundTripEfficiency"),
    ),
    "primaryCost": MetricSpec(
        "primaryCost", "primary_cost", "primaryCostMetric",
        ("lcoh", "lcoe", "lcos", "lcoc", "levelized", "levelizedCost", "primaryCost"),
    ),
    "trl": MetricSpec(
        "trl", "trl", "trl",
        ("trl", "technology_readiness", "readinessLevel", "maturityLevel"),
    ),
    "rating": MetricSpec(
        "rating", "rating", "rating",
        ("rating", "recommendation", "overallRating", "finalRating"),
        coerce=to_rating_score,
    ),
    "capex": MetricSpec(
        "capex", "capex", "capex",
        ("capex", "capital", "capitalCost", "investment", "totalCapex"),
    ),
    "lifetime": MetricSpec(
        "lifetime", "lifetime", "lifetime",
        ("lifetime", "lifespan", "operatingHours", "stackLifetime", "expectedLifetime"),
    ),
    "npv": MetricSpec("npv", "npv", "npv", ("npv", "netPresentValue")),
    "irr": MetricSpec("irr", "irr", "irr", ("irr", "internalRateOfReturn")),
    "opex": MetricSpec(
        "opex", "opex", "opex",
        ("opex", "operatingCost", "operatingExpense", "annualCost"),
    ),
    "paybackPeriod": MetricSpec(
        "paybackPeriod", "payback_period", "paybackPeriod",
        ("paybackPeriod", "payback", "paybackYears"),
    ),
    "degradationRate": MetricSpec(
        "degradationRate", "degradation_rate", "degradationRate",
        ("degradationRate", "degradation", "annualDegradation"),
    ),
    "capacityFactor": MetricSpec(
        "capacityFactor", "capacity_factor", "capacityFactor",
        ("capacityFactor", "loadFactor"),
    ),
    "projectedCost": MetricSpec(
        "projectedCost", "projected_cost", "projectedCost",
        ("projectedCost", "futureCost", "costProjection"),
    ),
    "costReductionRate": MetricSpec(
        "costReductionRate", "cost_reduction_rate", "costReductionRate",
        ("costReductionRate", "learningRate", "costDecline"),
    ),
})

# Domain-specific secondary metrics
DOMAIN_SEARCH_KEYS = MappingProxyType({
    "energyDensity": ("energyDensity", "specificEnergy", "energy_density"),
    "cycleLife": ("cycleLife", "cycles", "cycle_life"),
    "costPerKwh": ("costPerKwh", "costPerKWh", "cost_per_kwh"),
    "roundTripEfficiency": ("roundTripEfficiency", "rte", "round_trip_efficiency"),
    "h2Consumption": ("h2Consumption", "specificConsumption", "electricityIntensity"),
    "co2Reduction": ("co2Reduction", "emissionsReduction", "avoidedEmissions"),
    "productionCost": ("productionCost", "unitCost", "production_cost"),
    "greenPremium": ("greenPremium", "premium", "green_premium"),
})

DEFAULT_BATCH_METRICS: Tuple[str, ...] = (
    "efficiency", "primaryCost", "trl", "rating", "capex", "lifetime", "npv", "irr", "opex",
)

OPTIONAL_RECORD_METRICS: Tuple[str, ...] = (
    "paybackPeriod", "degradationRate", "capacityFactor", "projectedCost", "costReductionRate",
)


def get_metric_spec(metric_name: str) -> MetricSpec:
    """Definition of a known metric; unknown names search for themselves only."""
    spec = METRIC_SPECS.get(metric_name)
    if spec is not None:
        return spec
    aliases = DOMAIN_SEARCH_KEYS.get(metric_name, (metric_name,))
    return MetricSpec(metric_name, metric_name, metric_name, aliases)


def _paths(**by_metric: Tuple[PathSpec, ...]) -> MappingProxyType:
    # Paths without their own validator get the metric's plausibility check
    return MappingProxyType({
        metric: tuple(
            spec if spec.validator is not None or metric not in PATH_VALIDATORS
            else replace(spec, validator=PATH_VALIDATORS[metric])
            for spec in specs
        )
        for metric, specs in by_metric.items()
    })


STAGE_EXTRACTION_PATHS = MappingProxyType({
    "technology-deep-dive": _paths(
        efficiency=(
            path("overview.performanceMetrics.efficiency"),
            path("technicalSpecifications.efficiency"),
            path("keyMetrics.efficiency.value"),
            path("keyMetrics[name=efficiency].value"),
        ),
        primaryCost=(
            path("economicOverview.currentCost"),
            path("marketAnalysis.cost"),
        ),
        trl=(
            path("trl.currentTRL"),
            path("technologyReadiness.level"),
            path("overview.trl"),
        ),
        rating=(
            path("overallAssessment.rating"),
            path("recommendation.rating"),
        ),
        capex=(
            path("economicOverview.capex"),
            path("costAnalysis.capital"),
        ),
        lifetime=(
            path("technicalSpecifications.lifetime"),
            path("durability.expectedLifetime", transform=_years_to_hours_if_small),
        ),
    ),
    "claims-validation": _paths(
        efficiency=(
            path("validatedClaims.efficiency.validatedValue"),
            path("summary.keyMetrics.efficiency"),
        ),
        primaryCost=(path("validatedClaims.cost.validatedValue"),),
        trl=(
            path("validatedClaims.trl.validatedValue"),
            path("summary.trl"),
        ),
        rating=(path("overallConfidence"),),
        capex=(path("validatedClaims.capex.validatedValue"),),
        lifetime=(path("validatedClaims.lifetime.validatedValue"),),
    ),
    "performance-simulation": _paths(
        efficiency=(
            path("keyMetrics.efficiency.value"),
            path("simulationResults.efficiency", transform=_fraction_to_percent),
            path("performanceMetrics.systemEfficiency"),
        ),
        primaryCost=(
            path("economicMetrics.levelizedCost"),
            path("costProjections.current"),
        ),
        trl=(path("maturityAssessment.trl"),),
        rating=(path("performanceRating"),),
        capex=(path("economicMetrics.capex"),),
        lifetime=(
            path("degradationAnalysis.lifetimeProjection.expectedLifetime"),
            path("durabilityMetrics.lifetime"),
        ),
    ),
    "system-integration": _paths(
        efficiency=(
            path("systemEfficiency"),
            path("integrationMetrics.efficiency"),
        ),
        primaryCost=(path("totalSystemCost"),),
        trl=(path("integrationReadiness.trl"),),
        rating=(path("integrationRating"),),
        capex=(path("infrastructureCosts.total"),),
        lifetime=(path("systemLifetime"),),
    ),
    "tea-analysis": _paths(
        efficiency=(
            path("assumptions.efficiency"),
            path("technicalParameters.efficiency"),
        ),
        primaryCost=(
            path("financialMetrics.primary.lcoe.value"),
            path("financialMetrics.primary.lcoh.value"),
            path("financialMetrics.primary.lcos.value"),
            path("financialMetrics.primary.lcoc.value"),
            path("financialMetrics.metrics[id=lcoh].value"),
            path("levelizedCost"),
            path("keyMetrics.lcoe"),
            path("keyMetrics.lcoh"),
        ),
        trl=(path("assumptions.trl"),),
        rating=(
            path("recommendation.rating"),
            path("investmentRating"),
        ),
        capex=(
            path("capitalCosts.total"),
            path("costBreakdown.capex.total"),
            path("keyMetrics.capex"),
        ),
        opex=(
            path("operatingCosts.total"),
            path("costBreakdown.opex.total"),
            path("keyMetrics.opex"),
        ),
        lifetime=(
            path("assumptions.lifetime", transform=_years_to_hours_if_small),
            path("assumptions.lifetimeYears", convert=("years", "hours")),
            path("projectParameters.lifetime", transform=_years_to_hours_if_small),
        ),
        npv=(
            path("financialMetrics.primary.npv.value"),
            path("keyMetrics.npv"),
        ),
        irr=(
            path("financialMetrics.primary.irr.value"),
            path("keyMetrics.irr"),
        ),
        paybackPeriod=(
            path("financialMetrics.primary.payback.value"),
            path("keyMetrics.paybackPeriod"),
        ),
    ),
    "improvement-opportunities": _paths(
        efficiency=(
            path("currentPerformance.efficiency"),
            path("baseline.efficiency"),
        ),
        primaryCost=(
            path("currentCost"),
            path("baseline.cost"),
        ),
        trl=(path("currentTRL"),),
        rating=(path("improvementPotential"),),
        capex=(path("costReduction.currentCapex"),),
        lifetime=(path("durabilityImprovements.currentLifetime"),),
        costReductionRate=(path("costReduction.annualRate"),),
    ),
    "final-synthesis": _paths(
        efficiency=(
            path("keyFindings.efficiency"),
            path("synthesis.technicalMetrics.efficiency"),
            path("keyFindings.metrics[name=efficiency].value"),
        ),
        primaryCost=(
            path("keyFindings.levelizedCost"),
            path("synthesis.economicMetrics.primaryCost"),
        ),
        trl=(
            path("keyFindings.trl"),
            path("overallAssessment.trl"),
        ),
        rating=(
            path("overallRating"),
            path("recommendation.rating"),
            path("finalRecommendation.rating"),
        ),
        capex=(path("keyFindings.capex"),),
        lifetime=(path("keyFindings.lifetime"),),
    ),
})


def stage_paths(stage: str, metric_name: str) -> Tuple[PathSpec, ...]:
    """Fallback paths for a metric in a stage, empty for unknown stages or metrics."""
    return STAGE_EXTRACTION_PATHS.get(stage, {}).get(metric_name, ())
