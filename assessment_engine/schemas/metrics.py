"""
Standardized metrics schema.

Every analysis stage is normalized into a StandardizedMetricsRecord so that
downstream consumers read one shape regardless of how the stage laid out its
raw output.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from types import MappingProxyType
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from assessment_engine.reference.domains import resolve_domain

MetricConfidence = Literal["high", "medium", "low"]
Rating = Literal["BREAKTHROUGH", "PROMISING", "CONDITIONAL", "NOT_RECOMMENDED"]
ExtractionMethod = Literal["direct", "search", "calculated", "fallback"]

# Worst to best; position + 1 is the rating's ordinal score
RATINGS: tuple = ("NOT_RECOMMENDED", "CONDITIONAL", "PROMISING", "BREAKTHROUGH")

# Source tag of placeholder metrics in an empty record
NOT_CALCULATED = "Not calculated"

STANDARD_UNITS = MappingProxyType({
    # Costs
    "lcoh": "$/kg",
    "lcos": "$/kWh",
    "lcoe": "$/MWh",
    "lcoc": "$/tonne",
    "tco": "$/km",
    "capex": "$/kW",
    "opex": "$/year",
    "npv": "$",
    "irr": "%",
    "payback": "years",
    "payback_period": "years",
    "cogs": "$/unit",
    "production_cost": "$/kg",
    "projected_cost": "$/kW",
    # Performance
    "efficiency": "%",
    "capacity_factor": "%",
    "degradation_rate": "%/year",
    "cost_reduction_rate": "%/year",
    # Time
    "lifetime": "hours",
    "stack_lifetime": "hours",
    "cycle_life": "cycles",
    "charging_time": "minutes",
    # Physical
    "specific_consumption": "kWh/Nm3",
    "output_pressure": "bar",
    "energy_density": "Wh/kg",
    "power_density": "W/kg",
    "capture_rate": "%",
    "energy_penalty": "%",
    "range": "km",
    # Agricultural
    "yield_cost": "$/kg",
    "water_use": "L/kg",
    "land_use": "m2/kg",
    # Computing
    "performance_per_watt": "FLOPS/W",
    "error_rate": "%",
    "trl": "",
})

REQUIRED_METRICS_BY_DOMAIN = MappingProxyType({
    "hydrogen": ("lcoh", "efficiency", "specific_consumption", "output_pressure", "stack_lifetime"),
    "energy-storage": ("lcos", "efficiency", "cycle_life", "energy_density", "power_density"),
    "clean-energy": ("lcoe", "efficiency", "capacity_factor", "lifetime"),
    "industrial": ("lcoc", "efficiency", "capture_rate", "energy_penalty"),
    "transportation": ("tco", "efficiency", "range", "charging_time"),
    "agriculture": ("yield_cost", "efficiency", "water_use", "land_use"),
    "materials": ("production_cost", "purity", "supply_risk"),
    "biotech": ("cogs", "efficacy", "yield"),
    "computing": ("performance_per_watt", "error_rate", "cost_per_operation"),
    "general": ("npv", "irr", "payback"),
})

PRIMARY_COST_METRICS = MappingProxyType({
    "hydrogen": "lcoh",
    "energy-storage": "lcos",
    "clean-energy": "lcoe",
    "industrial": "lcoc",
    "transportation": "tco",
    "agriculture": "yield_cost",
    "materials": "production_cost",
    "biotech": "cogs",
    "computing": "cost_per_operation",
})


class BenchmarkRange(BaseModel):
    """Published range a metric is compared against."""
    model_config = ConfigDict(frozen=True)

    min: float = Field(..., description="Lower bound")
    max: float = Field(..., description="Upper bound")
    source: str = Field(..., description="Citation for the range")
    year: Optional[int] = Field(default=None, description="Publication year")

    @model_validator(mode="after")
    def validate_bounds(self):
        """min must not exceed max."""
        if self.min > self.max:
            raise ValueError(f"Benchmark min ({self.min}) must not exceed max ({self.max})")
        return self


class Metric(BaseModel):
    """A single measured or estimated quantity."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Metric identifier, e.g. 'lcoh'")
    name: str = Field(..., description="Human-readable name")
    value: float = Field(..., description="Finite numeric value")
    unit: str = Field(default="", description="Unit of measure")
    confidence: MetricConfidence = Field(default="medium", description="Confidence tier")
    source: str = Field(default="AI analysis", description="Where the value came from")
    derived_from: Optional[str] = Field(default=None, description="How the value was derived")
    benchmark_range: Optional[BenchmarkRange] = Field(default=None, description="Reference range")

    @field_validator("value")
    @classmethod
    def validate_finite(cls, v: float) -> float:
        """Value must be a finite real number."""
        if not math.isfinite(v):
            raise ValueError(f"Metric value must be finite, got {v}")
        return v


class StandardizedMetricsRecord(BaseModel):
    """Canonical metrics for one completed analysis stage."""
    model_config = ConfigDict(frozen=True)

    # Required
    primary_cost_metric: Metric = Field(..., description="Domain levelized cost (LCOH, LCOE, ...)")
    efficiency: Metric = Field(..., description="Efficiency in percent")
    trl: Metric = Field(..., description="Technology readiness level 1-9")
    rating: Rating = Field(..., description="Overall recommendation")
    capex: Metric = Field(..., description="Capital cost")
    opex: Metric = Field(..., description="Operating cost")

    # Optional
    npv: Optional[Metric] = None
    irr: Optional[Metric] = None
    payback_period: Optional[Metric] = None
    lifetime: Optional[Metric] = None
    degradation_rate: Optional[Metric] = None
    capacity_factor: Optional[Metric] = None
    projected_cost: Optional[Metric] = None
    cost_reduction_rate: Optional[Metric] = None

    secondary_metrics: List[Metric] = Field(default_factory=list, description="Domain-specific metrics")

    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    source_component: str = Field(..., description="Stage that produced the record")
    warnings: List[str] = Field(default_factory=list)

    @field_validator("efficiency")
    @classmethod
    def validate_efficiency(cls, v: Metric) -> Metric:
        """Efficiency is a percentage in [0, 100]."""
        if not 0 <= v.value <= 100:
            raise ValueError(f"Efficiency must be within [0, 100], got {v.value}")
        return v

    @field_validator("trl")
    @classmethod
    def validate_trl(cls, v: Metric) -> Metric:
        """TRL is an integer from 1 to 9."""
        if v.value != int(v.value) or not 1 <= v.value <= 9:
            raise ValueError(f"TRL must be an integer from 1 to 9, got {v.value}")
        return v

    def add_warning(self, message: str) -> None:
        """Warnings are the only part of a record that may change after creation."""
        self.warnings.append(message)


class ExtractionResult(BaseModel):
    """Provenance of a single metric extraction attempt."""
    model_config = ConfigDict(frozen=True)

    metric_name: str
    found: bool
    metric: Optional[Metric] = None
    path: List[str] = Field(default_factory=list, description="Steps or strategy that produced the value")
    extraction_method: ExtractionMethod = "fallback"

    @model_validator(mode="after")
    def validate_found(self):
        """found must agree with the presence of a metric."""
        if self.found != (self.metric is not None):
            raise ValueError("found must be True exactly when a metric is present")
        return self


class InvalidValue(BaseModel):
    field: str
    reason: str


class MetricsValidationStatus(BaseModel):
    """Quality report for a raw standardizedMetrics block."""
    is_valid: bool
    score: float = Field(..., ge=0, le=100)
    missing_required: List[str] = Field(default_factory=list)
    invalid_values: List[InvalidValue] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


def primary_cost_metric_id(domain: Optional[str]) -> str:
    return PRIMARY_COST_METRICS.get(resolve_domain(domain), "primary_cost")


def create_metric(
    metric_id: str,
    value: float,
    *,
    name: Optional[str] = None,
    unit: Optional[str] = None,
    confidence: MetricConfidence = "medium",
    source: str = "AI analysis",
    derived_from: Optional[str] = None,
    benchmark_range: Optional[BenchmarkRange] = None,
) -> Metric:
    """
    Build a Metric, filling in the name and unit from the metric id.

    Args:
        metric_id: Metric identifier, e.g. 'lcoh'
        value: Finite numeric value
        name: Display name (defaults to the id title-cased)
        unit: Unit (defaults to STANDARD_UNITS[metric_id], else '')

    Returns:
        Metric instance
    """
    return Metric(
        id=metric_id,
        name=name if name is not None else metric_id.replace("_", " ").title(),
        value=value,
        unit=unit if unit is not None else STANDARD_UNITS.get(metric_id, ""),
        confidence=confidence,
        source=source,
        derived_from=derived_from,
        benchmark_range=benchmark_range,
    )


def _placeholder(metric_id: str, name: Optional[str] = None, value: float = 0.0) -> Metric:
    return create_metric(metric_id, value, name=name, confidence="low", source=NOT_CALCULATED)


def create_empty_record(source_tag: str) -> StandardizedMetricsRecord:
    """
    A record with every required field present at its lowest-confidence default.

    TRL defaults to 1 (the lowest valid level) since 0 is not a readiness level.
    """
    return StandardizedMetricsRecord(
        primary_cost_metric=_placeholder("primary_cost", "Primary Cost Metric"),
        efficiency=_placeholder("efficiency"),
        trl=_placeholder("trl", "TRL", value=1.0),
        rating="NOT_RECOMMENDED",
        capex=_placeholder("capex"),
        opex=_placeholder("opex"),
        source_component=source_tag,
        warnings=["Metrics not yet calculated"],
    )
