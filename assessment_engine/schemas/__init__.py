"""Pydantic schemas for metrics records and claim validation results."""
from .claims import ClaimsSummary, ClaimValidationResult, PhysicsCheck
from .metrics import (
    REQUIRED_METRICS_BY_DOMAIN,
    STANDARD_UNITS,
    BenchmarkRange,
    ExtractionResult,
    Metric,
    MetricsValidationStatus,
    StandardizedMetricsRecord,
    create_empty_record,
    create_metric,
    primary_cost_metric_id,
)

__all__ = [
    "REQUIRED_METRICS_BY_DOMAIN",
    "STANDARD_UNITS",
    "BenchmarkRange",
    "ClaimValidationResult",
    "ClaimsSummary",
    "ExtractionResult",
    "Metric",
    "MetricsValidationStatus",
    "PhysicsCheck",
    "StandardizedMetricsRecord",
    "create_empty_record",
    "create_metric",
    "primary_cost_metric_id",
]
