"""Quality checks and assessment-level aggregation."""
from .quality import SanityCheck, benchmark_flags, check_standardized_block, check_trl, sanity_check
from .red_flags import RedFlag, RedFlagReport, detect_red_flags
from .summary import (
    AssessmentSummary,
    ConsolidatedMetric,
    consolidate_metrics,
    metrics_frame,
    summarize_assessment,
)

__all__ = [
    "AssessmentSummary",
    "ConsolidatedMetric",
    "RedFlag",
    "RedFlagReport",
    "SanityCheck",
    "benchmark_flags",
    "check_standardized_block",
    "check_trl",
    "consolidate_metrics",
    "detect_red_flags",
    "metrics_frame",
    "sanity_check",
    "summarize_assessment",
]
