"""Metrics extraction from heterogeneous stage outputs."""
from .coerce import fuzzy_match, normalize_key, to_number, to_rating_score
from .extractor import (
    StageMetrics,
    build_record,
    extract_all_metrics,
    extract_metric,
    extract_standardized_block,
)
from .paths import (
    DEFAULT_BATCH_METRICS,
    METRIC_SPECS,
    STAGE_EXTRACTION_PATHS,
    STAGES,
    PathSpec,
    Stage,
    get_metric_spec,
)
from .search import deep_search, traverse_path

__all__ = [
    "DEFAULT_BATCH_METRICS",
    "METRIC_SPECS",
    "STAGE_EXTRACTION_PATHS",
    "STAGES",
    "PathSpec",
    "Stage",
    "StageMetrics",
    "build_record",
    "deep_search",
    "extract_all_metrics",
    "extract_metric",
    "extract_standardized_block",
    "fuzzy_match",
    "get_metric_spec",
    "normalize_key",
    "to_number",
    "to_rating_score",
    "traverse_path",
]
