"""
Metrics extraction from raw stage outputs.

Each metric is resolved with a fixed precedence and the first strategy that
yields a finite number wins:

    1. standardizedMetrics.<canonicalKey>         direct / high
    2. standardizedMetrics.secondaryMetrics scan  direct / high
    3. stage-specific fallback paths              search / medium
    4. bounded deep search                        search / low

A metric no strategy can resolve is reported as not found, never as an error.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from assessment_engine.config import Config
from assessment_engine.extraction.coerce import fuzzy_match, rating_from_score, to_number
from assessment_engine.extraction.paths import (
    DEFAULT_BATCH_METRICS,
    OPTIONAL_RECORD_METRICS,
    MetricSpec,
    PathSpec,
    Select,
    get_metric_spec,
    stage_paths,
)
from assessment_engine.extraction.search import deep_search, traverse_path
from assessment_engine.reference.domains import resolve_domain
from assessment_engine.schemas.metrics import (
    STANDARD_UNITS,
    ExtractionResult,
    Metric,
    MetricConfidence,
    StandardizedMetricsRecord,
    create_empty_record,
    create_metric,
    primary_cost_metric_id,
)
from assessment_engine.units import convert_unit
from assessment_engine.utils.data_validation import validate_document
from assessment_engine.utils.logging_utils import get_logger

logger = get_logger(__name__)

STANDARDIZED_BLOCK_KEY = "standardizedMetrics"
SECONDARY_METRICS_KEY = "secondaryMetrics"

_CONFIDENCES = ("high", "medium", "low")


def extract_standardized_block(document: Any) -> Optional[Dict[str, Any]]:
    """The stage's own standardizedMetrics block, if it emitted one."""
    if isinstance(document, dict):
        block = document.get(STANDARDIZED_BLOCK_KEY)
        if isinstance(block, dict):
            return block
    return None


def _found(
    spec: MetricSpec,
    value: float,
    path: List[str],
    method: str,
    confidence: MetricConfidence,
    source: str,
    unit: Optional[str] = None,
    name: Optional[str] = None,
) -> ExtractionResult:
    metric = create_metric(
        spec.metric_id,
        value,
        name=name,
        unit=unit,
        confidence=confidence,
        source=source,
        derived_from=".".join(path),
    )
    return ExtractionResult(
        metric_name=spec.name,
        found=True,
        metric=metric,
        path=path,
        extraction_method=method,
    )


def _text(node: Any, key: str) -> Optional[str]:
    if isinstance(node, dict) and isinstance(node.get(key), str):
        return node[key]
    return None


def _from_canonical(spec: MetricSpec, block: Dict[str, Any]) -> Optional[ExtractionResult]:
    node = block.get(spec.canonical_key)
    value = spec.coerce(node)
    if value is None:
        return None
    return _found(
        spec, value,
        path=[STANDARDIZED_BLOCK_KEY, spec.canonical_key],
        method="direct",
        confidence="high",
        source="Standardized metrics",
        unit=_text(node, "unit"),
        name=_text(node, "name"),
    )


def _from_secondary(spec: MetricSpec, block: Dict[str, Any]) -> Optional[ExtractionResult]:
    entries = block.get(SECONDARY_METRICS_KEY)
    if not isinstance(entries, list):
        return None
    for index, entry in enumerate(entries):
        if not isinstance(entry, dict):
            continue
        labels = [entry.get(key) for key in ("id", "name") if isinstance(entry.get(key), str)]
        if not any(fuzzy_match(label, spec.aliases) for label in labels):
            continue
        value = spec.coerce(entry.get("value"))
        if value is not None:
            return _found(
                spec, value,
                path=[STANDARDIZED_BLOCK_KEY, SECONDARY_METRICS_KEY, str(index)],
                method="direct",
                confidence="high",
                source="Standardized secondary metrics",
                unit=_text(entry, "unit"),
            )
    return None


def _step_label(step: Any) -> str:
    if isinstance(step, Select):
        return f"[{step.key}={step.value}]"
    return str(step)


def _apply_path(spec: MetricSpec, path_spec: PathSpec, document: Any) -> Optional[ExtractionResult]:
    value = spec.coerce(traverse_path(document, path_spec.steps))
    if value is None:
        return None

    unit = None
    if path_spec.convert is not None:
        from_unit, to_unit = path_spec.convert
        try:
            value = convert_unit(value, from_unit, to_unit)
        except ValueError as exc:
            logger.debug(f"Skipping {path_spec.dotted} for {spec.name}: {exc}")
            return None
        unit = to_unit
    if path_spec.transform is not None:
        value = path_spec.transform(value)
    if path_spec.validator is not None and not path_spec.validator(value):
        logger.debug(f"Rejected {value:g} at {path_spec.dotted} for {spec.name}")
        return None

    return _found(
        spec, value,
        path=[_step_label(step) for step in path_spec.steps],
        method="search",
        confidence="medium",
        source=f"Extracted from {path_spec.dotted}",
        unit=unit,
    )


def _from_stage_paths(spec: MetricSpec, stage: str, document: Any) -> Optional[ExtractionResult]:
    for path_spec in stage_paths(stage, spec.name):
        result = _apply_path(spec, path_spec, document)
        if result is not None:
            return result
    return None


def _from_deep_search(spec: MetricSpec, document: Any) -> Optional[ExtractionResult]:
    hit = deep_search(document, spec.aliases, coerce=spec.coerce)
    if hit is None:
        return None
    value, key_path = hit
    return _found(
        spec, value,
        path=["deep_search"] + key_path,
        method="search",
        confidence="low",
        source="Deep search",
    )


def extract_metric(stage: str, metric_name: str, document: Any) -> ExtractionResult:
    """
    Resolve one metric from a stage output.

    Args:
        stage: Stage identifier, e.g. 'tea-analysis' (unknown stages skip the path tables)
        metric_name: Metric name, e.g. 'efficiency' or 'primaryCost'
        document: Raw stage output of any shape

    Returns:
        ExtractionResult with provenance; found=False when nothing matched
    """
    spec = get_metric_spec(metric_name)
    if not validate_document(document):
        return ExtractionResult(metric_name=metric_name, found=False)

    block = extract_standardized_block(document)
    if block is not None:
        result = _from_canonical(spec, block) or _from_secondary(spec, block)
        if result is not None:
            logger.debug(f"{stage}/{metric_name}: standardized block")
            return result

    result = _from_stage_paths(spec, stage, document)
    if result is not None:
        logger.debug(f"{stage}/{metric_name}: {result.metric.source}")
        return result

    result = _from_deep_search(spec, document)
    if result is not None:
        logger.debug(f"{stage}/{metric_name}: deep search at {'.'.join(result.path[1:])}")
        return result

    logger.debug(f"{stage}/{metric_name}: not found")
    return ExtractionResult(metric_name=metric_name, found=False)


def extract_all_metrics(
    stage: str,
    document: Any,
    metric_names: Sequence[str] = DEFAULT_BATCH_METRICS,
    max_workers: Optional[int] = None,
) -> Dict[str, ExtractionResult]:
    """Extract several metrics independently; keys follow the order of metric_names."""
    workers = Config.WORKER_THREADS if max_workers is None else max_workers
    if workers <= 1 or len(metric_names) <= 1:
        results = [extract_metric(stage, name, document) for name in metric_names]
    else:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            results = list(executor.map(lambda name: extract_metric(stage, name, document), metric_names))
    return dict(zip(metric_names, results))


@dataclass
class StageMetrics:
    """Normalized record for one stage plus the extraction trail behind it."""
    stage: str
    record: StandardizedMetricsRecord
    extractions: Dict[str, ExtractionResult] = field(default_factory=dict)

    @property
    def found(self) -> Dict[str, Metric]:
        return {name: r.metric for name, r in self.extractions.items() if r.found}


COST_METRIC_IDS = ("lcoh", "lcoe", "lcos", "lcoc")


def _reported_cost_id(result: ExtractionResult, block: Optional[Dict[str, Any]]) -> Optional[str]:
    """Cost metric named by the value's own id or by the path it was found at."""
    labels = list(reversed(result.path))
    if block is not None and result.path == [STANDARDIZED_BLOCK_KEY, "primaryCostMetric"]:
        labels.insert(0, _text(block.get("primaryCostMetric"), "id") or "")
    for label in labels:
        token = label.lower()
        for cost_id in COST_METRIC_IDS:
            if cost_id in token:
                return cost_id
    return None


def _primary_cost(
    result: ExtractionResult,
    domain: str,
    block: Optional[Dict[str, Any]],
) -> Tuple[Metric, Optional[str]]:
    """
    Name the found cost after the domain's cost metric.

    A value reported as a different levelized cost (an LCOE in a hydrogen
    assessment) keeps its own id and unit and comes back with a warning.
    """
    metric = result.metric
    expected = primary_cost_metric_id(domain)
    reported = _reported_cost_id(result, block)
    metric_id = expected
    warning = None
    if reported is not None and reported != expected:
        metric_id = reported
        if expected in COST_METRIC_IDS:
            warning = (f"Primary cost was reported as {reported.upper()}, "
                       f"not the {expected.upper()} expected for {domain}")
    if metric_id == metric.id:
        return metric, warning
    return metric.model_copy(update={
        "id": metric_id,
        "name": metric_id.upper(),
        "unit": metric.unit or STANDARD_UNITS.get(metric_id, ""),
    }), warning


def _secondary_metrics(block: Optional[Dict[str, Any]]) -> List[Metric]:
    if block is None or not isinstance(block.get(SECONDARY_METRICS_KEY), list):
        return []
    metrics = []
    for entry in block[SECONDARY_METRICS_KEY]:
        if not isinstance(entry, dict) or not isinstance(entry.get("id"), str) or not entry["id"]:
            continue
        value = to_number(entry.get("value"))
        if value is None:
            logger.debug(f"Dropping secondary metric without numeric value: {entry.get('id')}")
            continue
        confidence = entry.get("confidence")
        metrics.append(create_metric(
            entry["id"],
            value,
            name=entry["name"] if isinstance(entry.get("name"), str) else None,
            unit=entry["unit"] if isinstance(entry.get("unit"), str) else None,
            confidence=confidence if confidence in _CONFIDENCES else "medium",
            source=entry["source"] if isinstance(entry.get("source"), str) else "Standardized metrics",
        ))
    return metrics


def build_record(stage: str, document: Any, domain: Optional[str] = None) -> StageMetrics:
    """
    Normalize a stage output into a StandardizedMetricsRecord.

    Required fields that cannot be found, or are found out of range, keep the
    empty-record defaults and leave a warning on the record.

    Args:
        stage: Stage identifier
        document: Raw stage output
        domain: Technology domain; names the primary cost metric (lcoh, lcoe, ...)

    Returns:
        StageMetrics with the record and every extraction attempted
    """
    domain = resolve_domain(domain)
    extractions = extract_all_metrics(stage, document, DEFAULT_BATCH_METRICS + OPTIONAL_RECORD_METRICS)
    defaults = create_empty_record(stage)
    warnings: List[str] = []

    def metric(name: str) -> Optional[Metric]:
        return extractions[name].metric

    fields: Dict[str, Any] = {}

    block = extract_standardized_block(document)
    if extractions["primaryCost"].found:
        fields["primary_cost_metric"], mismatch = _primary_cost(extractions["primaryCost"], domain, block)
        if mismatch is not None:
            warnings.append(mismatch)
    else:
        warnings.append(f"Primary cost metric not found in {stage} output")

    efficiency = metric("efficiency")
    if efficiency is not None and 0 <= efficiency.value <= 100:
        fields["efficiency"] = efficiency
    elif efficiency is not None:
        warnings.append(f"Efficiency {efficiency.value:g}% is outside 0-100%, using default")
    else:
        warnings.append(f"Efficiency not found in {stage} output")

    trl = metric("trl")
    if trl is not None and 1 <= round(trl.value) <= 9:
        fields["trl"] = trl.model_copy(update={"value": float(round(trl.value))})
    elif trl is not None:
        warnings.append(f"TRL {trl.value:g} is outside 1-9, using default")
    else:
        warnings.append(f"TRL not found in {stage} output")

    rating = metric("rating")
    label = rating_from_score(rating.value) if rating is not None else None
    if label is not None:
        fields["rating"] = label
    else:
        warnings.append(f"Rating not found in {stage} output, defaulting to NOT_RECOMMENDED")

    for name in ("capex", "opex"):
        if metric(name) is not None:
            fields[name] = metric(name)

    optional = {
        "npv": "npv",
        "irr": "irr",
        "lifetime": "lifetime",
        "paybackPeriod": "payback_period",
        "degradationRate": "degradation_rate",
        "capacityFactor": "capacity_factor",
        "projectedCost": "projected_cost",
        "costReductionRate": "cost_reduction_rate",
    }
    for name, field_name in optional.items():
        if metric(name) is not None:
            fields[field_name] = metric(name)

    required_found = [name for name in ("primary_cost_metric", "efficiency", "trl", "rating") if name in fields]
    if not required_found:
        warnings = list(defaults.warnings) + warnings

    record = defaults.model_copy(update={
        **fields,
        "secondary_metrics": _secondary_metrics(block),
        "warnings": warnings,
    })
    for message in warnings:
        logger.debug(f"{stage}: {message}")
    return StageMetrics(stage=stage, record=record, extractions=extractions)
