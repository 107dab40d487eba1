#!/usr/bin/env python3
"""
Run claim validation and metrics normalization on files and print the summary.

The stages file is JSON keyed by stage id, e.g. {"tea-analysis": {...}}.
The claims file is YAML, either a list of claims or
{"claims": [...], "provided_data": {...}}.
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from assessment_engine.aggregation.summary import AssessmentSummary, summarize_assessment
from assessment_engine.claims.validator import validate_claims
from assessment_engine.extraction.extractor import build_record
from assessment_engine.extraction.paths import STAGES
from assessment_engine.utils.logging_utils import get_logger

logger = get_logger(__name__)


def load_claims(path: Path) -> Tuple[List[str], Optional[Dict[str, Any]]]:
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or []
    if isinstance(data, list):
        return [str(claim) for claim in data], None
    if isinstance(data, dict):
        return [str(claim) for claim in data.get("claims", [])], data.get("provided_data")
    raise ValueError(f"Claims file must hold a list or a mapping, got {type(data).__name__}")


def load_stages(path: Path) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError("Stages file must hold a JSON object keyed by stage id")
    stages = {}
    for stage, document in data.items():
        if stage not in STAGES:
            logger.warning(f"Skipping unknown stage: {stage}")
            continue
        stages[stage] = document
    return stages


def run_assessment(
    stages_path: Optional[Path] = None,
    claims_path: Optional[Path] = None,
    domain: Optional[str] = None,
) -> AssessmentSummary:
    """Validate claims and normalize every stage found in the input files."""
    claims, provided_data = load_claims(claims_path) if claims_path else ([], None)
    stages = load_stages(stages_path) if stages_path else {}

    logger.info(f"Validating {len(claims)} claims across {len(stages)} stages")
    claim_results = validate_claims(claims, provided_data)
    stage_results = [build_record(stage, document, domain) for stage, document in stages.items()]
    return summarize_assessment(claim_results, stage_results, domain)


def main() -> int:
    parser = argparse.ArgumentParser(description="Validate claims and normalize stage metrics.")
    parser.add_argument("--stages", type=str, default=None, help="Path to stage outputs JSON.")
    parser.add_argument("--claims", type=str, default=None, help="Path to claims YAML.")
    parser.add_argument("--domain", type=str, default=None,
                        help="Technology domain, e.g. hydrogen or clean-energy")
    parser.add_argument("--out", type=str, default=None,
                        help="Write the summary JSON here instead of stdout")
    args = parser.parse_args()

    if not args.stages and not args.claims:
        parser.error("at least one of --stages or --claims is required")

    summary = run_assessment(
        Path(args.stages) if args.stages else None,
        Path(args.claims) if args.claims else None,
        args.domain,
    )
    payload = json.dumps(summary.model_dump(mode="json"), indent=2)

    if args.out:
        out_path = Path(args.out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        with open(out_path, "w", encoding="utf-8") as f:
            f.write(payload)
        print(f"Overall: {summary.overall_score:.1f} ({summary.tier})")
        print(f"Outputs: {out_path}")
    else:
        print(payload)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
