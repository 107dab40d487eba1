"""
Claim validation rules.

Rules live in a YAML file and are validated into frozen pydantic models on
first use. The default rule set is cached for the life of the process and
never mutated; each rule compiles its pattern once when it is built.
"""

from __future__ import annotations

import re
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Sequence, Tuple, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, model_validator

from assessment_engine.config import Config
from assessment_engine.reference.limits import theoretical_ceiling
from assessment_engine.schemas.claims import ClaimCategory, ConfidenceLevel, RiskLevel, ValidationMethod
from assessment_engine.utils.logging_utils import get_logger

logger = get_logger(__name__)


class BenchmarkSpec(BaseModel):
    """Reference range quoted by a rule."""
    model_config = ConfigDict(frozen=True)

    min: Optional[float] = None
    max: Optional[float] = None
    typical: Optional[float] = None
    unit: str = ""
    notes: str = ""


class PhysicsLimit(BaseModel):
    """Hard ceiling a numeric claim is checked against."""
    model_config = ConfigDict(frozen=True)

    metric: str = Field(..., description="Limited quantity, e.g. 'Net Energy Efficiency'")
    max_value: float = Field(..., description="Ceiling in `unit`")
    unit: str = Field(..., description="Unit of the ceiling")
    source: str = Field(..., description="Citation for the ceiling")

    @model_validator(mode="before")
    @classmethod
    def resolve_reference(cls, data: Any) -> Any:
        """Fill metric/max_value/unit/source from a named theoretical ceiling."""
        if isinstance(data, dict) and "reference" in data:
            ceiling = theoretical_ceiling(data["reference"])
            resolved = {
                "metric": ceiling.metric,
                "max_value": ceiling.max_value,
                "unit": ceiling.unit,
                "source": ceiling.source,
            }
            resolved.update({k: v for k, v in data.items() if k != "reference"})
            return resolved
        return data


class ValidationRule(BaseModel):
    """Maps a claim-text pattern to the evidence needed to judge it."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    pattern: str = Field(..., min_length=1, description="Literal substring or regular expression")
    pattern_type: Literal["literal", "regex"] = "regex"
    category: ClaimCategory
    validation_method: ValidationMethod
    benchmarks: Dict[str, BenchmarkSpec] = Field(default_factory=dict)
    physics_limit: Optional[PhysicsLimit] = None
    interpretation: str = ""
    validation_steps: List[str] = Field(default_factory=list)
    risk_level: RiskLevel
    confidence_required: ConfidenceLevel
    red_flags: List[str] = Field(default_factory=list)
    data_requests: List[str] = Field(default_factory=list)

    _regex: Optional[re.Pattern] = PrivateAttr(default=None)

    @model_validator(mode="before")
    @classmethod
    def validate_pattern(cls, data: Any) -> Any:
        """Regex patterns must compile."""
        if isinstance(data, dict) and data.get("pattern_type", "regex") == "regex":
            pattern = data.get("pattern")
            if isinstance(pattern, str):
                try:
                    re.compile(pattern)
                except re.error as exc:
                    raise ValueError(
                        f"Invalid claim pattern {pattern!r} in rule {data.get('id')}: {exc}"
                    ) from exc
        return data

    def model_post_init(self, __context: Any) -> None:
        source = self.pattern if self.pattern_type == "regex" else re.escape(self.pattern)
        self._regex = re.compile(source, re.IGNORECASE)

    def matches(self, claim: str) -> bool:
        return self._regex.search(claim) is not None


class RuleSet(BaseModel):
    rules: List[ValidationRule]

    @model_validator(mode="after")
    def validate_unique_ids(self):
        """Rule ids must be unique."""
        ids = [rule.id for rule in self.rules]
        duplicates = sorted({rule_id for rule_id in ids if ids.count(rule_id) > 1})
        if duplicates:
            raise ValueError(f"Duplicate rule ids: {duplicates}")
        return self


def load_rules(path: Optional[Union[str, Path]] = None) -> Tuple[ValidationRule, ...]:
    """
    Load and validate a rule file.

    Args:
        path: YAML file with a top-level `rules` list (defaults to Config.CLAIM_RULES_PATH)

    Returns:
        Rules in file order
    """
    path = Path(path) if path is not None else Config.CLAIM_RULES_PATH
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    rule_set = RuleSet(**data)
    logger.debug(f"Loaded {len(rule_set.rules)} claim rules from {path}")
    return tuple(rule_set.rules)


@lru_cache(maxsize=1)
def get_rules() -> Tuple[ValidationRule, ...]:
    """Process-wide default rule set, loaded on first use."""
    return load_rules()


def get_rule(rule_id: str) -> Optional[ValidationRule]:
    for rule in get_rules():
        if rule.id == rule_id:
            return rule
    return None


def match_rule(claim: str, rules: Optional[Sequence[ValidationRule]] = None) -> Optional[ValidationRule]:
    """First rule, in declaration order, whose pattern appears in the claim."""
    for rule in rules if rules is not None else get_rules():
        if rule.matches(claim):
            return rule
    return None
