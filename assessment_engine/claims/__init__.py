"""Claim-rule matching and physics validation."""
from .rules import ValidationRule, get_rules, load_rules, match_rule
from .validator import (
    extract_numeric_assertion,
    get_htl_physics_limits,
    summarize_claims,
    validate_claim,
    validate_claims,
    validate_standard_claims,
)

__all__ = [
    "ValidationRule",
    "extract_numeric_assertion",
    "get_htl_physics_limits",
    "get_rules",
    "load_rules",
    "match_rule",
    "summarize_claims",
    "validate_claim",
    "validate_claims",
    "validate_standard_claims",
]
