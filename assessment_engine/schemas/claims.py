"""Schemas for claim validation results and summaries."""

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

ClaimCategory = Literal["efficiency", "environmental", "technical", "economic", "scale", "safety"]
ValidationMethod = Literal[
    "physics-check",
    "lifecycle-analysis",
    "regulatory-check",
    "process-engineering",
    "benchmark-comparison",
    "mass-balance",
    "energy-balance",
]
RiskLevel = Literal["low", "medium", "high", "critical"]
ConfidenceLevel = Literal["very-low", "low", "medium", "high", "very-high"]

CONFIDENCE_LEVELS: tuple = ("very-low", "low", "medium", "high", "very-high")


class PhysicsCheck(BaseModel):
    """Outcome of comparing a numeric claim with a physical ceiling."""
    model_config = ConfigDict(frozen=True)

    passed: bool
    limit: str = Field(..., description="Human-readable limit, e.g. 'Net Energy Efficiency: 85 %'")
    claimed_value: float
    limit_value: float
    margin: float = Field(..., description="limit_value - claimed_value")


class ClaimValidationResult(BaseModel):
    """Verdict for one claim."""
    model_config = ConfigDict(frozen=True)

    claim: str
    claim_id: str = Field(..., description="Matched rule id, or 'unknown'")
    matched_rule: str = Field(..., description="Matched rule id, or 'none'")
    validated: bool
    confidence: ConfidenceLevel
    risk_level: RiskLevel
    interpretation: str = ""
    findings: List[str] = Field(default_factory=list)
    data_gaps: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    physics_check: Optional[PhysicsCheck] = None


class ClaimsSummary(BaseModel):
    total_claims: int = Field(..., ge=0)
    validated: int = Field(..., ge=0)
    invalidated: int = Field(..., ge=0)
    high_risk: int = Field(..., ge=0)
    data_gaps_count: int = Field(..., ge=0)
    key_findings: List[str] = Field(default_factory=list)
    priority_data_requests: List[str] = Field(default_factory=list)
