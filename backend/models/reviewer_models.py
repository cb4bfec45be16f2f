"""
Pydantic models for the optional external reviewer.

The reviewer's JSON response is validated into ``ReviewerResult``; anything
that does not fit is rejected so the caller can fall back to the
deterministic engine.
"""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from models.analysis_models import ConfidenceLevel, QualificationResult, QualificationStatus


# ============================================================================
# Reviewer Response
# ============================================================================

class ReviewerFinding(BaseModel):
    """A finding the reviewer considers explicitly confirmed."""
    finding: str = Field(..., min_length=1, description="Clinical finding")
    category: Literal["symptom", "history", "cardiac_finding", "risk_factor"] = Field(
        ..., description="Clinical category"
    )
    evidence: str = Field(..., description="Exact quote from the notes confirming it")
    confidence: Literal["high", "medium"] = Field(default="medium", description="Reviewer confidence")

    @field_validator("category", "confidence", mode="before")
    @classmethod
    def lowercase(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


class NegatedFinding(BaseModel):
    """A condition the notes explicitly deny."""
    finding: str = Field(..., min_length=1, description="Negated condition")
    evidence: str = Field(..., description="Exact quote showing the negation")


class UncertainFinding(BaseModel):
    """A condition that is suspected but not confirmed."""
    finding: str = Field(..., min_length=1, description="Uncertain condition")
    evidence: str = Field(..., description="Exact quote showing the uncertainty")
    reason: str = Field(default="", description="Why it is uncertain (possible, rule out, ...)")


class ReviewerResult(BaseModel):
    """Structured review of the notes."""
    confirmed_findings: list[ReviewerFinding] = Field(default_factory=list)
    negated_findings: list[NegatedFinding] = Field(default_factory=list)
    uncertain_findings: list[UncertainFinding] = Field(default_factory=list)
    primary_indication: str | None = Field(default=None, description="Main reason for echo if qualified")
    qualification_status: QualificationStatus = Field(..., description="Reviewer's status")
    qualification_reason: str = Field(default="", description="Brief explanation")
    confidence: ConfidenceLevel = Field(..., description="Reviewer's confidence level")
    warnings: list[str] = Field(default_factory=list, description="Data quality concerns")

    @field_validator("confidence", mode="before")
    @classmethod
    def normalize_confidence(cls, v):
        """Accept 'high' / 'HIGH' as well as 'High'."""
        return v.strip().capitalize() if isinstance(v, str) else v


# ============================================================================
# Combined Analysis
# ============================================================================

class AnalysisSource(str, Enum):
    """Which component produced the final decision."""
    RULE_ENGINE = "rule_engine"
    REVIEWER = "reviewer"


class ReviewedAnalysis(BaseModel):
    """Final analysis with the deterministic baseline kept alongside."""
    result: QualificationResult = Field(..., description="Final result handed to callers")
    rule_engine_result: QualificationResult = Field(..., description="Deterministic baseline")
    reviewer: ReviewerResult | None = Field(default=None, description="Reviewer output, if used")
    source: AnalysisSource = Field(..., description="Source of the final decision")
    warnings: list[str] = Field(default_factory=list, description="Caller-visible warnings")
