"""
Pydantic models for API request/response validation.

All models are explicit, documented, and enforce strict validation.
Invalid inputs fail closed with descriptive error messages.
"""

from datetime import date, datetime, timezone
from enum import Enum
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, field_validator

from models.analysis_models import QualificationResult
from models.reviewer_models import AnalysisSource, ReviewerResult


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AnalyzeRequest(BaseModel):
    """
    Request to analyze clinical notes for echocardiogram qualification.

    Attributes:
        notes: Concatenated clinical notes, pasted as one text blob.
        as_of: Reference date for recency comparisons (defaults to today).
        use_reviewer: Override the configured external reviewer switch.
    """
    notes: str = Field(
        ...,
        max_length=200_000,
        description="Clinical notes to analyze"
    )
    as_of: date | None = Field(
        default=None,
        description="Reference date for conflict recency (YYYY-MM-DD)"
    )
    use_reviewer: bool | None = Field(
        default=None,
        description="Invoke the external reviewer (defaults to configuration)"
    )

    @field_validator("notes")
    @classmethod
    def validate_notes(cls, v: str) -> str:
        """Reject notes that are entirely blank."""
        if not v.strip():
            raise ValueError("Notes cannot be empty or whitespace only")
        return v


class AnalyzeResponse(BaseModel):
    """
    Analysis response handed to the surrounding application.

    Attributes:
        analysis_id: Unique identifier for this analysis.
        result: Final qualification result.
        rule_engine_result: Deterministic baseline result.
        reviewer: External reviewer output, if it was used.
        source: Component that produced the final decision.
        citation_summary: Citations rendered as one line.
        warnings: Caller-visible warnings (e.g. reviewer fallback).
    """
    analysis_id: UUID = Field(default_factory=uuid4, description="Unique analysis ID")
    result: QualificationResult = Field(..., description="Final qualification result")
    rule_engine_result: QualificationResult = Field(..., description="Deterministic baseline")
    reviewer: ReviewerResult | None = Field(default=None, description="Reviewer output")
    source: AnalysisSource = Field(..., description="Source of the final decision")
    citation_summary: str = Field(default="", description="Human-readable citations")
    warnings: list[str] = Field(default_factory=list, description="Caller-visible warnings")
    timestamp: datetime = Field(default_factory=_utcnow, description="Analysis timestamp")


class VocabularyInfo(BaseModel):
    """Summary of the vocabulary table currently in use."""
    version: str = Field(..., description="Vocabulary version label")
    term_count: int = Field(..., description="Number of clinical terms")
    specialist_count: int = Field(..., description="Number of specialist identities")
    category_counts: dict[str, int] = Field(default_factory=dict, description="Terms per category")
    specialists: list[str] = Field(default_factory=list, description="Specialists in precedence order")


class HealthStatus(str, Enum):
    """System health status levels."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class HealthResponse(BaseModel):
    """
    Health check response for monitoring.

    Attributes:
        status: Overall system health status.
        version: Application version.
        environment: Deployment environment.
        checks: Individual component health checks.
    """
    status: HealthStatus = Field(..., description="Overall health status")
    version: str = Field(..., description="Application version")
    environment: str = Field(..., description="Deployment environment")
    timestamp: datetime = Field(default_factory=_utcnow, description="Check timestamp")
    checks: dict[str, bool] = Field(default_factory=dict, description="Component health checks")


class ErrorResponse(BaseModel):
    """
    Standardized error response.

    Attributes:
        error: Error type/code.
        message: Human-readable error message.
        details: Additional error details.
        request_id: Request ID for tracing.
    """
    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Error message")
    details: dict | None = Field(default=None, description="Additional details")
    request_id: str | None = Field(default=None, description="Request ID for tracing")
    timestamp: datetime = Field(default_factory=_utcnow, description="Error timestamp")
