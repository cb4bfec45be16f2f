"""
Discrete configuration module for the clinical-text analysis engine.

Every threshold the engine uses is an empirically chosen constant, not a
derived one. They live here as named, validated settings so they can be
tuned via environment variables without touching control flow.
"""

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    """
    Configuration settings for the analysis engine.

    All settings can be overridden via environment variables prefixed
    with ``ENGINE_``.
    """

    model_config = SettingsConfigDict(
        env_file="../.env",  # Load from project root
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_ignore_empty=True,
        env_prefix="ENGINE_",
        frozen=True,
    )

    # Input gating
    min_input_length: int = Field(
        default=20,
        ge=1,
        description="Trimmed notes shorter than this short-circuit to Insufficient Information"
    )
    min_section_length: int = Field(
        default=50,
        ge=0,
        description="A delimiter split is kept only if every piece is longer than this"
    )

    # Context windows (characters)
    negation_window: int = Field(
        default=80,
        ge=1,
        description="Characters before a match searched for negation cues"
    )
    uncertainty_window: int = Field(
        default=60,
        ge=1,
        description="Characters before a match searched for uncertainty cues"
    )
    presence_window: int = Field(
        default=60,
        ge=1,
        description="Characters before a match searched for presence cues"
    )
    compound_prefix_window: int = Field(
        default=10,
        ge=1,
        description="Characters before a match checked for abutting negation prefixes"
    )
    context_window: int = Field(
        default=100,
        ge=0,
        description="Characters kept on either side of a match in the context snippet"
    )

    # Confidence scores
    confidence_bare_mention: float = Field(
        default=0.3,
        ge=0.0,
        le=1.0,
        description="Confidence for a mention with no confirmation, negation or uncertainty"
    )
    confidence_present: float = Field(
        default=0.9,
        ge=0.0,
        le=1.0,
        description="Confidence for an explicitly confirmed finding"
    )
    confidence_negated: float = Field(
        default=0.85,
        ge=0.0,
        le=1.0,
        description="Confidence that a negated finding is absent"
    )
    confidence_uncertain: float = Field(
        default=0.4,
        ge=0.0,
        le=1.0,
        description="Confidence for an uncertain finding"
    )
    specialist_confidence_boost: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Scaled by (1 - priority/5) when the section author is known"
    )

    # Conflict resolution
    recency_window_months: int = Field(
        default=6,
        ge=0,
        description="A dated note within this many months of as-of counts as recent"
    )
    unknown_specialist_priority: int = Field(
        default=99,
        ge=1,
        description="Priority assigned to findings with no detected specialist"
    )

    # Decision
    high_priority_threshold: int = Field(
        default=2,
        ge=1,
        description="Specialist priority at or below which a source is high priority"
    )

    # Execution
    max_workers: int = Field(
        default=1,
        ge=1,
        description="Worker threads for per-section finding detection (1 = sequential)"
    )
    vocabulary_path: str | None = Field(
        default=None,
        description="Optional JSON file replacing the built-in vocabulary"
    )

    @model_validator(mode="after")
    def validate_confidence_order(self) -> "EngineSettings":
        """A bare mention must never score as high as a confirmed finding."""
        if self.confidence_bare_mention >= self.confidence_present:
            raise ValueError(
                "confidence_bare_mention must be lower than confidence_present "
                f"({self.confidence_bare_mention} >= {self.confidence_present})"
            )
        return self

    def get_safe_config_dict(self) -> dict:
        """Return configuration dict for logging."""
        return self.model_dump()


@lru_cache
def get_engine_settings() -> EngineSettings:
    """
    Get cached engine settings.

    Settings are loaded once and cached for the application lifetime.
    """
    return EngineSettings()
