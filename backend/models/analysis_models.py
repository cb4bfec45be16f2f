"""
Pydantic models for the clinical-text analysis engine.

This module defines the vocabulary tables, note sections, detected
findings, conflict records and the qualification result handed to
external collaborators. All engine models are frozen: they are built
once and shared read-only across components.
"""

import datetime as dt
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# ============================================================================
# Enumerations
# ============================================================================

class TermCategory(str, Enum):
    """Clinical role of a vocabulary term in the qualification rules."""
    SYMPTOM = "Symptom"
    HISTORY = "History"
    FINDING = "Finding"
    RISK_FACTOR = "RiskFactor"


class QualificationStatus(str, Enum):
    """Outcome of the qualification decision."""
    QUALIFIED = "Qualified"
    NOT_QUALIFIED = "Not Qualified"
    REVIEW_NEEDED = "Review Needed"
    INSUFFICIENT_INFORMATION = "Insufficient Information"


class ConfidenceLevel(str, Enum):
    """Confidence rollup attached to a qualification result."""
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


# ============================================================================
# Vocabulary Store
# ============================================================================

def _normalize_variants(values: list[str] | tuple[str, ...]) -> tuple[str, ...]:
    cleaned = []
    for value in values:
        value = value.strip().lower()
        if value and value not in cleaned:
            cleaned.append(value)
    return tuple(cleaned)


class ClinicalTerm(BaseModel):
    """A clinical concept with its surface forms and significance weight."""
    model_config = ConfigDict(frozen=True)

    term: str = Field(..., min_length=1, description="Term identity (e.g., 'Chest Pain')")
    category: TermCategory = Field(..., description="Clinical category")
    variations: tuple[str, ...] = Field(
        ..., min_length=1, description="Lowercase surface forms, longest first"
    )
    weight: int = Field(..., ge=0, description="Clinical significance weight")

    @field_validator("variations", mode="before")
    @classmethod
    def order_variations(cls, v):
        """Lowercase, deduplicate and sort longest-first for greedy matching."""
        return tuple(sorted(_normalize_variants(v), key=len, reverse=True))


class Specialist(BaseModel):
    """A note author identity with its credibility rank."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Specialist identity")
    variations: tuple[str, ...] = Field(
        ..., min_length=1, description="Lowercase surface forms in precedence order"
    )
    priority: int = Field(..., ge=1, le=4, description="1 = most credible, 4 = least")
    weight: int = Field(..., ge=0, description="Secondary score, higher is better")

    @field_validator("variations", mode="before")
    @classmethod
    def lowercase_variations(cls, v):
        return _normalize_variants(v)


class DetectedSpecialist(BaseModel):
    """A specialist identified in a specific piece of text."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Specialist identity")
    priority: int = Field(..., description="Credibility rank (lower wins)")
    weight: int = Field(..., description="Secondary score")
    matched_text: str = Field(..., description="Surface form that matched")


class Vocabulary(BaseModel):
    """
    Immutable vocabulary table passed explicitly through the pipeline.

    Holds the clinical terms, the specialist hierarchy (in precedence
    order) and the cue lists used for negation, uncertainty and presence
    classification. Replacing a vocabulary means building a new one.
    """
    model_config = ConfigDict(frozen=True)

    version: str = Field(default="builtin", description="Table version label")
    terms: tuple[ClinicalTerm, ...] = Field(..., description="Clinical terms in table order")
    specialists: tuple[Specialist, ...] = Field(
        ..., description="Specialists, most credible first"
    )
    negation_cues: tuple[str, ...] = Field(default=(), description="Negation cues")
    uncertainty_cues: tuple[str, ...] = Field(default=(), description="Uncertainty cues")
    presence_cues: tuple[str, ...] = Field(default=(), description="Explicit presence cues")
    compound_negation_prefixes: tuple[str, ...] = Field(
        default=(), description="Prefixes that negate an abutting word (e.g., 'non')"
    )
    negated_compound_terms: tuple[str, ...] = Field(
        default=(), description="Surface forms that are negations by themselves"
    )

    @field_validator(
        "negation_cues",
        "uncertainty_cues",
        "presence_cues",
        "compound_negation_prefixes",
        "negated_compound_terms",
        mode="before",
    )
    @classmethod
    def lowercase_cues(cls, v):
        return _normalize_variants(v)

    @model_validator(mode="after")
    def validate_unique_identities(self) -> "Vocabulary":
        term_names = [t.term for t in self.terms]
        duplicates = {name for name in term_names if term_names.count(name) > 1}
        if duplicates:
            raise ValueError(f"Duplicate clinical term identities: {sorted(duplicates)}")
        specialist_names = [s.name for s in self.specialists]
        duplicates = {name for name in specialist_names if specialist_names.count(name) > 1}
        if duplicates:
            raise ValueError(f"Duplicate specialist identities: {sorted(duplicates)}")
        return self

    @classmethod
    def from_json(cls, data: str | bytes | dict) -> "Vocabulary":
        """Build a vocabulary from a JSON document or an already-parsed dict."""
        if isinstance(data, dict):
            return cls.model_validate(data)
        return cls.model_validate_json(data)

    def to_json_dict(self) -> dict:
        """Export in the format accepted by ``from_json``."""
        return self.model_dump(mode="json")

    def terms_in(self, category: TermCategory) -> tuple[ClinicalTerm, ...]:
        """Terms belonging to one category, in table order."""
        return tuple(t for t in self.terms if t.category == category)

    def get_term(self, name: str) -> ClinicalTerm | None:
        for term in self.terms:
            if term.term == name:
                return term
        return None


# ============================================================================
# Sections and Findings
# ============================================================================

class NoteSection(BaseModel):
    """One delimited span of the note blob with its provenance."""
    model_config = ConfigDict(frozen=True)

    index: int = Field(..., ge=0, description="Position of the section in the note")
    text: str = Field(..., description="Verbatim section text")
    specialist: DetectedSpecialist | None = Field(default=None, description="Author specialty")
    provider_name: str | None = Field(default=None, description="First provider name found")
    date: dt.date | None = Field(default=None, description="Most credible visit date")
    date_string: str | None = Field(default=None, description="Date as written in the note")


class DetectedFinding(BaseModel):
    """
    A single occurrence of a clinical term in a section.

    ``is_present`` is only ever true for explicitly confirmed occurrences
    that are neither negated nor uncertain; construction fails otherwise.
    """
    model_config = ConfigDict(frozen=True)

    term: ClinicalTerm = Field(..., description="Vocabulary term matched")
    section_index: int = Field(..., ge=0, description="Index of the source section")
    start: int = Field(..., ge=0, description="Match offset within the section text")
    matched_text: str = Field(..., description="Exact matched substring")
    is_present: bool = Field(..., description="Confirmed present")
    is_negated: bool = Field(..., description="Negated in context")
    is_uncertain: bool = Field(..., description="Hedged in context")
    is_explicitly_confirmed: bool = Field(..., description="Presence cue matched")
    context: str = Field(..., description="Surrounding text snippet")
    specialist: DetectedSpecialist | None = Field(default=None, description="Section author")
    provider_name: str | None = Field(default=None, description="Section provider")
    date: dt.date | None = Field(default=None, description="Section visit date")
    date_string: str | None = Field(default=None, description="Section date as written")
    confidence: float = Field(..., ge=0.0, le=1.0, description="Advisory confidence")

    @model_validator(mode="after")
    def validate_presence(self) -> "DetectedFinding":
        if self.is_present and (
            not self.is_explicitly_confirmed or self.is_negated or self.is_uncertain
        ):
            raise ValueError(
                "A finding can only be present when explicitly confirmed, "
                "not negated and not uncertain"
            )
        return self

    @property
    def is_confirmed(self) -> bool:
        return self.is_present and self.is_explicitly_confirmed

    @property
    def specialty(self) -> str:
        return self.specialist.name if self.specialist else "Unknown"


# ============================================================================
# Conflicts and Result
# ============================================================================

class ConflictSource(BaseModel):
    """One side of a conflicting statement."""
    specialty: str = Field(..., description="Specialty that made the statement")
    assessment: str = Field(..., description="'Present' or 'Absent/Denied'")
    date: str | None = Field(default=None, description="Date as written in the note")


class ConflictRecord(BaseModel):
    """Contradictory statements about one term that could not be resolved."""
    finding: str = Field(..., description="Term identity")
    sources: list[ConflictSource] = Field(..., min_length=2, description="Competing statements")


class Citation(BaseModel):
    """Provenance of a confirmed finding."""
    finding: str = Field(..., description="Term identity")
    specialty: str = Field(..., description="Specialty of the source note")
    provider: str | None = Field(default=None, description="Provider name")
    date: str | None = Field(default=None, description="Date as written in the note")
    priority: int = Field(..., description="Specialist priority of the source")


class ExtractedPatientInfo(BaseModel):
    """Identifiers lifted from the notes to pre-fill upstream records."""
    mrn: str | None = Field(default=None, description="Medical record number")
    ordering_provider: str | None = Field(default=None, description="Ordering/attesting provider")
    all_providers: list[str] = Field(default_factory=list, description="All provider names")


class QualificationResult(BaseModel):
    """
    Structured outcome of an analysis.

    This is the only artifact handed to collaborators. It is derived from
    the input text (and the caller's as-of date) alone.
    """
    status: QualificationStatus = Field(..., description="Qualification status")
    primary_indication: str | None = Field(
        default=None, description="Highest-weight confirmed finding"
    )
    supporting_findings: list[str] = Field(
        default_factory=list, description="Confirmed finding identities, deduplicated"
    )
    citations: list[Citation] = Field(
        default_factory=list, description="One citation per confirmed finding"
    )
    conflicts: list[ConflictRecord] = Field(
        default_factory=list, description="Unresolved contradictions"
    )
    confidence: ConfidenceLevel = Field(..., description="Confidence level")
    insufficient_reason: str | None = Field(
        default=None, description="Explanation when information is insufficient"
    )
    extracted_info: ExtractedPatientInfo = Field(
        default_factory=ExtractedPatientInfo, description="MRN and provider names"
    )
    all_findings: list[DetectedFinding] = Field(
        default_factory=list, description="Every detected occurrence, in scan order"
    )

    def format_citations(self) -> str:
        """Render citations as a single human-readable line."""
        parts = []
        for citation in self.citations:
            text = f"{citation.finding} from {citation.specialty}"
            if citation.provider:
                text += f" with Dr. {citation.provider}"
            if citation.date:
                text += f" on {citation.date}"
            parts.append(text)
        return "; ".join(parts)
