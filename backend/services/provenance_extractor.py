"""
Provenance extraction for clinical notes.

CRITICAL: All extraction is DETERMINISTIC (regex/pattern matching), NOT LLM-based.

This module extracts:
- Medical record number (from the full note text)
- Ordering/attesting provider (attestation, then order labels, then any name)
- Provider names (label, signature, credential and "Dr." patterns)
- Visit dates (labeled dates ranked above bare dates, most recent first)
- Authoring specialist (via the specialist hierarchy)

Candidates that cannot be parsed are skipped, never raised.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime

from models.analysis_models import DetectedSpecialist, ExtractedPatientInfo, Vocabulary
from services.specialist_hierarchy import detect_specialist


# Person name: capitalised first name with optional capitalised last name.
# Names and credentials stay case-sensitive inside case-insensitive patterns.
_NAME = r"(?-i:([A-Z][a-z]+(?: [A-Z][a-z]+)?))"
_CREDENTIALS = r"(?-i:(?:MD|DO|NP|PA|ARNP|APRN)\b)"
_PHYSICIAN_CREDENTIALS = r"(?-i:(?:MD|DO)\b)"
_DR = r"(?:Dr\.?\s*)?"

ATTESTATION_PATTERNS = (
    re.compile(rf"Provider\s+Attestation:\s*I,\s*{_NAME},?\s*{_CREDENTIALS}", re.IGNORECASE),
    re.compile(rf"presence\s+of\s+{_NAME},?\s*{_PHYSICIAN_CREDENTIALS}", re.IGNORECASE),
    re.compile(
        rf"direction\s+(?:of|and\s+in\s+the\s+presence\s+of)\s+{_NAME},?\s*{_PHYSICIAN_CREDENTIALS}",
        re.IGNORECASE,
    ),
)

ORDERING_PATTERNS = (
    re.compile(rf"Ordering\s+(?:Provider|Physician):\s*{_DR}{_NAME}", re.IGNORECASE),
    re.compile(rf"(?:Referred\s+by|Referral\s+from):\s*{_DR}{_NAME}", re.IGNORECASE),
)

# Ordered by specificity (most specific first)
PROVIDER_PATTERNS = ATTESTATION_PATTERNS + ORDERING_PATTERNS + (
    re.compile(
        rf"(?:Attending|Consultant|Primary\s+(?:Care\s+)?Physician):\s*{_DR}{_NAME}",
        re.IGNORECASE,
    ),
    re.compile(
        rf"(?:Electronically\s+signed|Authenticated|Signed)\s+(?:by\s+)?{_DR}{_NAME}",
        re.IGNORECASE,
    ),
    # Name followed by credentials
    re.compile(rf"(?:^|(?<=[\s,])){_NAME},?\s*{_CREDENTIALS}", re.IGNORECASE | re.MULTILINE),
    re.compile(rf"(?:Dr\.?|Doctor)\s+{_NAME}"),
)

MRN_PATTERNS = (
    re.compile(
        r"(?:MRN|Medical\s+Record\s+(?:Number|No\.?|#))[\s:#.]+(?=[A-Z0-9-]*\d)([A-Z0-9][A-Z0-9-]*)",
        re.IGNORECASE,
    ),
    re.compile(
        r"Patient\s+(?:ID|Identifier|Number)[\s:#.]+(?=[A-Z0-9-]*\d)([A-Z0-9][A-Z0-9-]*)",
        re.IGNORECASE,
    ),
    re.compile(
        r"Chart\s+(?:Number|No\.?|#)[\s:#.]+(?=[A-Z0-9-]*\d)([A-Z0-9][A-Z0-9-]*)",
        re.IGNORECASE,
    ),
    re.compile(
        r"Account\s+(?:Number|No\.?|#)[\s:#.]+(?=[A-Z0-9-]*\d)([A-Z0-9][A-Z0-9-]*)",
        re.IGNORECASE,
    ),
)

_SLASH_DATE = r"\d{1,2}/\d{1,2}/\d{2,4}"
_DASH_DATE = r"\d{1,2}-\d{1,2}-\d{2,4}"
_ISO_DATE = r"\d{4}-\d{2}-\d{2}"
_MONTHS = (
    r"January|February|March|April|May|June|July|August|September|October|November|December"
)
_MONTH_ABBREVIATIONS = r"Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sept|Sep|Oct|Nov|Dec"

# Explicitly labeled dates take priority over bare dates
LABELED_DATE_PATTERNS = (
    re.compile(
        r"\b(?:Date\s+of\s+Service|Service\s+Date|Visit\s*Date|Encounter\s+Date|Exam\s+Date"
        r"|Appointment|Appt|DOS|Visit|Date)[\s:]+"
        rf"({_ISO_DATE}|{_SLASH_DATE}|{_DASH_DATE})\b",
        re.IGNORECASE,
    ),
)

DATE_PATTERNS = (
    re.compile(rf"\b{_SLASH_DATE}\b"),
    re.compile(rf"\b{_DASH_DATE}\b"),
    re.compile(rf"\b{_ISO_DATE}\b"),
    re.compile(rf"\b(?:{_MONTHS})\s+\d{{1,2}},?\s+\d{{4}}\b", re.IGNORECASE),
    re.compile(rf"\b(?:{_MONTH_ABBREVIATIONS})\.?\s+\d{{1,2}},?\s+\d{{4}}\b", re.IGNORECASE),
    re.compile(rf"\b\d{{1,2}}\s+(?:{_MONTHS})\s+\d{{4}}\b", re.IGNORECASE),
)

_FALLBACK_DATE_FORMATS = (
    "%m-%d-%Y",
    "%m-%d-%y",
    "%B %d %Y",
    "%b %d %Y",
    "%d %B %Y",
)

DEPARTMENT_KEYWORDS = (
    "ambulatory", "department", "clinic", "center", "unit", "hospital",
    "medical", "health", "care", "services", "surgery", "cardiology",
    "emergency", "inpatient", "outpatient", "lab", "laboratory",
)


@dataclass(frozen=True)
class DateCandidate:
    """A parsed date with its original text and whether it was labeled."""
    date: date
    date_string: str
    is_labeled: bool


def parse_date(date_string: str) -> date | None:
    """
    Parse a date as written in a note.

    Supports MM/DD/YY[YY], YYYY-MM-DD and a fallback over dash and
    month-name forms. Returns None for anything that does not parse.
    """
    cleaned = date_string.strip()

    slash_match = re.fullmatch(r"(\d{1,2})/(\d{1,2})/(\d{2,4})", cleaned)
    if slash_match:
        month, day, year = (int(part) for part in slash_match.groups())
        if year < 100:
            year += 2000
        try:
            return date(year, month, day)
        except ValueError:
            return None

    iso_match = re.fullmatch(r"(\d{4})-(\d{2})-(\d{2})", cleaned)
    if iso_match:
        try:
            return date(*(int(part) for part in iso_match.groups()))
        except ValueError:
            return None

    normalized = re.sub(r"[.,]", " ", cleaned)
    normalized = re.sub(r"\s+", " ", normalized).strip()
    normalized = re.sub(r"(?i)\bsept\b", "Sep", normalized)
    for fmt in _FALLBACK_DATE_FORMATS:
        try:
            return datetime.strptime(normalized, fmt).date()
        except ValueError:
            continue

    return None


def extract_dates(text: str) -> list[DateCandidate]:
    """
    Extract dates from text.

    Deduplicates by literal string, then sorts labeled dates before bare
    ones and, within each tier, most recent first.
    """
    candidates: list[DateCandidate] = []
    seen: set[str] = set()

    def _collect(matches, is_labeled: bool) -> None:
        for date_string in matches:
            if date_string in seen:
                continue
            parsed = parse_date(date_string)
            if parsed is None:
                continue
            seen.add(date_string)
            candidates.append(DateCandidate(parsed, date_string, is_labeled))

    for pattern in LABELED_DATE_PATTERNS:
        _collect((m.group(1) for m in pattern.finditer(text)), is_labeled=True)

    for pattern in DATE_PATTERNS:
        _collect((m.group(0) for m in pattern.finditer(text)), is_labeled=False)

    candidates.sort(key=lambda c: (not c.is_labeled, -c.date.toordinal()))
    return candidates


def is_department_name(name: str) -> bool:
    """Check if a captured name is really a department or location."""
    lower_name = name.lower()
    return any(keyword in lower_name for keyword in DEPARTMENT_KEYWORDS)


def is_proper_name(name: str) -> bool:
    """Check if a string looks like a person's name."""
    if len(name) < 2 or not name[0].isupper():
        return False
    # Acronyms and shouted department labels
    if name.isupper():
        return False
    if is_department_name(name):
        return False
    return True


def extract_provider_names(text: str) -> list[str]:
    """All accepted provider names, deduplicated in first-seen order."""
    providers: list[str] = []

    for pattern in PROVIDER_PATTERNS:
        for match in pattern.finditer(text):
            name = match.group(1).strip()
            if is_proper_name(name) and name not in providers:
                providers.append(name)

    return providers


def extract_mrn(text: str) -> str | None:
    """First labeled medical record number, by label priority."""
    for pattern in MRN_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(1).strip()
    return None


def extract_ordering_provider(text: str) -> str | None:
    """
    Extract the most authoritative provider name.

    Tries attestation statements, then ordering/referral labels, then the
    first name found by the general provider scan.
    """
    for pattern in ATTESTATION_PATTERNS + ORDERING_PATTERNS:
        for match in pattern.finditer(text):
            name = match.group(1).strip()
            if is_proper_name(name):
                return name

    providers = extract_provider_names(text)
    return providers[0] if providers else None


def extract_patient_info(text: str) -> ExtractedPatientInfo:
    """Extract identifiers from the full note text for upstream pre-fill."""
    return ExtractedPatientInfo(
        mrn=extract_mrn(text),
        ordering_provider=extract_ordering_provider(text),
        all_providers=extract_provider_names(text),
    )


@dataclass(frozen=True)
class SectionProvenance:
    """Who wrote a section and when."""
    specialist: DetectedSpecialist | None
    provider_name: str | None
    date: date | None
    date_string: str | None


class ProvenanceExtractor:
    """Per-section provenance detection against a fixed vocabulary."""

    def __init__(self, vocabulary: Vocabulary):
        self.vocabulary = vocabulary

    def extract(self, section_text: str) -> SectionProvenance:
        specialist = detect_specialist(section_text, self.vocabulary)
        dates = extract_dates(section_text)
        providers = extract_provider_names(section_text)

        top_date = dates[0] if dates else None
        return SectionProvenance(
            specialist=specialist,
            provider_name=providers[0] if providers else None,
            date=top_date.date if top_date else None,
            date_string=top_date.date_string if top_date else None,
        )
