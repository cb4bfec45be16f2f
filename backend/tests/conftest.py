"""
Pytest Configuration and Fixtures

Shared fixtures for the echocardiogram qualification engine tests.
"""

from datetime import date

import pytest

from config.engine_config import EngineSettings
from models.analysis_models import (
    ClinicalTerm,
    DetectedFinding,
    DetectedSpecialist,
    NoteSection,
    Specialist,
    TermCategory,
    Vocabulary,
)
from services.vocabulary import build_default_vocabulary, swap_vocabulary


@pytest.fixture
def engine_settings() -> EngineSettings:
    """Engine settings with built-in defaults."""
    return EngineSettings()


@pytest.fixture
def vocabulary() -> Vocabulary:
    """The built-in vocabulary."""
    return build_default_vocabulary()


@pytest.fixture
def fixture_vocabulary() -> Vocabulary:
    """A tiny vocabulary for injection tests."""
    return Vocabulary(
        version="fixture-1",
        terms=[
            ClinicalTerm(
                term="Widget Pain",
                category=TermCategory.SYMPTOM,
                variations=["widget pain", "widget ache"],
                weight=3,
            ),
            ClinicalTerm(
                term="Gadget Failure",
                category=TermCategory.HISTORY,
                variations=["gadget failure"],
                weight=5,
            ),
        ],
        specialists=[
            Specialist(name="Widgetologist", variations=["widget clinic"], priority=1, weight=10),
            Specialist(name="Generalist", variations=["general clinic"], priority=3, weight=5),
        ],
        negation_cues=["no", "denies"],
        uncertainty_cues=["possible"],
        presence_cues=["reports", "history of"],
    )


@pytest.fixture
def as_of() -> date:
    """Fixed reference date for recency comparisons."""
    return date(2024, 4, 1)


@pytest.fixture
def restore_vocabulary():
    """Restore the process-wide vocabulary after a test swaps it."""
    previous = swap_vocabulary(None)
    yield
    swap_vocabulary(previous)


def make_specialist(name: str = "Cardiologist", priority: int = 1, weight: int = 10) -> DetectedSpecialist:
    return DetectedSpecialist(name=name, priority=priority, weight=weight, matched_text=name.lower())


def make_finding(
    term: ClinicalTerm,
    *,
    present: bool = False,
    negated: bool = False,
    uncertain: bool = False,
    specialist: DetectedSpecialist | None = None,
    visit_date: date | None = None,
    section_index: int = 0,
) -> DetectedFinding:
    """Build a finding directly, bypassing text detection."""
    return DetectedFinding(
        term=term,
        section_index=section_index,
        start=0,
        matched_text=term.variations[0],
        is_present=present,
        is_negated=negated,
        is_uncertain=uncertain,
        is_explicitly_confirmed=present,
        context=term.variations[0],
        specialist=specialist,
        provider_name=None,
        date=visit_date,
        date_string=visit_date.strftime("%m/%d/%Y") if visit_date else None,
        confidence=0.9 if present else 0.3,
    )


def make_section(text: str, specialist: DetectedSpecialist | None = None, index: int = 0) -> NoteSection:
    return NoteSection(index=index, text=text, specialist=specialist)
