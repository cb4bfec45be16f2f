"""
Unit Tests for the Qualification Decision Engine

Walks the guard chain rule by rule with hand-built findings.
"""

import pytest

from models.analysis_models import (
    ClinicalTerm,
    ConfidenceLevel,
    ConflictRecord,
    ConflictSource,
    QualificationStatus,
    TermCategory,
)
from services.qualification_engine import (
    NEGATED_ONLY_REASON,
    NO_EVIDENCE_REASON,
    QualificationEngine,
)
from conftest import make_finding, make_specialist


CARDIOLOGY = make_specialist("Cardiologist", 1)
PCP = make_specialist("Primary Care Physician", 3)


@pytest.fixture
def engine(vocabulary, engine_settings) -> QualificationEngine:
    return QualificationEngine(vocabulary, engine_settings)


@pytest.fixture
def term(vocabulary):
    return vocabulary.get_term


@pytest.fixture
def conflict() -> ConflictRecord:
    return ConflictRecord(
        finding="Congestive Heart Failure",
        sources=[
            ConflictSource(specialty="Cardiologist", assessment="Present", date="01/01/2024"),
            ConflictSource(specialty="Cardiologist", assessment="Absent/Denied"),
        ],
    )


class TestInsufficientInformation:
    """Tests for the zero-confirmed branch."""

    def test_uncertain_findings_are_named(self, engine, term):
        resolved = [
            make_finding(term("Myocardial Infarction"), uncertain=True),
            make_finding(term("Acute Coronary Syndrome"), uncertain=True),
        ]
        decision = engine.decide(resolved, [])

        assert decision.status == QualificationStatus.INSUFFICIENT_INFORMATION
        assert decision.confidence == ConfidenceLevel.LOW
        assert decision.primary_indication is None
        assert "Myocardial Infarction, Acute Coronary Syndrome" in decision.insufficient_reason

    def test_uncertain_check_precedes_negated_only(self, engine, term):
        resolved = [
            make_finding(term("Myocardial Infarction"), uncertain=True),
            make_finding(term("Chest Pain"), negated=True),
        ]
        decision = engine.decide(resolved, [])

        assert "Myocardial Infarction" in decision.insufficient_reason

    def test_negated_uncertain_is_not_reported_as_uncertain(self, engine, term):
        resolved = [make_finding(term("Chest Pain"), negated=True, uncertain=True)]
        decision = engine.decide(resolved, [])

        assert decision.insufficient_reason == NEGATED_ONLY_REASON

    def test_only_negated(self, engine, term):
        resolved = [
            make_finding(term("Chest Pain"), negated=True),
            make_finding(term("Smoking"), negated=True),
        ]
        decision = engine.decide(resolved, [])

        assert decision.insufficient_reason == NEGATED_ONLY_REASON

    def test_bare_mentions_only(self, engine, term):
        resolved = [
            make_finding(term("Chest Pain")),
            make_finding(term("Smoking"), negated=True),
        ]
        decision = engine.decide(resolved, [])

        assert decision.insufficient_reason == NO_EVIDENCE_REASON

    def test_nothing_detected(self, engine):
        decision = engine.decide([], [])

        assert decision.status == QualificationStatus.INSUFFICIENT_INFORMATION
        assert decision.insufficient_reason == NO_EVIDENCE_REASON


class TestQualified:
    """Tests for the qualifying guards."""

    def test_history_qualifies_with_high_confidence(self, engine, term):
        resolved = [make_finding(term("Congestive Heart Failure"), present=True, specialist=CARDIOLOGY)]
        decision = engine.decide(resolved, [])

        assert decision.status == QualificationStatus.QUALIFIED
        assert decision.confidence == ConfidenceLevel.HIGH
        assert decision.primary_indication == "Congestive Heart Failure"
        assert decision.insufficient_reason is None

    def test_finding_qualifies(self, engine, term):
        resolved = [make_finding(term("Abnormal EKG"), present=True, specialist=PCP)]
        decision = engine.decide(resolved, [])

        assert decision.status == QualificationStatus.QUALIFIED
        assert decision.confidence == ConfidenceLevel.MEDIUM

    def test_two_symptoms_qualify(self, engine, term):
        resolved = [
            make_finding(term("Chest Pain"), present=True),
            make_finding(term("Dyspnea"), present=True),
        ]
        decision = engine.decide(resolved, [])

        assert decision.status == QualificationStatus.QUALIFIED
        assert decision.confidence == ConfidenceLevel.MEDIUM

    def test_one_symptom_from_high_priority_source(self, engine, term):
        ed = make_specialist("Emergency Department", 2)
        resolved = [make_finding(term("Syncope"), present=True, specialist=ed)]
        decision = engine.decide(resolved, [])

        assert decision.status == QualificationStatus.QUALIFIED
        assert decision.confidence == ConfidenceLevel.HIGH

    def test_risk_factors_with_symptom(self, engine, term):
        resolved = [
            make_finding(term("Palpitations"), present=True, specialist=PCP),
            make_finding(term("Hypertension"), present=True, specialist=PCP),
            make_finding(term("Diabetes"), present=True, specialist=PCP),
            make_finding(term("Hyperlipidemia"), present=True, specialist=PCP),
        ]
        decision = engine.decide(resolved, [])

        assert decision.status == QualificationStatus.QUALIFIED
        assert decision.primary_indication == "Palpitations"

    def test_conflict_with_high_priority_source_is_medium(self, engine, term, conflict):
        resolved = [make_finding(term("Congestive Heart Failure"), present=True, specialist=CARDIOLOGY)]
        decision = engine.decide(resolved, [conflict])

        assert decision.status == QualificationStatus.QUALIFIED
        assert decision.confidence == ConfidenceLevel.MEDIUM

    def test_conflict_without_high_priority_source_is_low(self, engine, term, conflict):
        resolved = [make_finding(term("Congestive Heart Failure"), present=True, specialist=PCP)]
        decision = engine.decide(resolved, [conflict])

        assert decision.status == QualificationStatus.QUALIFIED
        assert decision.confidence == ConfidenceLevel.LOW

    def test_primary_indication_is_highest_weight(self, engine, term):
        resolved = [
            make_finding(term("Chest Pain"), present=True),
            make_finding(term("Elevated Troponin"), present=True),
            make_finding(term("Hypertension"), present=True),
        ]
        assert engine.decide(resolved, []).primary_indication == "Elevated Troponin"

    def test_primary_indication_tie_follows_table_order(self, engine, term):
        resolved = [
            make_finding(term("Dyspnea"), present=True),
            make_finding(term("Chest Pain"), present=True),
        ]
        assert engine.decide(resolved, []).primary_indication == "Chest Pain"


class TestReviewAndNotQualified:
    """Tests for the review and fall-through guards."""

    def test_single_low_priority_symptom_needs_review(self, engine, term):
        resolved = [make_finding(term("Palpitations"), present=True, specialist=PCP)]
        decision = engine.decide(resolved, [])

        assert decision.status == QualificationStatus.REVIEW_NEEDED
        assert decision.confidence == ConfidenceLevel.LOW
        assert decision.primary_indication == "Palpitations"

    def test_conflicts_need_review(self, engine, term, conflict):
        resolved = [make_finding(term("Hypertension"), present=True, specialist=PCP)]
        decision = engine.decide(resolved, [conflict])

        assert decision.status == QualificationStatus.REVIEW_NEEDED
        assert decision.confidence == ConfidenceLevel.LOW

    def test_weighty_risk_factors_need_review(self, engine):
        heavy = [
            ClinicalTerm(term=f"Risk {i}", category=TermCategory.RISK_FACTOR, variations=[f"risk {i}"], weight=3)
            for i in range(2)
        ]
        decision = engine.decide([make_finding(t, present=True) for t in heavy], [])

        assert decision.status == QualificationStatus.REVIEW_NEEDED
        assert decision.confidence == ConfidenceLevel.LOW

    def test_light_risk_factors_do_not_qualify(self, engine, term):
        resolved = [
            make_finding(term("Hypertension"), present=True, specialist=PCP),
            make_finding(term("Obesity"), present=True, specialist=PCP),
        ]
        decision = engine.decide(resolved, [])

        assert decision.status == QualificationStatus.NOT_QUALIFIED
        assert decision.primary_indication is None
        assert decision.confidence == ConfidenceLevel.MEDIUM

    def test_uncertain_alongside_confirmed_needs_review(self, engine, term):
        resolved = [
            make_finding(term("Hypertension"), present=True, specialist=PCP),
            make_finding(term("Myocardial Infarction"), uncertain=True),
        ]
        decision = engine.decide(resolved, [])

        assert decision.status == QualificationStatus.REVIEW_NEEDED
        assert decision.confidence == ConfidenceLevel.LOW

    def test_single_risk_factor_not_qualified(self, engine, term):
        resolved = [make_finding(term("Hypertension"), present=True, specialist=CARDIOLOGY)]
        decision = engine.decide(resolved, [])

        assert decision.status == QualificationStatus.NOT_QUALIFIED
        assert decision.primary_indication is None
        assert decision.confidence == ConfidenceLevel.HIGH
