"""
Qualification Decision Engine.

Applies the echocardiogram qualification rules to resolved findings as an
ordered guard chain. Only confirmed findings (present and explicitly
confirmed) count toward qualification; uncertain and negated findings are
used for messaging only.
"""

from dataclasses import dataclass

from config.engine_config import EngineSettings, get_engine_settings
from config.logging_config import get_logger
from models.analysis_models import (
    ConfidenceLevel,
    ConflictRecord,
    DetectedFinding,
    QualificationStatus,
    TermCategory,
    Vocabulary,
)

logger = get_logger(__name__)

UNCERTAIN_REASON = (
    "The notes mention possible or suspected conditions ({terms}) but do not "
    "explicitly confirm them. Qualification cannot be determined until they are confirmed."
)
NEGATED_ONLY_REASON = (
    "The notes only contain denied or negated findings. "
    "No positive cardiac indication is explicitly documented."
)
NO_EVIDENCE_REASON = (
    "The notes do not contain any explicitly confirmed cardiac evidence. "
    "Qualification cannot be determined without documented clinical findings."
)


@dataclass(frozen=True)
class QualificationDecision:
    """Status, headline indication and confidence for one analysis."""
    status: QualificationStatus
    primary_indication: str | None
    confidence: ConfidenceLevel
    insufficient_reason: str | None = None


class QualificationEngine:
    """Evaluates resolved findings against the qualification guard chain."""

    def __init__(self, vocabulary: Vocabulary, settings: EngineSettings | None = None):
        self.settings = settings or get_engine_settings()
        self.vocabulary = vocabulary
        self._table_order = {term.term: i for i, term in enumerate(vocabulary.terms)}

    def _insufficient(
        self,
        resolved: list[DetectedFinding],
        uncertain: list[DetectedFinding],
    ) -> QualificationDecision:
        if uncertain:
            names = list(dict.fromkeys(f.term.term for f in uncertain))
            reason = UNCERTAIN_REASON.format(terms=", ".join(names))
        elif resolved and all(f.is_negated for f in resolved):
            reason = NEGATED_ONLY_REASON
        else:
            reason = NO_EVIDENCE_REASON

        return QualificationDecision(
            status=QualificationStatus.INSUFFICIENT_INFORMATION,
            primary_indication=None,
            confidence=ConfidenceLevel.LOW,
            insufficient_reason=reason,
        )

    def primary_indication(self, confirmed: list[DetectedFinding]) -> str | None:
        """Highest-weight confirmed term; vocabulary table order breaks ties."""
        if not confirmed:
            return None
        best = min(
            confirmed,
            key=lambda f: (-f.term.weight, self._table_order.get(f.term.term, len(self._table_order))),
        )
        return best.term.term

    def decide(
        self,
        resolved: list[DetectedFinding],
        conflicts: list[ConflictRecord],
    ) -> QualificationDecision:
        confirmed = [f for f in resolved if f.is_present and f.is_explicitly_confirmed]
        uncertain = [f for f in resolved if f.is_uncertain and not f.is_negated]

        if not confirmed:
            decision = self._insufficient(resolved, uncertain)
            logger.info(
                "Qualification decided",
                status=decision.status.value,
                confidence=decision.confidence.value,
                uncertain_count=len(uncertain),
            )
            return decision

        def count(category: TermCategory) -> int:
            return sum(1 for f in confirmed if f.term.category == category)

        history_count = count(TermCategory.HISTORY)
        findings_count = count(TermCategory.FINDING)
        symptom_count = count(TermCategory.SYMPTOM)
        risk_factor_count = count(TermCategory.RISK_FACTOR)
        total_weight = sum(f.term.weight for f in confirmed)
        primary = self.primary_indication(confirmed)
        has_high_priority_source = any(
            f.specialist is not None
            and f.specialist.priority <= self.settings.high_priority_threshold
            for f in confirmed
        )
        has_conflicts = bool(conflicts)

        if has_high_priority_source and not has_conflicts:
            confidence = ConfidenceLevel.HIGH
        elif has_conflicts and not has_high_priority_source:
            confidence = ConfidenceLevel.LOW
        else:
            confidence = ConfidenceLevel.MEDIUM

        qualified = QualificationDecision(QualificationStatus.QUALIFIED, primary, confidence)
        review = QualificationDecision(
            QualificationStatus.REVIEW_NEEDED, primary, ConfidenceLevel.LOW
        )

        if history_count > 0 or findings_count > 0:
            decision = qualified
        elif symptom_count >= 2:
            decision = qualified
        elif symptom_count >= 1 and has_high_priority_source:
            decision = qualified
        elif risk_factor_count >= 3 and symptom_count >= 1:
            decision = qualified
        elif has_conflicts:
            decision = review
        elif symptom_count == 1:
            decision = review
        elif risk_factor_count >= 2 and total_weight >= 6:
            decision = review
        elif uncertain:
            decision = review
        else:
            decision = QualificationDecision(
                QualificationStatus.NOT_QUALIFIED, None, confidence
            )

        logger.info(
            "Qualification decided",
            status=decision.status.value,
            confidence=decision.confidence.value,
            primary_indication=decision.primary_indication,
            history_count=history_count,
            findings_count=findings_count,
            symptom_count=symptom_count,
            risk_factor_count=risk_factor_count,
            total_weight=total_weight,
            conflict_count=len(conflicts),
        )
        return decision
