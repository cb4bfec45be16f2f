"""
Analysis Pipeline for echocardiogram qualification.

Main orchestrator for the deterministic engine:
raw text -> sections -> (provenance, findings) -> resolved findings + conflicts
-> qualification result.

All decisions are deterministic - NO LLM involved. Given the same text, the
same vocabulary and the same as-of date, the result is identical.
"""

from datetime import date, datetime

from config.engine_config import EngineSettings, get_engine_settings
from config.logging_config import get_logger
from models.analysis_models import (
    Citation,
    ConfidenceLevel,
    DetectedFinding,
    ExtractedPatientInfo,
    QualificationResult,
    QualificationStatus,
    Vocabulary,
)
from services.conflict_resolver import ConflictResolver
from services.finding_detector import FindingDetector
from services.provenance_extractor import extract_patient_info
from services.qualification_engine import QualificationEngine
from services.section_splitter import SectionSplitter
from services.vocabulary import get_vocabulary

logger = get_logger(__name__)

TOO_BRIEF_REASON = (
    "The provided clinical notes are too brief to analyze. "
    "Please provide complete clinical documentation."
)


def too_brief_result() -> QualificationResult:
    """Result returned without running the pipeline for too-short input."""
    return QualificationResult(
        status=QualificationStatus.INSUFFICIENT_INFORMATION,
        confidence=ConfidenceLevel.LOW,
        insufficient_reason=TOO_BRIEF_REASON,
        extracted_info=ExtractedPatientInfo(),
    )


class AnalysisPipeline:
    """
    Runs the full analysis against one vocabulary.

    Components are built per vocabulary, so a swapped vocabulary never
    affects an analysis already in progress.
    """

    def __init__(
        self,
        vocabulary: Vocabulary | None = None,
        settings: EngineSettings | None = None,
    ):
        self.settings = settings or get_engine_settings()
        self.vocabulary = vocabulary or get_vocabulary()
        self.splitter = SectionSplitter(self.vocabulary, self.settings)
        self.detector = FindingDetector(self.vocabulary, self.settings)
        self.resolver = ConflictResolver(self.settings)
        self.engine = QualificationEngine(self.vocabulary, self.settings)

    def is_too_brief(self, text: str | None) -> bool:
        return not text or len(text.strip()) < self.settings.min_input_length

    def build_citations(self, confirmed: list[DetectedFinding]) -> list[Citation]:
        """One citation per finding, keeping the most credible source."""
        citations: dict[str, Citation] = {}

        for finding in confirmed:
            priority = (
                finding.specialist.priority
                if finding.specialist
                else self.settings.unknown_specialist_priority
            )
            existing = citations.get(finding.term.term)
            if existing is None or priority < existing.priority:
                citations[finding.term.term] = Citation(
                    finding=finding.term.term,
                    specialty=finding.specialty,
                    provider=finding.provider_name,
                    date=finding.date_string,
                    priority=priority,
                )

        return list(citations.values())

    def analyze(
        self,
        text: str,
        as_of: date | datetime | None = None,
    ) -> QualificationResult:
        """
        Analyze clinical notes.

        Args:
            text: Concatenated clinical notes
            as_of: Reference date for recency comparisons (defaults to today)

        Returns:
            QualificationResult with status, citations, conflicts and
            extracted identifiers
        """
        if self.is_too_brief(text):
            logger.info("Notes too brief to analyze", length=len(text.strip()) if text else 0)
            return too_brief_result()

        logger.info(
            "Analyzing notes",
            length=len(text),
            vocabulary_version=self.vocabulary.version,
            preview=text.strip()[:40],
        )

        extracted_info = extract_patient_info(text)
        sections = self.splitter.split(text)
        all_findings = self.detector.detect(sections)
        resolution = self.resolver.resolve(all_findings, as_of=as_of)
        decision = self.engine.decide(resolution.resolved, resolution.conflicts)

        confirmed = [
            f for f in resolution.resolved if f.is_present and f.is_explicitly_confirmed
        ]
        supporting_findings = list(dict.fromkeys(f.term.term for f in confirmed))

        return QualificationResult(
            status=decision.status,
            primary_indication=decision.primary_indication,
            supporting_findings=supporting_findings,
            citations=self.build_citations(confirmed),
            conflicts=resolution.conflicts,
            confidence=decision.confidence,
            insufficient_reason=decision.insufficient_reason,
            extracted_info=extracted_info,
            all_findings=all_findings,
        )


def analyze_notes(
    text: str,
    as_of: date | datetime | None = None,
    vocabulary: Vocabulary | None = None,
    settings: EngineSettings | None = None,
) -> QualificationResult:
    """
    Analyze clinical notes with the given (or process-wide) vocabulary.

    Convenience wrapper that takes one vocabulary reference for the whole call.
    """
    return AnalysisPipeline(vocabulary=vocabulary, settings=settings).analyze(text, as_of=as_of)
