"""
Qualification Service.

Runs the deterministic analysis pipeline and, when enabled, the external
reviewer. The reviewer's decision supersedes the engine's; any reviewer
failure falls back to the engine result with a caller-visible warning.
"""

from datetime import date, datetime

from config.config import Settings, get_settings
from config.engine_config import EngineSettings, get_engine_settings
from config.logging_config import analysis_context, get_logger
from models.analysis_models import QualificationResult, QualificationStatus, Vocabulary
from models.reviewer_models import AnalysisSource, ReviewedAnalysis, ReviewerResult
from services.analysis_pipeline import AnalysisPipeline
from services.llm_reviewer import LLMReviewer, ReviewerError, get_llm_reviewer
from services.vocabulary import get_vocabulary

logger = get_logger(__name__)


class QualificationService:
    """Combines the rule engine baseline with the optional reviewer."""

    def __init__(
        self,
        settings: Settings | None = None,
        engine_settings: EngineSettings | None = None,
        reviewer: LLMReviewer | None = None,
    ):
        self.settings = settings or get_settings()
        self.engine_settings = engine_settings or get_engine_settings()
        self._reviewer = reviewer

    @property
    def reviewer(self) -> LLMReviewer:
        """Lazy load the reviewer so no client is built unless needed."""
        if self._reviewer is None:
            self._reviewer = get_llm_reviewer()
        return self._reviewer

    def merge(self, baseline: QualificationResult, review: ReviewerResult) -> QualificationResult:
        """
        Apply the reviewer's decision on top of the engine result.

        Citations, conflicts, extracted identifiers and the raw findings stay
        with the engine, since they are traceable to the note text.
        """
        supporting = list(dict.fromkeys(f.finding for f in review.confirmed_findings))
        insufficient = review.qualification_status == QualificationStatus.INSUFFICIENT_INFORMATION

        return baseline.model_copy(
            update={
                "status": review.qualification_status,
                "primary_indication": review.primary_indication,
                "confidence": review.confidence,
                "supporting_findings": supporting,
                "insufficient_reason": (
                    (review.qualification_reason or baseline.insufficient_reason)
                    if insufficient
                    else None
                ),
            }
        )

    async def analyze(
        self,
        notes: str,
        as_of: date | datetime | None = None,
        use_reviewer: bool | None = None,
    ) -> ReviewedAnalysis:
        """
        Analyze notes, optionally with the external reviewer.

        Args:
            notes: Concatenated clinical notes
            as_of: Reference date for recency comparisons
            use_reviewer: Override the configured reviewer switch
        """
        vocabulary = get_vocabulary()
        with analysis_context(vocabulary_version=vocabulary.version, notes_length=len(notes)):
            return await self._analyze(notes, vocabulary, as_of, use_reviewer)

    async def _analyze(
        self,
        notes: str,
        vocabulary: Vocabulary,
        as_of: date | datetime | None,
        use_reviewer: bool | None,
    ) -> ReviewedAnalysis:
        pipeline = AnalysisPipeline(vocabulary=vocabulary, settings=self.engine_settings)
        baseline = pipeline.analyze(notes, as_of=as_of)

        def engine_only(warnings: list[str] | None = None) -> ReviewedAnalysis:
            return ReviewedAnalysis(
                result=baseline,
                rule_engine_result=baseline,
                source=AnalysisSource.RULE_ENGINE,
                warnings=warnings or [],
            )

        wants_reviewer = self.settings.reviewer_enabled if use_reviewer is None else use_reviewer
        if not wants_reviewer or pipeline.is_too_brief(notes):
            return engine_only()

        if not self.settings.reviewer_configured:
            logger.warning("Reviewer requested but not configured")
            return engine_only(
                ["External reviewer is not configured; showing the rule engine result."]
            )

        try:
            review = await self.reviewer.review(notes)
        except ReviewerError as e:
            logger.warning("Reviewer failed, falling back to rule engine", error=str(e))
            return engine_only(
                [f"External reviewer failed ({e}); showing the rule engine result."]
            )

        warnings = list(review.warnings)
        if review.qualification_status != baseline.status:
            warnings.append(
                f"Reviewer status '{review.qualification_status.value}' differs from "
                f"rule engine status '{baseline.status.value}'."
            )

        logger.info(
            "Reviewed analysis",
            reviewer_status=review.qualification_status.value,
            engine_status=baseline.status.value,
        )
        return ReviewedAnalysis(
            result=self.merge(baseline, review),
            rule_engine_result=baseline,
            reviewer=review,
            source=AnalysisSource.REVIEWER,
            warnings=warnings,
        )


# Singleton instance
_service: QualificationService | None = None


def get_qualification_service() -> QualificationService:
    """Get or create the qualification service singleton."""
    global _service
    if _service is None:
        _service = QualificationService()
    return _service
