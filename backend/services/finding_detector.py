"""
Finding Detector.

Scans note sections for vocabulary terms and classifies each occurrence as
present, negated, uncertain or merely mentioned.

An occurrence is only ever present when an explicit presence cue precedes it
in the same sentence and no negation or uncertainty cue applies.
"""

import re
from concurrent.futures import ThreadPoolExecutor

from config.engine_config import EngineSettings, get_engine_settings
from config.logging_config import get_logger
from models.analysis_models import DetectedFinding, NoteSection, Vocabulary
from services.text_scanner import fold_case, has_sentence_break, last_phrase_match, scan_phrase

logger = get_logger(__name__)

# "and" ending a clause, e.g. "denies chest pain and reports palpitations"
_TRAILING_AND = re.compile(r"(?<!\w)and$")


class FindingDetector:
    """Detects and classifies clinical term occurrences against a fixed vocabulary."""

    def __init__(self, vocabulary: Vocabulary, settings: EngineSettings | None = None):
        self.settings = settings or get_engine_settings()
        self.vocabulary = vocabulary
        self._prefix_patterns = tuple(
            re.compile(rf"(?<![a-z]){re.escape(prefix)}-?$")
            for prefix in vocabulary.compound_negation_prefixes
        )

    # -------------------------------------------------------------------------
    # Cue classification
    # -------------------------------------------------------------------------

    def _is_clause_initial(self, lower_text: str, position: int) -> bool:
        before = lower_text[max(0, position - 6):position].rstrip()
        return before.endswith(",") or _TRAILING_AND.search(before) is not None

    def _scope_closed(self, lower_text: str, start: int, end: int) -> bool:
        """True if a new clause opens with a presence cue between start and end."""
        for cue in self.vocabulary.presence_cues:
            for cue_position, _ in scan_phrase(lower_text, cue, start, end):
                if self._is_clause_initial(lower_text, cue_position):
                    return True
        return False

    def _has_negating_prefix(self, lower_text: str, position: int) -> bool:
        before = lower_text[max(0, position - self.settings.compound_prefix_window):position]
        return any(pattern.search(before) for pattern in self._prefix_patterns)

    def is_negated(self, lower_text: str, position: int, matched: str) -> bool:
        """
        Check whether an occurrence is negated.

        Negated when the matched form is itself a negated compound, when a
        negating prefix abuts it, or when a negation cue precedes it within
        the negation window in the same clause.
        """
        if matched in self.vocabulary.negated_compound_terms:
            return True

        if self._has_negating_prefix(lower_text, position):
            return True

        window_start = max(0, position - self.settings.negation_window)
        for cue in self.vocabulary.negation_cues:
            occurrence = last_phrase_match(lower_text, cue, window_start, position)
            if occurrence is None:
                continue
            cue_end = occurrence[0] + len(occurrence[1])
            if has_sentence_break(lower_text[cue_end:position]):
                continue
            if self._scope_closed(lower_text, cue_end, position):
                continue
            return True

        return False

    def is_uncertain(self, lower_text: str, position: int) -> bool:
        window_start = max(0, position - self.settings.uncertainty_window)
        return any(
            next(scan_phrase(lower_text, cue, window_start, position), None) is not None
            for cue in self.vocabulary.uncertainty_cues
        )

    def is_explicitly_confirmed(self, lower_text: str, position: int, uncertain: bool) -> bool:
        if uncertain:
            return False

        window_start = max(0, position - self.settings.presence_window)
        for cue in self.vocabulary.presence_cues:
            occurrence = last_phrase_match(lower_text, cue, window_start, position)
            if occurrence is None:
                continue
            cue_end = occurrence[0] + len(occurrence[1])
            if not has_sentence_break(lower_text[cue_end:position]):
                return True

        return False

    def score(self, section: NoteSection, present: bool, negated: bool, uncertain: bool) -> float:
        """Advisory confidence for one occurrence."""
        s = self.settings
        if present:
            confidence = s.confidence_present
        elif negated:
            confidence = s.confidence_negated
        elif uncertain:
            confidence = s.confidence_uncertain
        else:
            confidence = s.confidence_bare_mention

        if section.specialist:
            confidence += s.specialist_confidence_boost * (1 - section.specialist.priority / 5)

        return round(min(confidence, 1.0), 4)

    # -------------------------------------------------------------------------
    # Scanning
    # -------------------------------------------------------------------------

    def detect_in_section(self, section: NoteSection) -> list[DetectedFinding]:
        """
        Detect every term occurrence in one section.

        Findings are ordered by vocabulary table order, then variant order,
        then position. Overlapping variants of the same term are all kept.
        """
        text = section.text
        lower_text = fold_case(text)
        context_window = self.settings.context_window
        findings = []

        for term in self.vocabulary.terms:
            for variation in term.variations:
                for position, matched in scan_phrase(lower_text, variation):
                    negated = self.is_negated(lower_text, position, matched)
                    uncertain = self.is_uncertain(lower_text, position)
                    confirmed = self.is_explicitly_confirmed(lower_text, position, uncertain)
                    present = confirmed and not negated and not uncertain

                    end = position + len(matched)
                    findings.append(
                        DetectedFinding(
                            term=term,
                            section_index=section.index,
                            start=position,
                            matched_text=text[position:end],
                            is_present=present,
                            is_negated=negated,
                            is_uncertain=uncertain,
                            is_explicitly_confirmed=confirmed,
                            context=text[max(0, position - context_window):end + context_window],
                            specialist=section.specialist,
                            provider_name=section.provider_name,
                            date=section.date,
                            date_string=section.date_string,
                            confidence=self.score(section, present, negated, uncertain),
                        )
                    )

        return findings

    def detect(self, sections: list[NoteSection]) -> list[DetectedFinding]:
        """
        Detect findings across all sections.

        Sections are independent and may be scanned on worker threads; the
        result is always in section order, then vocabulary table order.
        """
        if self.settings.max_workers > 1 and len(sections) > 1:
            with ThreadPoolExecutor(max_workers=self.settings.max_workers) as executor:
                per_section = list(executor.map(self.detect_in_section, sections))
        else:
            per_section = [self.detect_in_section(section) for section in sections]

        findings = [finding for batch in per_section for finding in batch]

        logger.info(
            "Detected findings",
            section_count=len(sections),
            finding_count=len(findings),
            present_count=sum(1 for f in findings if f.is_present),
            negated_count=sum(1 for f in findings if f.is_negated),
            uncertain_count=sum(1 for f in findings if f.is_uncertain),
        )
        return findings
