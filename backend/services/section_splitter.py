"""
Section Splitter for pasted clinical notes.

Divides a multi-visit note blob into ordered sections, each attributable
to one visit, and attaches per-section provenance.
"""

import re

from config.engine_config import EngineSettings, get_engine_settings
from config.logging_config import get_logger
from models.analysis_models import NoteSection, Vocabulary
from services.provenance_extractor import ProvenanceExtractor

logger = get_logger(__name__)


class SectionSplitter:
    """Splits note text on rule markers, visit headings and date-of-service labels."""

    # Horizontal rules of 3+ dashes or equals signs (removed)
    RULE_DELIMITER = re.compile(r"(?:^|\n)[ \t]*[-=]{3,}[ \t]*(?=\n|$)")

    # Visit headings at the start of a line (kept with the following section)
    HEADING_DELIMITER = re.compile(
        r"(?:^|\n)(?=[ \t]*(?:Progress Note|Note|Visit|Encounter|Consult|Assessment)[ \t]*:)",
        re.IGNORECASE,
    )

    # Date-of-service labels at the start of a line (kept with the following section)
    DATE_LABEL_DELIMITER = re.compile(
        r"(?:^|\n)(?=[ \t]*(?:Date of Service|DOS|Visit Date)[ \t]*:)",
        re.IGNORECASE,
    )

    DELIMITERS = (RULE_DELIMITER, HEADING_DELIMITER, DATE_LABEL_DELIMITER)

    def __init__(self, vocabulary: Vocabulary, settings: EngineSettings | None = None):
        self.settings = settings or get_engine_settings()
        self.vocabulary = vocabulary
        self.provenance = ProvenanceExtractor(vocabulary)

    def split_text(self, text: str) -> list[str]:
        """
        Split text into section spans.

        Each delimiter class is applied in turn to every section produced so
        far. A split is kept only if every resulting piece is longer than
        the minimum section length; otherwise the section stays whole.
        """
        sections = [text]

        for delimiter in self.DELIMITERS:
            refined: list[str] = []
            for section in sections:
                pieces = [p for p in delimiter.split(section) if p.strip()]
                if len(pieces) > 1 and all(
                    len(p.strip()) > self.settings.min_section_length for p in pieces
                ):
                    refined.extend(pieces)
                else:
                    refined.append(section)
            sections = refined

        return [s.strip() for s in sections if s.strip()]

    def split(self, text: str) -> list[NoteSection]:
        """Split text and run provenance extraction once per section."""
        sections = []

        for index, section_text in enumerate(self.split_text(text)):
            provenance = self.provenance.extract(section_text)
            sections.append(
                NoteSection(
                    index=index,
                    text=section_text,
                    specialist=provenance.specialist,
                    provider_name=provenance.provider_name,
                    date=provenance.date,
                    date_string=provenance.date_string,
                )
            )

        logger.info(
            "Split notes into sections",
            section_count=len(sections),
            specialists=[s.specialist.name if s.specialist else None for s in sections],
        )
        return sections
