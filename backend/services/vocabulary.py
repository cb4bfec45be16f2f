"""
Vocabulary Store.

Builds the immutable vocabulary table from the built-in clinical terms and
specialist hierarchy, or loads a replacement from JSON. The process-wide
table is only ever replaced as a whole (``swap_vocabulary``); an analysis
that has already taken a reference keeps scanning the table it started with.
"""

import json
import threading
from pathlib import Path

from pydantic import ValidationError

from config.engine_config import get_engine_settings
from config.logging_config import get_logger
from models.analysis_models import Vocabulary
from services import clinical_terms
from services.specialist_hierarchy import SPECIALIST_HIERARCHY

logger = get_logger(__name__)

BUILTIN_VERSION = "builtin-1"


class VocabularyError(ValueError):
    """Raised when a vocabulary table cannot be loaded or is invalid."""


def build_default_vocabulary() -> Vocabulary:
    """Assemble the built-in vocabulary table."""
    return Vocabulary(
        version=BUILTIN_VERSION,
        terms=clinical_terms.ALL_CLINICAL_TERMS,
        specialists=SPECIALIST_HIERARCHY,
        negation_cues=clinical_terms.NEGATION_PATTERNS,
        uncertainty_cues=clinical_terms.UNCERTAIN_PATTERNS,
        presence_cues=clinical_terms.PRESENCE_PATTERNS,
        compound_negation_prefixes=clinical_terms.COMPOUND_NEGATION_PREFIXES,
        negated_compound_terms=clinical_terms.NEGATED_COMPOUND_TERMS,
    )


def load_vocabulary(path: str | Path) -> Vocabulary:
    """
    Load a vocabulary table from a JSON file.

    The document uses the same field names as ``Vocabulary``.

    Raises:
        VocabularyError: If the file is missing, not JSON, or fails validation.
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise VocabularyError(f"Cannot read vocabulary file {path}: {e}") from e

    if not isinstance(data, dict):
        raise VocabularyError(f"Vocabulary file {path} must contain a JSON object")

    try:
        vocabulary = Vocabulary.from_json(data)
    except ValidationError as e:
        raise VocabularyError(f"Invalid vocabulary in {path}: {e}") from e

    logger.info(
        "Loaded vocabulary from file",
        path=str(path),
        version=vocabulary.version,
        term_count=len(vocabulary.terms),
        specialist_count=len(vocabulary.specialists),
    )
    return vocabulary


# Process-wide table, replaced only by whole-object swap
_vocabulary: Vocabulary | None = None
_swap_lock = threading.Lock()


def get_vocabulary() -> Vocabulary:
    """Get the process-wide vocabulary, loading it on first use."""
    global _vocabulary
    if _vocabulary is None:
        with _swap_lock:
            if _vocabulary is None:
                settings = get_engine_settings()
                if settings.vocabulary_path:
                    _vocabulary = load_vocabulary(settings.vocabulary_path)
                else:
                    _vocabulary = build_default_vocabulary()
                    logger.info(
                        "Built default vocabulary",
                        version=_vocabulary.version,
                        term_count=len(_vocabulary.terms),
                        specialist_count=len(_vocabulary.specialists),
                    )
    return _vocabulary


def swap_vocabulary(vocabulary: Vocabulary | None) -> Vocabulary | None:
    """
    Atomically replace the process-wide vocabulary.

    Passing None resets to lazy loading. Returns the previous table.
    """
    global _vocabulary
    with _swap_lock:
        previous = _vocabulary
        _vocabulary = vocabulary
    logger.info(
        "Vocabulary swapped",
        previous_version=previous.version if previous else None,
        version=vocabulary.version if vocabulary else None,
    )
    return previous
