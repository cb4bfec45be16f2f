"""
Re-entrant phrase scanning helpers.

All matching here is deterministic literal matching with word-boundary
guards. Scanners are generators over fresh ``finditer`` calls, so there is
no shared cursor between invocations and sections can be scanned from
several threads at once.
"""

import re
from functools import lru_cache
from typing import Iterator

# Tokens that end the scope of a preceding cue
SENTENCE_BREAKS = (".", "\n", ";", " but ", " however ")


@lru_cache(maxsize=4096)
def phrase_pattern(phrase: str) -> re.Pattern:
    """
    Compile a literal phrase with word-boundary guards.

    Guards are only added on sides that end in a word character, so cues
    such as "?" or "r/o" still match where they appear.
    """
    escaped = re.escape(phrase)
    prefix = r"(?<!\w)" if phrase[:1].isalnum() or phrase[:1] == "_" else ""
    suffix = r"(?!\w)" if phrase[-1:].isalnum() or phrase[-1:] == "_" else ""
    return re.compile(f"{prefix}{escaped}{suffix}")


def scan_phrase(
    text: str,
    phrase: str,
    start: int = 0,
    end: int | None = None,
) -> Iterator[tuple[int, str]]:
    """Yield (position, matched text) for each occurrence of phrase in text[start:end]."""
    if not phrase:
        return
    end = len(text) if end is None else end
    for match in phrase_pattern(phrase).finditer(text, max(0, start), end):
        yield match.start(), match.group(0)


def first_phrase_match(text: str, phrase: str) -> tuple[int, str] | None:
    return next(scan_phrase(text, phrase), None)


def last_phrase_match(
    text: str,
    phrase: str,
    start: int = 0,
    end: int | None = None,
) -> tuple[int, str] | None:
    """Last occurrence of phrase within text[start:end], or None."""
    last = None
    for occurrence in scan_phrase(text, phrase, start, end):
        last = occurrence
    return last


def has_sentence_break(segment: str) -> bool:
    return any(token in segment for token in SENTENCE_BREAKS)


def fold_case(text: str) -> str:
    """
    Lowercase text without changing its length.

    Characters whose lowercase form is longer than one code point (such as
    "İ") are kept as they are, so offsets into the result index the original.
    """
    lowered = text.lower()
    if len(lowered) == len(text):
        return lowered
    return "".join(c.lower() if len(c.lower()) == 1 else c for c in text)
