"""
Run vetting policy for asciify.

Decides whether a closed run is reported: long enough, readable enough,
not suppressed, and (when an include list is given) containing an
included term.
"""

from pathlib import Path
from typing import AbstractSet, FrozenSet, Iterable, Optional

# Space, comma, period, CR, LF, digits and ASCII letters. Excludes math,
# parens, and the rest of the punctuation.
READABLE_CHARS = frozenset(
    " ,.\r\n"
    "0123456789"
    "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
    "abcdefghijklmnopqrstuvwxyz"
)


def readable_percent(text: str) -> int:
    """Return the truncated percentage of readable characters in *text*."""
    if not text:
        return 0
    count = sum(1 for ch in text if ch in READABLE_CHARS)
    return count * 100 // len(text)


def passes_structure(text: str, min_length: int, min_alpha_ratio_percent: int) -> bool:
    """Apply the length and readability checks only."""
    if len(text) < min_length:
        return False
    if min_alpha_ratio_percent > 0:
        if readable_percent(text) < min_alpha_ratio_percent:
            return False
    return True


def vet(
    text: str,
    min_length: int,
    min_alpha_ratio_percent: int,
    suppress_set: AbstractSet[str],
    include_set: AbstractSet[str],
) -> bool:
    """
    Decide whether a closed run should be reported.

    Cheap structural checks run first. Suppression is evaluated before
    inclusion, so an exactly suppressed string is dropped even when it
    also matches an include term.

    Args:
        text: Run text.
        min_length: Minimum character count.
        min_alpha_ratio_percent: Required readable percentage, 0 disables.
        suppress_set: Lower-cased terms rejected on exact match.
        include_set: Lower-cased terms; when non-empty, the text must
            contain at least one of them.

    Returns:
        True if the run is accepted.
    """
    if not passes_structure(text, min_length, min_alpha_ratio_percent):
        return False

    lowered = text.lower()
    if lowered in suppress_set:
        return False

    if include_set:
        return any(term in lowered for term in include_set)

    return True


def normalize_terms(terms: Optional[Iterable[str]]) -> FrozenSet[str]:
    """Lower-case terms for case-insensitive matching, dropping empty ones."""
    if not terms:
        return frozenset()
    return frozenset(t.lower() for t in terms if t)


def load_terms(
    strings: Optional[Iterable[str]] = None,
    file_path: Optional[Path] = None,
) -> FrozenSet[str]:
    """
    Load filter terms from strings and/or a file.

    Args:
        strings: Terms given directly (e.g. repeated command-line values).
        file_path: UTF-8 file with one term per line. Blank lines and lines
                   starting with '#' are skipped.

    Returns:
        Lower-cased term set.
    """
    terms = []

    if strings:
        for s in strings:
            if s and s.strip():
                terms.append(s.strip())

    if file_path:
        if not file_path.exists():
            raise FileNotFoundError(f"Term file not found: {file_path}")

        with open(file_path, "r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith("#"):
                    continue
                terms.append(line)

    return normalize_terms(terms)
