"""String similarity measures used by the duplicate gates.

Both measures lower-case and trim their inputs, return 1.0 for identical
non-empty strings and 0.0 when either side is empty.
"""

from collections import Counter
from typing import Iterable

WORD_OVERLAP_THRESHOLD = 0.85
EDIT_DISTANCE_THRESHOLD = 0.8


def _normalize(text: str) -> str:
    return (text or "").lower().strip()


def word_overlap_similarity(str1: str, str2: str) -> float:
    """Share of words two strings have in common.

    Shared words are counted as a multiset intersection and divided by the
    larger word count, so the measure is symmetric.
    """
    s1 = _normalize(str1)
    s2 = _normalize(str2)

    if not s1 or not s2:
        return 0.0
    if s1 == s2:
        return 1.0

    words1 = s1.split()
    words2 = s2.split()
    shared = sum((Counter(words1) & Counter(words2)).values())
    return shared / max(len(words1), len(words2))


def edit_distance(str1: str, str2: str) -> int:
    """Levenshtein distance between two strings."""
    if len(str1) < len(str2):
        str1, str2 = str2, str1

    previous = list(range(len(str2) + 1))
    for i, char1 in enumerate(str1, 1):
        current = [i]
        for j, char2 in enumerate(str2, 1):
            cost = 0 if char1 == char2 else 1
            current.append(min(
                previous[j] + 1,         # deletion
                current[j - 1] + 1,      # insertion
                previous[j - 1] + cost,  # substitution
            ))
        previous = current
    return previous[-1]


def edit_distance_similarity(str1: str, str2: str) -> float:
    """1 - edit distance / longer length, on normalized strings."""
    a = _normalize(str1)
    b = _normalize(str2)

    if not a or not b:
        return 0.0
    if a == b:
        return 1.0

    return 1.0 - edit_distance(a, b) / max(len(a), len(b))


def is_similar_to_existing(text: str, existing_texts: Iterable[str],
                           threshold: float = EDIT_DISTANCE_THRESHOLD) -> bool:
    """Check if text is similar to any of existing_texts by edit distance."""
    if not text or not text.strip():
        return False

    return any(edit_distance_similarity(text, existing) >= threshold
               for existing in existing_texts)
