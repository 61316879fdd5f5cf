"""Per-session duplicate suppression for candidate notes."""

import logging
from typing import Iterable, List, Set

from .similarity import (
    EDIT_DISTANCE_THRESHOLD,
    WORD_OVERLAP_THRESHOLD,
    is_similar_to_existing,
    word_overlap_similarity,
)

logger = logging.getLogger(__name__)


class Deduplicator:
    """Registry of notes accepted in the current session.

    Three gates are offered:
      1. exact repeat of an accepted note (checked before scoring)
      2. near duplicate by word overlap against accepted notes
      3. near duplicate by edit distance against an externally supplied
         set of note contents (what the user can currently see)
    """

    def __init__(self,
                 overlap_threshold: float = WORD_OVERLAP_THRESHOLD,
                 edit_threshold: float = EDIT_DISTANCE_THRESHOLD):
        self.overlap_threshold = overlap_threshold
        self.edit_threshold = edit_threshold
        self._exact: Set[str] = set()
        self._accepted: List[str] = []

    def reset(self) -> None:
        """Forget everything; called on session start."""
        self._exact.clear()
        self._accepted.clear()

    @staticmethod
    def _key(text: str) -> str:
        return (text or "").strip()

    def is_exact_repeat(self, text: str) -> bool:
        return self._key(text) in self._exact

    def is_near_duplicate(self, text: str) -> bool:
        """True if text overlaps an accepted note by more than the threshold."""
        candidate = self._key(text)
        for accepted in self._accepted:
            similarity = word_overlap_similarity(candidate, accepted)
            if similarity > self.overlap_threshold:
                logger.debug(f"Word overlap {similarity:.2f} with '{accepted[:40]}'")
                return True
        return False

    def is_similar_to_existing(self, text: str, existing: Iterable[str]) -> bool:
        return is_similar_to_existing(text, existing, self.edit_threshold)

    def register(self, text: str) -> None:
        key = self._key(text)
        if key and key not in self._exact:
            self._exact.add(key)
            self._accepted.append(key)

    @property
    def accepted(self) -> List[str]:
        return list(self._accepted)

    def __len__(self) -> int:
        return len(self._accepted)
