"""Segment scoring, similarity and duplicate suppression."""

from .quality import (
    analyze_content_quality,
    count_words,
    NOTEWORTHY_THRESHOLD,
    NOTEWORTHY_OVERRIDE_SCORE,
)
from .similarity import (
    word_overlap_similarity,
    edit_distance,
    edit_distance_similarity,
    is_similar_to_existing,
)
from .dedup import Deduplicator
from .summarizer import ChatGPTNoteEngine, NoteSummarizer

__all__ = [
    "analyze_content_quality",
    "count_words",
    "NOTEWORTHY_THRESHOLD",
    "NOTEWORTHY_OVERRIDE_SCORE",
    "word_overlap_similarity",
    "edit_distance",
    "edit_distance_similarity",
    "is_similar_to_existing",
    "Deduplicator",
    "ChatGPTNoteEngine",
    "NoteSummarizer",
]
