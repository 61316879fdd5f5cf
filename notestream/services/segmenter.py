"""Silence-based speech segmentation.

Decides when the accumulated transcript should be flushed. The segmenter
never touches the buffer itself: it is told the buffered word count and the
current time and answers with the reason to flush, if any. Timing state
lives in the shared SessionState.
"""

import logging
from dataclasses import dataclass, fields
from enum import Enum
from typing import Optional, Sequence

from ..models.session import SessionState

logger = logging.getLogger(__name__)


class SegmenterState(Enum):
    IDLE = "idle"
    LISTENING = "listening"
    SILENCE_PENDING = "silence_pending"


class FlushReason(Enum):
    PAUSE = "pause"
    LENGTH = "length"
    STALENESS = "staleness"
    FALLBACK = "fallback"
    SHUTDOWN = "shutdown"


@dataclass
class SegmentationSettings:
    """Timing and size thresholds for segmentation."""
    pause_detection_seconds: float = 0.4
    min_silence_level: float = 0.02
    silence_window: int = 5
    min_content_words: int = 3
    max_content_words: int = 150
    min_seconds_between_notes: float = 0.8
    stale_flush_seconds: float = 3.0

    @classmethod
    def from_config(cls, config) -> "SegmentationSettings":
        """Read the segmentation section of a NoteStreamConfig."""
        defaults = cls()
        values = {
            f.name: type(getattr(defaults, f.name))(config.get(f"segmentation.{f.name}", getattr(defaults, f.name)))
            for f in fields(cls)
        }
        return cls(**values)


class Segmenter:
    """State machine over level samples and transcript growth."""

    def __init__(self, settings: Optional[SegmentationSettings] = None):
        self.settings = settings or SegmentationSettings()
        self.state = SegmenterState.IDLE
        self.session: Optional[SessionState] = None

    def begin(self, session: SessionState, now: float) -> None:
        """Enter a new session."""
        self.session = session
        session.last_flush_time = now
        session.silence_start_time = None
        self.state = SegmenterState.LISTENING

    def end(self) -> None:
        self.state = SegmenterState.IDLE

    def mark_flushed(self, now: float) -> None:
        if self.session is not None:
            self.session.last_flush_time = now

    def on_level_sample(self, recent_levels: Sequence[float], word_count: int,
                        now: float) -> Optional[FlushReason]:
        """Evaluate the length and pause rules after a level sample.

        Args:
            recent_levels: Level history, oldest first
            word_count: Words currently buffered
            now: Current clock value in seconds

        Returns:
            The reason to flush, or None
        """
        if self.state is SegmenterState.IDLE or self.session is None:
            return None

        settings = self.settings
        since_flush = now - self.session.last_flush_time

        if word_count >= settings.max_content_words and since_flush > settings.min_seconds_between_notes:
            logger.debug(f"Length flush: {word_count} words buffered")
            return FlushReason.LENGTH

        if len(recent_levels) < settings.silence_window:
            return None

        window = list(recent_levels)[-settings.silence_window:]
        if all(level < settings.min_silence_level for level in window):
            if self.session.silence_start_time is None:
                self.session.silence_start_time = now
                self.state = SegmenterState.SILENCE_PENDING
                return None

            if (now - self.session.silence_start_time >= settings.pause_detection_seconds
                    and word_count >= settings.min_content_words
                    and since_flush >= settings.min_seconds_between_notes):
                logger.debug(f"Pause flush after {now - self.session.silence_start_time:.2f}s of silence")
                return FlushReason.PAUSE
        else:
            self.session.silence_start_time = None
            self.state = SegmenterState.LISTENING

        return None

    def on_fragment(self, word_count: int, now: float) -> Optional[FlushReason]:
        """Evaluate the staleness rule after a transcript fragment arrives."""
        if self.state is SegmenterState.IDLE or self.session is None:
            return None

        since_flush = now - self.session.last_flush_time
        if since_flush > self.settings.stale_flush_seconds and word_count >= self.settings.min_content_words:
            logger.debug(f"Staleness flush: {since_flush:.2f}s since last flush")
            return FlushReason.STALENESS
        return None
