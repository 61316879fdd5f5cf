"""Event models delivered to the pipeline's event loop.

Every event carries the id of the session it was produced for; the
pipeline ignores events that belong to a session other than the current
one (for example a transcription that completes after a restart).
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from .notes import ContentQuality


@dataclass
class AudioFrameEvent:
    """Raw audio frame read from the source."""
    session_id: str
    audio_data: bytes
    timestamp: float
    frame_number: int


@dataclass
class TranscriptionCompletedEvent:
    """A transcription call returned (possibly empty) text."""
    session_id: str
    chunk_id: str
    sequence_number: int
    text: str
    processing_time: float = 0.0
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class TranscriptionFailedEvent:
    """A transcription call raised or timed out."""
    session_id: str
    chunk_id: str
    sequence_number: int
    error: str
    timed_out: bool = False
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class NoteDraftedEvent:
    """A scored segment whose note text is ready for the duplicate gates.

    ``content`` is None when the summarizer judged the segment meaningless.
    """
    session_id: str
    raw_transcript: str
    content: Optional[str]
    quality: ContentQuality


@dataclass
class SourceLostEvent:
    """The audio source stopped delivering frames."""
    session_id: str
    error: str


@dataclass
class StopEvent:
    """Session stop requested; triggers the shutdown flush."""
    session_id: str
