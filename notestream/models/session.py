"""Session-related data models."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass
class SessionState:
    """Mutable per-session state.

    Owned by the pipeline and handed by reference to the segmenter and the
    capture lifecycle. A fresh instance is created on every session start.
    """
    session_id: str
    started_at: datetime = field(default_factory=datetime.now)
    consecutive_transcription_errors: int = 0
    fallback_emitted: bool = False  # cleared by the next non-empty transcription
    last_flush_time: float = 0.0  # clock() value of the last flush
    silence_start_time: Optional[float] = None
    notes_emitted: int = 0
    filtered_count: int = 0
    chunks_submitted: int = 0
    chunks_discarded: int = 0
    stopped: bool = False
