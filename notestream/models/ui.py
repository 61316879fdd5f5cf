"""UI-related data models."""

from dataclasses import dataclass
from typing import Optional

from .audio import AudioStats
from .notes import ContentQuality


@dataclass
class PipelineStatus:
    """Read-only snapshot of the pipeline for presentation layers."""
    session_id: Optional[str] = None
    is_recording: bool = False
    is_processing: bool = False
    current_level: float = 0.0
    content_quality: Optional[ContentQuality] = None
    filtered_count: int = 0
    notes_emitted: int = 0
    pending_transcriptions: int = 0
    buffered_words: int = 0
    audio: Optional[AudioStats] = None  # None until capture has started
