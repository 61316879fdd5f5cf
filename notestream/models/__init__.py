"""Data models for the notestream application."""

from .audio import AudioStats, AudioFrame, AudioChunk
from .session import SessionState
from .ui import PipelineStatus
from .notes import ContentQuality, Note
from .events import (
    AudioFrameEvent,
    TranscriptionCompletedEvent,
    TranscriptionFailedEvent,
    NoteDraftedEvent,
    SourceLostEvent,
    StopEvent,
)

__all__ = [
    "AudioStats",
    "AudioFrame",
    "AudioChunk",
    "SessionState",
    "PipelineStatus",
    "ContentQuality",
    "Note",
    # Event loop messages
    "AudioFrameEvent",
    "TranscriptionCompletedEvent",
    "TranscriptionFailedEvent",
    "NoteDraftedEvent",
    "SourceLostEvent",
    "StopEvent",
]
