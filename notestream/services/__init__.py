"""Services layer for NoteStream session logic."""

from .capture_lifecycle import CaptureLifecycle, FALLBACK_MESSAGE
from .pipeline import NotePipeline, generate_session_id
from .publisher import NotePublisher, NOTES_TOPIC
from .segmenter import FlushReason, SegmentationSettings, Segmenter, SegmenterState

__all__ = [
    "CaptureLifecycle",
    "FALLBACK_MESSAGE",
    "NotePipeline",
    "generate_session_id",
    "NotePublisher",
    "NOTES_TOPIC",
    "FlushReason",
    "SegmentationSettings",
    "Segmenter",
    "SegmenterState",
]
