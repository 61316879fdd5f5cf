"""Transcription module for notestream."""

from .base import AbstractTranscriptionBackend, TranscriptionError, TranscriptionTimeout
from .consumers import TranscriptionConsumer, TranscriptionTask
from .whisper_backend import WhisperBackend

__all__ = [
    "AbstractTranscriptionBackend",
    "TranscriptionError",
    "TranscriptionTimeout",
    "TranscriptionConsumer",
    "TranscriptionTask",
    "WhisperBackend",
]
