"""Abstract base classes and errors for transcription backends."""

from abc import ABC, abstractmethod
import logging

from ..models.audio import AudioChunk

logger = logging.getLogger(__name__)


class TranscriptionError(Exception):
    """A transcription call failed."""


class TranscriptionTimeout(TranscriptionError):
    """A transcription call did not finish within its timeout."""


class AbstractTranscriptionBackend(ABC):
    """Abstract base class for transcription backends."""

    service_name = "unknown"

    def __init__(self, language: str = "en"):
        """Initialize backend with language preference."""
        self.language = language

    @abstractmethod
    async def transcribe(self, chunk: AudioChunk, language: str, timeout: float) -> str:
        """Transcribe an audio chunk and return its text.

        Args:
            chunk: Audio chunk to transcribe
            language: Language hint for the service
            timeout: Seconds the call may take

        Returns:
            Transcribed text, empty if no speech was recognised

        Raises:
            TranscriptionTimeout: If the service did not answer in time
            TranscriptionError: If the service call failed
        """
        pass

    @abstractmethod
    def initialize(self) -> bool:
        """Initialize backend resources and verify configuration.

        Returns:
            True if initialization successful, False otherwise
        """
        pass

    @abstractmethod
    def cleanup(self) -> None:
        """Clean up backend resources."""
        pass
