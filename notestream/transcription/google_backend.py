"""Google Speech-to-Text transcription backend."""

import time
import asyncio
import logging
import functools
from typing import Optional

from .base import AbstractTranscriptionBackend, TranscriptionError, TranscriptionTimeout
from ..models.audio import AudioChunk

from google.cloud import speech
from google.api_core import exceptions as gax_exceptions
from google.oauth2 import service_account

logger = logging.getLogger(__name__)


class GoogleSpeechBackend(AbstractTranscriptionBackend):
    """Google Speech-to-Text API backend for transcription."""

    service_name = "Google Speech-to-Text"

    def __init__(self,
                 credentials_path: Optional[str] = None,
                 sample_rate: int = 16000,
                 language: str = "en-US",
                 use_enhanced: bool = True,
                 enable_automatic_punctuation: bool = True):
        """Initialize Google Speech backend.

        Args:
            credentials_path: Path to Google Cloud service account JSON file
            sample_rate: Sample rate of the PCM chunks
            language: Language code (e.g., 'en-US', 'es-ES')
            use_enhanced: Whether to use enhanced model (costs more but better quality)
            enable_automatic_punctuation: Enable automatic punctuation
        """
        super().__init__(language)
        self.credentials_path = credentials_path
        if not self.credentials_path:
            raise ValueError("Google credentials path is required - cannot initialize without credentials")
        self.sample_rate = sample_rate
        self.use_enhanced = use_enhanced
        self.enable_automatic_punctuation = enable_automatic_punctuation
        self.client = None
        self.project_id = None

    def _recognition_config(self, language_code: str) -> speech.RecognitionConfig:
        return speech.RecognitionConfig(
            encoding=speech.RecognitionConfig.AudioEncoding.LINEAR16,
            sample_rate_hertz=self.sample_rate,
            language_code=language_code,
            use_enhanced=self.use_enhanced,
            enable_automatic_punctuation=self.enable_automatic_punctuation,
            # Use model optimized for short audio
            model="latest_short",
        )

    def initialize(self) -> bool:
        """Initialize Google Speech client and verify credentials."""
        logger.info(f"Loading Google credentials from: {self.credentials_path}")
        credentials = service_account.Credentials.from_service_account_file(self.credentials_path)

        # Initialize client with direct credentials - CRASH if credentials are invalid
        self.client = speech.SpeechClient(credentials=credentials)

        self.project_id = credentials.project_id
        logger.info(f"Using Google Cloud project: {self.project_id}")

        logger.info("Google Speech-to-Text backend initialized successfully")
        return True

    async def transcribe(self, chunk: AudioChunk, language: str, timeout: float) -> str:
        """Transcribe a PCM chunk using Google Speech-to-Text."""
        if self.client is None:
            raise TranscriptionError("Google Speech backend is not initialized")

        # Google wants a full locale; a bare hint such as "en" falls back to ours
        language_code = language if language and "-" in language else self.language
        logger.debug(f"Chunk ID: {chunk.chunk_id}; Audio chunk size: {chunk.size} bytes; "
                     f"Language: {language_code}; Enhanced model: {self.use_enhanced}")

        audio = speech.RecognitionAudio(content=chunk.audio_data)
        recognize = functools.partial(
            self.client.recognize,
            config=self._recognition_config(language_code),
            audio=audio,
            timeout=timeout,
        )

        start_time = time.time()
        loop = asyncio.get_running_loop()
        try:
            response = await loop.run_in_executor(None, recognize)
        except gax_exceptions.DeadlineExceeded as e:
            logger.error("Google STT recognize deadline exceeded for chunk %s", chunk.chunk_id)
            raise TranscriptionTimeout(f"Google Speech recognize timeout (chunk={chunk.chunk_id}): {e}") from e
        except gax_exceptions.ServiceUnavailable as e:
            logger.error("Google STT service unavailable for chunk %s", chunk.chunk_id)
            raise TranscriptionError(f"Google Speech service unavailable (chunk={chunk.chunk_id}): {e}") from e
        except gax_exceptions.GoogleAPICallError as e:
            logger.error("Google STT API call error for chunk %s: %s", chunk.chunk_id, e)
            raise TranscriptionError(f"Google Speech API error (chunk={chunk.chunk_id}): {e}") from e
        processing_time = time.time() - start_time

        if not response.results:
            logger.debug(f"--- NO SPEECH DETECTED --- ({processing_time:.3f}s)")
            return ""

        transcript = " ".join(
            result.alternatives[0].transcript.strip()
            for result in response.results
            if result.alternatives
        )
        logger.debug(f"TRANSCRIPTION SUCCESS: '{transcript}' (processing_time: {processing_time:.3f}s)")
        return transcript

    def cleanup(self) -> None:
        """Clean up Google Speech client resources."""
        self.client = None
