"""OpenAI Whisper transcription backend."""

import asyncio
import logging
from typing import Optional

import aiohttp

from .base import AbstractTranscriptionBackend, TranscriptionError, TranscriptionTimeout
from ..models.audio import AudioChunk

logger = logging.getLogger(__name__)


class WhisperBackend(AbstractTranscriptionBackend):
    """Sends WAV-wrapped chunks to the OpenAI audio transcription endpoint."""

    service_name = "OpenAI Whisper"

    def __init__(self,
                 api_key: str,
                 model: str = "whisper-1",
                 language: str = "en",
                 base_url: str = "https://api.openai.com/v1/audio/transcriptions"):
        """Initialize Whisper backend.

        Args:
            api_key: OpenAI API key
            model: Transcription model name
            language: Default ISO-639-1 language hint
            base_url: Transcription endpoint
        """
        super().__init__(language)
        if not api_key:
            raise ValueError("OpenAI API key is required for the Whisper backend")
        self.api_key = api_key
        self.model = model
        self.base_url = base_url

    def initialize(self) -> bool:
        logger.info(f"Whisper backend ready (model={self.model}, language={self.language})")
        return True

    def _form(self, chunk: AudioChunk, language: Optional[str]) -> aiohttp.FormData:
        form = aiohttp.FormData()
        form.add_field("model", self.model)
        form.add_field("language", language or self.language)
        form.add_field("response_format", "json")
        form.add_field(
            "file",
            chunk.to_wav(),
            filename=f"{chunk.chunk_id}.wav",
            content_type="audio/wav",
        )
        return form

    async def transcribe(self, chunk: AudioChunk, language: str, timeout: float) -> str:
        headers = {"Authorization": f"Bearer {self.api_key}"}
        client_timeout = aiohttp.ClientTimeout(total=timeout)

        logger.debug(f"Sending {chunk.chunk_id} ({chunk.size} bytes PCM) to {self.model}")
        try:
            async with aiohttp.ClientSession(timeout=client_timeout) as session:
                async with session.post(self.base_url, headers=headers,
                                        data=self._form(chunk, language)) as response:
                    if response.status != 200:
                        error_text = await response.text()
                        raise TranscriptionError(
                            f"Whisper API error: {response.status} - {error_text}")
                    result = await response.json()
        except asyncio.TimeoutError as e:
            raise TranscriptionTimeout(f"Whisper request timed out (chunk={chunk.chunk_id})") from e
        except aiohttp.ClientError as e:
            raise TranscriptionError(f"Whisper request failed (chunk={chunk.chunk_id}): {e}") from e

        text = (result.get("text") or "").strip()
        logger.debug(f"Whisper returned '{text}' for {chunk.chunk_id}")
        return text

    def cleanup(self) -> None:
        pass
