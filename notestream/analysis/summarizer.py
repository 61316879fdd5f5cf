"""LLM note summarizer: turns a noteworthy segment into a short note."""

import asyncio
import logging
import aiohttp
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

NO_NOTEWORTHY_CONTENT = "NO_NOTEWORTHY_CONTENT"

NOTE_PROMPT = """You are a professional note-taker in a meeting. Convert this transcription into a concise, direct note.

Create a brief note (1-2 sentences) that captures the key information. Format it as a complete thought in simple, direct language.

IMPORTANT:
- Do NOT use phrases like "The speaker says" or "The discussion mentions"
- Write in a direct, concise style as if you're taking notes in real-time
- Capture the core idea or fact without attribution
- Only respond with "{marker}" if the transcription is completely meaningless (like only "um", "uh", or random sounds)
- Try to extract something useful from almost any input, even if it's just a fragment

Transcription: "{text}\""""


class ChatGPTAPIError(Exception):
    """Raised when the chat completions endpoint returns an error."""


class ChatGPTNoteEngine:
    """Chat completions client used to write note text."""

    def __init__(self, api_key: str, model: str = "gpt-4o", request_timeout: float = 15.0,
                 temperature: float = 0.3, max_tokens: int = 100):
        self.api_key = api_key
        self.model = model
        self.request_timeout = request_timeout
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.base_url = "https://api.openai.com/v1/chat/completions"

        logger.info(f"ChatGPTNoteEngine initialized with model: {model}")

    def build_request(self, prompt: str) -> Dict[str, Any]:
        return {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }

    @staticmethod
    def parse_reply(payload: Dict[str, Any]) -> str:
        """Pull the first choice's text out of a completions response."""
        try:
            return payload["choices"][0]["message"]["content"].strip()
        except (KeyError, IndexError, TypeError, AttributeError) as e:
            raise ChatGPTAPIError(f"Malformed ChatGPT response: {e!r}") from e

    async def complete(self, prompt: str) -> str:
        """Send one prompt and return the reply text.

        Raises:
            ChatGPTAPIError: On a non-200 status, a transport failure, a
                timeout or an unreadable reply
        """
        headers = {"Authorization": f"Bearer {self.api_key}"}
        timeout = aiohttp.ClientTimeout(total=self.request_timeout)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(self.base_url, headers=headers,
                                        json=self.build_request(prompt)) as response:
                    if response.status != 200:
                        error_text = await response.text()
                        raise ChatGPTAPIError(f"ChatGPT API error: {response.status} - {error_text}")
                    payload = await response.json()
        except aiohttp.ClientError as e:
            raise ChatGPTAPIError(f"ChatGPT request failed: {e}") from e
        except asyncio.TimeoutError as e:
            raise ChatGPTAPIError(f"ChatGPT request timed out after {self.request_timeout}s") from e

        return self.parse_reply(payload)


class NoteSummarizer:
    """Writes the note text for a segment that passed quality scoring."""

    def __init__(self, engine: ChatGPTNoteEngine):
        self.engine = engine

    async def summarize(self, text: str) -> Optional[str]:
        """Summarize text into a note.

        Returns:
            The note text, or None if the model found nothing worth noting
            or the request failed
        """
        if not text or not text.strip():
            return None

        prompt = NOTE_PROMPT.format(marker=NO_NOTEWORTHY_CONTENT, text=text.strip())
        try:
            summary = await self.engine.complete(prompt)
        except ChatGPTAPIError as e:
            logger.error(f"Note generation error: {e}")
            return None

        if NO_NOTEWORTHY_CONTENT in summary:
            logger.info("Summarizer found no noteworthy content")
            return None

        logger.debug(f"Generated note: {summary}")
        return summary.strip() or None
