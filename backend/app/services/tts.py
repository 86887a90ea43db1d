"""Text-to-speech via OpenAI audio API. Returns MP3 bytes."""
from __future__ import annotations

import logging
from typing import Protocol

from openai import AsyncOpenAI

from app.config import settings
from app.core.errors import TextToSpeechNotConfiguredError

logger = logging.getLogger(__name__)


class TextToSpeechProvider(Protocol):
    async def synthesize(self, script: str, voice: str | None = None) -> bytes: ...


class OpenAITextToSpeech:
    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        default_voice: str | None = None,
        timeout: float | None = None,
    ) -> None:
        key = (api_key if api_key is not None else settings.openai_api_key).strip()
        self.model = model or settings.tts_model
        self.default_voice = default_voice or settings.tts_voice
        self._client: AsyncOpenAI | None = None
        if key:
            self._client = AsyncOpenAI(api_key=key, timeout=float(timeout or settings.tts_timeout_seconds))
        else:
            logger.warning("OPENAI_API_KEY not set; audio briefings are disabled")

    async def synthesize(self, script: str, voice: str | None = None) -> bytes:
        if self._client is None:
            raise TextToSpeechNotConfiguredError("Text-to-speech not configured")
        response = await self._client.audio.speech.create(
            model=self.model,
            voice=voice or self.default_voice,
            input=script,
            response_format="mp3",
        )
        return response.content

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None
