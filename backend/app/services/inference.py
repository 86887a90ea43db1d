"""LLM inference provider: prompt in, free text out."""
from __future__ import annotations

import logging
from typing import Protocol

import google.generativeai as genai
from google.generativeai.types import HarmBlockThreshold, HarmCategory

from app.config import settings
from app.core.errors import InferenceNotConfiguredError
from app.services.gemini_common import run_generate_content

logger = logging.getLogger(__name__)

SAFETY_SETTINGS = {
    HarmCategory.HARM_CATEGORY_HARASSMENT: HarmBlockThreshold.BLOCK_NONE,
    HarmCategory.HARM_CATEGORY_HATE_SPEECH: HarmBlockThreshold.BLOCK_NONE,
    HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT: HarmBlockThreshold.BLOCK_NONE,
    HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT: HarmBlockThreshold.BLOCK_NONE,
}


class InferenceProvider(Protocol):
    async def complete(self, prompt: str, max_tokens: int) -> str: ...


class GeminiInferenceProvider:
    """Gemini chat completion. Output is not trusted to follow the requested format."""

    def __init__(
        self,
        api_key: str | None = None,
        model_name: str | None = None,
        timeout: float | None = None,
        temperature: float = 0.3,
    ) -> None:
        self.api_key = (api_key if api_key is not None else settings.google_gemini_api_key).strip()
        self.model_name = model_name or settings.gemini_model
        self.timeout = float(timeout or settings.gemini_request_timeout_seconds)
        self.temperature = temperature
        if self.api_key:
            genai.configure(api_key=self.api_key)
        else:
            logger.warning("GOOGLE_GEMINI_API_KEY not set; readiness scoring will use fallback mode")

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def complete(self, prompt: str, max_tokens: int) -> str:
        if not self.configured:
            raise InferenceNotConfiguredError("AI service not configured")
        model = genai.GenerativeModel(
            self.model_name,
            generation_config={"temperature": self.temperature, "max_output_tokens": max_tokens},
            safety_settings=SAFETY_SETTINGS,
        )
        response = await run_generate_content(model, [prompt], timeout=self.timeout)
        text = getattr(response, "text", None) if response else None
        if not text:
            raise ValueError("Empty response from Gemini")
        return text
