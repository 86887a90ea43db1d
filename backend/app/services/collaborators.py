"""
Process-wide external collaborators (LLM, weather, TTS, blob storage).
Created in app lifespan and passed into the pipeline; tests build their own.
"""
from __future__ import annotations

from dataclasses import dataclass

from app.services.inference import GeminiInferenceProvider, InferenceProvider
from app.services.storage import BlobStorage, S3BlobStorage
from app.services.tts import OpenAITextToSpeech, TextToSpeechProvider
from app.services.weather import OpenMeteoWeatherProvider, WeatherProvider


@dataclass
class Collaborators:
    inference: InferenceProvider
    weather: WeatherProvider
    tts: TextToSpeechProvider
    storage: BlobStorage


_collaborators: Collaborators | None = None


def get_collaborators() -> Collaborators:
    """Return the shared collaborators. Must be initialized via init_collaborators() first."""
    if _collaborators is None:
        raise RuntimeError("Collaborators not initialized; ensure app lifespan has run init_collaborators().")
    return _collaborators


def init_collaborators(collaborators: Collaborators | None = None) -> Collaborators:
    """Create (or install the given) collaborators. Call from app lifespan startup after init_http_client()."""
    global _collaborators
    if collaborators is not None:
        _collaborators = collaborators
        return _collaborators
    if _collaborators is not None:
        return _collaborators
    _collaborators = Collaborators(
        inference=GeminiInferenceProvider(),
        weather=OpenMeteoWeatherProvider(),
        tts=OpenAITextToSpeech(),
        storage=S3BlobStorage(),
    )
    return _collaborators


async def close_collaborators() -> None:
    """Release collaborator resources. Call from app lifespan shutdown."""
    global _collaborators
    if _collaborators is not None:
        close = getattr(_collaborators.tts, "close", None)
        if close is not None:
            await close()
        _collaborators = None
