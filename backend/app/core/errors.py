"""Errors raised by the readiness pipeline and its collaborators."""


class ReadinessError(Exception):
    """Base class for readiness service errors."""


class InferenceNotConfiguredError(ReadinessError):
    """LLM provider has no credentials; scoring falls back, briefing script falls back."""


class TextToSpeechNotConfiguredError(ReadinessError):
    """TTS provider has no credentials; briefing generation cannot complete."""


class AssessmentNotFoundError(ReadinessError):
    """No readiness row exists for (athlete, date)."""

    def __init__(self, athlete_id: str, day) -> None:
        self.athlete_id = athlete_id
        self.day = day
        super().__init__(f"No readiness assessment for athlete {athlete_id} on {day}")
